# OAuth2 data models.
# Created: 2026-10-18

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class ProviderConfig:
    """Static OAuth2 configuration for one identity provider."""

    key: str
    name: str
    auth_url: str
    token_url: str
    scope: str
    client_id: str = ""
    client_secret: str = ""
    revoke_url: str | None = None  # None: tokens just expire provider-side
    userinfo_url: str | None = None
    extra_params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only copy; the caller's dict stays detached
        object.__setattr__(self, "extra_params", MappingProxyType(dict(self.extra_params)))

    @property
    def supports_revocation(self) -> bool:
        return bool(self.revoke_url)

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass
class OAuthState:
    """Pending CSRF state issued for one authorization attempt."""

    state: str
    provider: str
    created_at: float  # clock seconds


@dataclass(frozen=True)
class StateValidation:
    """Outcome of consuming a state token."""

    valid: bool
    provider: str | None = None

    def __bool__(self) -> bool:
        return self.valid


@dataclass(frozen=True)
class PKCEChallenge:
    """PKCE verifier/challenge pair. Only the challenge leaves the caller."""

    code_verifier: str
    code_challenge: str
    method: str = "S256"


@dataclass
class TokenResult:
    """Normalized token endpoint response.

    ``refresh_token`` is None when the provider did not issue one. On a
    refresh this means the previously stored refresh token is still the
    one to keep.
    """

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str = "Bearer"
    scope: str | None = None
    id_token: str | None = None
    issued_at: float = field(default_factory=time.time)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def has_refresh_token(self) -> bool:
        return self.refresh_token is not None

    @property
    def expires_at(self) -> float | None:
        if self.expires_in is None:
            return None
        return self.issued_at + self.expires_in

    def is_expired(self, now: float | None = None, leeway: float = 60.0) -> bool:
        """True if the access token is expired or will be within *leeway* seconds.

        Tokens without a known expiry are treated as expired.
        """
        expires_at = self.expires_at
        if expires_at is None:
            return True
        current = time.time() if now is None else now
        return current + leeway >= expires_at


@dataclass
class UserProfile:
    """Identity of the account that granted access."""

    email: str
    name: str | None = None
    picture: str | None = None
    verified: bool = False
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthorizationRequest:
    """Everything a caller needs to send the user to the provider."""

    url: str
    state: str
    provider: str
    pkce: PKCEChallenge | None = None
