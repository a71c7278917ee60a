# Provider registry — static OAuth2 endpoint catalog for email providers.
# Created: 2026-10-18
#
# The happy path (authorization code + refresh) is identical for every
# provider; only the fields on ProviderConfig differ. Read-only after
# construction.

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from mailoauth.config import Settings, get_settings
from mailoauth.oauth2.errors import UnknownProviderError
from mailoauth.oauth2.models import ProviderConfig

logger = logging.getLogger(__name__)


# Endpoint + scope definitions; credentials are filled in from Settings.
PROVIDERS: dict[str, dict] = {
    "gmail": {
        "name": "Gmail",
        "auth_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "revoke_url": "https://oauth2.googleapis.com/revoke",
        "userinfo_url": "https://www.googleapis.com/oauth2/v2/userinfo",
        "scope": (
            "https://www.googleapis.com/auth/gmail.modify "
            "https://www.googleapis.com/auth/gmail.send "
            "https://www.googleapis.com/auth/userinfo.email"
        ),
        "extra_params": {
            "access_type": "offline",
            "prompt": "consent",
            "include_granted_scopes": "true",
        },
    },
    "outlook": {
        "name": "Outlook",
        "auth_url": "https://login.microsoftonline.com/common/oauth2/v2.0/authorize",
        "token_url": "https://login.microsoftonline.com/common/oauth2/v2.0/token",
        "revoke_url": None,
        "userinfo_url": "https://graph.microsoft.com/v1.0/me",
        "scope": (
            "https://graph.microsoft.com/Mail.ReadWrite "
            "https://graph.microsoft.com/Mail.Send "
            "https://graph.microsoft.com/User.Read "
            "offline_access"
        ),
        "extra_params": {},
    },
    "yahoo": {
        "name": "Yahoo",
        "auth_url": "https://api.login.yahoo.com/oauth2/request_auth",
        "token_url": "https://api.login.yahoo.com/oauth2/get_token",
        "revoke_url": None,
        "userinfo_url": "https://api.login.yahoo.com/openid/v1/userinfo",
        "scope": "mail-w",
        "extra_params": {},
    },
}

# provider key -> (client_id field, client_secret field) on Settings
_CREDENTIAL_FIELDS: dict[str, tuple[str, str]] = {
    "gmail": ("google_client_id", "google_client_secret"),
    "outlook": ("microsoft_client_id", "microsoft_client_secret"),
    "yahoo": ("yahoo_client_id", "yahoo_client_secret"),
}


class ProviderRegistry:
    """Catalog of ProviderConfig keyed by provider name, in insertion order."""

    def __init__(self, providers: Iterable[ProviderConfig] = ()):
        self._providers: dict[str, ProviderConfig] = {}
        for config in providers:
            if config.key in self._providers:
                raise ValueError(f"Duplicate OAuth provider: {config.key}")
            self._providers[config.key] = config

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ProviderRegistry:
        """Build the built-in gmail/outlook/yahoo catalog with configured credentials."""
        settings = settings or get_settings()
        configs = []
        for key, entry in PROVIDERS.items():
            id_field, secret_field = _CREDENTIAL_FIELDS[key]
            configs.append(
                ProviderConfig(
                    key=key,
                    name=entry["name"],
                    auth_url=entry["auth_url"],
                    token_url=entry["token_url"],
                    revoke_url=entry["revoke_url"],
                    userinfo_url=entry["userinfo_url"],
                    scope=entry["scope"],
                    client_id=getattr(settings, id_field) or "",
                    client_secret=getattr(settings, secret_field) or "",
                    extra_params=entry["extra_params"],
                )
            )
        registry = cls(configs)
        logger.info(
            "OAuth providers loaded: %s (configured: %s)",
            ", ".join(registry.list()),
            ", ".join(registry.configured()) or "none",
        )
        return registry

    def get(self, provider: str) -> ProviderConfig:
        """Return the config for *provider* or raise UnknownProviderError."""
        config = self._providers.get(provider)
        if config is None:
            raise UnknownProviderError(provider)
        return config

    def is_configured(self, provider: str) -> bool:
        """True only if the provider is known and has both client ID and secret."""
        config = self._providers.get(provider)
        return bool(config and config.is_configured)

    def list(self) -> list[str]:
        return list(self._providers)

    def configured(self) -> list[str]:
        return [key for key, config in self._providers.items() if config.is_configured]

    def __contains__(self, provider: object) -> bool:
        return provider in self._providers

    def __iter__(self) -> Iterator[ProviderConfig]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)
