# Token exchanger — provider HTTP calls for code exchange, refresh, revoke.
# Created: 2026-10-18
#
# Each call opens its own httpx.AsyncClient. Nothing is retried here;
# authorization codes are single-use.

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from typing import Any

import httpx

from mailoauth.oauth2.errors import (
    MissingCredentialsError,
    NotSupportedError,
    TokenExchangeError,
    TransportError,
)
from mailoauth.oauth2.models import ProviderConfig, TokenResult, UserProfile
from mailoauth.oauth2.providers import ProviderRegistry

logger = logging.getLogger(__name__)

_KNOWN_TOKEN_FIELDS = {
    "access_token",
    "refresh_token",
    "expires_in",
    "token_type",
    "scope",
    "id_token",
}


class TokenExchanger:
    """Translates normalized token requests into each provider's HTTP contract."""

    def __init__(
        self,
        registry: ProviderRegistry,
        redirect_base_uri: str,
        timeout: float = 15.0,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.redirect_base_uri = redirect_base_uri.rstrip("/")
        self.timeout = timeout
        self._clock = clock

    def redirect_uri(self, provider: str) -> str:
        """Per-provider callback: ``{redirect_base_uri}/{provider}``."""
        return f"{self.redirect_base_uri}/{provider}"

    async def exchange_code(
        self,
        provider: str,
        code: str,
        redirect_uri: str | None = None,
        code_verifier: str | None = None,
    ) -> TokenResult:
        """Exchange an authorization code for tokens.

        Args:
            provider: Provider key (e.g. "gmail").
            code: Authorization code from the callback.
            redirect_uri: Must match the one used in the authorization
                request. Defaults to the per-provider redirect URI.
            code_verifier: PKCE verifier, if the flow used a challenge.

        Returns:
            TokenResult with the issued tokens.
        """
        config = self._credentials(provider)
        data = {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "code": code,
            "redirect_uri": redirect_uri or self.redirect_uri(provider),
            "grant_type": "authorization_code",
        }
        if code_verifier:
            data["code_verifier"] = code_verifier

        payload = await self._token_request(config, data, "token exchange")
        result = self._to_result(config, payload, "token exchange")
        logger.info("OAuth code exchanged for %s", provider)
        return result

    async def refresh_token(self, provider: str, refresh_token: str) -> TokenResult:
        """Obtain a new access token.

        If the provider does not rotate the refresh token, the result's
        ``refresh_token`` is None and the caller keeps the one it has.
        """
        config = self._credentials(provider)
        data = {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        payload = await self._token_request(config, data, "token refresh")
        result = self._to_result(config, payload, "token refresh")
        logger.info(
            "Refreshed OAuth token for %s (new refresh token: %s)",
            provider,
            "yes" if result.has_refresh_token else "no",
        )
        return result

    async def revoke_token(self, provider: str, token: str) -> None:
        """Revoke an access or refresh token at the provider."""
        config = self.registry.get(provider)
        if not config.supports_revocation:
            raise NotSupportedError(provider, "token revocation")

        resp = await self._send(
            config, "POST", config.revoke_url, "token revocation", data={"token": token}
        )
        if not 200 <= resp.status_code < 300:
            raise self._http_error(config, resp, "token revocation")
        logger.info("Revoked OAuth token for %s", provider)

    async def fetch_user_profile(self, provider: str, access_token: str) -> UserProfile:
        """Look up the account behind *access_token* via the provider's userinfo endpoint."""
        config = self.registry.get(provider)
        if not config.userinfo_url:
            raise NotSupportedError(provider, "user profile lookup")

        resp = await self._send(
            config,
            "GET",
            config.userinfo_url,
            "user profile lookup",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if not 200 <= resp.status_code < 300:
            raise self._http_error(config, resp, "user profile lookup")

        data = self._json(resp)
        if not isinstance(data, dict):
            raise TokenExchangeError(
                provider,
                resp.status_code,
                "Userinfo response is not a JSON object",
                operation="user profile lookup",
            )
        return _profile_from(data)

    # -- helpers -----------------------------------------------------------

    def _credentials(self, provider: str) -> ProviderConfig:
        config = self.registry.get(provider)
        if not config.is_configured:
            raise MissingCredentialsError(provider)
        return config

    async def _token_request(
        self, config: ProviderConfig, data: dict[str, str], operation: str
    ) -> dict[str, Any]:
        resp = await self._send(
            config,
            "POST",
            config.token_url,
            operation,
            data=data,
            headers={"Accept": "application/json"},
        )
        if not 200 <= resp.status_code < 300:
            raise self._http_error(config, resp, operation)

        payload = self._json(resp)
        if not isinstance(payload, dict) or not payload.get("access_token"):
            logger.warning("%s for %s returned no access token", operation, config.key)
            raise TokenExchangeError(
                config.key, resp.status_code, "Response contained no access_token", operation
            )
        return payload

    async def _send(
        self,
        config: ProviderConfig,
        method: str,
        url: str,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s for %s failed at transport level: %s", operation, config.key, e)
            raise TransportError(
                f"{operation.capitalize()} for {config.key} failed: {e}", config.key, operation
            ) from e

    def _http_error(
        self, config: ProviderConfig, resp: httpx.Response, operation: str
    ) -> TokenExchangeError:
        message = _provider_message(resp)
        logger.warning(
            "%s rejected by %s (HTTP %s): %s", operation, config.key, resp.status_code, message
        )
        return TokenExchangeError(config.key, resp.status_code, message, operation)

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    def _to_result(
        self, config: ProviderConfig, payload: dict[str, Any], operation: str
    ) -> TokenResult:
        expires_in = payload.get("expires_in")
        if expires_in is not None:
            expires_in = _parse_expires_in(config, expires_in, operation)

        return TokenResult(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or None,
            expires_in=expires_in,
            token_type=payload.get("token_type") or "Bearer",
            scope=payload.get("scope"),
            id_token=payload.get("id_token"),
            issued_at=self._clock(),
            extra={k: v for k, v in payload.items() if k not in _KNOWN_TOKEN_FIELDS},
        )


def _parse_expires_in(config: ProviderConfig, value: Any, operation: str) -> int:
    """Whole seconds from a JSON number or numeric string, rounded down.

    Booleans, negatives, non-finite and non-numeric values are rejected.
    """
    seconds = None
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        try:
            seconds = float(value)
        except (ValueError, OverflowError):
            seconds = None
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        raise TokenExchangeError(config.key, None, f"Invalid expires_in: {value!r}", operation)
    return math.floor(seconds)


def _provider_message(resp: httpx.Response) -> str:
    """Best diagnostic text from an OAuth error body (RFC 6749 §5.2 or raw text)."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error_description", "error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            # Graph nests errors: {"error": {"code": ..., "message": ...}}
            if isinstance(value, dict) and value.get("message"):
                return str(value["message"])
    return (resp.text or "").strip() or f"HTTP {resp.status_code}"


def _profile_from(data: dict[str, Any]) -> UserProfile:
    """Normalize Google, Microsoft Graph, and OpenID userinfo payloads."""
    email = data.get("email") or data.get("mail") or data.get("userPrincipalName") or ""
    name = data.get("name") or data.get("displayName")
    verified = data.get("verified_email", data.get("email_verified", False))
    if "mail" in data or "userPrincipalName" in data:
        # Graph only returns mailbox addresses the tenant already owns
        verified = bool(email)
    return UserProfile(
        email=email,
        name=name,
        picture=data.get("picture"),
        verified=bool(verified),
        raw=data,
    )
