"""
Exception classes for the OAuth2 subsystem.

Every error carries the provider key it relates to (when known) and a
stable ``code`` string so callers can map failures to user-facing
messages without parsing text.
"""

from __future__ import annotations


class OAuthError(Exception):
    """Base exception for OAuth2 flow and token-lifecycle errors."""

    code = "oauth_error"
    retryable = False

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider


class UnknownProviderError(OAuthError):
    """Raised when a provider key is not in the registry."""

    code = "unknown_provider"

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unknown OAuth provider: {provider}", provider)


class MissingCredentialsError(OAuthError):
    """Raised when a known provider has no client ID or secret configured."""

    code = "missing_credentials"

    def __init__(self, provider: str) -> None:
        super().__init__(f"Missing client credentials for {provider}", provider)


class InvalidOrExpiredStateError(OAuthError):
    """Raised when a CSRF state is unknown, already consumed, or past its TTL.

    The caller should restart the authorization flow; the same state can
    never succeed again.
    """

    code = "invalid_state"

    def __init__(self, message: str = "Invalid or expired OAuth state") -> None:
        super().__init__(message)


class TokenExchangeError(OAuthError):
    """Raised when a provider rejects a code, refresh token, or revocation."""

    code = "token_exchange_failed"

    def __init__(
        self,
        provider: str,
        status_code: int | None,
        provider_message: str,
        operation: str = "token exchange",
    ) -> None:
        status = f"HTTP {status_code}" if status_code is not None else "invalid response"
        message = f"{operation.capitalize()} failed for {provider} ({status}): {provider_message}"
        super().__init__(message, provider)
        self.status_code = status_code
        self.provider_message = provider_message
        self.operation = operation


class TransportError(OAuthError):
    """Raised on network-level failures (DNS, timeout, connection refused).

    Not retried here. ``retryable`` is True when the same call may be sent
    again (refresh, revoke, profile lookup). It is False for a code
    exchange: the code may already be spent, so the whole flow restarts.
    """

    code = "transport_error"
    retryable = True

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, provider)
        self.operation = operation
        self.retryable = operation != "token exchange"


class NotSupportedError(OAuthError):
    """Raised when a provider does not offer the requested operation."""

    code = "not_supported"

    def __init__(self, provider: str, operation: str) -> None:
        super().__init__(f"{operation.capitalize()} is not supported by {provider}", provider)
        self.operation = operation
