# OAuth2 Handler — authorization URL, callback completion, refresh, revoke.
# Created: 2026-10-18
#
# Composes ProviderRegistry, StateStore, PKCE and TokenExchanger. Token
# persistence is left to the caller: every method returns results and
# never stores them.

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Mapping

from mailoauth.config import Settings, get_settings
from mailoauth.oauth2 import pkce
from mailoauth.oauth2.discovery import detect_provider
from mailoauth.oauth2.errors import (
    InvalidOrExpiredStateError,
    MissingCredentialsError,
    NotSupportedError,
)
from mailoauth.oauth2.exchanger import TokenExchanger
from mailoauth.oauth2.models import (
    AuthorizationRequest,
    PKCEChallenge,
    StateValidation,
    TokenResult,
    UserProfile,
)
from mailoauth.oauth2.providers import ProviderRegistry
from mailoauth.oauth2.state import StateStore

logger = logging.getLogger(__name__)

# Written by build_authorization_url itself, never by extra params
_PROTOCOL_PARAMS = frozenset(
    {
        "client_id",
        "redirect_uri",
        "response_type",
        "scope",
        "state",
        "code_challenge",
        "code_challenge_method",
    }
)


class OAuth2Handler:
    """Multi-provider OAuth 2.0 authorization code flow + token lifecycle.

    Supports:
    - Authorization URL generation with CSRF state and optional PKCE
    - Callback completion (state check + code exchange)
    - Token refresh and revocation
    - Userinfo lookup for the connected account

    Any collaborator left as None is built from settings.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        state_store: StateStore | None = None,
        exchanger: TokenExchanger | None = None,
        redirect_base_uri: str | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.registry = registry or ProviderRegistry.from_settings(settings)
        self.states = state_store or StateStore(
            ttl=settings.oauth_state_ttl,
            sweep_interval=settings.oauth_state_sweep_interval,
        )
        self.exchanger = exchanger or TokenExchanger(
            self.registry,
            redirect_base_uri or settings.oauth_redirect_uri,
            timeout=settings.oauth_http_timeout,
        )

    # -- authorization -----------------------------------------------------

    def build_authorization_url(
        self,
        provider: str,
        state: str | None = None,
        pkce_challenge: PKCEChallenge | None = None,
        login_hint: str | None = None,
        extra_params: Mapping[str, str] | None = None,
    ) -> str:
        """Generate the URL to send the user to for consent.

        Args:
            provider: Provider key (e.g. "gmail").
            state: CSRF state to embed. A new one is issued if omitted.
            pkce_challenge: Adds ``code_challenge`` and
                ``code_challenge_method=S256`` when given.
            login_hint: Pre-fills the account picker with this address.
            extra_params: Per-request params, applied after the provider's own.
                May not set any of the protocol params (``client_id``,
                ``redirect_uri``, ``response_type``, ``scope``, ``state``,
                ``code_challenge``, ``code_challenge_method``).

        Returns:
            Authorization URL.

        Raises:
            ValueError: If *extra_params* names a protocol param.
        """
        config = self.registry.get(provider)
        if not config.is_configured:
            raise MissingCredentialsError(provider)
        if extra_params:
            reserved = sorted(_PROTOCOL_PARAMS.intersection(extra_params))
            if reserved:
                raise ValueError(f"extra_params cannot override: {', '.join(reserved)}")

        auth_state = state or self.states.generate_state(provider)

        params: dict[str, str] = dict(config.extra_params)
        if extra_params:
            params.update(extra_params)
        params.update(
            {
                "client_id": config.client_id,
                "redirect_uri": self.exchanger.redirect_uri(provider),
                "response_type": "code",
                "scope": config.scope,
                "state": auth_state,
            }
        )
        if login_hint:
            params["login_hint"] = login_hint
        if pkce_challenge is not None:
            params["code_challenge"] = pkce_challenge.code_challenge
            params["code_challenge_method"] = pkce_challenge.method

        return f"{config.auth_url}?{urllib.parse.urlencode(params)}"

    def start_authorization(
        self,
        provider: str,
        use_pkce: bool = False,
        login_hint: str | None = None,
    ) -> AuthorizationRequest:
        """Issue state (and a PKCE pair if requested) and build the URL in one step.

        The returned ``pkce.code_verifier`` must be kept by the caller and
        passed to :meth:`complete_authorization`.
        """
        # No state is issued for a provider that cannot complete the flow
        if not self.registry.get(provider).is_configured:
            raise MissingCredentialsError(provider)
        challenge = pkce.generate_challenge() if use_pkce else None
        state = self.states.generate_state(provider)
        url = self.build_authorization_url(
            provider, state=state, pkce_challenge=challenge, login_hint=login_hint
        )
        return AuthorizationRequest(url=url, state=state, provider=provider, pkce=challenge)

    def generate_state(self, provider: str) -> str:
        self.registry.get(provider)
        return self.states.generate_state(provider)

    def validate_state(self, state: str) -> StateValidation:
        return self.states.validate_state(state)

    @staticmethod
    def generate_pkce() -> PKCEChallenge:
        return pkce.generate_challenge()

    async def complete_authorization(
        self,
        state: str,
        code: str,
        code_verifier: str | None = None,
    ) -> TokenResult:
        """Consume the callback's state and exchange its code for tokens.

        The state is consumed before any network call, so a failed
        exchange cannot be retried with the same state.
        """
        check = self.states.validate_state(state)
        if not check.valid or check.provider is None:
            logger.warning("OAuth callback rejected: invalid or expired state")
            raise InvalidOrExpiredStateError()

        return await self.exchanger.exchange_code(
            check.provider, code, code_verifier=code_verifier
        )

    # -- token lifecycle ---------------------------------------------------

    async def refresh(self, provider: str, refresh_token: str) -> TokenResult:
        return await self.exchanger.refresh_token(provider, refresh_token)

    async def revoke(self, provider: str, token: str, strict: bool = False) -> bool:
        """Revoke *token* at the provider.

        Returns True if the provider revoked it. For providers without a
        revocation endpoint the token simply expires: this returns False,
        or raises NotSupportedError when *strict* is set.
        """
        try:
            await self.exchanger.revoke_token(provider, token)
        except NotSupportedError:
            if strict:
                raise
            logger.info("%s has no revocation endpoint; token will expire on its own", provider)
            return False
        return True

    async def get_user_profile(self, provider: str, access_token: str) -> UserProfile:
        return await self.exchanger.fetch_user_profile(provider, access_token)

    # -- provider queries --------------------------------------------------

    def is_provider_available(self, provider: str) -> bool:
        return self.registry.is_configured(provider)

    def list_providers(self) -> list[str]:
        return self.registry.list()

    def available_providers(self) -> list[str]:
        return self.registry.configured()

    def detect_provider(self, email: str) -> str | None:
        """Provider key for *email*, only if that provider is known to the registry."""
        provider = detect_provider(email)
        if provider is None or provider not in self.registry:
            return None
        return provider

    # -- background sweep --------------------------------------------------

    def start(self) -> None:
        self.states.start()

    async def stop(self) -> None:
        await self.states.stop()


# Singleton
_handler: OAuth2Handler | None = None


def get_oauth_handler() -> OAuth2Handler:
    global _handler
    if _handler is None:
        _handler = OAuth2Handler()
    return _handler


def reset_oauth_handler() -> None:
    global _handler
    _handler = None
