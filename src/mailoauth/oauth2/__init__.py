# OAuth2 authorization + token lifecycle for email providers.
# Created: 2026-10-18

from mailoauth.oauth2.errors import (
    InvalidOrExpiredStateError,
    MissingCredentialsError,
    NotSupportedError,
    OAuthError,
    TokenExchangeError,
    TransportError,
    UnknownProviderError,
)
from mailoauth.oauth2.exchanger import TokenExchanger
from mailoauth.oauth2.handler import OAuth2Handler, get_oauth_handler, reset_oauth_handler
from mailoauth.oauth2.models import (
    AuthorizationRequest,
    OAuthState,
    PKCEChallenge,
    ProviderConfig,
    StateValidation,
    TokenResult,
    UserProfile,
)
from mailoauth.oauth2.pkce import derive_challenge, generate_challenge
from mailoauth.oauth2.providers import PROVIDERS, ProviderRegistry
from mailoauth.oauth2.state import StateStore

__all__ = [
    "AuthorizationRequest",
    "InvalidOrExpiredStateError",
    "MissingCredentialsError",
    "NotSupportedError",
    "OAuth2Handler",
    "OAuthError",
    "OAuthState",
    "PKCEChallenge",
    "PROVIDERS",
    "ProviderConfig",
    "ProviderRegistry",
    "StateStore",
    "StateValidation",
    "TokenExchangeError",
    "TokenExchanger",
    "TokenResult",
    "TransportError",
    "UnknownProviderError",
    "UserProfile",
    "derive_challenge",
    "generate_challenge",
    "get_oauth_handler",
    "reset_oauth_handler",
]
