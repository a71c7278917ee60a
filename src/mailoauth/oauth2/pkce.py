"""PKCE (RFC 7636) verifier and S256 challenge generation.

Stateless: the caller keeps the verifier across the redirect and passes it
back at code-exchange time. Only the challenge goes into the
authorization URL.
"""

import base64
import hashlib
import secrets

from mailoauth.oauth2.models import PKCEChallenge

__all__ = ["generate_challenge", "derive_challenge"]

# 32 bytes -> 43 chars, 96 bytes -> 128 chars (RFC 7636 verifier bounds)
_MIN_VERIFIER_BYTES = 32
_MAX_VERIFIER_BYTES = 96


def generate_challenge(verifier_bytes: int = 32) -> PKCEChallenge:
    """Create a fresh verifier and its S256 challenge."""
    if not _MIN_VERIFIER_BYTES <= verifier_bytes <= _MAX_VERIFIER_BYTES:
        raise ValueError(
            f"verifier_bytes must be between {_MIN_VERIFIER_BYTES} and {_MAX_VERIFIER_BYTES}"
        )
    verifier = secrets.token_urlsafe(verifier_bytes)
    return PKCEChallenge(code_verifier=verifier, code_challenge=derive_challenge(verifier))


def derive_challenge(code_verifier: str) -> str:
    """S256 = BASE64URL(SHA256(code_verifier)), unpadded."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode()
