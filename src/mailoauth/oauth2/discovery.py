"""Map an email address to the OAuth provider that hosts it."""

from __future__ import annotations

# Consumer domains only; custom domains need the user to pick a provider.
KNOWN_DOMAINS: dict[str, str] = {
    "gmail.com": "gmail",
    "googlemail.com": "gmail",
    "outlook.com": "outlook",
    "hotmail.com": "outlook",
    "live.com": "outlook",
    "msn.com": "outlook",
    "yahoo.com": "yahoo",
    "ymail.com": "yahoo",
}


def detect_provider(email: str | None) -> str | None:
    """Return the provider key for *email*'s domain, or None if unknown."""
    if not email:
        return None
    local, sep, domain = email.strip().lower().rpartition("@")
    if not sep or not local or not domain:
        return None
    return KNOWN_DOMAINS.get(domain)
