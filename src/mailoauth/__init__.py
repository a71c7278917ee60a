"""mailoauth — OAuth2 account connection for Gmail, Outlook and Yahoo mailboxes."""

__version__ = "0.1.0"
