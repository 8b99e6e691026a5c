"""Account sync: identity-provider webhooks into the account-management API."""

__version__ = "0.1.0"
