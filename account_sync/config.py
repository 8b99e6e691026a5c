"""Service configuration.

Built once at startup by ``create_app()`` and handed to the webhook handler
through ``app.state``. ``WEBHOOK_SECRET`` is required and must be valid
base64 after its ``whsec_`` prefix, otherwise the settings fail validation
and the service refuses to start.
"""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings

from account_sync.webhooks.verification import decode_secret


class Settings(BaseSettings):
    """Environment-driven settings for the account sync service."""

    # Svix signing secret from the identity provider dashboard (whsec_...)
    webhook_secret: str
    webhook_tolerance_seconds: int = 300

    # Account-management API (Clerk Backend API)
    clerk_secret_key: str = ""
    clerk_api_url: str = "https://api.clerk.com/v1"
    account_api_timeout: float = 10.0

    # Delivery deduplication
    redis_url: str = "redis://localhost:6379/0"
    dedup_enabled: bool = True
    dedup_ttl_seconds: int = 86400

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("webhook_secret")
    @classmethod
    def _secret_is_usable(cls, value: str) -> str:
        if not value.strip():
            raise ValueError(
                "WEBHOOK_SECRET is empty. Add the signing secret from the Clerk dashboard to .env"
            )
        if decode_secret(value) is None:
            raise ValueError("WEBHOOK_SECRET is not a valid whsec_ signing secret (bad base64)")
        return value
