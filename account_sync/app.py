"""FastAPI application factory.

``create_app()`` builds Settings once (fails fast without WEBHOOK_SECRET),
creates the account client and the deduplicator, and stores all three on
``app.state`` for the webhook handler.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from account_sync import __version__
from account_sync.accounts import AccountClient
from account_sync.config import Settings
from account_sync.webhooks.handlers import router as webhook_router
from account_sync.webhooks.handlers import webhook_counts
from account_sync.webhooks.idempotency import WebhookDeduplicator

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    account_client: AccountClient | None = None,
    deduplicator: WebhookDeduplicator | None = None,
) -> FastAPI:
    """Create the service app.

    Raises:
        pydantic.ValidationError: if settings are not given and the
            environment lacks WEBHOOK_SECRET
    """
    if settings is None:
        settings = Settings()
    if account_client is None:
        if not settings.clerk_secret_key:
            logger.warning("CLERK_SECRET_KEY not set -- account API calls will be rejected")
        account_client = AccountClient(
            settings.clerk_api_url,
            settings.clerk_secret_key,
            timeout=settings.account_api_timeout,
        )
    if deduplicator is None:
        deduplicator = WebhookDeduplicator(
            settings.redis_url,
            ttl_seconds=settings.dedup_ttl_seconds,
            enabled=settings.dedup_enabled,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Account sync %s started (dedup=%s)",
            __version__,
            "on" if deduplicator.enabled else "off",
        )
        try:
            yield
        finally:
            await account_client.aclose()
            await deduplicator.aclose()

    app = FastAPI(title="Account Sync", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.account_client = account_client
    app.state.deduplicator = deduplicator

    app.include_router(webhook_router)

    @app.get("/health")
    async def health():
        """Liveness plus webhook outcome counts."""
        return {"status": "ok", "counts": dict(webhook_counts)}

    logger.info("Webhook routes registered: /api/webhooks/clerk")
    return app
