"""Webhook HTTP handlers: FastAPI route for identity-provider webhooks.

The handler:
1. Checks the three svix headers are present
2. Reads raw body (needed for HMAC verification)
3. Verifies the Svix signature
4. Parses the event envelope
5. Checks idempotency (acknowledge duplicates without reprocessing)
6. Dispatches to the account API and returns its result

Security contract:
- Never return verification details to the caller (info disclosure)
- 400 for missing headers, bad signature, malformed payload
- 500 only when the account API call fails
- Log all webhook activity for audit trail
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from account_sync.webhooks.dispatcher import DispatchResult, dispatch_event
from account_sync.webhooks.models import InvalidEnvelope, parse_event
from account_sync.webhooks.verification import (
    HEADER_ID,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    verify_svix,
)

logger = logging.getLogger(__name__)

PROVIDER = "clerk"

router = APIRouter(tags=["webhooks"])

# Webhook outcome counter for monitoring (in-memory, per process)
webhook_counts: dict[str, int] = {}


def _log_webhook(event_type: str, delivery_id: str, status: str) -> None:
    """Audit log for webhook activity."""
    webhook_counts[status] = webhook_counts.get(status, 0) + 1
    logger.info(
        "WEBHOOK_AUDIT provider=%s event=%s id=%s status=%s count=%d",
        PROVIDER,
        event_type,
        delivery_id,
        status,
        webhook_counts[status],
    )


def _to_response(result: DispatchResult) -> Response:
    if isinstance(result.body, dict):
        return JSONResponse(result.body, status_code=result.status_code)
    return PlainTextResponse(result.body, status_code=result.status_code)


async def handle_webhook(request: Request) -> Response:
    """Webhook Ingestion Handler: verify, parse, dedup, dispatch."""
    start = time.time()
    state = request.app.state
    settings = state.settings

    msg_id = request.headers.get(HEADER_ID)
    timestamp = request.headers.get(HEADER_TIMESTAMP)
    signature = request.headers.get(HEADER_SIGNATURE)

    # 1. All three signature headers are required
    if not msg_id or not timestamp or not signature:
        _log_webhook("unknown", msg_id or "unknown", "missing_headers")
        return PlainTextResponse("Error: Missing Svix headers", status_code=400)

    # 2. Read raw body for signature verification
    body = await request.body()

    # 3. Verify signature
    if not verify_svix(
        settings.webhook_secret,
        body,
        msg_id,
        timestamp,
        signature,
        tolerance=settings.webhook_tolerance_seconds,
    ):
        _log_webhook("unknown", msg_id, "signature_failed")
        return PlainTextResponse("Error: Verification error", status_code=400)

    # 4. Parse envelope
    try:
        event = parse_event(msg_id, body)
    except InvalidEnvelope as e:
        logger.warning("Invalid webhook payload (id=%s): %s", msg_id, e)
        _log_webhook("unknown", msg_id, "invalid_payload")
        return PlainTextResponse("Error: Invalid payload", status_code=400)

    # 5. Check idempotency
    dedup = state.deduplicator
    if not await dedup.claim(msg_id):
        _log_webhook(event.event_type, msg_id, "duplicate")
        return JSONResponse({"message": "OK", "duplicate": True}, status_code=200)

    # 6. Dispatch
    result = await dispatch_event(event, state.account_client)
    if result.failed:
        # Let the provider's redelivery through
        await dedup.release(msg_id)
    _log_webhook(event.event_type, msg_id, result.status)

    elapsed_ms = (time.time() - start) * 1000
    logger.debug("Webhook processed in %.1fms: %s/%s", elapsed_ms, PROVIDER, event.event_type)

    return _to_response(result)


router.add_api_route("/api/webhooks/clerk", handle_webhook, methods=["POST"])
