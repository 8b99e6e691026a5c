"""Webhook event dispatcher: routes account events to the account API.

Each EventKind maps to exactly one coroutine. Dispatch never raises: any
exception from the account API (AccountServiceError or otherwise) becomes a
500 result, missing input becomes a 400 result. The caller turns the result
into an HTTP response and releases the delivery claim on 5xx.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from account_sync.accounts import AccountClient
from account_sync.webhooks.models import AccountRecord, EventKind, WebhookEvent

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Outcome of dispatching one event: HTTP status plus JSON or text body."""

    status_code: int
    body: dict[str, Any] | str
    status: str

    @property
    def failed(self) -> bool:
        return self.status_code >= 500


def _error(status_code: int, message: str, status: str) -> DispatchResult:
    return DispatchResult(status_code=status_code, body=message, status=status)


async def _on_created(event: WebhookEvent, accounts: AccountClient) -> DispatchResult:
    record = AccountRecord.from_event_data(event.data)
    if not record.email:
        return _error(400, "Error: Missing email address", "missing_email")

    try:
        user = await accounts.create_account(record)
        # Link the new account back to its own id
        if isinstance(user, dict) and user.get("id"):
            await accounts.update_metadata(user["id"], {"userId": user["id"]})
    except Exception:
        logger.exception("Error creating user for webhook %s", event.delivery_id)
        return _error(500, "Error creating user", "create_failed")

    return DispatchResult(200, {"message": "OK", "user": user}, "created")


async def _on_updated(event: WebhookEvent, accounts: AccountClient) -> DispatchResult:
    account_id = event.account_id
    if not account_id:
        return _error(400, "Error: Missing user ID", "missing_id")

    record = AccountRecord.from_event_data(event.data)
    try:
        user = await accounts.update_account(account_id, record)
    except Exception:
        logger.exception("Error updating user %s", account_id)
        return _error(500, "Error updating user", "update_failed")

    return DispatchResult(200, {"message": "OK", "user": user}, "updated")


async def _on_deleted(event: WebhookEvent, accounts: AccountClient) -> DispatchResult:
    account_id = event.account_id
    if not account_id:
        return _error(400, "Error: Missing user ID", "missing_id")

    try:
        await accounts.delete_account(account_id)
    except Exception:
        logger.exception("Error deleting user %s", account_id)
        return _error(500, "Error deleting user", "delete_failed")

    return DispatchResult(200, {"message": "OK", "userId": account_id}, "deleted")


async def _on_unknown(event: WebhookEvent, accounts: AccountClient) -> DispatchResult:
    logger.info(
        "Received webhook with ID %s and event type of %s",
        event.account_id,
        event.event_type,
    )
    logger.info("Webhook payload: %s", event.body)
    return DispatchResult(200, "Webhook received", "ignored")


EVENT_HANDLERS: dict[EventKind, Callable[[WebhookEvent, AccountClient], Awaitable[DispatchResult]]] = {
    EventKind.ACCOUNT_CREATED: _on_created,
    EventKind.ACCOUNT_UPDATED: _on_updated,
    EventKind.ACCOUNT_DELETED: _on_deleted,
    EventKind.UNKNOWN: _on_unknown,
}


async def dispatch_event(event: WebhookEvent, accounts: AccountClient) -> DispatchResult:
    """Dispatch a verified webhook event to its handler."""
    handler = EVENT_HANDLERS[event.kind]
    logger.info("Dispatching webhook event: %s (id=%s)", event.kind.value, event.delivery_id)
    try:
        return await handler(event, accounts)
    except Exception:
        logger.exception("Failed to dispatch webhook event: %s (id=%s)", event.kind.value, event.delivery_id)
        return _error(500, "Error processing webhook", "dispatch_failed")
