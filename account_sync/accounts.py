"""Account-management API client (Clerk Backend API).

Thin async wrapper over httpx: one method per account operation the webhook
handler needs. Every transport failure or non-2xx response surfaces as
AccountServiceError. No retries: the handler maps failures to 500 and the
identity provider redelivers.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from account_sync.webhooks.models import AccountRecord

logger = logging.getLogger(__name__)


class AccountServiceError(Exception):
    """An account-management API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _drop_unset(fields: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


class AccountClient:
    """Async client for the account-management REST API."""

    def __init__(
        self,
        base_url: str,
        secret_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {secret_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, json: dict | None = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Account API %s %s returned HTTP %d", method, path, status)
            raise AccountServiceError(f"{method} {path} failed with HTTP {status}", status) from e
        except httpx.HTTPError as e:
            logger.warning("Account API %s %s failed: %s", method, path, type(e).__name__)
            raise AccountServiceError(f"{method} {path} failed: {type(e).__name__}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise AccountServiceError(f"{method} {path} returned invalid JSON") from e

    async def create_account(self, record: AccountRecord) -> dict:
        """Create an account from a record; email is required."""
        payload = _drop_unset(
            {
                "first_name": record.first_name,
                "last_name": record.last_name,
                "username": record.username,
            }
        )
        payload["email_address"] = [record.email]
        return await self._request("POST", "/users", json=payload)

    async def update_account(self, account_id: str, record: AccountRecord) -> dict:
        payload = _drop_unset(
            {
                "first_name": record.first_name,
                "last_name": record.last_name,
                "username": record.username,
            }
        )
        return await self._request("PATCH", f"/users/{account_id}", json=payload)

    async def delete_account(self, account_id: str) -> None:
        await self._request("DELETE", f"/users/{account_id}")

    async def update_metadata(self, account_id: str, public_metadata: dict[str, Any]) -> dict:
        """Merge public metadata into an existing account."""
        return await self._request(
            "PATCH",
            f"/users/{account_id}/metadata",
            json={"public_metadata": public_metadata},
        )

    async def aclose(self) -> None:
        await self._client.aclose()
