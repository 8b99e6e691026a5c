"""Shared fixtures for the account sync test suite."""

from __future__ import annotations

import base64
import json
import time

import pytest

from account_sync.config import Settings
from account_sync.webhooks.verification import sign

WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"account-sync-test-signing-key").decode()


@pytest.fixture()
def webhook_secret() -> str:
    return WEBHOOK_SECRET


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        webhook_secret=WEBHOOK_SECRET,
        clerk_secret_key="sk_test_123",
        clerk_api_url="https://api.clerk.test/v1",
        redis_url="redis://localhost:6379/15",
    )


@pytest.fixture()
def make_svix_headers():
    """Factory for signed webhook headers.

    Returns a headers dict with svix-id, svix-timestamp and a valid
    svix-signature for ``body``.
    """

    def _make(
        body: bytes,
        msg_id: str = "msg_2abc",
        timestamp: int | None = None,
        secret: str = WEBHOOK_SECRET,
    ) -> dict[str, str]:
        ts = timestamp if timestamp is not None else int(time.time())
        return {
            "svix-id": msg_id,
            "svix-timestamp": str(ts),
            "svix-signature": sign(secret, msg_id, ts, body),
            "Content-Type": "application/json",
        }

    return _make


@pytest.fixture()
def make_event_body():
    """Factory for JSON-encoded event envelopes."""

    def _make(event_type: str, **data) -> bytes:
        return json.dumps({"type": event_type, "data": data}).encode()

    return _make
