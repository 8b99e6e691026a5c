"""Security test fixtures.

Responsibilities:
- Creates the FastAPI `app` fixture with a mocked account client
- Wraps it in `client` (dedup disabled) and `dedup_client` (in-memory Redis)
- Scoped to tests/security/ only

The global tests/conftest.py handles settings and signed-header factories.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from account_sync.accounts import AccountClient
from account_sync.app import create_app
from account_sync.webhooks.handlers import webhook_counts
from account_sync.webhooks.idempotency import WebhookDeduplicator


class InMemoryRedis:
    """The subset of redis.asyncio used by WebhookDeduplicator."""

    def __init__(self):
        self.store: dict[str, str] = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def aclose(self):
        pass


@pytest.fixture
def account_client():
    client = AsyncMock(spec=AccountClient)
    client.create_account.return_value = {"id": "user_new", "username": "bob"}
    client.update_account.return_value = {"id": "user_123", "first_name": "Robert"}
    client.update_metadata.return_value = {"id": "user_new"}
    client.delete_account.return_value = None
    return client


@pytest.fixture
def fake_redis():
    return InMemoryRedis()


def _make_app(settings, account_client, deduplicator):
    webhook_counts.clear()
    return create_app(settings, account_client=account_client, deduplicator=deduplicator)


@pytest.fixture
def app(settings, account_client):
    """App without deduplication: every delivery is processed."""
    dedup = WebhookDeduplicator(settings.redis_url, enabled=False)
    return _make_app(settings, account_client, dedup)


@pytest.fixture
def client(app):
    """TestClient from the identity provider's (or an attacker's) side."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def dedup_client(settings, account_client, fake_redis):
    """TestClient whose deduplicator is backed by an in-memory Redis."""
    dedup = WebhookDeduplicator(settings.redis_url)
    dedup._redis = fake_redis
    app = _make_app(settings, account_client, dedup)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
