"""Webhook idempotency: Redis-based delivery deduplication.

Security contract:
- Tracks svix-id delivery IDs in Redis with 24h TTL
- Duplicate deliveries are acknowledged with 200 (provider retries on errors)
- Key pattern: webhook:seen:{provider}:{delivery_id}
- Claim is released when dispatch fails with 5xx so the redelivery is processed
- If Redis is down, falls back to allowing (fail-open for availability)
"""

from __future__ import annotations

import logging

import redis.asyncio as redis_lib

logger = logging.getLogger(__name__)

_DEDUP_TTL_SECONDS = 86400  # 24 hours

# Key prefix for webhook dedup
_KEY_PREFIX = "webhook:seen"


class WebhookDeduplicator:
    """Atomic check-and-mark of webhook delivery IDs."""

    def __init__(
        self,
        redis_url: str,
        provider: str = "clerk",
        ttl_seconds: int = _DEDUP_TTL_SECONDS,
        enabled: bool = True,
    ):
        self._redis_url = redis_url
        self._provider = provider
        self._ttl = ttl_seconds
        self.enabled = enabled
        self._redis: redis_lib.Redis | None = None

    def _get_redis(self) -> redis_lib.Redis:
        if self._redis is None:
            self._redis = redis_lib.from_url(self._redis_url, decode_responses=True)
        return self._redis

    def _key(self, delivery_id: str) -> str:
        return f"{_KEY_PREFIX}:{self._provider}:{delivery_id}"

    async def claim(self, delivery_id: str) -> bool:
        """Mark a delivery as seen.

        Uses Redis SET NX (set-if-not-exists) for atomic check-and-mark.

        Returns:
            True if this is the first time the delivery is seen (process it),
            False if it is a duplicate
        """
        if not self.enabled or not delivery_id:
            return True

        key = self._key(delivery_id)
        try:
            was_set = await self._get_redis().set(key, "1", nx=True, ex=self._ttl)
        except Exception:
            # Redis down -- fail open for availability (allow webhook through)
            logger.warning(
                "Redis unavailable for webhook dedup -- allowing %s/%s",
                self._provider,
                delivery_id,
                exc_info=True,
            )
            return True

        if not was_set:
            logger.info("Duplicate webhook skipped: %s/%s", self._provider, delivery_id)
            return False
        return True

    async def release(self, delivery_id: str) -> None:
        """Forget a claimed delivery so a redelivery is processed again."""
        if not self.enabled or not delivery_id:
            return
        try:
            await self._get_redis().delete(self._key(delivery_id))
        except Exception:
            logger.warning(
                "Failed to release webhook claim: %s/%s", self._provider, delivery_id
            )

    async def aclose(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
