"""Redis-backed export store.

Artifacts are stored as JSON under ``export:{id}`` with SETEX, so Redis
itself drops them when the TTL elapses and sweeping has nothing to do.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from infrastructure.export_store.protocol import ExportStoreStats
from schemas.models.export import ExportArtifact
from shared.logging import get_logger

log = get_logger(__name__)

KEY_PREFIX = "export:"


class RedisExportStore:
    def __init__(self, redis_client: aioredis.Redis) -> None:
        self._redis = redis_client

    def _key(self, export_id: str) -> str:
        return f"{KEY_PREFIX}{export_id}"

    async def put(self, artifact: ExportArtifact, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(
                self._key(artifact.export_id),
                ttl_seconds,
                artifact.model_dump_json(),
            )
        except RedisError as e:
            log.error(
                "export_store_put_error",
                export_id=artifact.export_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def get(self, export_id: str) -> Optional[ExportArtifact]:
        try:
            raw = await self._redis.get(self._key(export_id))
        except RedisError as e:
            log.warning(
                "export_store_get_error",
                export_id=export_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        if raw is None:
            return None
        return ExportArtifact.model_validate_json(raw)

    async def sweep_expired(self) -> int:
        # Expiry is native to Redis keys
        return 0

    async def stats(self) -> ExportStoreStats:
        total = 0
        async for _ in self._redis.scan_iter(match=f"{KEY_PREFIX}*"):
            total += 1
        return ExportStoreStats(total=total, expired=0)
