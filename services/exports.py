"""
Stored export artifacts.

A rendered report can be stored for a later download. Artifacts live for
``ttl_seconds``; they are only ever served to their owner (or an admin).
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Optional

from errors import ExportExpiredError, ForbiddenError, NotFoundError
from infrastructure.export_store.protocol import ExportStore, ExportStoreStats
from schemas.models.export import ExportArtifact
from services.scope import CallerContext
from shared.datetime_utils import utcnow
from shared.logging import get_logger, should_sample

log = get_logger(__name__)


def new_export_id(now: datetime) -> str:
    """``export_<epoch ms>_<random>``"""
    return f"export_{int(now.timestamp() * 1000)}_{secrets.token_hex(5)}"


class ExportService:
    def __init__(self, store: ExportStore, ttl_seconds: int = 3600) -> None:
        self._store = store
        self.ttl_seconds = ttl_seconds

    async def create(
        self,
        owner_id: str,
        filename: str,
        media_type: str,
        payload: str,
        now: Optional[datetime] = None,
    ) -> ExportArtifact:
        now = now or utcnow()
        artifact = ExportArtifact(
            export_id=new_export_id(now),
            owner_id=owner_id,
            filename=filename,
            media_type=media_type,
            payload=payload,
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        await self._store.put(artifact, self.ttl_seconds)
        if should_sample("stats_export"):
            log.info(
                "export_stored",
                export_id=artifact.export_id,
                owner_id=owner_id,
                size_bytes=len(payload.encode("utf-8")),
                ttl_seconds=self.ttl_seconds,
            )
        return artifact

    async def fetch(
        self,
        export_id: str,
        caller: CallerContext,
        now: Optional[datetime] = None,
    ) -> ExportArtifact:
        """Return the artifact for download.

        Raises:
            NotFoundError: unknown id.
            ForbiddenError: the caller neither owns it nor is an admin.
            ExportExpiredError: the artifact outlived its TTL but was not swept yet.
        """
        artifact = await self._store.get(export_id)
        if artifact is None:
            raise NotFoundError("export not found or expired")
        if artifact.owner_id != caller.caller_id and not caller.is_admin:
            log.warning(
                "export_access_denied",
                export_id=export_id,
                caller_id=caller.caller_id,
            )
            raise ForbiddenError("access denied")
        if artifact.is_expired(now or utcnow()):
            raise ExportExpiredError("export has expired")
        return artifact

    async def sweep(self) -> int:
        removed = await self._store.sweep_expired()
        log.info("exports_sweep_completed", removed=removed)
        return removed

    async def stats(self) -> ExportStoreStats:
        return await self._store.stats()
