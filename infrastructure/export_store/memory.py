"""Process-local export store.

Used when Redis is not configured. Every write sweeps expired artifacts, and
an expired artifact is dropped when it is read; ExportService checks
``expires_at`` before serving one.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from infrastructure.export_store.protocol import ExportStoreStats
from schemas.models.export import ExportArtifact
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)


class InMemoryExportStore:
    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._artifacts: dict[str, ExportArtifact] = {}
        self._clock = clock

    async def put(self, artifact: ExportArtifact, ttl_seconds: int) -> None:
        await self.sweep_expired()
        self._artifacts[artifact.export_id] = artifact

    async def get(self, export_id: str) -> Optional[ExportArtifact]:
        artifact = self._artifacts.get(export_id)
        # Served once more so the caller can answer "expired", then dropped
        if artifact is not None and artifact.is_expired(self._clock()):
            del self._artifacts[export_id]
        return artifact

    async def sweep_expired(self) -> int:
        now = self._clock()
        expired = [
            export_id
            for export_id, artifact in self._artifacts.items()
            if artifact.is_expired(now)
        ]
        for export_id in expired:
            del self._artifacts[export_id]
        if expired:
            log.info("exports_swept", removed=len(expired), backend="memory")
        return len(expired)

    async def stats(self) -> ExportStoreStats:
        now = self._clock()
        expired = sum(1 for a in self._artifacts.values() if a.is_expired(now))
        return ExportStoreStats(total=len(self._artifacts), expired=expired)
