"""ExportStore protocol — services depend on this, not the concrete implementation."""

from dataclasses import dataclass
from typing import Optional, Protocol

from schemas.models.export import ExportArtifact


@dataclass(frozen=True)
class ExportStoreStats:
    total: int
    expired: int

    @property
    def active(self) -> int:
        return self.total - self.expired


class ExportStore(Protocol):
    async def put(self, artifact: ExportArtifact, ttl_seconds: int) -> None: ...

    async def get(self, export_id: str) -> Optional[ExportArtifact]: ...

    async def sweep_expired(self) -> int: ...

    async def stats(self) -> ExportStoreStats: ...
