"""
Stored export artifact.

The engine never caches its own output; a caller may persist a rendered
report as an ExportArtifact in an ExportStore, which enforces the TTL.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ExportArtifact(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    export_id: str
    owner_id: str
    filename: str
    media_type: str
    payload: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now
