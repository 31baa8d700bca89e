"""
Link document model (read-only here).

Used to resolve ownership and public visibility, and to label aggregated
link ids with their slug/title.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.models.base import DocumentId, MongoBaseModel


class Link(MongoBaseModel):
    owner_id: DocumentId = Field(alias="userId")
    slug: str
    title: Optional[str] = None
    is_public_stats_enabled: bool = Field(default=False, alias="isPublicStats")
    is_active: bool = Field(default=True, alias="isActive")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @property
    def label(self) -> str:
        """Human-readable label: title when set, slug otherwise."""
        return self.title or self.slug
