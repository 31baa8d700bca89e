"""
Click event document model.

Maps to the append-only `analytics_events` collection. Events are written by
the ingestion path (already validated, IP pre-hashed) and are read-only here.

Stored documents use the ingestion path's camelCase names (`linkId`,
`country`, `ip`); the aliases below keep the two in sync.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import Field, field_validator

from schemas.models.base import DocumentId, MongoBaseModel

DeviceType = Literal["mobile", "tablet", "desktop"]


class ClickEvent(MongoBaseModel):
    """Document model for one link click."""

    link_id: DocumentId = Field(alias="linkId")
    timestamp: datetime

    country_code: Optional[str] = Field(default=None, alias="country")
    city: Optional[str] = None
    region: Optional[str] = None
    language: Optional[str] = None

    device: Optional[DeviceType] = None
    os: Optional[str] = None
    browser: Optional[str] = None
    referrer: Optional[str] = None

    ip_hash: str = Field(alias="ip")

    @field_validator("timestamp", mode="after")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        # pymongo returns naive UTC datetimes unless the client is tz_aware
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
