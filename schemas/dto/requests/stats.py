"""
Request DTOs for statistics and export endpoints.

StatsQuery           — GET  /api/v1/stats              (query parameters)
ExportQuery          — GET  /api/v1/stats/export       (StatsQuery + format)
RealtimeQuery        — GET  /api/v1/stats/realtime     (query parameters)
RealtimeTopQuery     — GET  /api/v1/stats/realtime/top (query parameters)
CountryBreakdownQuery — GET /api/v1/stats/countries    (query parameters)
SummaryRequest       — POST /api/v1/stats/summary      (JSON body)
CreateExportRequest  — POST /api/v1/exports            (JSON body)

Date bounds stay raw strings here; DateRange.parse() turns them into UTC
datetimes (and raises InvalidRangeError) once the route has them.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.export_formatter import ExportEncoding
from shared.datetime_utils import DateRange
from shared.dimensions import Dimension


class DateRangeQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # ISO 8601 strings, bare YYYY-MM-DD, or Unix epoch seconds
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def date_range(self) -> DateRange:
        return DateRange.parse(self.start_date, self.end_date)


class StatsQuery(DateRangeQuery):
    """Query parameters for GET /api/v1/stats.

    Without ``link_id`` the report covers every active link of the caller.
    ``link_id`` accepts a link id or a slug.
    """

    link_id: Optional[str] = None

    @field_validator("link_id", mode="after")
    @classmethod
    def _blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class ExportQuery(StatsQuery):
    """Query parameters for GET /api/v1/stats/export.

    ``format`` is validated by ExportEncoding.parse() so an unknown value
    surfaces as ``unsupported_format`` rather than a generic validation error.
    """

    format: str = Field(default=ExportEncoding.CSV.value)


class RealtimeQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    link_id: Optional[str] = None
    window_seconds: Optional[int] = Field(default=None, gt=0)


class RealtimeTopQuery(RealtimeQuery):
    dimension: str = Field(default=Dimension.COUNTRY.value)
    limit: Optional[int] = Field(default=None, ge=1, le=100)

    @field_validator("dimension", mode="after")
    @classmethod
    def _validate_dimension(cls, v: str) -> str:
        dimension = Dimension.parse(v)
        if dimension.is_temporal:
            raise ValueError("day is not a realtime dimension")
        return dimension.value


class CountryBreakdownQuery(DateRangeQuery):
    limit: Optional[int] = Field(default=None, ge=1, le=50)
    links_per_country: Optional[int] = Field(default=None, ge=1, le=20)


class SummaryRequest(BaseModel):
    """JSON body for POST /api/v1/stats/summary."""

    model_config = ConfigDict(populate_by_name=True)

    days: Optional[int] = Field(default=None, ge=1, le=365)


class CreateExportRequest(DateRangeQuery):
    """JSON body for POST /api/v1/exports."""

    link_id: Optional[str] = None
    format: str = Field(default=ExportEncoding.JSON.value)
