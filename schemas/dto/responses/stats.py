"""
Response DTOs for the statistics and export endpoints.

StatsResponse         — GET  /api/v1/stats, GET /api/v1/stats/public/{slug}
CountryBreakdownResponse — GET /api/v1/stats/countries
SummaryResponse       — POST /api/v1/stats/summary
ExportCreatedResponse — POST /api/v1/exports (201)
ExportStatsResponse   — GET  /api/v1/exports/stats
SweepResponse         — POST /api/v1/exports/sweep

Bodies are camelCase like the report models they wrap.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from schemas.models.report import CountryBreakdown, StatisticsReport, SummaryStats


class _CamelResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class LinkSummary(_CamelResponse):
    slug: str
    title: Optional[str] = None


class StatsDateRange(_CamelResponse):
    start_date: Optional[str] = None  # ISO 8601 string
    end_date: Optional[str] = None  # ISO 8601 string


class StatsResponse(_CamelResponse):
    """Statistics for one link or for the caller's whole portfolio.

    ``message`` is set when there is nothing to show yet (no links, or no
    clicks in range); the report is then all zeros.
    """

    scope: str  # "all" | "link"
    generated_at: str
    date_range: StatsDateRange
    link: Optional[LinkSummary] = None
    total_links: Optional[int] = None
    statistics: StatisticsReport
    message: Optional[str] = None


class CountryBreakdownResponse(_CamelResponse):
    generated_at: str
    countries: list[CountryBreakdown]


class SummaryResponse(_CamelResponse):
    summary: str
    stats: Optional[SummaryStats] = None
    generated_at: str


class ExportCreatedResponse(_CamelResponse):
    export_id: str
    filename: str
    download_url: str
    expires_at: str
    total_clicks: int


class ExportStatsResponse(_CamelResponse):
    total: int
    expired: int
    active: int


class SweepResponse(_CamelResponse):
    removed: int
