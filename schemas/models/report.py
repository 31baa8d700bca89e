"""
Analytics value objects.

DimensionBucket   — one row of a single-dimension rollup
TopEntity         — one link in a cross-link ranking
StatisticsReport  — every rollup for one request; the unit exported/rendered
RealtimeCounter   — count of events inside a trailing window

All models serialise with camelCase aliases (``clicksByDay``), which is the
shape of the JSON export and of the HTTP responses.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.dimensions import Dimension

# Report attribute holding each dimension's rollup
ROLLUP_FIELDS = {
    Dimension.DAY: "clicks_by_day",
    Dimension.COUNTRY: "clicks_by_country",
    Dimension.DEVICE: "clicks_by_device",
    Dimension.BROWSER: "clicks_by_browser",
    Dimension.OS: "clicks_by_os",
    Dimension.REFERRER: "clicks_by_referrer",
}


class AnalyticsModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        frozen=True,
    )


class DimensionBucket(AnalyticsModel):
    key: str
    count: int = Field(ge=0)


class TopEntity(AnalyticsModel):
    entity_id: str
    label: str
    slug: Optional[str] = None
    title: Optional[str] = None
    clicks: int = Field(ge=0)


class StatisticsReport(AnalyticsModel):
    """Composed fresh per request; never cached beyond one response."""

    total_clicks: int = 0
    total_unique_visitors: int = 0
    clicks_by_day: list[DimensionBucket] = Field(default_factory=list)
    clicks_by_country: list[DimensionBucket] = Field(default_factory=list)
    clicks_by_device: list[DimensionBucket] = Field(default_factory=list)
    clicks_by_browser: list[DimensionBucket] = Field(default_factory=list)
    clicks_by_os: list[DimensionBucket] = Field(default_factory=list)
    # Owner audience only; stripped from public renders
    clicks_by_referrer: Optional[list[DimensionBucket]] = None
    # Multi-link scopes only
    top_entities: Optional[list[TopEntity]] = None

    @property
    def is_empty(self) -> bool:
        return self.total_clicks == 0

    def rollup(self, dimension: Dimension) -> Optional[list[DimensionBucket]]:
        """Buckets of one rollup; None for a dimension the report does not carry."""
        field = ROLLUP_FIELDS.get(dimension)
        return getattr(self, field) if field else None


class RealtimeCounter(AnalyticsModel):
    window_seconds: int
    count: int = Field(ge=0)


class CountryLinkEntry(AnalyticsModel):
    link_id: str
    slug: Optional[str] = None
    title: Optional[str] = None
    clicks: int


class CountryBreakdown(AnalyticsModel):
    country: str
    total_clicks: int
    links: list[CountryLinkEntry] = Field(default_factory=list)


class RecentClick(AnalyticsModel):
    link_id: str
    link_slug: str = ""
    link_title: str = ""
    timestamp: str
    country: Optional[str] = None
    city: Optional[str] = None
    device: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None


class WindowRanking(AnalyticsModel):
    """Top buckets in a realtime window.

    ``synthetic`` is True only when the buckets are the labelled demo
    dataset substituted for an empty window.
    """

    dimension: str
    window_seconds: int
    buckets: list[DimensionBucket] = Field(default_factory=list)
    total: int = 0
    synthetic: bool = False


class RealtimeSnapshot(AnalyticsModel):
    clicks_in_window: RealtimeCounter
    clicks_last_24h: RealtimeCounter
    clicks_today: int
    active_visitors: int
    top_link: Optional[TopEntity] = None
    top_countries: WindowRanking
    recent_events: list[RecentClick] = Field(default_factory=list)


class SummaryStats(AnalyticsModel):
    """Figures behind a narrative summary."""

    total_links: int
    total_clicks: int
    avg_clicks_per_link: int
    top_links: list[TopEntity] = Field(default_factory=list)
    top_countries: list[DimensionBucket] = Field(default_factory=list)
    top_devices: list[DimensionBucket] = Field(default_factory=list)
    top_browsers: list[DimensionBucket] = Field(default_factory=list)
