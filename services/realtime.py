"""
Realtime window tracking.

Counts and top-N rankings over trailing windows ending at *now*. Windows are
half-open: an event exactly ``window_seconds`` old is outside the window.

When a window has no events and the demo fallback is enabled, the ranking is
replaced by a fixed demo dataset and flagged ``synthetic=True``; it is never
passed off as real data.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional

from errors import ValidationError
from repositories.protocol import ClickEventStore, ClickFilter
from schemas.models.click import ClickEvent
from schemas.models.link import Link
from schemas.models.report import (
    DimensionBucket,
    RealtimeCounter,
    RealtimeSnapshot,
    RecentClick,
    WindowRanking,
)
from services.ranking import rank, rank_entities
from shared.datetime_utils import start_of_utc_day, utcnow
from shared.dimensions import Dimension
from shared.logging import get_logger

log = get_logger(__name__)

DEMO_COUNTRY_BUCKETS = (
    DimensionBucket(key="ES", count=45),
    DimensionBucket(key="US", count=32),
    DimensionBucket(key="MX", count=28),
    DimensionBucket(key="AR", count=22),
    DimensionBucket(key="CO", count=18),
    DimensionBucket(key="FR", count=15),
    DimensionBucket(key="DE", count=12),
    DimensionBucket(key="BR", count=10),
)

DEMO_DATASETS: dict[Dimension, tuple[DimensionBucket, ...]] = {
    Dimension.COUNTRY: DEMO_COUNTRY_BUCKETS,
}


def _window_filter(
    link_ids: Iterable[str], window_seconds: int, now: datetime
) -> ClickFilter:
    if window_seconds <= 0:
        raise ValidationError(
            "window_seconds must be positive", field="window_seconds"
        )
    # Half-open (now - window, now]: nudge the inclusive lower bound
    start = now - timedelta(seconds=window_seconds) + timedelta(microseconds=1)
    return ClickFilter(frozenset(link_ids), start, now)


def to_recent_click(event: ClickEvent, link: Optional[Link]) -> RecentClick:
    return RecentClick(
        link_id=event.link_id,
        link_slug=link.slug if link else "",
        link_title=(link.title or "") if link else "",
        timestamp=event.timestamp.isoformat(),
        country=event.country_code,
        city=event.city,
        device=event.device,
        browser=event.browser,
        os=event.os,
    )


class RealtimeWindowTracker:
    def __init__(
        self,
        store: ClickEventStore,
        *,
        demo_fallback: bool = False,
        top_limit: int = 10,
        recent_limit: int = 50,
        long_window_seconds: int = 86400,
        active_window_seconds: int = 300,
    ) -> None:
        self._store = store
        self.demo_fallback = demo_fallback
        self.top_limit = top_limit
        self.recent_limit = recent_limit
        self.long_window_seconds = long_window_seconds
        self.active_window_seconds = active_window_seconds

    async def count_in_window(
        self,
        link_ids: Iterable[str],
        window_seconds: int,
        now: Optional[datetime] = None,
    ) -> RealtimeCounter:
        now = now or utcnow()
        count = await self._store.count(_window_filter(link_ids, window_seconds, now))
        return RealtimeCounter(window_seconds=window_seconds, count=count)

    async def top_dimension_in_window(
        self,
        link_ids: Iterable[str],
        dimension: Dimension,
        window_seconds: int,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> WindowRanking:
        """Top buckets of *dimension* among events inside the window."""
        now = now or utcnow()
        limit = self.top_limit if limit is None else limit
        buckets = await self._store.grouped_count(
            _window_filter(link_ids, window_seconds, now), dimension
        )
        total = sum(b.count for b in buckets)

        if total == 0 and self.demo_fallback and dimension in DEMO_DATASETS:
            demo = DEMO_DATASETS[dimension]
            log.info(
                "realtime_demo_fallback_used",
                dimension=dimension.value,
                window_seconds=window_seconds,
            )
            return WindowRanking(
                dimension=dimension.value,
                window_seconds=window_seconds,
                buckets=rank(demo, limit),
                total=sum(b.count for b in demo),
                synthetic=True,
            )

        return WindowRanking(
            dimension=dimension.value,
            window_seconds=window_seconds,
            buckets=rank(buckets, limit),
            total=total,
        )

    async def snapshot(
        self,
        links: Mapping[str, Link],
        window_seconds: int,
        now: Optional[datetime] = None,
    ) -> RealtimeSnapshot:
        """Live dashboard view over *links*; every figure is computed at *now*."""
        now = now or utcnow()
        link_ids = frozenset(links)
        today = ClickFilter(link_ids, start_of_utc_day(now), now)

        (
            in_window,
            last_24h,
            clicks_today,
            active_visitors,
            today_by_link,
            top_countries,
            recent,
        ) = await asyncio.gather(
            self.count_in_window(link_ids, window_seconds, now),
            self.count_in_window(link_ids, self.long_window_seconds, now),
            self._store.count(today),
            self._store.distinct_count(
                _window_filter(link_ids, self.active_window_seconds, now), "ip_hash"
            ),
            self._store.grouped_count(today, Dimension.LINK),
            self.top_dimension_in_window(
                link_ids, Dimension.COUNTRY, window_seconds, now=now
            ),
            self._store.recent(
                _window_filter(link_ids, window_seconds, now), self.recent_limit
            ),
        )

        top = rank_entities(today_by_link, links, top_n=1)
        return RealtimeSnapshot(
            clicks_in_window=in_window,
            clicks_last_24h=last_24h,
            clicks_today=clicks_today,
            active_visitors=active_visitors,
            top_link=top[0] if top else None,
            top_countries=top_countries,
            recent_events=[to_recent_click(e, links.get(e.link_id)) for e in recent],
        )
