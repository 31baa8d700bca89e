"""
In-memory ClickEventStore and LinkRepository.

Same grouping semantics as the MongoDB implementations; used by the test
suite and for local development without a database.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional

from repositories.protocol import ClickFilter, LinkDimensionCount
from schemas.models.click import ClickEvent
from schemas.models.link import Link
from schemas.models.report import DimensionBucket
from shared.datetime_utils import day_key
from shared.dimensions import Dimension


def bucket_key(event: ClickEvent, dimension: Dimension) -> str:
    """Bucket of *event* for *dimension*; exact string match, no normalisation."""
    if dimension is Dimension.DAY:
        return day_key(event.timestamp)
    value = getattr(event, dimension.field)
    if value is None or value == "":
        return dimension.sentinel
    return str(value)


class InMemoryClickEventStore:
    def __init__(self, events: Optional[Iterable[ClickEvent]] = None) -> None:
        self._events: list[ClickEvent] = list(events or [])

    def add(self, *events: ClickEvent) -> None:
        self._events.extend(events)

    def _select(self, flt: ClickFilter) -> list[ClickEvent]:
        return [event for event in self._events if flt.matches(event)]

    async def count(self, flt: ClickFilter) -> int:
        return len(self._select(flt))

    async def grouped_count(
        self, flt: ClickFilter, dimension: Dimension
    ) -> list[DimensionBucket]:
        counts = Counter(bucket_key(event, dimension) for event in self._select(flt))
        return [DimensionBucket(key=key, count=count) for key, count in counts.items()]

    async def distinct_count(self, flt: ClickFilter, field: str) -> int:
        return len({getattr(event, field) for event in self._select(flt)})

    async def grouped_count_by_link(
        self, flt: ClickFilter, dimension: Dimension
    ) -> list[LinkDimensionCount]:
        counts = Counter(
            (bucket_key(event, dimension), event.link_id) for event in self._select(flt)
        )
        return [
            LinkDimensionCount(key=key, link_id=link_id, count=count)
            for (key, link_id), count in counts.items()
        ]

    async def recent(self, flt: ClickFilter, limit: int) -> list[ClickEvent]:
        if limit <= 0:
            return []
        events = sorted(self._select(flt), key=lambda e: e.timestamp, reverse=True)
        return events[:limit]


class InMemoryLinkRepository:
    def __init__(self, links: Optional[Iterable[Link]] = None) -> None:
        self._links: dict[str, Link] = {link.id: link for link in links or []}

    def add(self, *links: Link) -> None:
        for link in links:
            self._links[link.id] = link

    async def get(self, link_id: str) -> Optional[Link]:
        return self._links.get(link_id)

    async def get_by_slug(self, slug: str) -> Optional[Link]:
        slug = slug.lower()
        return next((link for link in self._links.values() if link.slug == slug), None)

    async def list_for_owner(
        self, owner_id: str, active_only: bool = True
    ) -> list[Link]:
        return [
            link
            for link in self._links.values()
            if link.owner_id == owner_id and (link.is_active or not active_only)
        ]

