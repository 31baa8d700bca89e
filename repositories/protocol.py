"""Event store and link repository protocols.

Services depend on these, not on the MongoDB or in-memory implementations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol

from schemas.models.click import ClickEvent
from schemas.models.link import Link
from schemas.models.report import DimensionBucket
from shared.datetime_utils import DateRange
from shared.dimensions import Dimension


@dataclass(frozen=True)
class ClickFilter:
    """Filter shared by every event store query.

    ``start``/``end`` are inclusive; ``None`` means unbounded on that side.
    """

    link_ids: frozenset[str]
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @classmethod
    def for_links(
        cls, link_ids: Iterable[str], date_range: Optional[DateRange] = None
    ) -> "ClickFilter":
        date_range = date_range or DateRange()
        return cls(frozenset(link_ids), date_range.start, date_range.end)

    def matches(self, event: ClickEvent) -> bool:
        if event.link_id not in self.link_ids:
            return False
        if self.start is not None and event.timestamp < self.start:
            return False
        if self.end is not None and event.timestamp > self.end:
            return False
        return True


@dataclass(frozen=True)
class LinkDimensionCount:
    """One (dimension value, link) pair and its event count."""

    key: str
    link_id: str
    count: int


class ClickEventStore(Protocol):
    async def count(self, flt: ClickFilter) -> int: ...

    async def grouped_count(
        self, flt: ClickFilter, dimension: Dimension
    ) -> list[DimensionBucket]: ...

    async def distinct_count(self, flt: ClickFilter, field: str) -> int: ...

    async def grouped_count_by_link(
        self, flt: ClickFilter, dimension: Dimension
    ) -> list[LinkDimensionCount]: ...

    async def recent(self, flt: ClickFilter, limit: int) -> list[ClickEvent]: ...


class LinkRepository(Protocol):
    async def get(self, link_id: str) -> Optional[Link]: ...

    async def get_by_slug(self, slug: str) -> Optional[Link]: ...

    async def list_for_owner(
        self, owner_id: str, active_only: bool = True
    ) -> list[Link]: ...

