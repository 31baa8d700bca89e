"""
Dimension aggregation.

One parameterised entry point groups a filtered event set by any dimension.
Day buckets are UTC calendar dates (``YYYY-MM-DD``) returned in ascending
order; categorical buckets are exact-string groups returned unordered for
the Ranker to sort.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from repositories.protocol import ClickEventStore, ClickFilter
from schemas.models.report import DimensionBucket
from shared.datetime_utils import DateRange
from shared.dimensions import Dimension


class DimensionAggregator:
    def __init__(self, store: ClickEventStore) -> None:
        self._store = store

    async def aggregate(
        self,
        link_ids: Iterable[str],
        dimension: Union[Dimension, str],
        date_range: Optional[DateRange] = None,
    ) -> list[DimensionBucket]:
        """Count events per bucket of *dimension* for the given links and range.

        Raises InvalidRangeError (via DateRange) when start > end.
        """
        if isinstance(dimension, str) and not isinstance(dimension, Dimension):
            dimension = Dimension.parse(dimension)
        return await self.aggregate_filter(
            ClickFilter.for_links(link_ids, date_range), dimension
        )

    async def aggregate_filter(
        self, flt: ClickFilter, dimension: Dimension
    ) -> list[DimensionBucket]:
        buckets = await self._store.grouped_count(flt, dimension)
        if dimension.is_temporal:
            return sorted(buckets, key=lambda b: b.key)
        return buckets

    async def total(self, flt: ClickFilter) -> int:
        return await self._store.count(flt)

    async def unique_visitors(self, flt: ClickFilter) -> int:
        return await self._store.distinct_count(flt, "ip_hash")
