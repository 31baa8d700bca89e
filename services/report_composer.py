"""
Statistics report composition.

A report is composed fresh for every request: the totals and every dimension
rollup are fanned out concurrently against the event store and must all
finish inside one deadline. On timeout the whole report fails with
QueryTimeoutError; a partial report is never returned.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Optional

from errors import EmptyScopeError, QueryTimeoutError
from repositories.protocol import ClickEventStore, ClickFilter
from schemas.models.report import ROLLUP_FIELDS, CountryBreakdown, StatisticsReport
from services.aggregation import DimensionAggregator
from services.ranking import rank, rank_entities, rank_with_breakdown
from services.scope import Audience, Scope
from shared.datetime_utils import DateRange
from shared.dimensions import REPORT_DIMENSIONS, Dimension
from shared.logging import get_logger, should_sample

log = get_logger(__name__)

class ReportComposer:
    def __init__(
        self,
        store: ClickEventStore,
        *,
        timeout_seconds: float = 10.0,
        top_entities_limit: int = 10,
    ) -> None:
        self._aggregator = DimensionAggregator(store)
        self._store = store
        self.timeout_seconds = timeout_seconds
        self.top_entities_limit = top_entities_limit

    async def compose(
        self,
        scope: Scope,
        date_range: Optional[DateRange] = None,
        audience: Optional[Audience] = None,
    ) -> StatisticsReport:
        """Build the full StatisticsReport for *scope* over *date_range*.

        Raises:
            EmptyScopeError: the scope holds no links.
            QueryTimeoutError: the fan-out exceeded ``timeout_seconds``.
        """
        if not scope.links:
            raise EmptyScopeError("no links in scope")
        audience = audience or scope.audience
        flt = ClickFilter.for_links(scope.link_ids, date_range)

        queries: dict[str, Awaitable[Any]] = {
            "total_clicks": self._aggregator.total(flt),
            "total_unique_visitors": self._aggregator.unique_visitors(flt),
        }
        dimensions = list(REPORT_DIMENSIONS)
        if audience is Audience.OWNER:
            dimensions.append(Dimension.REFERRER)
        for dimension in dimensions:
            queries[ROLLUP_FIELDS[dimension]] = self._aggregator.aggregate_filter(
                flt, dimension
            )
        if scope.multi_link:
            queries["per_link"] = self._aggregator.aggregate_filter(flt, Dimension.LINK)

        started = time.perf_counter()
        results = await self._bounded(queries, scope, "compose")

        fields: dict[str, Any] = {
            "total_clicks": results["total_clicks"],
            "total_unique_visitors": results["total_unique_visitors"],
        }
        for dimension in dimensions:
            name = ROLLUP_FIELDS[dimension]
            # Day buckets arrive in calendar order; categorical ones get ranked
            fields[name] = (
                results[name] if dimension.is_temporal else rank(results[name])
            )
        if scope.multi_link:
            fields["top_entities"] = rank_entities(
                results["per_link"], scope.links_by_id, self.top_entities_limit
            )

        report = StatisticsReport(**fields)

        if should_sample("stats_query"):
            log.info(
                "stats_report_composed",
                link_count=len(scope.links),
                multi_link=scope.multi_link,
                audience=audience.value,
                date_range=(date_range or DateRange()).describe(),
                total_clicks=report.total_clicks,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        return report

    async def country_breakdown(
        self,
        scope: Scope,
        date_range: Optional[DateRange] = None,
        *,
        top_n: Optional[int] = None,
        links_per_country: Optional[int] = None,
    ) -> list[CountryBreakdown]:
        """Top countries by clicks, each with its top links."""
        if not scope.links:
            raise EmptyScopeError("no links in scope")
        flt = ClickFilter.for_links(scope.link_ids, date_range)
        results = await self._bounded(
            {"rows": self._store.grouped_count_by_link(flt, Dimension.COUNTRY)},
            scope,
            "country_breakdown",
        )
        return rank_with_breakdown(
            results["rows"], scope.links_by_id, top_n, links_per_country
        )

    async def _bounded(
        self, queries: dict[str, Awaitable[Any]], scope: Scope, operation: str
    ) -> dict[str, Any]:
        """Await every query under one deadline; cancel all of them on expiry."""
        try:
            values = await asyncio.wait_for(
                asyncio.gather(*queries.values()), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            log.warning(
                "stats_query_timeout",
                operation=operation,
                link_count=len(scope.links),
                timeout_seconds=self.timeout_seconds,
            )
            raise QueryTimeoutError(
                "statistics query timed out",
                details={"timeout_seconds": self.timeout_seconds},
            ) from None
        return dict(zip(queries.keys(), values))
