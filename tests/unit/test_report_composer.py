"""Unit tests for ReportComposer."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from errors import EmptyScopeError, InvalidRangeError, QueryTimeoutError
from factories import LINK_A, LINK_B, make_click, make_link, scenario_clicks
from repositories.memory import InMemoryClickEventStore
from schemas.models.report import DimensionBucket
from services.report_composer import ReportComposer
from services.scope import Audience, Scope
from shared.datetime_utils import DateRange
from shared.dimensions import REPORT_DIMENSIONS, Dimension


def single(link=None):
    return Scope(links=(link or make_link(LINK_A, "promo"),), multi_link=False)


def portfolio():
    return Scope(
        links=(make_link(LINK_A, "promo", title="Spring Promo"), make_link(LINK_B, "docs")),
        multi_link=True,
    )


@pytest.fixture
def composer():
    return ReportComposer(InMemoryClickEventStore(scenario_clicks()))


class TestCompose:
    async def test_scenario_totals_and_rollups(self, composer):
        report = await composer.compose(
            single(), DateRange.parse("2024-01-01", "2024-01-02")
        )
        assert report.total_clicks == 5
        assert report.total_unique_visitors == 4
        assert report.clicks_by_country == [
            DimensionBucket(key="US", count=3),
            DimensionBucket(key="ES", count=2),
        ]
        assert [b.key for b in report.clicks_by_day] == ["2024-01-01", "2024-01-02"]

    async def test_every_rollup_sums_to_total(self, composer):
        report = await composer.compose(single())
        for dimension in (*REPORT_DIMENSIONS, Dimension.REFERRER):
            buckets = report.rollup(dimension)
            assert sum(b.count for b in buckets) == report.total_clicks, dimension

    async def test_no_events_in_range_is_empty_report(self, composer):
        report = await composer.compose(
            single(), DateRange.parse("2023-01-01", "2023-01-31")
        )
        assert report.is_empty
        assert report.total_unique_visitors == 0
        assert all(report.rollup(d) == [] for d in REPORT_DIMENSIONS)

    async def test_empty_scope_fails(self, composer):
        with pytest.raises(EmptyScopeError):
            await composer.compose(Scope(links=(), multi_link=True))

    async def test_inverted_range_fails_before_querying(self):
        store = AsyncMock()
        composer = ReportComposer(store)
        with pytest.raises(InvalidRangeError):
            await composer.compose(single(), DateRange.parse("2024-02-01", "2024-01-01"))
        store.count.assert_not_called()

    async def test_public_audience_has_no_referrers(self, composer):
        report = await composer.compose(single(), audience=Audience.PUBLIC)
        assert report.clicks_by_referrer is None

    async def test_owner_audience_has_referrers(self, composer):
        report = await composer.compose(single())
        assert {b.key for b in report.clicks_by_referrer} == {"direct", "twitter.com"}

    async def test_single_link_has_no_top_entities(self, composer):
        assert (await composer.compose(single())).top_entities is None

    async def test_portfolio_ranks_links(self):
        store = InMemoryClickEventStore(
            scenario_clicks() + [make_click(LINK_B), make_click(LINK_B, country="FR")]
        )
        report = await ReportComposer(store, top_entities_limit=1).compose(portfolio())
        assert report.total_clicks == 7
        assert [(e.slug, e.label, e.clicks) for e in report.top_entities] == [
            ("promo", "Spring Promo", 5)
        ]

    async def test_timeout_raises_and_never_returns_partial(self):
        async def slow_count(flt):
            await asyncio.sleep(1)
            return 0

        store = InMemoryClickEventStore(scenario_clicks())
        store.count = slow_count
        composer = ReportComposer(store, timeout_seconds=0.01)
        with pytest.raises(QueryTimeoutError) as exc_info:
            await composer.compose(single())
        assert exc_info.value.details["retryable"] is True

    async def test_store_error_propagates(self):
        store = InMemoryClickEventStore()
        store.distinct_count = AsyncMock(side_effect=RuntimeError("db down"))
        with pytest.raises(RuntimeError, match="db down"):
            await ReportComposer(store).compose(single())


class TestCountryBreakdown:
    async def test_top_countries_with_links(self):
        store = InMemoryClickEventStore(
            scenario_clicks() + [make_click(LINK_B, country="ES") for _ in range(3)]
        )
        result = await ReportComposer(store).country_breakdown(
            portfolio(), top_n=2, links_per_country=1
        )
        assert [(c.country, c.total_clicks) for c in result] == [("ES", 5), ("US", 3)]
        assert [(e.slug, e.clicks) for e in result[0].links] == [("docs", 3)]

    async def test_empty_scope(self, composer):
        with pytest.raises(EmptyScopeError):
            await composer.country_breakdown(Scope(links=(), multi_link=True))
