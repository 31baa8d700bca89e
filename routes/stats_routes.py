"""
Statistics endpoints.

GET  /api/v1/stats               — report for one link or the caller's portfolio
GET  /api/v1/stats/public/{slug} — public report for a link with public stats on
GET  /api/v1/stats/export        — report rendered as a CSV/JSON download
GET  /api/v1/stats/realtime      — live dashboard snapshot
GET  /api/v1/stats/realtime/top  — top buckets of one dimension in a window
GET  /api/v1/stats/countries     — top countries with their top links
POST /api/v1/stats/summary       — narrative summary of the portfolio

Every authenticated route reads the caller from request.state (see
dependencies.get_caller). Scope checks happen before any aggregation runs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response

from config import AppSettings
from dependencies import (
    get_caller,
    get_realtime_tracker,
    get_report_composer,
    get_scope_resolver,
    get_settings,
)
from errors import EmptyScopeError
from schemas.dto.requests.stats import (
    CountryBreakdownQuery,
    ExportQuery,
    RealtimeQuery,
    RealtimeTopQuery,
    StatsQuery,
    SummaryRequest,
)
from schemas.dto.responses.common import ERROR_RESPONSES
from schemas.dto.responses.stats import (
    CountryBreakdownResponse,
    LinkSummary,
    StatsDateRange,
    StatsResponse,
    SummaryResponse,
)
from schemas.models.report import RealtimeSnapshot, StatisticsReport, WindowRanking
from services.export_formatter import (
    ExportEncoding,
    ExportMetadata,
    build_export_filename,
    format_report,
)
from services.narrative import build_narrative
from services.realtime import RealtimeWindowTracker
from services.report_composer import ReportComposer
from services.scope import Audience, CallerContext, Scope, ScopeResolver
from shared.datetime_utils import DateRange, utcnow
from shared.dimensions import Dimension
from shared.logging import get_logger, should_sample

log = get_logger(__name__)

router = APIRouter(prefix="/api/v1/stats", tags=["stats"])

NO_LINKS_MESSAGE = "No data yet: create a link to start collecting statistics."
NO_CLICKS_MESSAGE = "No data yet: none of these links has been clicked in this period."


def _stats_response(
    scope: Scope,
    report: StatisticsReport,
    date_range: DateRange,
    generated_at: datetime,
) -> StatsResponse:
    link = scope.primary
    return StatsResponse(
        scope="all" if scope.multi_link else "link",
        generated_at=generated_at.isoformat(),
        date_range=StatsDateRange(**date_range.to_dict()),
        link=LinkSummary(slug=link.slug, title=link.title) if link else None,
        total_links=len(scope.links) if scope.multi_link else None,
        statistics=report,
        message=NO_CLICKS_MESSAGE if report.is_empty else None,
    )


@router.get(
    "",
    response_model=StatsResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def get_stats(
    query: Annotated[StatsQuery, Query()],
    caller: CallerContext = Depends(get_caller),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    composer: ReportComposer = Depends(get_report_composer),
) -> StatsResponse:
    date_range = query.date_range()
    now = utcnow()
    try:
        scope = await resolver.resolve(caller, query.link_id)
    except EmptyScopeError:
        return StatsResponse(
            scope="all",
            generated_at=now.isoformat(),
            date_range=StatsDateRange(**date_range.to_dict()),
            total_links=0,
            statistics=StatisticsReport(),
            message=NO_LINKS_MESSAGE,
        )
    report = await composer.compose(scope, date_range)
    return _stats_response(scope, report, date_range, now)


@router.get(
    "/public/{slug}",
    response_model=StatsResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def get_public_stats(
    slug: str,
    query: Annotated[StatsQuery, Query()],
    resolver: ScopeResolver = Depends(get_scope_resolver),
    composer: ReportComposer = Depends(get_report_composer),
) -> StatsResponse:
    date_range = query.date_range()
    scope = await resolver.for_public_link(slug)
    report = await composer.compose(scope, date_range, Audience.PUBLIC)
    return _stats_response(scope, report, date_range, utcnow())


@router.get("/export", responses=ERROR_RESPONSES)
async def export_stats(
    query: Annotated[ExportQuery, Query()],
    caller: CallerContext = Depends(get_caller),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    composer: ReportComposer = Depends(get_report_composer),
) -> Response:
    encoding = ExportEncoding.parse(query.format)
    date_range = query.date_range()
    scope = await resolver.resolve(caller, query.link_id)
    report = await composer.compose(scope, date_range)

    metadata = ExportMetadata.for_scope(scope, date_range, utcnow())
    content = format_report(report, encoding, metadata)
    filename = build_export_filename(metadata, encoding)

    if should_sample("stats_export"):
        log.info(
            "stats_exported",
            caller_id=caller.caller_id,
            format=encoding.value,
            link_count=len(scope.links),
            total_clicks=report.total_clicks,
            filename=filename,
        )
    return Response(
        content=content,
        media_type=encoding.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/realtime",
    response_model=RealtimeSnapshot,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def get_realtime(
    query: Annotated[RealtimeQuery, Query()],
    caller: CallerContext = Depends(get_caller),
    settings: AppSettings = Depends(get_settings),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    tracker: RealtimeWindowTracker = Depends(get_realtime_tracker),
) -> RealtimeSnapshot:
    scope = await resolver.resolve(caller, query.link_id)
    window = query.window_seconds or settings.analytics.realtime_window_seconds
    return await tracker.snapshot(scope.links_by_id, window)


@router.get("/realtime/top", response_model=WindowRanking, responses=ERROR_RESPONSES)
async def get_realtime_top(
    query: Annotated[RealtimeTopQuery, Query()],
    caller: CallerContext = Depends(get_caller),
    settings: AppSettings = Depends(get_settings),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    tracker: RealtimeWindowTracker = Depends(get_realtime_tracker),
) -> WindowRanking:
    scope = await resolver.resolve(caller, query.link_id)
    window = query.window_seconds or settings.analytics.realtime_window_seconds
    return await tracker.top_dimension_in_window(
        scope.link_ids, Dimension(query.dimension), window, limit=query.limit
    )


@router.get(
    "/countries",
    response_model=CountryBreakdownResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def get_country_breakdown(
    query: Annotated[CountryBreakdownQuery, Query()],
    caller: CallerContext = Depends(get_caller),
    settings: AppSettings = Depends(get_settings),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    composer: ReportComposer = Depends(get_report_composer),
) -> CountryBreakdownResponse:
    date_range = query.date_range()
    scope = await resolver.for_owner(caller)
    countries = await composer.country_breakdown(
        scope,
        date_range,
        top_n=query.limit or settings.analytics.country_breakdown_limit,
        links_per_country=(
            query.links_per_country or settings.analytics.country_breakdown_links
        ),
    )
    return CountryBreakdownResponse(
        generated_at=utcnow().isoformat(), countries=countries
    )


@router.post(
    "/summary",
    response_model=SummaryResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def post_summary(
    body: Optional[SummaryRequest] = None,
    caller: CallerContext = Depends(get_caller),
    settings: AppSettings = Depends(get_settings),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    composer: ReportComposer = Depends(get_report_composer),
) -> SummaryResponse:
    now = utcnow()
    days = (body.days if body else None) or settings.analytics.summary_default_days
    try:
        scope = await resolver.for_owner(caller)
    except EmptyScopeError:
        return SummaryResponse(
            summary="You have no active links yet. Create your first link to get "
            "a personalised analytics summary.",
            generated_at=now.isoformat(),
        )

    report = await composer.compose(scope, DateRange.last_days(days, now))
    narrative = build_narrative(report, len(scope.links), days)
    log.info(
        "stats_summary_generated",
        caller_id=caller.caller_id,
        days=days,
        total_links=len(scope.links),
        total_clicks=report.total_clicks,
    )
    return SummaryResponse(
        summary=narrative.render(),
        stats=narrative.stats,
        generated_at=now.isoformat(),
    )
