"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Backing stores live on app.state (built in the
create_app lifespan); services are cheap and built per request from them.
"""

from __future__ import annotations

from fastapi import Depends, Request

from config import AppSettings
from errors import AuthenticationError, ForbiddenError
from infrastructure.export_store.protocol import ExportStore
from repositories.protocol import ClickEventStore, LinkRepository
from services.exports import ExportService
from services.realtime import RealtimeWindowTracker
from services.report_composer import ReportComposer
from services.scope import CallerContext, ScopeResolver


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_click_store(request: Request) -> ClickEventStore:
    return request.app.state.click_store


def get_link_repository(request: Request) -> LinkRepository:
    return request.app.state.link_repository


def get_export_store(request: Request) -> ExportStore:
    return request.app.state.export_store


def get_caller(request: Request) -> CallerContext:
    """Caller context set on request.state by the upstream auth middleware."""
    caller = getattr(request.state, "caller", None)
    if caller is None:
        raise AuthenticationError("authentication required")
    return caller


def require_admin(caller: CallerContext = Depends(get_caller)) -> CallerContext:
    if not caller.is_admin:
        raise ForbiddenError("admin access required")
    return caller


# ── Services ────────────────────────────────────────────────────────────────


def get_scope_resolver(
    links: LinkRepository = Depends(get_link_repository),
) -> ScopeResolver:
    return ScopeResolver(links)


def get_report_composer(
    settings: AppSettings = Depends(get_settings),
    store: ClickEventStore = Depends(get_click_store),
) -> ReportComposer:
    return ReportComposer(
        store,
        timeout_seconds=settings.analytics.query_timeout_seconds,
        top_entities_limit=settings.analytics.top_entities_limit,
    )


def get_realtime_tracker(
    settings: AppSettings = Depends(get_settings),
    store: ClickEventStore = Depends(get_click_store),
) -> RealtimeWindowTracker:
    analytics = settings.analytics
    return RealtimeWindowTracker(
        store,
        demo_fallback=analytics.realtime_demo_fallback,
        top_limit=analytics.realtime_top_limit,
        recent_limit=analytics.realtime_recent_events_limit,
        long_window_seconds=analytics.realtime_long_window_seconds,
        active_window_seconds=analytics.active_visitor_window_seconds,
    )


def get_export_service(
    settings: AppSettings = Depends(get_settings),
    store: ExportStore = Depends(get_export_store),
) -> ExportService:
    return ExportService(store, ttl_seconds=settings.analytics.export_ttl_seconds)
