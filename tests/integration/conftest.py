"""
Integration test app: real routers and error handlers over in-memory stores.

The upstream auth layer is simulated by a middleware that copies the
``X-Caller-Id`` / ``X-Caller-Admin`` headers into request.state.caller.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from config import AnalyticsSettings, AppSettings
from errors import register_error_handlers
from infrastructure.export_store.memory import InMemoryExportStore
from routes.export_routes import router as export_router
from routes.health_routes import router as health_router
from routes.stats_routes import router as stats_router
from services.scope import CallerContext


def build_test_app(click_store, link_repo, export_store=None, **analytics) -> FastAPI:
    settings = AppSettings(analytics=AnalyticsSettings(**analytics))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.db = None
        app.state.redis = None
        app.state.click_store = click_store
        app.state.link_repository = link_repo
        app.state.export_store = export_store or InMemoryExportStore()
        yield

    app = FastAPI(lifespan=lifespan)

    @app.middleware("http")
    async def fake_auth(request: Request, call_next):
        caller_id = request.headers.get("X-Caller-Id")
        if caller_id:
            request.state.caller = CallerContext(
                caller_id=caller_id,
                is_admin=request.headers.get("X-Caller-Admin") == "1",
            )
        return await call_next(request)

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(stats_router)
    app.include_router(export_router)
    return app


@pytest.fixture
def client_for(link_repo):
    """Factory: TestClient over the given click store (and optional export store)."""
    clients = []

    def _make(click_store, export_store=None, **analytics):
        client = TestClient(build_test_app(click_store, link_repo, export_store, **analytics))
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)
