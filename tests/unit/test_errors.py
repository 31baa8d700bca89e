"""Unit tests for AppError hierarchy and the FastAPI error handlers."""

import pytest
from fastapi import FastAPI, Query
from fastapi.testclient import TestClient

from errors import (
    AppError,
    AuthenticationError,
    EmptyScopeError,
    ExportExpiredError,
    ForbiddenError,
    InvalidRangeError,
    NotFoundError,
    QueryTimeoutError,
    UnsupportedFormatError,
    ValidationError,
    register_error_handlers,
)


class TestAppErrorSubclasses:
    @pytest.mark.parametrize(
        "cls, status, code",
        [
            (ValidationError, 400, "validation_error"),
            (AuthenticationError, 401, "authentication_error"),
            (ForbiddenError, 403, "forbidden"),
            (NotFoundError, 404, "not_found"),
            (InvalidRangeError, 400, "invalid_range"),
            (UnsupportedFormatError, 400, "unsupported_format"),
            (EmptyScopeError, 404, "empty_scope"),
            (QueryTimeoutError, 504, "query_timeout"),
            (ExportExpiredError, 410, "export_expired"),
        ],
        ids=[
            "validation",
            "authentication",
            "forbidden",
            "not_found",
            "invalid_range",
            "unsupported_format",
            "empty_scope",
            "query_timeout",
            "export_expired",
        ],
    )
    def test_status_and_code(self, cls, status, code):
        e = cls("boom")
        assert e.status_code == status
        assert e.error_code == code
        assert e.message == "boom"

    def test_analytics_errors_keep_their_family(self):
        assert isinstance(InvalidRangeError("x"), ValidationError)
        assert isinstance(EmptyScopeError("x"), NotFoundError)

    def test_query_timeout_is_retryable(self):
        e = QueryTimeoutError("slow", details={"timeout_seconds": 1.0})
        assert e.details == {"timeout_seconds": 1.0, "retryable": True}


class TestAppErrorToDict:
    def test_basic(self):
        e = NotFoundError("link not found")
        assert e.to_dict() == {"error": "link not found", "code": "not_found"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "start_date"}, "field", "start_date"),
            ({"details": {"format": "xml"}}, "details", {"format": "xml"}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_keys(self, kwargs, key, value):
        e = ValidationError("bad", **kwargs)
        assert e.to_dict()[key] == value


# ── Handlers ──────────────────────────────────────────────────────────────────


def _app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/raise/{kind}")
    async def raise_error(kind: str):
        errors = {
            "range": InvalidRangeError("start_date must not be after end_date"),
            "timeout": QueryTimeoutError("statistics query timed out"),
            "base": AppError("generic"),
        }
        if kind in errors:
            raise errors[kind]
        raise RuntimeError("unexpected")

    @app.get("/typed")
    async def typed(limit: int = Query(ge=1)):
        return {"limit": limit}

    return app


class TestErrorHandlers:
    def test_app_error_serialised(self):
        with TestClient(_app()) as client:
            resp = client.get("/raise/range")
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_range"

    def test_timeout_maps_to_504(self):
        with TestClient(_app()) as client:
            resp = client.get("/raise/timeout")
        assert resp.status_code == 504
        assert resp.json()["details"]["retryable"] is True

    def test_request_validation_becomes_400(self):
        with TestClient(_app()) as client:
            resp = client.get("/typed", params={"limit": 0})
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "validation_error"
        assert body["field"] == "limit"

    def test_unhandled_exception_is_generic_500(self):
        with TestClient(_app(), raise_server_exceptions=False) as client:
            resp = client.get("/raise/other")
        assert resp.status_code == 500
        assert resp.json() == {
            "error": "An internal server error occurred.",
            "code": "internal_error",
        }
