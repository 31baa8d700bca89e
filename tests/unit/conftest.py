"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests, and strips analytics overrides that may be exported in the
developer's shell. Tests control config exclusively through monkeypatch.setenv().
"""

import pytest

# Env vars that change engine behaviour when present in the outer environment
_ENGINE_OVERRIDES = (
    "REDIS_URI",
    "QUERY_TIMEOUT_SECONDS",
    "REALTIME_DEMO_FALLBACK",
    "REALTIME_WINDOW_SECONDS",
    "TOP_ENTITIES_LIMIT",
    "EXPORT_TTL_SECONDS",
)


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for name in _ENGINE_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
