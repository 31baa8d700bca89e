"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
Sub-configs are composed in AppSettings via model_validator so every
section reads from the same env/dotenv source.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "link-analytics"

    clicks_collection: str = "analytics_events"
    links_collection: str = "links"
    exports_collection: str = "temp_exports"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Without Redis the export store falls back to process memory
    redis_uri: Optional[str] = None


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production

    # Sampling rates (0.0–1.0)
    sample_rate_stats: float = 0.20
    sample_rate_export: float = 0.80


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AnalyticsSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Deadline for the whole fan-out of one composed report
    query_timeout_seconds: float = 10.0

    # Realtime windows
    realtime_window_seconds: int = 3600
    realtime_long_window_seconds: int = 86400
    active_visitor_window_seconds: int = 300
    realtime_top_limit: int = 10
    realtime_recent_events_limit: int = 50
    # Substitute the labelled demo dataset when a realtime window is empty
    realtime_demo_fallback: bool = False

    # Rankings
    top_entities_limit: int = 10
    country_breakdown_limit: int = 5
    country_breakdown_links: int = 3

    summary_default_days: int = 30

    # Stored export artifacts
    export_ttl_seconds: int = 3600


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "link-analytics"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None
    analytics: Optional[AnalyticsSettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        if self.analytics is None:
            self.analytics = AnalyticsSettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
