"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
Sub-configs are composed onto AppSettings by a model validator so a single
``AppSettings()`` call yields the full configuration tree.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str = "mongodb://localhost:27017"
    db_name: str = "linkbio"


class AnalyticsSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # "memory" keeps everything in-process (single worker only)
    storage_backend: Literal["mongo", "memory"] = "mongo"

    # Geolocation: local MaxMind database, ipapi.co HTTP lookup, or disabled
    geo_provider: Literal["geoip", "ipapi", "none"] = "geoip"
    geo_timeout_seconds: float = Field(default=1.5, gt=0)
    ipapi_base_url: str = "https://ipapi.co"
    geoip_city_db: str = "misc/GeoLite2-City.mmdb"

    dashboard_window_days: int = Field(default=30, ge=1)

    # Unique-visitor keys are per UTC day; keep them a little longer than that
    visitor_key_ttl_seconds: int = Field(default=172_800, ge=86_400)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production

    # Sampling rates (0.0–1.0)
    sample_rate_click: float = 0.05
    sample_rate_rollup: float = 0.20
    sample_rate_export: float = 0.80


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_name: str = "linkbio-analytics"

    # CORS: all origins, credentials allowed
    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    analytics: Optional[AnalyticsSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.analytics is None:
            self.analytics = AnalyticsSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
