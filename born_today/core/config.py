from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    environment: str = "dev"
    feed_base_url: str = "https://api.wikimedia.org"
    feed_language: str = "en"
    feed_timeout_seconds: float = 8.0
    api_user_agent: str = "BornToday/1.0"
    log_level: str = "INFO"
    otel_enabled: bool = False
    otel_service_name: str = "born-today"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="BT_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
