"""Environment-driven settings for the claims service, the review service and the client.

Loaded once per process; see `.env.example` for the variables.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "unknown-service"
    log_level: str = "INFO"
    postgres_dsn: str
    api_key: str
    claims_url: str = "http://claims:8001"
    redis_url: str = "redis://redis:6379/0"
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"

    # Offer policy
    offer_visit_threshold: int = Field(default=50, ge=1)
    approval_window_hours: int = Field(default=24, ge=1)
    reconcile_interval_seconds: float = Field(default=30.0, gt=0)
    offer_amount_cents: int = Field(default=1000, ge=0)
    offer_currency: str = "USD"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level", "offer_currency")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()


settings = CommonSettings()
