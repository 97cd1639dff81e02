"""Central environment-driven settings for the MoMo payment service.

The process loads this once at startup. Provider endpoints, credentials and
workflow toggles are controlled by environment variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "momopay"
    log_level: str = "INFO"
    momo_base_url: str = "https://sandbox.momodeveloper.mtn.com"
    momo_subscription_key: str
    momo_callback_host: str = "https://webhook.example.com"
    momo_target_environment: str = "sandbox"
    momo_currency: str = "EUR"
    momo_request_timeout_seconds: float = 10.0
    momo_verify_api_user: bool = False
    momo_payer_message: str = "Payment for order"
    momo_payee_note: str = "Payment for order"
    expose_step_endpoints: bool = False
    cors_allow_origins: str = "*"
    tracing_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]


settings = CommonSettings()
