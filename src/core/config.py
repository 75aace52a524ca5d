"""Service settings, read from the environment and ``.env``."""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the orders service.

    Only the Supabase connection is mandatory. Without Stripe keys the
    service still takes orders but payment endpoints answer 503.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="food-delivery-backend", description="Name reported to logs and Stripe")
    app_env: str = Field(default="development", description="development, staging or production")
    debug: bool = Field(default=False, description="Expose API docs and log at DEBUG")
    log_level: str = Field(default="INFO", description="Root log level when debug is off")
    host: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    port: int = Field(default=5000, description="Bind port for uvicorn")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://localhost:8080",
        description="Allowed browser origins, comma separated",
    )

    # Order store
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Service key used for all table access")

    # Payments
    stripe_secret_key: str = Field(default="", description="Secret key for PaymentIntent calls")
    stripe_webhook_secret: str = Field(default="", description="Signing secret of the webhook endpoint")
    default_currency: str = Field(default="inr", description="ISO currency of every order")

    # Fee schedule, as fractions of the discounted subtotal
    delivery_fee_rate: Decimal = Field(default=Decimal("0.10"), ge=0, description="Delivery fee rate")
    tax_rate: Decimal = Field(default=Decimal("0.05"), ge=0, description="Tax rate")
    total_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Largest accepted gap between the client's total and the computed one",
    )

    # Used by src.client and the reconciliation script
    api_base_url: str = Field(default="http://localhost:5000", description="Where the orders API is served")
    api_timeout_seconds: float = Field(default=10.0, gt=0, description="Per-request timeout for the client")

    @field_validator("default_currency")
    @classmethod
    def lowercase_currency(cls, value: str) -> str:
        """Stripe expects lowercase currency codes."""
        return value.strip().lower()

    @field_validator("log_level")
    @classmethod
    def uppercase_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def cors_origins_list(self) -> list[str]:
        """``cors_origins`` split on commas, blanks dropped."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_stripe_test_mode(self) -> bool:
        """True for ``sk_test_`` keys."""
        return self.stripe_secret_key.startswith("sk_test_")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings.

    Tests call ``get_settings.cache_clear()`` after changing the environment.
    """
    return Settings()
