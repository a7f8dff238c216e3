"""Checkout Service Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Storefront Checkout"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8001
    seed_demo_data: bool = True

    # Pricing
    currency: str = "INR"
    free_shipping_threshold: float = 999.0
    shipping_flat_fee: float = 100.0
    default_tax_rate_percent: float = 5.0

    # Payment gateway (Razorpay-compatible orders API)
    gateway_base_url: str = "https://api.razorpay.com/v1"
    gateway_key_id: Optional[str] = None
    gateway_key_secret: Optional[str] = None
    gateway_timeout_seconds: float = 10.0
    # Only enable when order creation is idempotent for a given receipt
    gateway_retry_on_timeout: bool = False

    # Auth (tokens issued by the hosted backend)
    auth_jwt_secret: Optional[str] = None
    auth_jwt_audience: str = "authenticated"

    # Operator endpoints
    admin_api_key: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def gateway_configured(self) -> bool:
        """Check if gateway credentials are configured"""
        return all([self.gateway_key_id, self.gateway_key_secret])


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
