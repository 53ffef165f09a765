"""Configuration settings for the perkyjobs backend."""

from functools import lru_cache

from pydantic_settings import BaseSettings

from perkyjobs.commerce.config import (
    DEFAULT_FACILITATOR_URL,
    DEFAULT_PAYMENT_NETWORK,
    DEFAULT_RESOURCE_BASE_URL,
    CommerceConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Supabase (jobs and users tables). Unset means an in-memory store.
    supabase_url: str | None = None
    supabase_secret_key: str | None = None
    # Legacy key name, still accepted
    supabase_service_role_key: str | None = None

    # Shared secret for write endpoints (x-api-key header)
    agent_api_key: str  # Required - no default for security

    # x402 payments
    facilitator_url: str = DEFAULT_FACILITATOR_URL
    pay_to_address: str = ""
    payment_network: str = DEFAULT_PAYMENT_NETWORK
    resource_base_url: str = DEFAULT_RESOURCE_BASE_URL
    facilitator_timeout: float = 30.0

    # App
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "https://perkyjobs.xyz",
        "https://www.perkyjobs.xyz",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars not in model

    def commerce_config(self) -> CommerceConfig:
        """Payment settings for the commerce library."""
        return CommerceConfig(
            facilitator_url=self.facilitator_url,
            pay_to_address=self.pay_to_address,
            payment_network=self.payment_network,
            resource_base_url=self.resource_base_url,
            request_timeout=self.facilitator_timeout,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
