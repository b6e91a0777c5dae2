from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    vin_cache_ttl_seconds: int = Field(default=2_592_000, alias="VIN_CACHE_TTL_SECONDS")

    # VIN decoders
    autodev_api_key: str = Field(default="", alias="AUTODEV_API_KEY")
    autodev_base_url: str = Field(default="https://api.auto.dev/vin", alias="AUTODEV_BASE_URL")
    nhtsa_base_url: str = Field(default="https://vpic.nhtsa.dot.gov/api/vehicles", alias="NHTSA_BASE_URL")
    vin_request_timeout_seconds: float = Field(default=20.0, alias="VIN_REQUEST_TIMEOUT_SECONDS")
    vin_retry_max_attempts: int = Field(default=3, alias="VIN_RETRY_MAX_ATTEMPTS")
    vin_retry_initial_delay_seconds: float = Field(default=1.0, alias="VIN_RETRY_INITIAL_DELAY_SECONDS")
    vin_retry_max_delay_seconds: float = Field(default=8.0, alias="VIN_RETRY_MAX_DELAY_SECONDS")

    # Pricing providers: "demo" or "licensed"
    provider_mode: str = Field(default="demo", alias="PROVIDER_MODE")
    blackbook_api_key: str = Field(default="", alias="BLACKBOOK_API_KEY")
    kbb_api_key: str = Field(default="", alias="KBB_API_KEY")
    nada_api_key: str = Field(default="", alias="NADA_API_KEY")
    manheim_api_key: str = Field(default="", alias="MANHEIM_API_KEY")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    def provider_credentials(self) -> dict[str, str]:
        return {
            "BlackBook": self.blackbook_api_key,
            "KBB": self.kbb_api_key,
            "NADA": self.nada_api_key,
            "Manheim": self.manheim_api_key,
        }
