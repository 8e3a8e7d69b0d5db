"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the SkyCast proxy and client."""
    model_config = SettingsConfigDict(env_prefix="WEATHER_", extra="ignore")

    # Server-held provider credential (WEATHER_API_KEY); never sent to browsers.
    api_key: str | None = None
    upstream_base_url: str = "https://api.weatherapi.com/v1"
    upstream_timeout_seconds: float = 10.0

    # Where the client-side normalization module reaches the proxy.
    proxy_base_url: str = "http://localhost:8000/api/weather"
    client_timeout_seconds: float = 15.0

    default_city: str = "London"
    forecast_days: int = 1
    forecast_aqi: str = "no"
    forecast_alerts: str = "no"
    coords_hours: int = 8
    autocomplete_debounce_seconds: float = 0.3

    @field_validator("upstream_base_url", "proxy_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'api_key'})}")
