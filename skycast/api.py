"""HTTP proxy that forwards weather queries to WeatherAPI.com with the server-held key."""

from typing import Any, Optional

import requests
from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from .config import settings
from .data_sources import weatherapi_client
from .data_sources.weatherapi_client import InvalidEndpointError, resolve_endpoint
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="skycast/api")

router = APIRouter(prefix="/api")


class ProxyRequestError(Exception):
    """A request the proxy refuses before contacting the provider."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    """Build the `{"error": ...}` body used for every proxy-side failure."""
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _parse_coordinate(raw: Optional[str], name: str, limit: float) -> Optional[float]:
    """Parse a lat/lon query value, rejecting non-numeric or out-of-range input."""
    if raw is None or raw.strip() == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ProxyRequestError(status.HTTP_400_BAD_REQUEST, f"Invalid {name}: {raw!r}")
    if not -limit <= value <= limit:
        raise ProxyRequestError(status.HTTP_400_BAD_REQUEST, f"{name} out of range: {value}")
    return value


def resolve_location_query(
    q: Optional[str],
    city: Optional[str],
    lat: Optional[str],
    lon: Optional[str],
) -> str:
    """Collapse q/city/lat/lon into the provider's single `q` value.

    A city name (from `city` or `q`) wins; otherwise both coordinates are
    required; with nothing at all the configured default city is used.
    """
    text = (city or q or "").strip()
    if text:
        return text

    lat_value = _parse_coordinate(lat, "lat", 90.0)
    lon_value = _parse_coordinate(lon, "lon", 180.0)
    if lat_value is None and lon_value is None:
        logger.debug("No location supplied; using default city", extra={"city": settings.default_city})
        return settings.default_city
    if lat_value is None or lon_value is None:
        raise ProxyRequestError(
            status.HTTP_400_BAD_REQUEST,
            "Both lat and lon must be provided when using coordinates.",
        )
    return f"{lat_value},{lon_value}"


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


@router.get("/weather")
def proxy_weather(
    q: Optional[str] = Query(None, description="City name or 'lat,lon' pair (current weather)"),
    endpoint: Optional[str] = Query(None, description="current | forecast | search"),
    city: Optional[str] = Query(None, description="City name or partial query"),
    lat: Optional[str] = Query(None, description="Latitude in decimal degrees"),
    lon: Optional[str] = Query(None, description="Longitude in decimal degrees"),
    days: Optional[str] = Query(None, description="Forecast days (forecast only)"),
    aqi: Optional[str] = Query(None, description="Air quality flag (forecast only)"),
    alerts: Optional[str] = Query(None, description="Alerts flag (forecast only)"),
):
    """Forward one query to the provider and pass its body back unmodified."""
    try:
        resource = resolve_endpoint(endpoint)
        query = resolve_location_query(q, city, lat, lon)
    except InvalidEndpointError as exc:
        logger.info("Rejected endpoint selector", extra={"endpoint": endpoint})
        return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))
    except ProxyRequestError as exc:
        return _error_response(exc.status_code, exc.message)

    if not settings.api_key:
        logger.error("WEATHER_API_KEY is not configured; refusing upstream call")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Missing API key")

    try:
        resp = weatherapi_client.fetch_upstream(
            resource,
            query,
            api_key=settings.api_key,
            base_url=settings.upstream_base_url,
            timeout=settings.upstream_timeout_seconds,
            days=days or str(settings.forecast_days),
            aqi=aqi or settings.forecast_aqi,
            alerts=alerts or settings.forecast_alerts,
        )
    except requests.exceptions.RequestException as exc:
        logger.error("WeatherAPI call failed for %s: %s", resource, exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    try:
        body = resp.json()
    except ValueError as exc:
        if not _is_success(resp.status_code):
            text = resp.text or ""
            logger.warning("WeatherAPI returned non-JSON error body", extra={"status": resp.status_code})
            return _error_response(resp.status_code, text or f"HTTP {resp.status_code}")
        logger.error("WeatherAPI returned invalid JSON for %s: %s", resource, exc)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Invalid response from WeatherAPI for /v1/{resource}: Not valid JSON",
            details=str(exc),
        )

    if not _is_success(resp.status_code):
        logger.warning("WeatherAPI error for %s: %s", resource, body)
        return JSONResponse(status_code=resp.status_code, content=body)

    return JSONResponse(status_code=status.HTTP_200_OK, content=body)


@router.get("/health")
def health_check() -> dict:
    """Report liveness and whether the provider credential is configured."""
    return {
        "status": "healthy",
        "service": "skycast",
        "api_key_configured": bool(settings.api_key),
    }
