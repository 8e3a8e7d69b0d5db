"""Client for the SkyCast proxy that returns normalized weather records.

Every operation goes through `WeatherServiceClient.request`, which shapes the
proxy query for a call kind, performs one GET, and applies a single error
policy: a non-2xx status or a body that is not JSON raises WeatherServiceError
carrying the upstream message when there is one, otherwise "HTTP <status>".
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

import requests

from skycast import normalization
from skycast.config import settings
from skycast.normalization import PayloadShapeError
from skycast.weather_types import CitySuggestion, CurrentWeather, HourlyForecast, WeatherBundle
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_service")

session = requests.Session()


class CallKind(str, Enum):
    """Proxy endpoint selectors."""
    CURRENT = "current"
    FORECAST = "forecast"
    SEARCH = "search"


class WeatherServiceError(RuntimeError):
    """Failure surfaced to the UI; `str(err)` is meant to be shown verbatim."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def extract_error_message(body: Any) -> Optional[str]:
    """Pull a human-readable message out of a proxy or provider error body.

    Handles both `{"error": "text"}` (proxy) and
    `{"error": {"code": 1006, "message": "text"}}` (provider).
    """
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, str) and error.strip():
        return error
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message
    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message
    return None


def build_request_params(
    kind: CallKind,
    *,
    city: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
) -> Dict[str, str]:
    """Shape the proxy query string for one call kind."""
    kind = CallKind(kind)
    params = {"endpoint": kind.value}
    if city is not None:
        city = city.strip()
        if not city:
            raise ValueError("City name must not be empty")
        params["city"] = city
    elif lat is not None and lon is not None:
        params["lat"] = str(lat)
        params["lon"] = str(lon)
    else:
        raise ValueError("Either city or both lat and lon are required")
    return params


def parse_response(resp: requests.Response) -> Any:
    """Return the parsed JSON body, or raise WeatherServiceError per the error policy."""
    status = resp.status_code
    try:
        body = resp.json()
        is_json = True
    except ValueError:
        body = None
        is_json = False

    if 200 <= status < 300 and is_json:
        return body

    message = extract_error_message(body) or f"HTTP {status}"
    logger.warning("Weather proxy request failed", extra={"status": status, "error": message})
    raise WeatherServiceError(message, status_code=status)


class WeatherServiceClient:
    """Fetches weather through the proxy and reshapes it into internal records."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        coords_hours: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.proxy_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.client_timeout_seconds
        self.coords_hours = coords_hours if coords_hours is not None else settings.coords_hours

    def request(
        self,
        kind: CallKind,
        *,
        city: Optional[str] = None,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
    ) -> Any:
        """Issue one proxy call for `kind` and return the raw JSON body."""
        params = build_request_params(kind, city=city, lat=lat, lon=lon)
        logger.debug("Weather proxy GET", extra={"params": params})
        try:
            resp = session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.error("Weather proxy unreachable: %s", exc)
            raise WeatherServiceError("Unable to reach the weather service.") from exc
        return parse_response(resp)

    def _reshape(self, reshape, body, *, context: str):
        try:
            return reshape(body)
        except PayloadShapeError as exc:
            logger.error("Unexpected %s payload: %s", context, exc)
            raise WeatherServiceError(f"Unexpected {context} response from the weather service.") from exc

    def fetch_current_weather_by_city(self, city: str) -> CurrentWeather:
        """Current conditions for a city name."""
        body = self.request(CallKind.CURRENT, city=city)
        return self._reshape(normalization.normalize_current, body, context="current weather")

    def fetch_hourly_forecast_by_city(self, city: str) -> HourlyForecast:
        """Hourly forecast for the first day, one entry per provider hour."""
        body = self.request(CallKind.FORECAST, city=city)
        return self._reshape(normalization.normalize_hourly, body, context="forecast")

    def fetch_weather_by_coords(self, lat: float, lon: float) -> WeatherBundle:
        """Current conditions plus the next few hours from a single forecast call."""
        body = self.request(CallKind.FORECAST, lat=lat, lon=lon)
        return self._reshape(
            lambda payload: normalization.normalize_coords_bundle(payload, hours=self.coords_hours),
            body,
            context="forecast",
        )

    def fetch_autocomplete_weather_by_city(self, partial_query: str) -> List[CitySuggestion]:
        """City suggestions for a partial name."""
        body = self.request(CallKind.SEARCH, city=partial_query)
        return self._reshape(normalization.normalize_search, body, context="search")


_default_client: Optional[WeatherServiceClient] = None


def get_default_client() -> WeatherServiceClient:
    """Return a process-wide client built from settings."""
    global _default_client
    if _default_client is None:
        _default_client = WeatherServiceClient()
    return _default_client


def fetch_current_weather_by_city(city: str) -> CurrentWeather:
    return get_default_client().fetch_current_weather_by_city(city)


def fetch_hourly_forecast_by_city(city: str) -> HourlyForecast:
    return get_default_client().fetch_hourly_forecast_by_city(city)


def fetch_weather_by_coords(lat: float, lon: float) -> WeatherBundle:
    return get_default_client().fetch_weather_by_coords(lat, lon)


def fetch_autocomplete_weather_by_city(partial_query: str) -> List[CitySuggestion]:
    return get_default_client().fetch_autocomplete_weather_by_city(partial_query)
