"""Helpers for calling the WeatherAPI.com REST endpoints from the proxy."""
from __future__ import annotations

from typing import Dict, Optional

import requests

from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="weatherapi_client")

session = requests.Session()

WEATHERAPI_BASE_URL = "https://api.weatherapi.com/v1"

# endpoint selector -> upstream resource
UPSTREAM_ENDPOINTS = {
    "current": "current.json",
    "forecast": "forecast.json",
    "search": "search.json",
}

DEFAULT_FORECAST_DAYS = "1"
DEFAULT_FORECAST_AQI = "no"
DEFAULT_FORECAST_ALERTS = "no"


class InvalidEndpointError(ValueError):
    """Raised for an endpoint selector outside UPSTREAM_ENDPOINTS."""


def resolve_endpoint(endpoint: Optional[str]) -> str:
    """Map an endpoint selector to its upstream resource name ("current" when omitted)."""
    name = (endpoint or "current").strip().lower()
    try:
        return UPSTREAM_ENDPOINTS[name]
    except KeyError:
        raise InvalidEndpointError(
            f"Invalid endpoint '{endpoint}'. Expected one of: {', '.join(UPSTREAM_ENDPOINTS)}"
        ) from None


def build_upstream_url(resource: str, base_url: str = WEATHERAPI_BASE_URL) -> str:
    """Return the full upstream URL for a resource such as "forecast.json"."""
    return f"{base_url.rstrip('/')}/{resource}"


def build_upstream_params(
    resource: str,
    query: str,
    *,
    api_key: str,
    days: Optional[str] = None,
    aqi: Optional[str] = None,
    alerts: Optional[str] = None,
) -> Dict[str, str]:
    """Build upstream query parameters; forecast-only flags are added for forecast.json."""
    params = {"key": api_key, "q": query}
    if resource == UPSTREAM_ENDPOINTS["forecast"]:
        params["days"] = str(days or DEFAULT_FORECAST_DAYS)
        params["aqi"] = aqi or DEFAULT_FORECAST_AQI
        params["alerts"] = alerts or DEFAULT_FORECAST_ALERTS
    return params


def fetch_upstream(
    resource: str,
    query: str,
    *,
    api_key: str,
    base_url: str = WEATHERAPI_BASE_URL,
    timeout: float = 10.0,
    days: Optional[str] = None,
    aqi: Optional[str] = None,
    alerts: Optional[str] = None,
) -> requests.Response:
    """Issue a single GET against the provider and return the raw response.

    Status handling and JSON parsing are left to the caller. Transport failures
    propagate as requests.RequestException; nothing is retried.
    """
    url = build_upstream_url(resource, base_url)
    params = build_upstream_params(resource, query, api_key=api_key, days=days, aqi=aqi, alerts=alerts)

    resp = session.get(url, params=params, timeout=timeout)
    logger.info(
        "WeatherAPI GET %s -> %s",
        mask_url(getattr(resp, "url", None) or url),
        resp.status_code,
        extra={"resource": resource},
    )
    return resp
