"""Reshape WeatherAPI.com payloads into the internal weather records.

All functions here are pure: they take the parsed JSON body returned by the
proxy and build fresh records. A field whose upstream path is missing is left
as None; nothing is synthesized from neighbouring fields.
"""
from __future__ import annotations

import datetime as dt
from typing import Any, List, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from skycast.weather_types import (
    CitySuggestion,
    Coordinates,
    CurrentWeather,
    ForecastCity,
    ForecastEntry,
    HourlyForecast,
    MainWeatherData,
    WeatherBundle,
    WeatherCondition,
    WindData,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="normalization")

SCHEME_RELATIVE_PREFIX = "//"
SECONDS_PER_HOUR = 3600


class PayloadShapeError(ValueError):
    """Raised when a provider payload lacks a required top-level section."""


def _get(payload: Any, *path: Any) -> Any:
    """Follow `path` through nested dicts/lists, returning None at the first gap."""
    node = payload
    for key in path:
        if isinstance(node, Mapping):
            node = node.get(key)
        elif isinstance(node, Sequence) and not isinstance(node, str) and isinstance(key, int):
            node = node[key] if -len(node) <= key < len(node) else None
        else:
            return None
        if node is None:
            return None
    return node


def _require_mapping(payload: Any, key: str, *, context: str) -> Mapping:
    section = payload.get(key) if isinstance(payload, Mapping) else None
    if not isinstance(section, Mapping):
        raise PayloadShapeError(f"{context} payload is missing '{key}'")
    return section


def upgrade_icon_url(icon: Optional[str]) -> Optional[str]:
    """Turn a scheme-relative icon path ("//cdn...") into an explicit HTTPS URL."""
    if icon is None:
        return None
    if icon.startswith(SCHEME_RELATIVE_PREFIX):
        return f"https:{icon}"
    return icon


def normalize_pop(chance: Optional[float]) -> Optional[float]:
    """Convert a 0-100 chance value to a 0-1 probability."""
    if chance is None:
        return None
    try:
        value = float(chance) / 100.0
    except (TypeError, ValueError):
        logger.debug("Unparseable chance_of_rain; treating as unknown", extra={"chance": chance})
        return None
    return min(1.0, max(0.0, value))


def timezone_offset_seconds(tz_id: Optional[str], at_epoch: Optional[int] = None) -> Optional[int]:
    """Return the UTC offset for `tz_id` in seconds, evaluated at `at_epoch` (now if None)."""
    if not tz_id:
        return None
    try:
        tz = ZoneInfo(tz_id)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone identifier", extra={"tz_id": tz_id})
        return None
    if at_epoch is None:
        moment = dt.datetime.now(tz)
    else:
        moment = dt.datetime.fromtimestamp(at_epoch, tz)
    offset = moment.utcoffset()
    return int(offset.total_seconds()) if offset is not None else None


def _condition(block: Mapping) -> List[WeatherCondition]:
    text = _get(block, "condition", "text")
    return [
        WeatherCondition(
            main=text,
            description=text,
            icon=upgrade_icon_url(_get(block, "condition", "icon")),
        )
    ]


def _main(block: Mapping) -> MainWeatherData:
    # The provider has no separate min/max for a single observation.
    temp = _get(block, "temp_c")
    return MainWeatherData(
        temp=temp,
        feels_like=_get(block, "feelslike_c"),
        temp_min=temp,
        temp_max=temp,
        pressure=_get(block, "pressure_mb"),
        humidity=_get(block, "humidity"),
    )


def _wind(block: Mapping) -> WindData:
    return WindData(speed=_get(block, "wind_kph"), deg=_get(block, "wind_degree"))


def _coord(location: Mapping) -> Coordinates:
    return Coordinates(lat=_get(location, "lat"), lon=_get(location, "lon"))


def normalize_current(payload: Mapping) -> CurrentWeather:
    """Map a current.json (or forecast.json) body to CurrentWeather."""
    location = _require_mapping(payload, "location", context="current")
    current = _require_mapping(payload, "current", context="current")
    return CurrentWeather(
        name=_get(location, "name"),
        country=_get(location, "country"),
        coord=_coord(location),
        main=_main(current),
        wind=_wind(current),
        weather=_condition(current),
        dt=_get(current, "last_updated_epoch"),
        localtime=_get(location, "localtime"),
        tz_id=_get(location, "tz_id"),
    )


def normalize_forecast_entry(hour: Mapping) -> ForecastEntry:
    """Map one element of forecastday[0].hour to a ForecastEntry."""
    return ForecastEntry(
        dt=_get(hour, "time_epoch"),
        main=_main(hour),
        wind=_wind(hour),
        weather=_condition(hour),
        pop=normalize_pop(_get(hour, "chance_of_rain")),
        dt_txt=_get(hour, "time"),
    )


def _first_forecast_day(payload: Mapping) -> Mapping:
    forecast = _require_mapping(payload, "forecast", context="forecast")
    days = forecast.get("forecastday")
    if not isinstance(days, list) or not days or not isinstance(days[0], Mapping):
        raise PayloadShapeError("forecast payload has no forecastday entries")
    return days[0]


def _forecast_city(location: Mapping, day: Mapping) -> ForecastCity:
    tz_id = _get(location, "tz_id")
    return ForecastCity(
        name=_get(location, "name"),
        coord=_coord(location),
        country=_get(location, "country"),
        timezone=timezone_offset_seconds(tz_id, _get(location, "localtime_epoch")),
        localtime=_get(location, "localtime"),
        sunrise=_get(day, "astro", "sunrise"),
        sunset=_get(day, "astro", "sunset"),
        tz_id=tz_id,
    )


def normalize_hourly(payload: Mapping) -> HourlyForecast:
    """Map a forecast.json body to an HourlyForecast covering the whole first day."""
    location = _require_mapping(payload, "location", context="forecast")
    day = _first_forecast_day(payload)
    hours = day.get("hour") or []
    entries = [normalize_forecast_entry(hour) for hour in hours if isinstance(hour, Mapping)]
    return HourlyForecast(list=entries, city=_forecast_city(location, day))


def select_next_hours(
    entries: List[ForecastEntry],
    reference_epoch: Optional[int],
    count: int,
) -> List[ForecastEntry]:
    """Return up to `count` entries starting at the hour that contains `reference_epoch`."""
    if reference_epoch is None:
        return entries[:count]
    upcoming = [
        entry for entry in entries
        if entry.dt is None or entry.dt + SECONDS_PER_HOUR > reference_epoch
    ]
    return upcoming[:count]


def normalize_coords_bundle(payload: Mapping, *, hours: int = 8) -> WeatherBundle:
    """Split a single forecast.json body into current conditions and the next `hours` hours."""
    current = normalize_current(payload)
    forecast = normalize_hourly(payload)
    forecast.list = select_next_hours(forecast.list, current.dt, hours)
    return WeatherBundle(current=current, forecast=forecast)


def normalize_search(payload: Any) -> List[CitySuggestion]:
    """Map a search.json result array to CitySuggestion records."""
    if not isinstance(payload, list):
        raise PayloadShapeError("search payload is not a list")
    return [
        CitySuggestion(
            name=_get(item, "name"),
            region=_get(item, "region"),
            country=_get(item, "country"),
            lat=_get(item, "lat"),
            lon=_get(item, "lon"),
        )
        for item in payload
        if isinstance(item, Mapping)
    ]
