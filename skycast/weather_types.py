"""Internal weather records consumed by the dashboard.

These shapes are independent of the upstream provider: every field is filled
from a single fixed path in the provider payload, or left as None when that
path is missing.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import List, Optional


@dataclass
class Coordinates:
    """Latitude/longitude pair in decimal degrees."""
    lat: Optional[float]
    lon: Optional[float]


@dataclass
class WeatherCondition:
    """Primary condition: short label, description and an HTTPS icon URL."""
    main: Optional[str]
    description: Optional[str]
    icon: Optional[str]


@dataclass
class MainWeatherData:
    """Temperatures in °C, pressure in hPa and relative humidity in %."""
    temp: Optional[float]
    feels_like: Optional[float]
    temp_min: Optional[float]
    temp_max: Optional[float]
    pressure: Optional[float]
    humidity: Optional[float]


@dataclass
class WindData:
    """Wind speed in km/h and direction in degrees."""
    speed: Optional[float]
    deg: Optional[float]


@dataclass
class CurrentWeather:
    """Current conditions for one resolved location."""
    name: Optional[str]
    country: Optional[str]
    coord: Coordinates
    main: MainWeatherData
    wind: WindData
    weather: List[WeatherCondition]
    dt: Optional[int]  # observation time, epoch seconds
    localtime: Optional[str]
    tz_id: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ForecastEntry:
    """One hourly forecast sample."""
    dt: Optional[int]  # epoch seconds
    main: MainWeatherData
    wind: WindData
    weather: List[WeatherCondition]
    pop: Optional[float]  # 0..1
    dt_txt: Optional[str]


@dataclass
class ForecastCity:
    """Location metadata attached to an hourly forecast."""
    name: Optional[str]
    coord: Coordinates
    country: Optional[str]
    timezone: Optional[int]  # UTC offset in seconds
    localtime: Optional[str]
    sunrise: Optional[str]
    sunset: Optional[str]
    tz_id: Optional[str] = None


@dataclass
class HourlyForecast:
    """Sequence of hourly entries plus city metadata."""
    list: List[ForecastEntry]
    city: ForecastCity

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CitySuggestion:
    """Lightweight autocomplete result."""
    name: Optional[str]
    region: Optional[str]
    country: Optional[str]
    lat: Optional[float]
    lon: Optional[float]

    @property
    def label(self) -> str:
        """Display label such as "Paris, Ile-de-France, France"."""
        return ", ".join(part for part in (self.name, self.region, self.country) if part)


@dataclass
class WeatherBundle:
    """Current conditions and hourly forecast replaced together by the dashboard."""
    current: CurrentWeather
    forecast: HourlyForecast
