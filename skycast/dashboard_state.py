"""Dashboard state and pure transition functions.

The dashboard moves through idle -> loading -> (success | error). Each event
is a small dataclass and `reduce` returns a new DashboardState without
touching the old one, so any front end can render from the result.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Union

from skycast.weather_types import CitySuggestion, CurrentWeather, HourlyForecast


class Status(str, Enum):
    """Lifecycle of the main weather panel."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class DashboardState:
    status: Status = Status.IDLE
    current: Optional[CurrentWeather] = None
    forecast: Optional[HourlyForecast] = None
    error: Optional[str] = None
    geo_error: Optional[str] = None
    suggestions: List[CitySuggestion] = field(default_factory=list)
    suggestion_seq: int = 0  # sequence of the last applied suggestion response

    @property
    def loading(self) -> bool:
        return self.status is Status.LOADING

    @property
    def has_data(self) -> bool:
        return self.current is not None and self.forecast is not None


@dataclass(frozen=True)
class LoadStarted:
    """A search, initial mount or geolocation fix started a fetch."""
    city: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None


@dataclass(frozen=True)
class LoadSucceeded:
    current: CurrentWeather
    forecast: HourlyForecast


@dataclass(frozen=True)
class LoadFailed:
    message: str


@dataclass(frozen=True)
class GeolocationFailed:
    """Advisory only; the last successful data stays on screen."""
    message: str


@dataclass(frozen=True)
class SuggestionsReceived:
    seq: int
    suggestions: List[CitySuggestion]


@dataclass(frozen=True)
class SuggestionsCleared:
    """Input was emptied; `seq` invalidates responses still in flight."""
    seq: int


Event = Union[LoadStarted, LoadSucceeded, LoadFailed, GeolocationFailed, SuggestionsReceived, SuggestionsCleared]


def on_load_started(state: DashboardState, event: LoadStarted) -> DashboardState:
    # Prior data stays visible until the fetch resolves.
    return replace(state, status=Status.LOADING, error=None, geo_error=None)


def on_load_succeeded(state: DashboardState, event: LoadSucceeded) -> DashboardState:
    return replace(state, status=Status.SUCCESS, current=event.current, forecast=event.forecast, error=None)


def on_load_failed(state: DashboardState, event: LoadFailed) -> DashboardState:
    return replace(state, status=Status.ERROR, current=None, forecast=None, error=event.message)


def on_geolocation_failed(state: DashboardState, event: GeolocationFailed) -> DashboardState:
    """Record the advisory and leave loading without touching weather data."""
    if state.status is Status.LOADING:
        status = Status.SUCCESS if state.has_data else Status.IDLE
    else:
        status = state.status
    return replace(state, status=status, geo_error=event.message)


def on_suggestions_received(state: DashboardState, event: SuggestionsReceived) -> DashboardState:
    """Apply a suggestion list only if it answers a newer request than the one shown."""
    if event.seq <= state.suggestion_seq:
        return state
    return replace(state, suggestions=list(event.suggestions), suggestion_seq=event.seq)


def on_suggestions_cleared(state: DashboardState, event: SuggestionsCleared) -> DashboardState:
    if event.seq <= state.suggestion_seq:
        return state
    return replace(state, suggestions=[], suggestion_seq=event.seq)


_HANDLERS = {
    LoadStarted: on_load_started,
    LoadSucceeded: on_load_succeeded,
    LoadFailed: on_load_failed,
    GeolocationFailed: on_geolocation_failed,
    SuggestionsReceived: on_suggestions_received,
    SuggestionsCleared: on_suggestions_cleared,
}


def reduce(state: DashboardState, event: Event) -> DashboardState:
    """Return the state that follows `event`."""
    try:
        handler = _HANDLERS[type(event)]
    except KeyError:
        raise TypeError(f"Unsupported dashboard event: {type(event).__name__}") from None
    return handler(state, event)
