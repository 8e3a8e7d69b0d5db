"""Dashboard store and controller: turn UI events into fetches and state transitions."""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional

from skycast.autocomplete import Debouncer, RequestSequencer
from skycast.config import settings
from skycast.dashboard_state import (
    DashboardState,
    Event,
    GeolocationFailed,
    LoadFailed,
    LoadStarted,
    LoadSucceeded,
    SuggestionsCleared,
    SuggestionsReceived,
    reduce,
)
from skycast.weather_service import WeatherServiceClient, WeatherServiceError, get_default_client
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="dashboard")

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
GEOLOCATION_UNSUPPORTED_MESSAGE = "Geolocation is not supported by your browser."

Listener = Callable[[DashboardState], None]


class DashboardStore:
    """Holds the current DashboardState; every event is applied under one lock."""

    def __init__(self, state: Optional[DashboardState] = None):
        self._state = state or DashboardState()
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> DashboardState:
        with self._lock:
            return self._state

    def dispatch(self, event: Event) -> DashboardState:
        with self._lock:
            self._state = reduce(self._state, event)
            new_state = self._state
            listeners = list(self._listeners)
        for listener in listeners:
            listener(new_state)
        return new_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; the returned callable unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe


class DashboardController:
    """Drives the dashboard: searches, geolocation results and autocomplete keystrokes."""

    def __init__(
        self,
        client: Optional[WeatherServiceClient] = None,
        store: Optional[DashboardStore] = None,
        *,
        default_city: Optional[str] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.client = client or get_default_client()
        self.store = store or DashboardStore()
        self.default_city = default_city or settings.default_city
        self.sequencer = RequestSequencer()
        wait_seconds = settings.autocomplete_debounce_seconds if debounce_seconds is None else debounce_seconds
        self.debouncer: Debouncer[str] = Debouncer(self._run_autocomplete, wait_seconds)
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="skycast-fetch")

    @property
    def state(self) -> DashboardState:
        return self.store.state

    def start(self) -> DashboardState:
        """Initial mount: load the default city."""
        return self.search(self.default_city)

    def search(self, city: str) -> DashboardState:
        """Fetch current conditions and the hourly forecast together for `city`."""
        city = (city or "").strip()
        if not city:
            return self.store.state

        self.store.dispatch(LoadStarted(city=city))
        current_future = self._executor.submit(self.client.fetch_current_weather_by_city, city)
        forecast_future = self._executor.submit(self.client.fetch_hourly_forecast_by_city, city)
        wait([current_future, forecast_future])
        try:
            current = current_future.result()
            forecast = forecast_future.result()
        except Exception as exc:
            return self._fail(exc, context=f"city '{city}'")

        logger.info("Loaded weather for %s (%d hourly entries)", current.name, len(forecast.list))
        return self.store.dispatch(LoadSucceeded(current=current, forecast=forecast))

    def begin_geolocation(self) -> DashboardState:
        """The UI asked the browser for a position; show loading until it answers."""
        return self.store.dispatch(LoadStarted())

    def load_coords(self, lat: float, lon: float) -> DashboardState:
        """Geolocation succeeded: fetch by coordinates with a single combined call."""
        self.store.dispatch(LoadStarted(lat=lat, lon=lon))
        try:
            bundle = self.client.fetch_weather_by_coords(lat, lon)
        except Exception as exc:
            return self._fail(exc, context=f"coordinates ({lat}, {lon})")
        return self.store.dispatch(LoadSucceeded(current=bundle.current, forecast=bundle.forecast))

    def geolocation_failed(self, reason: Optional[str] = None) -> DashboardState:
        """Geolocation failed or is unsupported; keep the last data and show an advisory."""
        message = f"Geolocation failed: {reason}" if reason else GEOLOCATION_UNSUPPORTED_MESSAGE
        logger.info(message)
        return self.store.dispatch(GeolocationFailed(message=message))

    def type_query(self, text: str) -> None:
        """Autocomplete keystroke; only the last value after the quiet period is fetched."""
        text = (text or "").strip()
        if not text:
            self.debouncer.cancel()
            self.store.dispatch(SuggestionsCleared(seq=self.sequencer.next()))
            return
        self.debouncer.submit(text)

    def _run_autocomplete(self, text: str) -> None:
        seq = self.sequencer.next()
        try:
            suggestions = self.client.fetch_autocomplete_weather_by_city(text)
        except WeatherServiceError as exc:
            logger.warning("Autocomplete failed for %r: %s", text, exc)
            suggestions = []
        except Exception:
            logger.exception("Unexpected error fetching suggestions for %r", text)
            suggestions = []
        self.store.dispatch(SuggestionsReceived(seq=seq, suggestions=suggestions))

    def _fail(self, exc: Exception, *, context: str) -> DashboardState:
        if isinstance(exc, WeatherServiceError):
            logger.warning("Weather load failed for %s: %s", context, exc)
            message = str(exc)
        else:
            logger.exception("Unexpected error loading weather for %s", context)
            message = UNKNOWN_ERROR_MESSAGE
        return self.store.dispatch(LoadFailed(message=message))

    def close(self) -> None:
        """Drop pending keystrokes and wait for any suggestion fetch already running."""
        self.debouncer.cancel()
        self.debouncer.flush()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "DashboardController":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
