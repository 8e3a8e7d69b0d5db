import unittest

import requests

from skycast.data_sources import weatherapi_client
from skycast.data_sources.weatherapi_client import (
    InvalidEndpointError,
    build_upstream_params,
    build_upstream_url,
    resolve_endpoint,
)
from weatherapi_payloads import DummyResp, RecordingSession, make_current_payload


class TestResolveEndpoint(unittest.TestCase):
    def test_known_selectors(self):
        self.assertEqual(resolve_endpoint("current"), "current.json")
        self.assertEqual(resolve_endpoint("Forecast"), "forecast.json")
        self.assertEqual(resolve_endpoint(" search "), "search.json")

    def test_missing_selector_defaults_to_current(self):
        self.assertEqual(resolve_endpoint(None), "current.json")

    def test_invalid_selector_raises(self):
        with self.assertRaises(InvalidEndpointError):
            resolve_endpoint("history")


class TestBuildUpstream(unittest.TestCase):
    def test_url_joins_without_double_slash(self):
        self.assertEqual(
            build_upstream_url("search.json", "https://api.weatherapi.com/v1/"),
            "https://api.weatherapi.com/v1/search.json",
        )

    def test_forecast_gets_passthrough_flags_with_defaults(self):
        params = build_upstream_params("forecast.json", "Paris", api_key="k")
        self.assertEqual(params, {"key": "k", "q": "Paris", "days": "1", "aqi": "no", "alerts": "no"})

    def test_forecast_flags_override(self):
        params = build_upstream_params("forecast.json", "Paris", api_key="k", days="3", aqi="yes", alerts="yes")
        self.assertEqual(params["days"], "3")
        self.assertEqual(params["aqi"], "yes")
        self.assertEqual(params["alerts"], "yes")

    def test_current_and_search_have_no_forecast_flags(self):
        for resource in ("current.json", "search.json"):
            params = build_upstream_params(resource, "Par", api_key="k", days="3")
            self.assertEqual(params, {"key": "k", "q": "Par"})


class TestFetchUpstream(unittest.TestCase):
    def setUp(self):
        self._orig_session = weatherapi_client.session

    def tearDown(self):
        weatherapi_client.session = self._orig_session

    def test_single_get_with_key_and_timeout(self):
        fake = RecordingSession(DummyResp(make_current_payload()))
        weatherapi_client.session = fake

        resp = weatherapi_client.fetch_upstream("current.json", "London", api_key="secret", timeout=5)

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(fake.calls), 1)
        call = fake.calls[0]
        self.assertEqual(call["url"], "https://api.weatherapi.com/v1/current.json")
        self.assertEqual(call["params"]["key"], "secret")
        self.assertEqual(call["params"]["q"], "London")
        self.assertEqual(call["timeout"], 5)

    def test_transport_errors_propagate_without_retry(self):
        fake = RecordingSession(error=requests.exceptions.ConnectTimeout("timed out"))
        weatherapi_client.session = fake

        with self.assertRaises(requests.exceptions.RequestException):
            weatherapi_client.fetch_upstream("current.json", "London", api_key="secret")
        self.assertEqual(len(fake.calls), 1)


if __name__ == "__main__":
    unittest.main()
