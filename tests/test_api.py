import unittest

import requests
from fastapi.testclient import TestClient

from skycast.main import app as fastapi_app
from weatherapi_payloads import (
    DummyResp,
    RecordingSession,
    make_current_payload,
    make_forecast_payload,
    make_search_payload,
)


class TestProxyApi(unittest.TestCase):
    def setUp(self):
        from skycast.config import settings
        from skycast.data_sources import weatherapi_client

        self.settings = settings
        self.client_mod = weatherapi_client
        self._orig_session = weatherapi_client.session
        self._orig_api_key = settings.api_key
        settings.api_key = "test-key"
        self.client = TestClient(fastapi_app)

    def tearDown(self):
        self.client_mod.session = self._orig_session
        self.settings.api_key = self._orig_api_key

    def _install(self, *responses, error=None) -> RecordingSession:
        fake = RecordingSession(*responses, error=error)
        self.client_mod.session = fake
        return fake

    def test_missing_api_key_is_500_without_upstream_call(self):
        self.settings.api_key = None
        fake = self._install(DummyResp(make_current_payload()))

        resp = self.client.get("/api/weather", params={"q": "London"})

        self.assertEqual(resp.status_code, 500)
        self.assertIn("error", resp.json())
        self.assertEqual(resp.json()["error"], "Missing API key")
        self.assertEqual(fake.calls, [])

    def test_invalid_endpoint_is_400(self):
        fake = self._install(DummyResp(make_current_payload()))

        resp = self.client.get("/api/weather", params={"endpoint": "history", "city": "London"})

        self.assertEqual(resp.status_code, 400)
        self.assertIn("history", resp.json()["error"])
        self.assertEqual(fake.calls, [])

    def test_q_shorthand_passes_current_body_through(self):
        payload = make_current_payload()
        fake = self._install(DummyResp(payload))

        resp = self.client.get("/api/weather", params={"q": "London"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), payload)
        call = fake.calls[0]
        self.assertTrue(call["url"].endswith("/current.json"))
        self.assertEqual(call["params"], {"key": "test-key", "q": "London"})

    def test_forecast_by_coords_uses_lat_lon_pair_and_flags(self):
        fake = self._install(DummyResp(make_forecast_payload()))

        resp = self.client.get("/api/weather", params={"endpoint": "forecast", "lat": "51.5", "lon": "-0.12"})

        self.assertEqual(resp.status_code, 200)
        call = fake.calls[0]
        self.assertTrue(call["url"].endswith("/forecast.json"))
        self.assertEqual(call["params"]["q"], "51.5,-0.12")
        self.assertEqual(call["params"]["days"], "1")
        self.assertEqual(call["params"]["aqi"], "no")
        self.assertEqual(call["params"]["alerts"], "no")

    def test_search_endpoint(self):
        fake = self._install(DummyResp(make_search_payload()))

        resp = self.client.get("/api/weather", params={"endpoint": "search", "city": "Lon"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()), 2)
        self.assertTrue(fake.calls[0]["url"].endswith("/search.json"))

    def test_no_location_uses_default_city(self):
        fake = self._install(DummyResp(make_current_payload()))

        resp = self.client.get("/api/weather")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(fake.calls[0]["params"]["q"], self.settings.default_city)

    def test_lat_without_lon_is_400(self):
        fake = self._install(DummyResp(make_current_payload()))

        resp = self.client.get("/api/weather", params={"endpoint": "current", "lat": "51.5"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(fake.calls, [])

    def test_non_numeric_coordinate_is_400(self):
        self._install(DummyResp(make_current_payload()))
        resp = self.client.get("/api/weather", params={"endpoint": "current", "lat": "north", "lon": "1"})
        self.assertEqual(resp.status_code, 400)

    def test_upstream_error_status_and_json_body_mirrored(self):
        body = {"error": {"code": 1006, "message": "No matching location found."}}
        self._install(DummyResp(body, status_code=400))

        resp = self.client.get("/api/weather", params={"q": "Nowhereville"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), body)

    def test_upstream_error_with_text_body(self):
        self._install(DummyResp(None, status_code=502, text="Bad gateway"))

        resp = self.client.get("/api/weather", params={"q": "London"})

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json(), {"error": "Bad gateway"})

    def test_long_text_error_body_is_passed_back_whole(self):
        text = "Upstream maintenance window. " * 20
        self._install(DummyResp(None, status_code=503, text=text))

        resp = self.client.get("/api/weather", params={"q": "London"})

        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json(), {"error": text})

    def test_success_with_invalid_json_is_distinct_500(self):
        self._install(DummyResp(None, status_code=200, text="<html>oops</html>"))

        resp = self.client.get("/api/weather", params={"endpoint": "forecast", "city": "London"})

        self.assertEqual(resp.status_code, 500)
        data = resp.json()
        self.assertIn("Not valid JSON", data["error"])
        self.assertIn("forecast.json", data["error"])
        self.assertIn("details", data)

    def test_network_failure_is_generic_500(self):
        fake = self._install(error=requests.exceptions.ConnectionError("connection refused"))

        resp = self.client.get("/api/weather", params={"q": "London"})

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Internal server error"})
        self.assertEqual(len(fake.calls), 1)

    def test_health_reports_key_configuration(self):
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["api_key_configured"])

        self.settings.api_key = None
        resp = self.client.get("/api/health")
        self.assertFalse(resp.json()["api_key_configured"])


if __name__ == "__main__":
    unittest.main()
