import unittest

from fastapi.testclient import TestClient

from skycast.main import app, _STATIC_DIR


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(app.title, "SkyCast Weather")
        self.assertTrue(_STATIC_DIR.exists())

    def test_index_is_served(self):
        resp = TestClient(app).get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("text/html", resp.headers["content-type"])


if __name__ == "__main__":
    unittest.main()
