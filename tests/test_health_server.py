# tests/test_health_server.py

"""Tests for the liveness endpoint."""

import unittest

from fastapi.testclient import TestClient

from ofertai.services.health_server import HealthServer, create_app

BODY = "OK - OfertAi health check\n"


class TestHealthApp(unittest.TestCase):
    """Every request gets 200 with the fixed body."""

    def setUp(self) -> None:
        self.client = TestClient(create_app())

    def test_root(self) -> None:
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.text, BODY)
        self.assertTrue(
            resp.headers["content-type"].startswith("text/plain")
        )

    def test_any_path_and_method(self) -> None:
        for method, path in (
            ("get", "/healthz"),
            ("post", "/deep/nested/path"),
            ("put", "/x"),
            ("delete", "/"),
        ):
            with self.subTest(method=method, path=path):
                resp = getattr(self.client, method)(path)
                self.assertEqual(resp.status_code, 200)
                self.assertEqual(resp.text, BODY)

    def test_docs_routes_disabled(self) -> None:
        resp = self.client.get("/docs")
        self.assertEqual(resp.text, BODY)
        resp = self.client.get("/openapi.json")
        self.assertEqual(resp.text, BODY)

    def test_custom_body(self) -> None:
        client = TestClient(create_app(body="alive"))
        self.assertEqual(client.get("/").text, "alive")


class TestHealthServer(unittest.TestCase):
    """HealthServer configuration."""

    def test_uses_given_port(self) -> None:
        server = HealthServer(host="127.0.0.1", port=8081)
        self.assertEqual(server.port, 8081)
        self.assertEqual(server.host, "127.0.0.1")

    def test_stop_flags_exit(self) -> None:
        server = HealthServer(port=8082)
        server.stop()
        self.assertTrue(server._server.should_exit)


if __name__ == "__main__":
    unittest.main()
