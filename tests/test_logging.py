"""
Tests for the structlog setup and the request logging middleware.
"""

from __future__ import annotations

import json
import logging
import unittest

import httpx
import structlog
from fastapi.testclient import TestClient

from pinboard.logging import HANDLER_NAME, build_formatter, configure_logging
from pinboard.main import create_app
from pinboard.services.auth_service import AuthService
from pinboard.services.feed_client import PropertyFeedClient
from pinboard.services.pin_store import InMemoryPinStore


def _record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord(
        name="pinboard.api.routes",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=None,
    )


class TestFormatter(unittest.TestCase):

    def test_stdlib_records_render_as_json_outside_development(self):
        line = build_formatter("production").format(_record("feed refresh failed after %s s", 8))
        payload = json.loads(line)
        self.assertEqual(payload["event"], "feed refresh failed after 8 s")
        self.assertEqual(payload["level"], "warning")
        self.assertEqual(payload["logger"], "pinboard.api.routes")
        self.assertIn("timestamp", payload)

    def test_development_uses_console_output(self):
        line = build_formatter("development").format(_record("pins reloaded"))
        self.assertIn("pins reloaded", line)
        with self.assertRaises(ValueError):
            json.loads(line)


class TestConfigureLogging(unittest.TestCase):

    def test_root_handler_goes_through_structlog(self):
        configure_logging()
        configure_logging()
        ours = [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]
        self.assertEqual(len(ours), 1)
        self.assertIsInstance(ours[0].formatter, structlog.stdlib.ProcessorFormatter)
        self.assertTrue(logging.getLogger("uvicorn.access").propagate)


class TestRequestIds(unittest.TestCase):

    def setUp(self):
        feed_client = PropertyFeedClient(
            url="https://feed.test/api/houses",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])),
        )
        auth = AuthService(service_url="", username="staff", password="secret", secret="test-secret")
        app = create_app(pin_store=InMemoryPinStore(), feed_client=feed_client, auth_service=auth)
        self.client = TestClient(app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def test_request_id_is_generated(self):
        response = self.client.get("/health")
        self.assertTrue(response.headers["X-Request-ID"])

    def test_incoming_request_id_is_kept(self):
        response = self.client.get("/health", headers={"X-Request-ID": "req-123"})
        self.assertEqual(response.headers["X-Request-ID"], "req-123")

    def test_rejected_requests_are_tagged_too(self):
        response = self.client.get("/api/pins")
        self.assertEqual(response.status_code, 401)
        self.assertIn("X-Request-ID", response.headers)
