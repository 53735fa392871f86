"""
Tests for the property feed client against a mocked transport.
"""

from __future__ import annotations

import unittest

import httpx

from pinboard.core.errors import IOFailureError
from pinboard.services.feed_client import PropertyFeedClient

from tests.factories import feed_payload

FEED_URL = "https://feed.test/api/houses"


def _client(handler) -> PropertyFeedClient:
    return PropertyFeedClient(url=FEED_URL, timeout=1.0, transport=httpx.MockTransport(handler))


class TestPropertyFeedClient(unittest.IsolatedAsyncioTestCase):

    async def test_records_are_coerced(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=feed_payload())

        records = await _client(handler).fetch()
        self.assertEqual(seen, [FEED_URL])
        self.assertEqual([r.name for r in records], ["Villa A", "Sunset House"])
        self.assertEqual(records[0].capacity, 6)
        self.assertEqual(records[1].bedrooms, 5)
        self.assertEqual(records[1].bathrooms, 0)

    async def test_malformed_items_are_skipped(self):
        payload = feed_payload() + ["not a record", 42]
        records = await _client(lambda request: httpx.Response(200, json=payload)).fetch()
        self.assertEqual(len(records), 2)

    async def test_server_error(self):
        with self.assertRaises(IOFailureError) as ctx:
            await _client(lambda request: httpx.Response(500)).fetch()
        self.assertIn("500", ctx.exception.detail)

    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(IOFailureError):
            await _client(handler).fetch()

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        with self.assertRaises(IOFailureError) as ctx:
            await _client(handler).fetch()
        self.assertIn("timed out", ctx.exception.detail)

    async def test_payload_not_a_list(self):
        with self.assertRaises(IOFailureError):
            await _client(lambda request: httpx.Response(200, json={"houses": []})).fetch()

    async def test_invalid_json(self):
        with self.assertRaises(IOFailureError):
            await _client(lambda request: httpx.Response(200, content=b"<html>oops</html>")).fetch()
