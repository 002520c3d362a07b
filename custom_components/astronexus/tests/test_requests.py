"""
Unit tests for requests.py — bounded_fetch against a local aiohttp test server.

Coverage:
- 2xx → RawResponse with body text, fetch_json decodes it
- Slow handler → FetchTimeout raised within roughly the requested bound
- 500 → HttpError carrying status and reason
- Connection refused → NetworkError
- Invalid JSON body → ParseError from fetch_json
- Body that is not valid in its declared charset → ParseError
- Query parameters and JSON request bodies reach the server
- A private session is created and closed when none is passed
"""

from __future__ import annotations

import asyncio
import time
import unittest

import aiohttp
from aiohttp import web
from aiohttp.test_utils import TestServer

from custom_components.astronexus.errors import (
    FetchTimeout,
    HttpError,
    NetworkError,
    ParseError,
    SpaceDataError,
)
from custom_components.astronexus.requests import bounded_fetch, fetch_json, fetch_text


async def _ok(request: web.Request) -> web.Response:
    return web.json_response({"latitude": 1.5, "query": dict(request.query)})


async def _echo(request: web.Request) -> web.Response:
    return web.json_response({"method": request.method, "body": await request.json()})


async def _slow(request: web.Request) -> web.Response:
    await asyncio.sleep(1.0)
    return web.json_response({})


async def _error(request: web.Request) -> web.Response:
    return web.Response(status=500, reason="Internal Server Error", text="boom")


async def _not_json(request: web.Request) -> web.Response:
    return web.Response(text="<html>maintenance</html>", content_type="text/html")


async def _bad_utf8(request: web.Request) -> web.Response:
    return web.Response(body=b'{"a": "\xff\xfe"}', content_type="application/json", charset="utf-8")


def _make_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/ok", _ok)
    app.router.add_post("/echo", _echo)
    app.router.add_get("/slow", _slow)
    app.router.add_get("/error", _error)
    app.router.add_get("/not-json", _not_json)
    app.router.add_get("/bad-utf8", _bad_utf8)
    return app


class TestBoundedFetch(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.server = TestServer(_make_app())
        await self.server.start_server()
        self.session = aiohttp.ClientSession()

    async def asyncTearDown(self):
        await self.session.close()
        await self.server.close()

    def _url(self, path: str) -> str:
        return str(self.server.make_url(path))

    async def test_success_returns_body(self):
        response = await bounded_fetch(self._url("/ok"), session=self.session)
        self.assertEqual(response.status, 200)
        self.assertIn("application/json", response.content_type)
        self.assertEqual(response.json()["latitude"], 1.5)

    async def test_fetch_json_decodes_body(self):
        data = await fetch_json(self._url("/ok"), params={"n": 1}, session=self.session)
        self.assertEqual(data["query"], {"n": "1"})

    async def test_fetch_text_returns_raw_text(self):
        text = await fetch_text(self._url("/not-json"), session=self.session)
        self.assertEqual(text, "<html>maintenance</html>")

    async def test_json_body_is_sent(self):
        data = await fetch_json(
            self._url("/echo"), method="post", body={"q": "kp"}, session=self.session
        )
        self.assertEqual(data, {"method": "POST", "body": {"q": "kp"}})

    async def test_timeout_is_bounded(self):
        started = time.monotonic()
        with self.assertRaises(FetchTimeout) as ctx:
            await bounded_fetch(self._url("/slow"), timeout_ms=100, session=self.session)
        elapsed = time.monotonic() - started

        self.assertGreaterEqual(elapsed, 0.09)
        self.assertLess(elapsed, 0.9)
        self.assertEqual(ctx.exception.timeout_ms, 100)
        self.assertIn("timed out", str(ctx.exception))

    async def test_http_500_raises_http_error(self):
        with self.assertRaises(HttpError) as ctx:
            await bounded_fetch(self._url("/error"), session=self.session)
        self.assertEqual(ctx.exception.status, 500)
        self.assertEqual(str(ctx.exception), "Request failed: 500 Internal Server Error")

    async def test_invalid_json_raises_parse_error(self):
        with self.assertRaises(ParseError):
            await fetch_json(self._url("/not-json"), session=self.session)

    async def test_undecodable_body_raises_parse_error(self):
        with self.assertRaises(ParseError) as ctx:
            await fetch_json(self._url("/bad-utf8"), session=self.session)
        self.assertIn("Undecodable body", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, UnicodeDecodeError)

    async def test_connection_refused_raises_network_error(self):
        closed = TestServer(web.Application())
        await closed.start_server()
        url = str(closed.make_url("/"))
        await closed.close()

        with self.assertRaises(NetworkError) as ctx:
            await bounded_fetch(url, timeout_ms=2000, session=self.session)
        self.assertIsInstance(ctx.exception.cause, aiohttp.ClientError)

    async def test_private_session_is_used_when_none_given(self):
        data = await fetch_json(self._url("/ok"))
        self.assertEqual(data["latitude"], 1.5)

    async def test_all_failures_share_base_class(self):
        for path in ("/error", "/not-json", "/bad-utf8"):
            with self.assertRaises(SpaceDataError):
                await fetch_json(self._url(path), session=self.session)
