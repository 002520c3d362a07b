"""
Unit tests for api/passes.py — pass-prediction parsers, URL construction and the source race.

Coverage:
- parse_direct_pass: first entry taken, empty list → NoDataAvailable, missing list → ParseError
- parse_alternate_pass: aos/los timestamps → rise and rounded duration
- proxied_url: the full target URL is percent-encoded into the proxy template
- fetch_pass_local: abandons the scan when the race token was cancelled
- fetch_next_pass:
    * Returns whichever source succeeds first
    * Falls back to local propagation when every remote source fails
    * All sources failing → AllSourcesFailed with the first descriptive message
"""

from __future__ import annotations

import asyncio
import unittest
from unittest.mock import AsyncMock, patch
from urllib.parse import unquote

from custom_components.astronexus.api.passes import (
    alternate_pass_url,
    direct_pass_url,
    fetch_next_pass,
    fetch_pass_local,
    parse_alternate_pass,
    parse_direct_pass,
    proxied_url,
)
from custom_components.astronexus.errors import (
    AllSourcesFailed,
    FetchTimeout,
    HttpError,
    NoDataAvailable,
    ParseError,
)
from custom_components.astronexus.models import ObserverLocation
from custom_components.astronexus.race import CancelToken

from .test_common import make_element_set, make_pass

MODULE = "custom_components.astronexus.api.passes"
OBSERVER = ObserverLocation(52.52, 13.41)


class TestParsers(unittest.TestCase):

    def test_direct_takes_first_entry(self):
        raw = {"message": "success", "response": [
            {"risetime": 1700000600, "duration": 512},
            {"risetime": 1700006400, "duration": 300},
        ]}
        prediction = parse_direct_pass(raw)
        self.assertEqual(prediction.rise_epoch_s, 1700000600)
        self.assertEqual(prediction.duration_s, 512)
        self.assertEqual(prediction.set_epoch_s, 1700001112)
        self.assertEqual(prediction.source, "open-notify")

    def test_direct_empty_list_is_no_data(self):
        with self.assertRaises(NoDataAvailable) as ctx:
            parse_direct_pass({"message": "success", "response": []})
        self.assertEqual(str(ctx.exception), "No pass data returned")

    def test_direct_missing_list_is_parse_error_with_reason(self):
        with self.assertRaises(ParseError) as ctx:
            parse_direct_pass({"message": "failure", "reason": "Latitude must be number between -80.0 and 80.0"})
        self.assertIn("Latitude must be number", str(ctx.exception))

    def test_direct_non_list_response_is_parse_error(self):
        for response in ({"risetime": 1700000600}, "none", 5):
            with self.assertRaises(ParseError):
                parse_direct_pass({"message": "success", "response": response})

    def test_direct_malformed_entry_is_parse_error(self):
        with self.assertRaises(ParseError):
            parse_direct_pass({"response": [{"risetime": "soon"}]})

    def test_alternate_computes_duration_from_timestamps(self):
        raw = {"passes": [{
            "aos": "2023-11-14T22:13:20.400Z",
            "tca": "2023-11-14T22:18:00Z",
            "los": "2023-11-14T22:23:30.800Z",
        }]}
        prediction = parse_alternate_pass(raw)
        self.assertEqual(prediction.rise_epoch_s, 1700000000)
        self.assertEqual(prediction.duration_s, 610)
        self.assertEqual(prediction.source, "g7vrd")

    def test_alternate_negative_duration_is_floored(self):
        raw = {"passes": [{"aos": "2023-11-14T22:13:20Z", "los": "2023-11-14T22:13:10Z"}]}
        self.assertEqual(parse_alternate_pass(raw).duration_s, 0)

    def test_alternate_empty_list_is_no_data(self):
        with self.assertRaises(NoDataAvailable):
            parse_alternate_pass({"passes": []})

    def test_alternate_non_list_passes_is_parse_error(self):
        with self.assertRaises(ParseError):
            parse_alternate_pass({"passes": {"aos": "2023-11-14T22:13:20Z"}})

    def test_alternate_bad_timestamp_is_parse_error(self):
        with self.assertRaises(ParseError):
            parse_alternate_pass({"passes": [{"aos": 17, "los": "2023-11-14T22:13:10Z"}]})


class TestUrls(unittest.TestCase):

    def test_direct_url_has_coordinates(self):
        url = direct_pass_url(OBSERVER)
        self.assertEqual(url, "https://api.open-notify.org/iss-pass.json?lat=52.52&lon=13.41&n=1")

    def test_proxied_url_encodes_whole_target(self):
        target = direct_pass_url(OBSERVER)
        url = proxied_url("https://api.allorigins.win/raw?url={url}", target)
        prefix = "https://api.allorigins.win/raw?url="
        self.assertTrue(url.startswith(prefix))
        encoded = url[len(prefix):]
        self.assertNotIn("&", encoded)
        self.assertNotIn("?", encoded)
        self.assertEqual(unquote(encoded), target)

    def test_alternate_url(self):
        self.assertEqual(
            alternate_pass_url(OBSERVER),
            "https://api.g7vrd.co.uk/v1/satellite-passes/25544/52.52/13.41.json",
        )


class TestLocalAdapter(unittest.IsolatedAsyncioTestCase):

    async def test_predicts_from_fetched_elements(self):
        with patch(f"{MODULE}.fetch_element_set", new=AsyncMock(return_value=make_element_set())), \
             patch(f"{MODULE}.predict_next_pass", return_value=make_pass(source="local")) as mock_predict:
            prediction = await fetch_pass_local(OBSERVER, now_s=123.0)

        self.assertEqual(prediction.source, "local")
        mock_predict.assert_called_once_with(make_element_set(), OBSERVER, 123.0)

    async def test_cancelled_token_skips_scan(self):
        token = CancelToken()
        token.cancel()
        with patch(f"{MODULE}.fetch_element_set", new=AsyncMock(return_value=make_element_set())), \
             patch(f"{MODULE}.predict_next_pass") as mock_predict:
            with self.assertRaises(NoDataAvailable):
                await fetch_pass_local(OBSERVER, token=token)

        mock_predict.assert_not_called()


def _delayed(result=None, error=None, delay: float = 0.0):
    """AsyncMock that sleeps before returning result or raising error."""
    async def _run(*args, **kwargs):
        await asyncio.sleep(delay)
        if error is not None:
            raise error
        return result
    return AsyncMock(side_effect=_run)


class TestFetchNextPass(unittest.IsolatedAsyncioTestCase):

    def _patch_sources(self, direct, proxied, alternate, local):
        return (
            patch(f"{MODULE}.fetch_pass_direct", new=direct),
            patch(f"{MODULE}.fetch_pass_proxied", new=proxied),
            patch(f"{MODULE}.fetch_pass_alternate", new=alternate),
            patch(f"{MODULE}.fetch_pass_local", new=local),
        )

    async def test_first_completing_source_wins(self):
        patches = self._patch_sources(
            direct=_delayed(make_pass(source="open-notify"), delay=0.2),
            proxied=_delayed(error=FetchTimeout("proxy", 12000), delay=0.05),
            alternate=_delayed(make_pass(rise_epoch_s=1, source="g7vrd"), delay=0.01),
            local=_delayed(make_pass(source="local"), delay=0.3),
        )
        with patches[0], patches[1], patches[2], patches[3]:
            prediction = await fetch_next_pass(OBSERVER)

        self.assertEqual(prediction.source, "g7vrd")

    async def test_local_fallback_when_remote_sources_fail(self):
        patches = self._patch_sources(
            direct=_delayed(error=HttpError("direct", 503, "Service Unavailable")),
            proxied=_delayed(error=FetchTimeout("proxy", 12000)),
            alternate=_delayed(error=NoDataAvailable("No pass data returned")),
            local=_delayed(make_pass(source="local"), delay=0.05),
        )
        with patches[0], patches[1], patches[2], patches[3]:
            prediction = await fetch_next_pass(OBSERVER)

        self.assertEqual(prediction.source, "local")

    async def test_every_proxy_is_tried(self):
        proxied = _delayed(error=FetchTimeout("proxy", 12000))
        patches = self._patch_sources(
            direct=_delayed(error=HttpError("direct", 503)),
            proxied=proxied,
            alternate=_delayed(error=HttpError("alt", 404, "Not Found")),
            local=_delayed(make_pass(source="local"), delay=0.05),
        )
        with patches[0], patches[1], patches[2], patches[3]:
            await fetch_next_pass(OBSERVER)

        templates = [call.args[1] for call in proxied.await_args_list]
        self.assertEqual(len(templates), 2)
        self.assertTrue(any("corsproxy.io" in t for t in templates))
        self.assertTrue(any("allorigins" in t for t in templates))

    async def test_all_sources_failing_reports_first_message(self):
        patches = self._patch_sources(
            direct=_delayed(error=HttpError("direct", 500, "Internal Server Error")),
            proxied=_delayed(error=FetchTimeout("proxy", 12000), delay=0.05),
            alternate=_delayed(error=NoDataAvailable("No pass data returned"), delay=0.05),
            local=_delayed(error=NoDataAvailable("No upcoming pass predictable in range"), delay=0.05),
        )
        with patches[0], patches[1], patches[2], patches[3]:
            with self.assertRaises(AllSourcesFailed) as ctx:
                await fetch_next_pass(OBSERVER)

        self.assertEqual(str(ctx.exception), "Request failed: 500 Internal Server Error")
        self.assertEqual(len(ctx.exception.failures), 5)
