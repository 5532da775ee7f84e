import unittest
from unittest import mock

import requests

from tube_json.bridge import (
    DEFAULT_CONTENT_TYPE,
    RECAPTCHA_MARKER,
    DownloaderRequest,
    DownloaderResponse,
    RequestsDownloader,
    header_values,
    is_challenge_response,
)
from tube_json.errors import ChallengeRequiredError, TransportError


def make_response(
    status=200,
    body="ok",
    url="https://example.com/final",
    reason="OK",
    headers=None,
):
    response = requests.Response()
    response.status_code = status
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    response.url = url
    response.reason = reason
    response.headers.update(headers or {})
    return response


class FakeRawHeaders:
    def __init__(self, pairs):
        self._pairs = pairs

    def keys(self):
        seen = []
        for name, _ in self._pairs:
            if name not in seen:
                seen.append(name)
        return seen

    def getlist(self, name):
        return [value for key, value in self._pairs if key == name]


def make_downloader(response=None, side_effect=None):
    session = mock.Mock(spec=requests.Session)
    if side_effect is not None:
        session.request.side_effect = side_effect
    else:
        session.request.return_value = response if response is not None else make_response()
    return RequestsDownloader(session, user_agent="test-agent", timeout=5.0), session


class TestHeaderValues(unittest.TestCase):
    def test_case_insensitive(self):
        headers = {"Set-Cookie": ["a=1"], "set-cookie": ["b=2"]}
        self.assertEqual(header_values(headers, "SET-COOKIE"), ["a=1", "b=2"])

    def test_missing(self):
        self.assertEqual(header_values({}, "X"), [])


class TestRequestsDownloader(unittest.TestCase):
    def test_get_returns_response(self):
        downloader, session = make_downloader(
            make_response(headers={"Content-Type": "text/html"})
        )
        response = downloader.get("https://example.com/")

        self.assertIsInstance(response, DownloaderResponse)
        self.assertEqual(response.response_code, 200)
        self.assertEqual(response.response_message, "OK")
        self.assertEqual(response.response_body, "ok")
        self.assertEqual(response.response_bytes, b"ok")
        self.assertEqual(response.latest_url, "https://example.com/final")
        self.assertEqual(response.get_header("content-type"), "text/html")

        args, kwargs = session.request.call_args
        self.assertEqual(args, ("GET", "https://example.com/"))
        self.assertIsNone(kwargs["data"])
        self.assertEqual(kwargs["headers"]["User-Agent"], "test-agent")
        self.assertEqual(kwargs["timeout"], 5.0)
        self.assertTrue(kwargs["allow_redirects"])

    def test_empty_body_is_omitted(self):
        downloader, session = make_downloader()
        downloader.execute(DownloaderRequest("POST", "https://example.com/", {}, b""))

        kwargs = session.request.call_args.kwargs
        self.assertIsNone(kwargs["data"])
        self.assertNotIn("Content-Type", kwargs["headers"])

    def test_body_defaults_to_form_content_type(self):
        downloader, session = make_downloader()
        downloader.post("https://example.com/", data_to_send=b"a=1")

        kwargs = session.request.call_args.kwargs
        self.assertEqual(kwargs["data"], b"a=1")
        self.assertEqual(kwargs["headers"]["Content-Type"], DEFAULT_CONTENT_TYPE)

    def test_body_keeps_caller_content_type(self):
        downloader, session = make_downloader()
        downloader.post(
            "https://example.com/",
            headers={"content-type": ["application/json"]},
            data_to_send=b"{}",
        )

        headers = session.request.call_args.kwargs["headers"]
        self.assertEqual(headers["content-type"], "application/json")
        self.assertNotIn("Content-Type", headers)

    def test_repeated_request_headers_are_joined(self):
        downloader, session = make_downloader()
        downloader.get(
            "https://example.com/",
            headers={
                "Accept-Language": ["en", "de"],
                "Cookie": ["a=1", "b=2"],
                "User-Agent": ["custom"],
            },
        )

        headers = session.request.call_args.kwargs["headers"]
        self.assertEqual(headers["Accept-Language"], "en, de")
        self.assertEqual(headers["Cookie"], "a=1; b=2")
        self.assertEqual(headers["User-Agent"], "custom")

    def test_request_timeout_overrides_default(self):
        downloader, session = make_downloader()
        downloader.execute(DownloaderRequest("GET", "https://example.com/", timeout=1.5))
        self.assertEqual(session.request.call_args.kwargs["timeout"], 1.5)

    def test_repeated_response_headers_are_kept(self):
        response = make_response()
        response.raw = mock.Mock()
        response.raw.headers = FakeRawHeaders(
            [("Set-Cookie", "a=1"), ("Set-Cookie", "b=2"), ("Server", "x")]
        )
        downloader, _ = make_downloader(response)

        result = downloader.get("https://example.com/")
        self.assertEqual(result.response_headers["Set-Cookie"], ["a=1", "b=2"])
        self.assertEqual(result.response_headers["Server"], ["x"])

    def test_challenge_raises_distinct_error(self):
        body = f'<html><script src="{RECAPTCHA_MARKER}/api.js"></script></html>'
        downloader, _ = make_downloader(make_response(status=429, body=body))

        with self.assertRaises(ChallengeRequiredError) as ctx:
            downloader.get("https://www.youtube.com/watch?v=x")
        self.assertEqual(ctx.exception.url, "https://www.youtube.com/watch?v=x")

    def test_rate_limit_without_marker_is_ordinary_response(self):
        downloader, _ = make_downloader(
            make_response(status=429, body="slow down", reason="Too Many Requests")
        )

        response = downloader.get("https://example.com/")
        self.assertEqual(response.response_code, 429)
        self.assertEqual(response.response_body, "slow down")

    def test_server_error_is_ordinary_response(self):
        downloader, _ = make_downloader(make_response(status=503, body="down"))
        self.assertEqual(downloader.get("https://example.com/").response_code, 503)

    def test_connection_failure_is_transport_error(self):
        downloader, _ = make_downloader(
            side_effect=requests.ConnectionError("connection refused")
        )

        with self.assertRaises(TransportError) as ctx:
            downloader.get("https://example.com/")
        self.assertNotIsInstance(ctx.exception, ChallengeRequiredError)
        self.assertIsInstance(ctx.exception, OSError)


class TestIsChallengeResponse(unittest.TestCase):
    def test_marker_requires_429(self):
        body = f"see {RECAPTCHA_MARKER}"
        self.assertTrue(is_challenge_response(429, body))
        self.assertFalse(is_challenge_response(200, body))
        self.assertFalse(is_challenge_response(429, None))
        self.assertFalse(is_challenge_response(429, "other"))
