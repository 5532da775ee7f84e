"""yt-dlp request handler that sends traffic through a ``Downloader``."""

from __future__ import annotations

import io
import logging
import urllib.request
from email.message import Message
from typing import Any, Dict, Iterable, List, Mapping, Optional

from yt_dlp.networking.common import Features, RequestHandler, Response
from yt_dlp.networking.exceptions import HTTPError, UnsupportedRequest
from yt_dlp.networking.exceptions import TransportError as YtDlpTransportError

from tube_json.bridge import Downloader, DownloaderRequest, DownloaderResponse
from tube_json.errors import ChallengeRequiredError, TransportError


logger = logging.getLogger(__name__)

# The bridge hands back decoded bodies, so these no longer describe them.
_DROPPED_RESPONSE_HEADERS = ("content-encoding", "content-length", "transfer-encoding")

BRIDGE_PREFERENCE = 1000


def read_request_body(data: Any) -> Optional[bytes]:
    """Collapse the body forms yt-dlp accepts into bytes."""

    if data is None:
        return None
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if hasattr(data, "read"):
        return data.read()
    return b"".join(data)


def merge_headers(*sources: Mapping[str, str]) -> Dict[str, str]:
    """Merge header mappings; later sources win, names compared case-insensitively."""

    merged: Dict[str, str] = {}
    for source in sources:
        for name, value in source.items():
            for existing in [key for key in merged if key.lower() == name.lower()]:
                del merged[existing]
            merged[name] = value
    return merged


def build_response_headers(headers: Mapping[str, Iterable[str]]) -> Message:
    """Flatten a header multimap into a message, keeping repeated values."""

    message = Message()
    for name, values in headers.items():
        if name.lower() in _DROPPED_RESPONSE_HEADERS:
            continue
        for value in values:
            message[name] = value
    return message


class _CookieResponse:
    """Minimal response shape ``CookieJar.extract_cookies`` reads from."""

    def __init__(self, headers: Message) -> None:
        self._headers = headers

    def info(self) -> Message:
        return self._headers


class BridgeRH(RequestHandler):
    """Route yt-dlp HTTP requests through the bound ``Downloader``."""

    _SUPPORTED_URL_SCHEMES = ("http", "https")
    _SUPPORTED_PROXY_SCHEMES = ("http", "https")
    _SUPPORTED_FEATURES = (Features.NO_PROXY, Features.ALL_PROXY)
    RH_NAME = "bridge"

    downloader: Optional[Downloader] = None

    @classmethod
    def bind(cls, downloader: Downloader) -> type:
        """Return a handler class whose instances use ``downloader``."""

        return type(cls.__name__, (cls,), {"downloader": downloader})

    def _check_proxies(self, proxies: Mapping[str, Any]) -> None:
        # Proxying is left to the downloader's own configuration.
        return None

    def _check_extensions(self, extensions: Dict[str, Any]) -> None:
        super()._check_extensions(extensions)
        extensions.pop("cookiejar", None)
        extensions.pop("timeout", None)
        extensions.pop("legacy_ssl", None)
        extensions.pop("keep_header_casing", None)

    def _validate(self, request: Any) -> None:
        if self.downloader is None:
            raise UnsupportedRequest("No downloader bound to the bridge handler.")
        super()._validate(request)

    def _send(self, request: Any) -> Response:
        downloader = self.downloader
        if downloader is None:
            raise UnsupportedRequest("No downloader bound to the bridge handler.")

        headers = merge_headers(self.headers, request.headers)
        cookiejar = request.extensions.get("cookiejar")
        if cookiejar is None:
            cookiejar = self.cookiejar
        timeout = float(request.extensions.get("timeout") or self.timeout)

        cookie_request = urllib.request.Request(request.url, headers=headers)
        if cookiejar is not None:
            cookiejar.add_cookie_header(cookie_request)
            cookie_header = cookie_request.get_header("Cookie")
            if cookie_header:
                headers = merge_headers(headers, {"Cookie": cookie_header})

        multimap: Dict[str, List[str]] = {name: [value] for name, value in headers.items()}
        bridge_request = DownloaderRequest(
            http_method=request.method,
            url=request.url,
            headers=multimap,
            data_to_send=read_request_body(request.data),
            timeout=timeout,
        )

        # The request director only lets RequestError subclasses through, so
        # challenges travel as the cause of a transport error.
        try:
            bridge_response = downloader.execute(bridge_request)
        except TransportError as exc:
            if isinstance(exc, ChallengeRequiredError):
                logger.debug("Challenge raised for %s", request.url)
            raise YtDlpTransportError(str(exc), cause=exc) from exc

        response = self._to_ytdlp_response(bridge_response)
        if cookiejar is not None:
            cookiejar.extract_cookies(_CookieResponse(response.headers), cookie_request)

        if not 200 <= response.status < 300:
            raise HTTPError(response)
        return response

    @staticmethod
    def _to_ytdlp_response(bridge_response: DownloaderResponse) -> Response:
        if bridge_response.response_bytes is not None:
            body = bridge_response.response_bytes
        else:
            body = (bridge_response.response_body or "").encode("utf-8")
        headers = build_response_headers(bridge_response.response_headers)
        return Response(
            io.BytesIO(body),
            bridge_response.latest_url,
            headers,
            status=bridge_response.response_code,
            reason=bridge_response.response_message or None,
        )


def prefer_bridge(handler: RequestHandler, request: Any) -> int:
    """Request director preference putting the bridge handler first."""

    if handler.RH_KEY == BridgeRH.RH_KEY:
        return BRIDGE_PREFERENCE
    return 0
