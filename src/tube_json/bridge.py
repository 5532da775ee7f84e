"""HTTP bridge between the extraction engine and a general purpose client."""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from tube_json.config import DEFAULT_USER_AGENT
from tube_json.errors import ChallengeRequiredError, TransportError


logger = logging.getLogger(__name__)

RECAPTCHA_MARKER = "https://www.google.com/recaptcha"
RATE_LIMITED_STATUS = 429
DEFAULT_CONTENT_TYPE = "application/x-www-form-urlencoded"

HeaderMultimap = Dict[str, List[str]]


def header_values(headers: Mapping[str, Sequence[str]], name: str) -> List[str]:
    """Case-insensitive lookup of every value stored under ``name``."""

    lowered = name.lower()
    values: List[str] = []
    for key, entries in headers.items():
        if key.lower() == lowered:
            values.extend(entries)
    return values


@dataclass(frozen=True)
class DownloaderRequest:
    """One HTTP request issued on behalf of the engine."""

    http_method: str
    url: str
    headers: Mapping[str, Sequence[str]] = field(default_factory=dict)
    data_to_send: Optional[bytes] = None
    timeout: Optional[float] = None


@dataclass(frozen=True)
class DownloaderResponse:
    """HTTP response handed back to the engine, whatever its status."""

    response_code: int
    response_message: str
    response_headers: HeaderMultimap
    response_body: Optional[str]
    latest_url: str
    response_bytes: Optional[bytes] = None

    def get_header(self, name: str) -> Optional[str]:
        """First value of a response header, or None."""

        values = header_values(self.response_headers, name)
        return values[0] if values else None


class Downloader(abc.ABC):
    """Send one request and return the response the engine expects."""

    @abc.abstractmethod
    def execute(self, request: DownloaderRequest) -> DownloaderResponse:
        """Perform ``request``.

        Non-2xx statuses are returned as ordinary responses. Raises
        ``ChallengeRequiredError`` for a rate-limit challenge page and
        ``TransportError`` when no response could be obtained.
        """

    def get(
        self,
        url: str,
        headers: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> DownloaderResponse:
        return self.execute(DownloaderRequest("GET", url, headers or {}))

    def head(
        self,
        url: str,
        headers: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> DownloaderResponse:
        return self.execute(DownloaderRequest("HEAD", url, headers or {}))

    def post(
        self,
        url: str,
        headers: Optional[Mapping[str, Sequence[str]]] = None,
        data_to_send: Optional[bytes] = None,
    ) -> DownloaderResponse:
        return self.execute(
            DownloaderRequest("POST", url, headers or {}, data_to_send)
        )


def is_challenge_response(status: int, body: Optional[str]) -> bool:
    """True for a rate-limited response carrying a challenge page."""

    return status == RATE_LIMITED_STATUS and body is not None and RECAPTCHA_MARKER in body


class RequestsDownloader(Downloader):
    """``Downloader`` implemented with a ``requests`` session."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        follow_redirects: bool = True,
    ) -> None:
        self._session = session or requests.Session()
        self._user_agent = user_agent
        self._timeout = timeout
        self._follow_redirects = follow_redirects

    @property
    def session(self) -> requests.Session:
        """Underlying HTTP session."""

        return self._session

    def execute(self, request: DownloaderRequest) -> DownloaderResponse:
        body = request.data_to_send or None
        headers = self._build_headers(request.headers)
        if body is not None and not header_values(request.headers, "Content-Type"):
            headers["Content-Type"] = DEFAULT_CONTENT_TYPE

        logger.debug("%s %s", request.http_method, request.url)
        try:
            response = self._session.request(
                request.http_method,
                request.url,
                headers=headers,
                data=body,
                timeout=request.timeout or self._timeout,
                allow_redirects=self._follow_redirects,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Request to {request.url} failed: {exc}") from exc

        try:
            text = response.text
        except (UnicodeDecodeError, LookupError) as exc:
            raise TransportError(f"Undecodable response from {request.url}") from exc

        if is_challenge_response(response.status_code, text):
            logger.warning("Challenge page returned for %s", request.url)
            raise ChallengeRequiredError("reCaptcha challenge requested", url=request.url)

        return DownloaderResponse(
            response_code=response.status_code,
            response_message=response.reason or "",
            response_headers=self._response_headers(response),
            response_body=text,
            latest_url=response.url or request.url,
            response_bytes=response.content,
        )

    def _build_headers(self, headers: Mapping[str, Sequence[str]]) -> Dict[str, str]:
        merged: Dict[str, str] = {"User-Agent": self._user_agent}
        for name, values in headers.items():
            if not values:
                continue
            separator = "; " if name.lower() == "cookie" else ", "
            for existing in list(merged):
                if existing.lower() == name.lower():
                    del merged[existing]
            merged[name] = separator.join(values)
        return merged

    @staticmethod
    def _response_headers(response: requests.Response) -> HeaderMultimap:
        raw_headers: Any = getattr(response.raw, "headers", None)
        if raw_headers is not None and hasattr(raw_headers, "getlist"):
            return {name: list(raw_headers.getlist(name)) for name in raw_headers.keys()}
        return {name: [value] for name, value in response.headers.items()}
