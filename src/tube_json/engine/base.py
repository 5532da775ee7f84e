"""Extraction engine handle wrapping yt-dlp."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type, TypeVar

import yt_dlp
from yt_dlp.utils import YoutubeDLError

from tube_json.bridge import Downloader
from tube_json.engine.convert import info_item_from, stream_info_from
from tube_json.engine.handler import BridgeRH, prefer_bridge
from tube_json.engine.services import Service, get_service
from tube_json.errors import ChallengeRequiredError, ExtractionError
from tube_json.logging_utils import YtDlpLogger
from tube_json.models import InfoItem, StreamInfo


logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=BaseException)

_MAX_CAUSE_DEPTH = 16


def find_cause(exc: BaseException, kind: Type[_E]) -> Optional[_E]:
    """Search an exception and the errors it wraps for an instance of ``kind``.

    yt-dlp keeps the original error in ``exc_info`` (DownloadError) or
    ``cause`` (ExtractorError, RequestError) besides the usual chaining.
    """

    pending: List[Any] = [exc]
    seen = set()
    while pending and len(seen) < _MAX_CAUSE_DEPTH:
        current = pending.pop(0)
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, kind):
            return current
        exc_info = getattr(current, "exc_info", None)
        if isinstance(exc_info, tuple) and len(exc_info) > 1:
            pending.append(exc_info[1])
        pending.append(getattr(current, "cause", None))
        pending.append(current.__cause__)
        pending.append(current.__context__)
    return None


def error_message(exc: BaseException) -> str:
    message = str(exc).strip()
    if message.startswith("ERROR: "):
        message = message[len("ERROR: "):]
    return message or exc.__class__.__name__


class BridgedYoutubeDL(yt_dlp.YoutubeDL):
    """``YoutubeDL`` whose HTTP traffic prefers the bound ``Downloader``."""

    def __init__(
        self,
        params: Optional[Dict[str, Any]] = None,
        *,
        downloader: Downloader,
        **kwargs: Any,
    ) -> None:
        self._bridge_handler = BridgeRH.bind(downloader)
        super().__init__(params, **kwargs)

    def build_request_director(self, handlers, preferences=None):
        bridged = [self._bridge_handler, *handlers]
        merged_preferences = set(preferences or ())
        merged_preferences.add(prefer_bridge)
        return super().build_request_director(bridged, merged_preferences)


YoutubeDLFactory = Callable[[Dict[str, Any], Downloader], Any]


def _default_ydl_factory(options: Dict[str, Any], downloader: Downloader) -> Any:
    return BridgedYoutubeDL(options, downloader=downloader)


class ExtractionEngine:
    """Resolve stream info and search results through yt-dlp."""

    def __init__(
        self,
        *,
        service_index: int = 0,
        search_max_results: int = 20,
        cookies_file: Optional[Path] = None,
        socket_timeout: Optional[float] = None,
        ydl_factory: Optional[YoutubeDLFactory] = None,
    ) -> None:
        self._service_index = service_index
        self._search_max_results = search_max_results
        self._cookies_file = cookies_file
        self._socket_timeout = socket_timeout
        self._ydl_factory = ydl_factory or _default_ydl_factory
        self._downloader: Optional[Downloader] = None

    @property
    def initialized(self) -> bool:
        """True once a downloader has been bound."""

        return self._downloader is not None

    @property
    def downloader(self) -> Optional[Downloader]:
        """The bound downloader, if any."""

        return self._downloader

    def init(self, downloader: Downloader) -> "ExtractionEngine":
        """Bind the downloader. Later calls keep the first one."""

        if self._downloader is not None:
            logger.debug("Engine already initialized; ignoring new downloader.")
            return self
        self._downloader = downloader
        return self

    def get_service(self, index: Optional[int] = None) -> Service:
        """Return the service at ``index`` (default: the configured one)."""

        return get_service(self._service_index if index is None else index)

    def get_stream_info(self, url_or_id: str) -> StreamInfo:
        """Resolve a video id or URL to its full stream info."""

        service = self.get_service()
        url = service.stream_url_from_id(url_or_id)
        logger.info("Fetching stream info for %s", url)
        info = self._extract_info(url, {"noplaylist": True})
        return stream_info_from(info, original_url=url, service_id=service.service_id)

    def search(
        self,
        query: str,
        content_filters: Optional[Sequence[str]] = None,
        sort_filter: Optional[str] = None,
    ) -> List[InfoItem]:
        """Run a search and return its result items."""

        service = self.get_service()
        url = service.search_url_for(query, content_filters, sort_filter)
        logger.info("Searching %s", url)
        info = self._extract_info(
            url,
            {
                "extract_flat": "in_playlist",
                "playlistend": self._search_max_results,
            },
        )
        entries = info.get("entries") or []
        return [
            info_item_from(entry, service_id=service.service_id)
            for entry in entries
            if entry
        ]

    def _require_downloader(self) -> Downloader:
        if self._downloader is None:
            raise RuntimeError("Engine not initialized; call init(downloader) first.")
        return self._downloader

    def _build_base_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "logger": YtDlpLogger(),
        }
        if self._cookies_file is not None:
            options["cookiefile"] = str(self._cookies_file)
        if self._socket_timeout is not None:
            options["socket_timeout"] = self._socket_timeout
        return options

    def _extract_info(
        self,
        url: str,
        extra_options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        downloader = self._require_downloader()
        options = self._build_base_options()
        if extra_options:
            options.update(dict(extra_options))

        try:
            with self._ydl_factory(options, downloader) as ydl:
                info = ydl.extract_info(url, download=False)
        except YoutubeDLError as exc:
            challenge = find_cause(exc, ChallengeRequiredError)
            if challenge is not None:
                raise challenge from None
            raise ExtractionError(error_message(exc)) from exc

        if not info:
            raise ExtractionError(f"No information extracted for {url}")
        return info
