"""Supported platforms and how to address them."""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
from urllib.parse import urlencode

from tube_json.errors import ExtractionError


_VIDEO_ID_RE = re.compile(r"^[0-9A-Za-z_-]{11}$")

# Result type values of the search "sp" parameter (field 2.2).
CONTENT_FILTERS = {
    "all": None,
    "videos": 1,
    "channels": 2,
    "playlists": 3,
    "movies": 4,
}

# Sort order values of the search "sp" parameter (field 1).
SORT_FILTERS = {
    "relevance": 0,
    "rating": 1,
    "upload_date": 2,
    "view_count": 3,
}


def build_search_params(
    content_filters: Optional[Sequence[str]] = None,
    sort_filter: Optional[str] = None,
) -> Optional[str]:
    """Encode filters into the base64 protobuf used by the search page.

    Only the first content filter is used; the platform accepts a single
    result type per query. Returns None when no filter applies.
    """

    payload = b""

    sort_name = (sort_filter or "relevance").strip().lower()
    if sort_name not in SORT_FILTERS:
        raise ExtractionError(
            f"Unsupported sort filter {sort_filter!r}. Expected one of: "
            f"{', '.join(SORT_FILTERS)}"
        )
    sort_value = SORT_FILTERS[sort_name]
    if sort_value:
        payload += bytes((0x08, sort_value))

    if content_filters:
        content_name = content_filters[0].strip().lower()
        if content_name not in CONTENT_FILTERS:
            raise ExtractionError(
                f"Unsupported content filter {content_filters[0]!r}. Expected one of: "
                f"{', '.join(CONTENT_FILTERS)}"
            )
        content_value = CONTENT_FILTERS[content_name]
        if content_value is not None:
            payload += bytes((0x12, 0x02, 0x10, content_value))

    if not payload:
        return None
    return base64.b64encode(payload).decode("ascii")


@dataclass(frozen=True)
class Service:
    """A platform the engine can extract from."""

    service_id: int
    name: str
    hosts: Tuple[str, ...]
    watch_url: str
    search_url: str

    def stream_url_from_id(self, value: str) -> str:
        """Turn a video id or URL into an extractable URL."""

        value = (value or "").strip()
        if "://" in value:
            return value
        if value.startswith(self.hosts):
            return f"https://{value}"
        if _VIDEO_ID_RE.match(value):
            return self.watch_url.format(id=value)
        raise ExtractionError(f"Not a {self.name} video id or URL: {value!r}")

    def search_url_for(
        self,
        query: str,
        content_filters: Optional[Sequence[str]] = None,
        sort_filter: Optional[str] = None,
    ) -> str:
        if not (query or "").strip():
            raise ExtractionError("Search query must not be empty.")
        params = {"search_query": query}
        sp = build_search_params(content_filters, sort_filter)
        if sp:
            params["sp"] = sp
        return f"{self.search_url}?{urlencode(params)}"


YOUTUBE = Service(
    service_id=0,
    name="YouTube",
    hosts=(
        "www.youtube.com",
        "youtube.com",
        "m.youtube.com",
        "music.youtube.com",
        "youtu.be",
    ),
    watch_url="https://www.youtube.com/watch?v={id}",
    search_url="https://www.youtube.com/results",
)

SERVICES: Tuple[Service, ...] = (YOUTUBE,)


def get_service(index: int) -> Service:
    """Return the registered service at ``index``."""

    if 0 <= index < len(SERVICES):
        return SERVICES[index]
    raise ExtractionError(f"No service registered at index {index}.")
