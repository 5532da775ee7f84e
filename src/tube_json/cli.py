"""Command line entrypoint for tube_json."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence, TextIO

from tube_json.bridge import RequestsDownloader
from tube_json.config import Settings
from tube_json.engine import ExtractionEngine
from tube_json.errors import ExtractionError
from tube_json.logging_utils import configure_logging
from tube_json.normalize import info_item_map, stream_info_map


logger = logging.getLogger(__name__)

USAGE_LINES = (
    "Usage:",
    "  --streams <url_or_id>",
    "  --search <query> [--content-filters f1 f2 ...] [--sort-filter sort]",
)

EXIT_OK = 0
EXIT_FAILURE = 1


def split_values(value: str) -> List[str]:
    """Split an inline ``--flag=a,b,c`` value, dropping blank entries."""

    return [part.strip() for part in value.split(",") if part.strip()]


def parse_args(argv: Sequence[str]) -> Dict[str, List[str]]:
    """Group arguments by ``--flag``.

    ``--flag=a,b`` sets the flag in one token; ``--flag a b`` collects the
    following bare tokens. Bare tokens before any flag are ignored.
    """

    parsed: Dict[str, List[str]] = {}
    current_key: Optional[str] = None

    for arg in argv:
        if arg.startswith("--"):
            if "=" in arg:
                key, value = arg.split("=", 1)
                parsed[key] = split_values(value)
                current_key = None
            else:
                current_key = arg
                parsed.setdefault(current_key, [])
        elif current_key is not None:
            parsed[current_key].append(arg)
    return parsed


def get_single(parsed: Dict[str, List[str]], key: str) -> Optional[str]:
    values = parsed.get(key)
    if values:
        return values[0]
    return None


def to_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def build_engine(settings: Settings) -> ExtractionEngine:
    """Create the engine and bind a requests-based downloader to it."""

    downloader = RequestsDownloader(
        user_agent=settings.user_agent,
        timeout=settings.timeout_seconds,
        follow_redirects=settings.follow_redirects,
    )
    engine = ExtractionEngine(
        service_index=settings.service_index,
        search_max_results=settings.search_max_results,
        cookies_file=settings.resolved_cookies_file,
        socket_timeout=settings.timeout_seconds,
    )
    return engine.init(downloader)


def emit_error(exc: BaseException, stderr: TextIO) -> int:
    logger.debug("Command failed", exc_info=exc)
    print(to_json({"error": str(exc)}), file=stderr)
    return EXIT_FAILURE


def get_video_info(
    engine: ExtractionEngine,
    url_or_id: str,
    *,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    try:
        info = engine.get_stream_info(url_or_id)
    except (ExtractionError, OSError) as exc:
        return emit_error(exc, stderr)
    print(to_json(stream_info_map(info)), file=stdout)
    return EXIT_OK


def search(
    engine: ExtractionEngine,
    query: str,
    content_filters: Optional[List[str]],
    sort_filter: Optional[str],
    *,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    try:
        items = engine.search(query, content_filters, sort_filter)
    except (ExtractionError, OSError) as exc:
        return emit_error(exc, stderr)
    print(to_json([info_item_map(item) for item in items]), file=stdout)
    return EXIT_OK


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """Run one command and return the process exit status."""

    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    parsed = parse_args(sys.argv[1:] if argv is None else argv)

    streams = get_single(parsed, "--streams")
    query = get_single(parsed, "--search")
    content_filters = parsed.get("--content-filters", [])
    sort_filter = get_single(parsed, "--sort-filter")

    if streams is None and query is None:
        for line in USAGE_LINES:
            print(line, file=stdout)
        return EXIT_OK

    settings = Settings()
    configure_logging(settings.log_level)
    engine = build_engine(settings)

    if streams is not None:
        return get_video_info(engine, streams, stdout=stdout, stderr=stderr)
    return search(
        engine,
        query,
        content_filters,
        sort_filter,
        stdout=stdout,
        stderr=stderr,
    )


def run() -> None:
    """Console script entrypoint."""

    sys.exit(main())


if __name__ == "__main__":
    run()
