"""Application configuration for tube_json."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

try:
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover
    load_dotenv = None

if load_dotenv is not None:
    load_dotenv()

try:
    from pydantic import Field
    from pydantic_settings import BaseSettings, SettingsConfigDict
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "Missing dependencies. Install with `pip install -e .` before running."
    ) from exc


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:128.0) "
    "Gecko/20100101 Firefox/128.0"
)


class Settings(BaseSettings):
    """Settings loaded from environment variables and optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="TUBE_JSON_",
        env_file=".env",
        extra="ignore",
    )

    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = Field(default=30.0, gt=0)
    follow_redirects: bool = True

    service_index: int = Field(default=0, ge=0)
    search_max_results: int = Field(default=20, ge=1)
    cookies_file: Optional[Path] = None

    log_level: str = "WARNING"

    @property
    def resolved_cookies_file(self) -> Optional[Path]:
        """Cookie file to hand to the engine, if one is configured and exists."""

        if self.cookies_file is None:
            return None
        candidate = self.cookies_file.expanduser()
        if candidate.is_file():
            return candidate
        return None
