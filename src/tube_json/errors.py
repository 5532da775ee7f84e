"""Error types raised by tube_json."""

from __future__ import annotations

from typing import Optional


class ExtractionError(Exception):
    """Raised when the engine cannot resolve or parse requested content."""


class TransportError(OSError):
    """Raised when an HTTP exchange fails before a response is available."""


class ChallengeRequiredError(TransportError):
    """Raised when the platform answers with an anti-automation challenge."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url

    def __str__(self) -> str:
        if self.url:
            return f"{self.args[0]} ({self.url})"
        return str(self.args[0])
