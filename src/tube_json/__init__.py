"""Video platform metadata as JSON, on top of yt-dlp."""

__version__ = "0.1.0"
