"""Extraction engine built on top of yt-dlp."""

from tube_json.engine.base import ExtractionEngine
from tube_json.engine.handler import BridgeRH
from tube_json.engine.services import SERVICES, Service, get_service

__all__ = [
    "BridgeRH",
    "ExtractionEngine",
    "SERVICES",
    "Service",
    "get_service",
]
