"""Read-only domain records produced by the extraction engine.

These mirror what the engine reports for one request. Integer fields the
engine cannot determine carry ``UNKNOWN`` (-1); optional objects carry None.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple


UNKNOWN = -1


class MediaFormat(enum.Enum):
    MPEG_4 = 0x0
    v3GPP = 0x10
    WEBM = 0x20
    M4A = 0x100
    WEBMA = 0x200
    MP3 = 0x300
    OPUS = 0x400
    OGG = 0x500
    WEBMA_OPUS = 0x210
    FLAC = 0x600
    WAV = 0x700


class DeliveryMethod(enum.Enum):
    PROGRESSIVE_HTTP = "progressive_http"
    DASH = "dash"
    HLS = "hls"
    SS = "ss"
    OTHER = "other"


class StreamType(enum.Enum):
    NONE = "none"
    VIDEO_STREAM = "video_stream"
    AUDIO_STREAM = "audio_stream"
    LIVE_STREAM = "live_stream"
    AUDIO_LIVE_STREAM = "audio_live_stream"
    POST_LIVE_STREAM = "post_live_stream"
    POST_LIVE_AUDIO_STREAM = "post_live_audio_stream"


class ItagType(enum.Enum):
    AUDIO = "audio"
    VIDEO = "video"
    VIDEO_ONLY = "video_only"


class AudioTrackType(enum.Enum):
    ORIGINAL = "original"
    DUBBED = "dubbed"
    DESCRIPTIVE = "descriptive"
    SECONDARY = "secondary"


class DescriptionType(enum.Enum):
    HTML = 1
    MARKDOWN = 2
    PLAIN_TEXT = 3


class InfoType(enum.Enum):
    STREAM = "stream"
    PLAYLIST = "playlist"
    CHANNEL = "channel"
    COMMENT = "comment"


class PlaylistType(enum.Enum):
    NORMAL = "normal"
    MIX_STREAM = "mix_stream"
    MIX_MUSIC = "mix_music"
    MIX_CHANNEL = "mix_channel"
    MIX_GENRE = "mix_genre"


@dataclass(frozen=True)
class Thumbnail:
    url: str
    width: int = UNKNOWN
    height: int = UNKNOWN


@dataclass(frozen=True)
class DateWrapper:
    """A point in time, flagged when derived from relative text."""

    epoch_seconds: float
    is_approximation: bool = False


@dataclass(frozen=True)
class Description:
    content: str
    type: DescriptionType = DescriptionType.PLAIN_TEXT


@dataclass(frozen=True)
class ItagItem:
    """Technical profile of one stream variant. None means not reported."""

    id: Optional[int] = None
    itag_type: Optional[ItagType] = None
    media_format: Optional[MediaFormat] = None
    average_bitrate: Optional[int] = None
    sample_rate: Optional[int] = None
    audio_channels: Optional[int] = None
    resolution_string: Optional[str] = None
    fps: Optional[int] = None
    bitrate: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    init_start: Optional[int] = None
    init_end: Optional[int] = None
    index_start: Optional[int] = None
    index_end: Optional[int] = None
    quality: Optional[str] = None
    codec: Optional[str] = None
    target_duration_sec: Optional[int] = None
    approx_duration_ms: Optional[int] = None
    content_length: Optional[int] = None
    audio_track_id: Optional[str] = None
    audio_track_name: Optional[str] = None
    audio_track_type: Optional[AudioTrackType] = None
    audio_locale: Optional[str] = None


@dataclass(frozen=True)
class Stream:
    id: str
    content: str
    delivery_method: DeliveryMethod
    media_format: Optional[MediaFormat] = None
    is_url: bool = True
    manifest_url: Optional[str] = None


@dataclass(frozen=True)
class VideoStream(Stream):
    resolution: str = ""
    is_video_only: bool = False
    itag: int = UNKNOWN
    bitrate: int = UNKNOWN
    init_start: int = UNKNOWN
    init_end: int = UNKNOWN
    index_start: int = UNKNOWN
    index_end: int = UNKNOWN
    width: int = UNKNOWN
    height: int = UNKNOWN
    fps: int = UNKNOWN
    quality: Optional[str] = None
    codec: Optional[str] = None
    itag_item: Optional[ItagItem] = None


@dataclass(frozen=True)
class AudioStream(Stream):
    itag: int = UNKNOWN
    bitrate: int = UNKNOWN
    init_start: int = UNKNOWN
    init_end: int = UNKNOWN
    index_start: int = UNKNOWN
    index_end: int = UNKNOWN
    quality: Optional[str] = None
    codec: Optional[str] = None
    audio_track_id: Optional[str] = None
    audio_track_name: Optional[str] = None
    audio_locale: Optional[str] = None
    audio_track_type: Optional[AudioTrackType] = None
    itag_item: Optional[ItagItem] = None


@dataclass(frozen=True)
class InfoItem:
    """Summary record used in list contexts such as search results."""

    info_type: Optional[InfoType]
    url: str
    name: str
    thumbnails: Tuple[Thumbnail, ...] = ()
    service_id: int = 0


@dataclass(frozen=True)
class StreamInfoItem(InfoItem):
    stream_type: Optional[StreamType] = None
    uploader_name: Optional[str] = None
    uploader_url: Optional[str] = None
    uploader_avatars: Tuple[Thumbnail, ...] = ()
    uploader_verified: bool = False
    short_description: Optional[str] = None
    textual_upload_date: Optional[str] = None
    upload_date: Optional[DateWrapper] = None
    view_count: int = UNKNOWN
    duration: int = UNKNOWN
    short_form_content: bool = False


@dataclass(frozen=True)
class PlaylistInfoItem(InfoItem):
    uploader_name: Optional[str] = None
    uploader_url: Optional[str] = None
    uploader_verified: bool = False
    stream_count: int = UNKNOWN
    description: Optional[Description] = None
    playlist_type: Optional[PlaylistType] = None


@dataclass(frozen=True)
class ChannelInfoItem(InfoItem):
    description: Optional[str] = None
    subscriber_count: int = UNKNOWN
    stream_count: int = UNKNOWN
    verified: bool = False


@dataclass(frozen=True)
class StreamInfo:
    """Full metadata record for one playable item."""

    id: str
    url: str
    original_url: str
    name: str
    stream_type: Optional[StreamType] = None
    service_id: int = 0
    thumbnails: Tuple[Thumbnail, ...] = ()
    textual_upload_date: Optional[str] = None
    upload_date: Optional[DateWrapper] = None
    duration: int = UNKNOWN
    age_limit: int = 0
    description: Optional[Description] = None
    view_count: int = UNKNOWN
    like_count: int = UNKNOWN
    dislike_count: int = UNKNOWN
    uploader_name: Optional[str] = None
    uploader_url: Optional[str] = None
    uploader_avatars: Tuple[Thumbnail, ...] = ()
    uploader_verified: bool = False
    uploader_subscriber_count: int = UNKNOWN
    sub_channel_name: str = ""
    sub_channel_url: str = ""
    sub_channel_avatars: Tuple[Thumbnail, ...] = ()
    video_streams: Tuple[VideoStream, ...] = ()
    audio_streams: Tuple[AudioStream, ...] = ()
    video_only_streams: Tuple[VideoStream, ...] = ()
    dash_mpd_url: str = ""
    hls_url: str = ""
    related_items: Tuple[InfoItem, ...] = ()
    start_position: int = 0
    host: str = ""
    category: str = ""
    licence: str = ""
    support_info: str = ""
    language: Optional[str] = None
    tags: Tuple[str, ...] = ()
    short_form_content: bool = False
