"""Build domain records from yt-dlp info dicts."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from tube_json.models import (
    UNKNOWN,
    AudioStream,
    AudioTrackType,
    ChannelInfoItem,
    DateWrapper,
    DeliveryMethod,
    Description,
    InfoItem,
    InfoType,
    ItagItem,
    ItagType,
    MediaFormat,
    PlaylistInfoItem,
    PlaylistType,
    StreamInfo,
    StreamInfoItem,
    StreamType,
    Thumbnail,
    VideoStream,
)


_START_TIME_RE = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s?)?$")
_ITAG_RE = re.compile(r"^(\d+)")

_VIDEO_FORMATS = {
    "mp4": MediaFormat.MPEG_4,
    "3gp": MediaFormat.v3GPP,
    "webm": MediaFormat.WEBM,
}
_AUDIO_FORMATS = {
    "m4a": MediaFormat.M4A,
    "mp4": MediaFormat.M4A,
    "mp3": MediaFormat.MP3,
    "opus": MediaFormat.OPUS,
    "ogg": MediaFormat.OGG,
    "flac": MediaFormat.FLAC,
    "wav": MediaFormat.WAV,
}

_LIVE_STATUS_TYPES = {
    "is_live": StreamType.LIVE_STREAM,
    "was_live": StreamType.POST_LIVE_STREAM,
    "post_live": StreamType.POST_LIVE_STREAM,
}


def int_or_unknown(value: Any) -> int:
    """Coerce a numeric field, using the -1 sentinel when missing."""

    if value is None or isinstance(value, bool):
        return UNKNOWN
    try:
        return int(value)
    except (TypeError, ValueError):
        return UNKNOWN


def int_or_none(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def has_codec(value: Optional[str]) -> bool:
    """yt-dlp marks an absent track with the literal codec "none"."""

    return value != "none"


def thumbnails_from(entries: Optional[List[Mapping[str, Any]]]) -> Tuple[Thumbnail, ...]:
    images = []
    for entry in entries or []:
        url = entry.get("url")
        if not url:
            continue
        images.append(
            Thumbnail(
                url=url,
                width=int_or_unknown(entry.get("width")),
                height=int_or_unknown(entry.get("height")),
            )
        )
    return tuple(images)


def upload_date_from(
    info: Mapping[str, Any],
    *,
    approximate_timestamp: bool = False,
) -> Optional[DateWrapper]:
    """Exact timestamp first, then a YYYYMMDD date at midnight UTC."""

    timestamp = info.get("timestamp") or info.get("release_timestamp")
    if isinstance(timestamp, (int, float)):
        return DateWrapper(float(timestamp), is_approximation=approximate_timestamp)

    upload_date = info.get("upload_date")
    if isinstance(upload_date, str) and len(upload_date) == 8 and upload_date.isdigit():
        parsed = datetime.strptime(upload_date, "%Y%m%d").replace(tzinfo=timezone.utc)
        return DateWrapper(parsed.timestamp(), is_approximation=False)
    return None


def textual_upload_date_from(info: Mapping[str, Any]) -> Optional[str]:
    upload_date = info.get("upload_date")
    if isinstance(upload_date, str) and len(upload_date) == 8 and upload_date.isdigit():
        return f"{upload_date[:4]}-{upload_date[4:6]}-{upload_date[6:]}"
    return None


def start_position_from(url: Optional[str]) -> int:
    """Seconds encoded in a ``t``/``start`` query or fragment value."""

    if not url:
        return 0
    parsed = urlparse(url)
    params = parse_qs(parsed.query)
    params.update(parse_qs(parsed.fragment))
    raw = (params.get("t") or params.get("start") or [""])[0].strip()
    match = _START_TIME_RE.match(raw)
    if not raw or match is None:
        return 0
    hours, minutes, seconds = (int(group or 0) for group in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def stream_type_from(info: Mapping[str, Any]) -> StreamType:
    return _LIVE_STATUS_TYPES.get(info.get("live_status") or "", StreamType.VIDEO_STREAM)


def delivery_method_from(protocol: Optional[str]) -> DeliveryMethod:
    protocol = (protocol or "").lower()
    if protocol in ("http", "https"):
        return DeliveryMethod.PROGRESSIVE_HTTP
    if protocol.startswith("m3u8"):
        return DeliveryMethod.HLS
    if protocol.startswith("http_dash_segments") or protocol == "dash":
        return DeliveryMethod.DASH
    if protocol == "ism":
        return DeliveryMethod.SS
    return DeliveryMethod.OTHER


def media_format_from(fmt: Mapping[str, Any], *, audio_only: bool) -> Optional[MediaFormat]:
    ext = (fmt.get("ext") or "").lower()
    if audio_only:
        if ext == "webm":
            if (fmt.get("acodec") or "").startswith("opus"):
                return MediaFormat.WEBMA_OPUS
            return MediaFormat.WEBMA
        return _AUDIO_FORMATS.get(ext)
    return _VIDEO_FORMATS.get(ext)


def audio_track_type_from(fmt: Mapping[str, Any]) -> Optional[AudioTrackType]:
    note = (fmt.get("format_note") or "").lower()
    if "original" in note:
        return AudioTrackType.ORIGINAL
    if "descriptive" in note:
        return AudioTrackType.DESCRIPTIVE
    if "dubbed" in note:
        return AudioTrackType.DUBBED
    if "secondary" in note:
        return AudioTrackType.SECONDARY
    return None


def resolution_from(fmt: Mapping[str, Any]) -> str:
    height = int_or_none(fmt.get("height"))
    if height is None:
        return fmt.get("resolution") or ""
    fps = int_or_none(fmt.get("fps"))
    if fps is not None and fps > 30:
        return f"{height}p{fps}"
    return f"{height}p"


def itag_item_from(
    fmt: Mapping[str, Any],
    itag_type: ItagType,
    media_format: Optional[MediaFormat],
    duration: Optional[float],
) -> ItagItem:
    tbr = fmt.get("tbr")
    has_video = itag_type is not ItagType.AUDIO
    itag_match = _ITAG_RE.match(str(fmt.get("format_id") or ""))
    return ItagItem(
        id=int(itag_match.group(1)) if itag_match else None,
        itag_type=itag_type,
        media_format=media_format,
        average_bitrate=int_or_none(fmt.get("abr") if not has_video else tbr),
        sample_rate=int_or_none(fmt.get("asr")),
        audio_channels=int_or_none(fmt.get("audio_channels")),
        resolution_string=resolution_from(fmt) if has_video else None,
        fps=int_or_none(fmt.get("fps")),
        bitrate=int(tbr * 1000) if isinstance(tbr, (int, float)) else None,
        width=int_or_none(fmt.get("width")),
        height=int_or_none(fmt.get("height")),
        quality=fmt.get("format_note"),
        codec=fmt.get("vcodec") if has_video else fmt.get("acodec"),
        approx_duration_ms=int(duration * 1000) if isinstance(duration, (int, float)) else None,
        content_length=int_or_none(fmt.get("filesize") or fmt.get("filesize_approx")),
        audio_track_id=fmt.get("language") if not has_video else None,
        audio_track_name=fmt.get("format_note") if not has_video else None,
        audio_track_type=audio_track_type_from(fmt) if not has_video else None,
        audio_locale=fmt.get("language") if not has_video else None,
    )


def _stream_content(fmt: Mapping[str, Any]) -> Tuple[str, bool]:
    url = fmt.get("url")
    if url:
        return url, True
    return fmt.get("fragment_base_url") or "", False


def streams_from(
    info: Mapping[str, Any],
) -> Tuple[Tuple[VideoStream, ...], Tuple[AudioStream, ...], Tuple[VideoStream, ...]]:
    """Split yt-dlp formats into muxed, audio-only and video-only streams."""

    video: List[VideoStream] = []
    audio: List[AudioStream] = []
    video_only: List[VideoStream] = []
    duration = info.get("duration")

    for fmt in info.get("formats") or []:
        has_video = has_codec(fmt.get("vcodec"))
        has_audio = has_codec(fmt.get("acodec"))
        if not has_video and not has_audio:
            continue

        content, is_url = _stream_content(fmt)
        itag_match = _ITAG_RE.match(str(fmt.get("format_id") or ""))
        itag = int(itag_match.group(1)) if itag_match else UNKNOWN
        tbr = fmt.get("tbr")
        bitrate = int(tbr * 1000) if isinstance(tbr, (int, float)) else UNKNOWN
        common: Dict[str, Any] = {
            "id": str(fmt.get("format_id") or ""),
            "content": content,
            "is_url": is_url,
            "delivery_method": delivery_method_from(fmt.get("protocol")),
            "manifest_url": fmt.get("manifest_url"),
            "itag": itag,
            "bitrate": bitrate,
            "quality": fmt.get("format_note"),
        }

        if has_video:
            itag_type = ItagType.VIDEO if has_audio else ItagType.VIDEO_ONLY
            media_format = media_format_from(fmt, audio_only=False)
            stream = VideoStream(
                media_format=media_format,
                resolution=resolution_from(fmt),
                is_video_only=not has_audio,
                width=int_or_unknown(fmt.get("width")),
                height=int_or_unknown(fmt.get("height")),
                fps=int_or_unknown(fmt.get("fps")),
                codec=fmt.get("vcodec"),
                itag_item=itag_item_from(fmt, itag_type, media_format, duration),
                **common,
            )
            (video if has_audio else video_only).append(stream)
        else:
            media_format = media_format_from(fmt, audio_only=True)
            audio.append(
                AudioStream(
                    media_format=media_format,
                    codec=fmt.get("acodec"),
                    audio_track_id=fmt.get("language"),
                    audio_track_name=fmt.get("format_note") if fmt.get("language") else None,
                    audio_locale=fmt.get("language"),
                    audio_track_type=audio_track_type_from(fmt),
                    itag_item=itag_item_from(fmt, ItagType.AUDIO, media_format, duration),
                    **common,
                )
            )

    return tuple(video), tuple(audio), tuple(video_only)


def _manifest_url(info: Mapping[str, Any], protocol_prefix: str) -> str:
    for fmt in info.get("formats") or []:
        if (fmt.get("protocol") or "").startswith(protocol_prefix) and fmt.get("manifest_url"):
            return fmt["manifest_url"]
    return ""


def stream_info_from(
    info: Mapping[str, Any],
    *,
    original_url: str,
    service_id: int = 0,
) -> StreamInfo:
    """Convert a full (non-flat) yt-dlp video info dict."""

    video, audio, video_only = streams_from(info)
    description = info.get("description")
    categories = info.get("categories") or []
    url = info.get("webpage_url") or original_url

    return StreamInfo(
        id=str(info.get("id") or ""),
        url=url,
        original_url=original_url,
        name=info.get("title") or "",
        stream_type=stream_type_from(info),
        service_id=service_id,
        thumbnails=thumbnails_from(info.get("thumbnails")),
        textual_upload_date=textual_upload_date_from(info),
        upload_date=upload_date_from(info),
        duration=int_or_unknown(info.get("duration")),
        age_limit=int_or_none(info.get("age_limit")) or 0,
        description=Description(description) if description is not None else None,
        view_count=int_or_unknown(info.get("view_count")),
        like_count=int_or_unknown(info.get("like_count")),
        dislike_count=int_or_unknown(info.get("dislike_count")),
        uploader_name=info.get("uploader") or info.get("channel"),
        uploader_url=info.get("uploader_url") or info.get("channel_url"),
        uploader_verified=bool(info.get("channel_is_verified")),
        uploader_subscriber_count=int_or_unknown(info.get("channel_follower_count")),
        video_streams=video,
        audio_streams=audio,
        video_only_streams=video_only,
        dash_mpd_url=_manifest_url(info, "http_dash_segments"),
        hls_url=_manifest_url(info, "m3u8"),
        start_position=start_position_from(original_url),
        category=categories[0] if categories else "",
        licence=info.get("license") or "",
        language=info.get("language"),
        tags=tuple(info.get("tags") or ()),
        short_form_content="/shorts/" in (info.get("original_url") or original_url),
    )


def _item_url(entry: Mapping[str, Any]) -> str:
    return entry.get("url") or entry.get("webpage_url") or ""


def info_item_from(entry: Mapping[str, Any], *, service_id: int = 0) -> InfoItem:
    """Convert one flat search entry into its summary variant."""

    url = _item_url(entry)
    name = entry.get("title") or ""
    thumbnails = thumbnails_from(entry.get("thumbnails"))
    path = urlparse(url).path
    ie_key = entry.get("ie_key") or ""

    if ie_key == "Youtube" or path.startswith(("/watch", "/shorts/")):
        description = entry.get("description")
        return StreamInfoItem(
            info_type=InfoType.STREAM,
            url=url,
            name=name,
            thumbnails=thumbnails,
            service_id=service_id,
            stream_type=stream_type_from(entry),
            uploader_name=entry.get("channel") or entry.get("uploader"),
            uploader_url=entry.get("channel_url") or entry.get("uploader_url"),
            uploader_verified=bool(entry.get("channel_is_verified")),
            short_description=description,
            textual_upload_date=textual_upload_date_from(entry),
            # Flat entries derive their timestamp from relative text.
            upload_date=upload_date_from(entry, approximate_timestamp=True),
            view_count=int_or_unknown(entry.get("view_count")),
            duration=int_or_unknown(entry.get("duration")),
            short_form_content=path.startswith("/shorts/"),
        )

    if path.startswith("/playlist"):
        playlist_id = (parse_qs(urlparse(url).query).get("list") or [""])[0]
        description = entry.get("description")
        return PlaylistInfoItem(
            info_type=InfoType.PLAYLIST,
            url=url,
            name=name,
            thumbnails=thumbnails,
            service_id=service_id,
            uploader_name=entry.get("channel") or entry.get("uploader"),
            uploader_url=entry.get("channel_url") or entry.get("uploader_url"),
            uploader_verified=bool(entry.get("channel_is_verified")),
            stream_count=int_or_unknown(entry.get("playlist_count")),
            description=Description(description) if description else None,
            playlist_type=(
                PlaylistType.MIX_STREAM
                if playlist_id.startswith("RD")
                else PlaylistType.NORMAL
            ),
        )

    if path.startswith(("/channel/", "/@", "/c/", "/user/")):
        return ChannelInfoItem(
            info_type=InfoType.CHANNEL,
            url=url,
            name=name or entry.get("channel") or "",
            thumbnails=thumbnails,
            service_id=service_id,
            description=entry.get("description"),
            subscriber_count=int_or_unknown(entry.get("channel_follower_count")),
            stream_count=int_or_unknown(entry.get("playlist_count")),
            verified=bool(entry.get("channel_is_verified")),
        )

    return InfoItem(
        info_type=None,
        url=url,
        name=name,
        thumbnails=thumbnails,
        service_id=service_id,
    )
