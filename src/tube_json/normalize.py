"""Map domain records to JSON-compatible dictionaries.

All functions are pure: they read the record and build a fresh dict. Enum
values are emitted by name, optional objects as None, and integer sentinels
are passed through untouched.
"""

from __future__ import annotations

import enum
import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type

from tube_json.models import (
    AudioStream,
    ChannelInfoItem,
    DateWrapper,
    Description,
    InfoItem,
    ItagItem,
    PlaylistInfoItem,
    Stream,
    StreamInfo,
    StreamInfoItem,
    Thumbnail,
    VideoStream,
)


JsonMap = Dict[str, Any]

STREAM_BASE_KEYS = (
    "id",
    "mediaFormat",
    "content",
    "isUrl",
    "deliveryMethod",
    "manifestUrl",
)
INFO_ITEM_BASE_KEYS = ("infoType", "url", "name", "thumbnails")


def enum_name(value: Optional[enum.Enum]) -> Optional[str]:
    """Return the symbolic name of an enum member, or None."""

    if value is None:
        return None
    return value.name


def _extend(base: Mapping[str, Any], **fields: Any) -> JsonMap:
    """Copy ``base`` and add variant fields on top of it."""

    extended = dict(base)
    extended.update(fields)
    return extended


def thumbnail_map(thumbnails: Optional[Iterable[Thumbnail]]) -> List[JsonMap]:
    if not thumbnails:
        return []
    return [
        {"url": image.url, "width": image.width, "height": image.height}
        for image in thumbnails
    ]


def date_wrapper_map(date: DateWrapper) -> JsonMap:
    """Map a non-null date; callers check for None first."""

    return {
        "offsetDateTime": int(math.floor(date.epoch_seconds)),
        "isApproximation": date.is_approximation,
    }


def description_map(description: Description) -> JsonMap:
    return {
        "content": description.content,
        "type": enum_name(description.type),
    }


def itag_item_map(item: ItagItem) -> JsonMap:
    result: JsonMap = {
        "mediaFormat": enum_name(item.media_format),
        "id": item.id,
        "itagType": enum_name(item.itag_type),
        "avgBitrate": item.average_bitrate,
        "sampleRate": item.sample_rate,
        "audioChannels": item.audio_channels,
        "resolutionString": item.resolution_string,
        "fps": item.fps,
        "bitrate": item.bitrate,
        "width": item.width,
        "height": item.height,
        "initStart": item.init_start,
        "initEnd": item.init_end,
        "indexStart": item.index_start,
        "indexEnd": item.index_end,
        "quality": item.quality,
        "codec": item.codec,
        "targetDurationSec": item.target_duration_sec,
        "approxDurationMs": item.approx_duration_ms,
        "contentLength": item.content_length,
        "audioTrackId": item.audio_track_id,
        "audioTrackName": item.audio_track_name,
        "audioTrackType": enum_name(item.audio_track_type),
    }
    # Only present when the profile names a locale.
    if item.audio_locale is not None:
        result["audioLocale"] = item.audio_locale
    return result


def _optional_itag_item_map(item: Optional[ItagItem]) -> Optional[JsonMap]:
    if item is None:
        return None
    return itag_item_map(item)


def stream_map(stream: Stream) -> JsonMap:
    """Base fields shared by every stream variant."""

    return {
        "id": stream.id,
        "mediaFormat": enum_name(stream.media_format),
        "content": stream.content,
        "isUrl": stream.is_url,
        "deliveryMethod": enum_name(stream.delivery_method),
        "manifestUrl": stream.manifest_url,
    }


def video_stream_map(stream: VideoStream) -> JsonMap:
    return _extend(
        stream_map(stream),
        resolution=stream.resolution,
        isVideoOnly=stream.is_video_only,
        itag=stream.itag,
        bitrate=stream.bitrate,
        initStart=stream.init_start,
        initEnd=stream.init_end,
        indexStart=stream.index_start,
        indexEnd=stream.index_end,
        width=stream.width,
        height=stream.height,
        fps=stream.fps,
        quality=stream.quality,
        codec=stream.codec,
        itagItem=_optional_itag_item_map(stream.itag_item),
    )


def audio_stream_map(stream: AudioStream) -> JsonMap:
    extra: JsonMap = {
        "itag": stream.itag,
        "bitrate": stream.bitrate,
        "initStart": stream.init_start,
        "initEnd": stream.init_end,
        "indexStart": stream.index_start,
        "indexEnd": stream.index_end,
        "quality": stream.quality,
        "codec": stream.codec,
        "audioTrackId": stream.audio_track_id,
        "audioTrackName": stream.audio_track_name,
        "audioTrackType": enum_name(stream.audio_track_type),
        "itagItem": _optional_itag_item_map(stream.itag_item),
    }
    if stream.audio_locale is not None:
        extra["audioLocale"] = stream.audio_locale
    return _extend(stream_map(stream), **extra)


def _info_item_base_map(item: InfoItem) -> JsonMap:
    return {
        "infoType": enum_name(item.info_type),
        "url": item.url,
        "name": item.name,
        "thumbnails": thumbnail_map(item.thumbnails),
    }


def stream_info_map(info: StreamInfo) -> JsonMap:
    """Map a full stream record, including its three stream lists."""

    return {
        "id": info.id,
        "url": info.url,
        "originalUrl": info.original_url,
        "name": info.name,
        "streamType": enum_name(info.stream_type),
        "thumbnails": thumbnail_map(info.thumbnails),
        "textualUploadDate": info.textual_upload_date,
        "uploadDate": (
            date_wrapper_map(info.upload_date)
            if info.upload_date is not None
            else None
        ),
        "duration": info.duration,
        "ageLimit": info.age_limit,
        "description": (
            description_map(info.description)
            if info.description is not None
            else None
        ),
        "viewCount": info.view_count,
        "likeCount": info.like_count,
        "dislikeCount": info.dislike_count,
        "uploaderName": info.uploader_name,
        "uploaderUrl": info.uploader_url,
        "uploaderAvatars": thumbnail_map(info.uploader_avatars),
        "uploaderVerified": info.uploader_verified,
        "uploaderSubscriberCount": info.uploader_subscriber_count,
        "subChannelName": info.sub_channel_name,
        "subChannelUrl": info.sub_channel_url,
        "subChannelAvatars": thumbnail_map(info.sub_channel_avatars),
        "videoStreams": [video_stream_map(s) for s in info.video_streams],
        "audioStreams": [audio_stream_map(s) for s in info.audio_streams],
        "videoOnlyStreams": [video_stream_map(s) for s in info.video_only_streams],
        "dashMpdUrl": info.dash_mpd_url,
        "hlsUrl": info.hls_url,
        # Related items only carry identity and thumbnails here.
        "relatedItems": [_info_item_base_map(item) for item in info.related_items],
        "startPosition": info.start_position,
        "host": info.host,
        "category": info.category,
        "licence": info.licence,
        "supportInfo": info.support_info,
        "language": info.language,
        "tags": list(info.tags),
        "shortFormContent": info.short_form_content,
    }


def playlist_info_item_map(item: PlaylistInfoItem) -> JsonMap:
    return _extend(
        _info_item_base_map(item),
        uploaderName=item.uploader_name,
        uploaderUrl=item.uploader_url,
        uploaderVerified=item.uploader_verified,
        streamCount=item.stream_count,
        description=(
            description_map(item.description)
            if item.description is not None
            else None
        ),
        playlistType=enum_name(item.playlist_type),
    )


def channel_info_item_map(item: ChannelInfoItem) -> JsonMap:
    return _extend(
        _info_item_base_map(item),
        description=item.description,
        subscriberCount=item.subscriber_count,
        streamCount=item.stream_count,
        verified=item.verified,
    )


def stream_info_item_map(item: StreamInfoItem) -> JsonMap:
    return _extend(
        _info_item_base_map(item),
        streamType=enum_name(item.stream_type),
        uploaderName=item.uploader_name,
        shortDescription=item.short_description,
        textualUploadDate=item.textual_upload_date,
        uploadDate=(
            date_wrapper_map(item.upload_date)
            if item.upload_date is not None
            else None
        ),
        viewCount=item.view_count,
        duration=item.duration,
        uploaderUrl=item.uploader_url,
        uploaderAvatars=thumbnail_map(item.uploader_avatars),
        uploaderVerified=item.uploader_verified,
        shortFormContent=item.short_form_content,
    )


_INFO_ITEM_NORMALIZERS: Dict[Type[InfoItem], Callable[[Any], JsonMap]] = {
    PlaylistInfoItem: playlist_info_item_map,
    StreamInfoItem: stream_info_item_map,
    ChannelInfoItem: channel_info_item_map,
}


def info_item_map(item: InfoItem) -> JsonMap:
    """Map a summary record by its variant.

    Unrecognised variants fall back to the four base keys instead of failing.
    """

    for variant, normalizer in _INFO_ITEM_NORMALIZERS.items():
        if isinstance(item, variant):
            return normalizer(item)
    return _info_item_base_map(item)
