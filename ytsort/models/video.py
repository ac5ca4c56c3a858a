from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, cast


class UnknownSortKeyError(ValueError):
    def __init__(self, sort_key: str) -> None:
        supported = ", ".join(SORT_FIELDS)
        super().__init__(f"Unknown sort key {sort_key!r}. Supported keys: {supported}.")
        self.sort_key = sort_key


@dataclass(frozen=True)
class Thumbnail:
    url: str
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True)
class VideoDetails:
    """Per-video metadata taken from a watch page's player response.

    `to_record()`/`from_record()` convert to the camelCase JSON shape of the
    player response's `videoDetails` object, which is also what the response
    cache stores.
    """

    video_id: str
    title: str
    author: str | None = None
    owner_channel_name: str | None = None
    channel_id: str | None = None
    view_count: int = 0
    average_rating: float | None = None
    length_seconds: int = 0
    thumbnails: tuple[Thumbnail, ...] = ()

    @property
    def thumbnail_url(self) -> str | None:
        if not self.thumbnails:
            return None
        return self.thumbnails[0].url

    @property
    def channel_name(self) -> str | None:
        return self.owner_channel_name or self.author

    def to_record(self) -> dict[str, Any]:
        return {
            "videoId": self.video_id,
            "title": self.title,
            "author": self.author,
            "ownerChannelName": self.owner_channel_name,
            "channelId": self.channel_id,
            "viewCount": self.view_count,
            "averageRating": self.average_rating,
            "lengthSeconds": self.length_seconds,
            "thumbnail": {
                "thumbnails": [
                    {"url": thumb.url, "width": thumb.width, "height": thumb.height}
                    for thumb in self.thumbnails
                ]
            },
        }

    @classmethod
    def from_record(cls, record: object) -> VideoDetails:
        if not isinstance(record, dict):
            raise ValueError("video record must be a JSON object")
        data = cast(dict[str, Any], record)

        video_id = _coerce_nonempty_string(data.get("videoId"))
        if video_id is None:
            raise ValueError("video record is missing videoId")
        title = _coerce_nonempty_string(data.get("title")) or video_id

        return cls(
            video_id=video_id,
            title=title,
            author=_coerce_nonempty_string(data.get("author")),
            owner_channel_name=_coerce_nonempty_string(data.get("ownerChannelName")),
            channel_id=_coerce_nonempty_string(data.get("channelId")),
            view_count=_coerce_int(data.get("viewCount")) or 0,
            average_rating=_coerce_float(data.get("averageRating")),
            length_seconds=_coerce_int(data.get("lengthSeconds")) or 0,
            thumbnails=_extract_thumbnails(data.get("thumbnail")),
        )


@dataclass(frozen=True)
class SortField:
    key: str
    attribute: str
    label: str
    numeric: bool

    def value_of(self, video: VideoDetails) -> Any:
        return getattr(video, self.attribute)


# Numeric fields sort largest first; text fields sort ascending.
SORT_FIELDS: dict[str, SortField] = {
    field.key: field
    for field in (
        SortField("viewCount", "view_count", "View count", numeric=True),
        SortField("averageRating", "average_rating", "Average rating", numeric=True),
        SortField("lengthSeconds", "length_seconds", "Duration", numeric=True),
        SortField("ownerChannelName", "channel_name", "Channel", numeric=False),
        SortField("author", "author", "Author", numeric=False),
        SortField("title", "title", "Title", numeric=False),
        SortField("channelId", "channel_id", "Channel ID", numeric=False),
        SortField("videoId", "video_id", "Video ID", numeric=False),
    )
}


def resolve_sort_field(sort_key: str) -> SortField:
    field = SORT_FIELDS.get(sort_key.strip())
    if field is None:
        raise UnknownSortKeyError(sort_key)
    return field


def _extract_thumbnails(raw_value: object) -> tuple[Thumbnail, ...]:
    if not isinstance(raw_value, dict):
        return ()
    raw_thumbnails = cast(dict[str, Any], raw_value).get("thumbnails")
    if not isinstance(raw_thumbnails, list):
        return ()

    thumbnails: list[Thumbnail] = []
    for item in cast(list[Any], raw_thumbnails):
        if not isinstance(item, dict):
            continue
        item_dict = cast(dict[str, Any], item)
        url = _coerce_nonempty_string(item_dict.get("url"))
        if url is None:
            continue
        thumbnails.append(
            Thumbnail(
                url=url,
                width=_coerce_int(item_dict.get("width")),
                height=_coerce_int(item_dict.get("height")),
            )
        )
    return tuple(thumbnails)


def _coerce_nonempty_string(raw_value: object) -> str | None:
    if isinstance(raw_value, str) and raw_value.strip():
        return raw_value
    return None


def _coerce_int(raw_value: object) -> int | None:
    if isinstance(raw_value, bool):
        return int(raw_value)
    if isinstance(raw_value, int):
        return raw_value
    if isinstance(raw_value, float):
        if not math.isfinite(raw_value):
            return None
        return int(raw_value)
    if isinstance(raw_value, str):
        try:
            return int(raw_value.strip())
        except ValueError:
            return None
    return None


def _coerce_float(raw_value: object) -> float | None:
    if isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, int | float):
        return float(raw_value)
    if isinstance(raw_value, str):
        try:
            return float(raw_value.strip())
        except ValueError:
            return None
    return None
