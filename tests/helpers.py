from __future__ import annotations

import json
from typing import Any

from ytsort.models.video import VideoDetails

TEST_ID_TOKEN = "QUFFLUhqbTest=="
TEST_CLIENT_VERSION = "2.20240101.00.00"


def watch_payload(
    video_id: str,
    *,
    title: str | None = None,
    view_count: int = 100,
    average_rating: float | None = 4.5,
    length_seconds: int = 61,
    author: str = "Test Channel",
    channel_id: str = "UCtestchannel0000000000",
    owner_channel_name: str | None = "Test Channel",
) -> list[dict[str, Any]]:
    video_details: dict[str, Any] = {
        "videoId": video_id,
        "title": title or f"Video {video_id}",
        "lengthSeconds": str(length_seconds),
        "channelId": channel_id,
        "author": author,
        "viewCount": str(view_count),
        "thumbnail": {
            "thumbnails": [
                {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg", "width": 120, "height": 90}
            ]
        },
    }
    if average_rating is not None:
        video_details["averageRating"] = average_rating

    player_response: dict[str, Any] = {"videoDetails": video_details}
    if owner_channel_name is not None:
        player_response["microformat"] = {
            "playerMicroformatRenderer": {"ownerChannelName": owner_channel_name}
        }
    return [
        {"page": "watch", "rootVe": 3832},
        {"page": "watch", "playerResponse": player_response},
        {"page": "watch", "response": {}},
    ]


def make_video(video_id: str, **fields: Any) -> VideoDetails:
    defaults: dict[str, Any] = {
        "title": f"Video {video_id}",
        "author": "Test Channel",
        "owner_channel_name": "Test Channel",
        "channel_id": "UCtestchannel0000000000",
        "view_count": 100,
        "average_rating": 4.5,
        "length_seconds": 61,
    }
    defaults.update(fields)
    return VideoDetails(video_id=video_id, **defaults)


def playlist_html(
    anchors: list[str],
    *,
    ytcfg: dict[str, Any] | None = None,
    include_ytcfg: bool = True,
) -> str:
    config = (
        ytcfg
        if ytcfg is not None
        else {"ID_TOKEN": TEST_ID_TOKEN, "INNERTUBE_CONTEXT_CLIENT_VERSION": TEST_CLIENT_VERSION}
    )
    script = f"<script>ytcfg.set({json.dumps(config)});</script>" if include_ytcfg else ""
    return (
        "<!DOCTYPE html><html><head>"
        f"{script}"
        "</head><body><div id=\"contents\">"
        f"{''.join(anchors)}"
        "</div></body></html>"
    )


class FakeStore:
    def __init__(self) -> None:
        self.items: dict[str, str] = {}
        self.get_calls = 0
        self.set_calls = 0

    def get_item(self, key: str) -> str | None:
        self.get_calls += 1
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.set_calls += 1
        self.items[key] = value


class FailingStore(FakeStore):
    def get_item(self, key: str) -> str | None:
        raise OSError("store unavailable")

    def set_item(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")


class FakeResponse:
    def __init__(self, body: str) -> None:
        self._body = body.encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None


