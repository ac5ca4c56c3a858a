from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Literal, cast
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from ytsort.models.video import VideoDetails
from ytsort.services.host_config import HostConfig

LOGGER = logging.getLogger("ytsort.fetcher")

DecodeFailureReason = Literal[
    "not_a_list",
    "missing_player_response",
    "missing_video_details",
    "invalid_video_details",
]


class MetadataFetchError(Exception):
    pass


@dataclass(frozen=True)
class VideoDetailsDecoded:
    details: VideoDetails


@dataclass(frozen=True)
class VideoDetailsDecodeFailure:
    reason: DecodeFailureReason
    message: str


DecodeResult = VideoDetailsDecoded | VideoDetailsDecodeFailure


def decode_video_details(payload: object) -> DecodeResult:
    """Pull the video details record out of a `pbj=1` watch response.

    The response is a JSON array of page fragments; the first fragment with a
    truthy `playerResponse` carries `videoDetails` and, under
    `microformat.playerMicroformatRenderer`, the owner channel name.
    """
    if not isinstance(payload, list):
        return VideoDetailsDecodeFailure(
            reason="not_a_list",
            message=f"expected a JSON array, got {type(payload).__name__}",
        )

    player_response: dict[str, Any] | None = None
    for item in cast(list[Any], payload):
        if isinstance(item, dict) and item.get("playerResponse"):
            candidate = cast(dict[str, Any], item)["playerResponse"]
            if isinstance(candidate, dict):
                player_response = cast(dict[str, Any], candidate)
            break
    if player_response is None:
        return VideoDetailsDecodeFailure(
            reason="missing_player_response",
            message="no element exposes a playerResponse object",
        )

    video_details = player_response.get("videoDetails")
    if not isinstance(video_details, dict):
        return VideoDetailsDecodeFailure(
            reason="missing_video_details",
            message="playerResponse has no videoDetails object",
        )

    record = dict(cast(dict[str, Any], video_details))
    owner_channel_name = _owner_channel_name(player_response)
    if owner_channel_name is not None:
        record["ownerChannelName"] = owner_channel_name

    try:
        details = VideoDetails.from_record(record)
    except ValueError as exc:
        return VideoDetailsDecodeFailure(reason="invalid_video_details", message=str(exc))
    return VideoDetailsDecoded(details=details)


class WatchMetadataClient:
    def __init__(
        self,
        *,
        base_url: str,
        host_config: HostConfig,
        client_name: str = "1",
        session_cookie: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._host_config = host_config
        self._client_name = client_name
        self._session_cookie = session_cookie
        self._timeout_seconds = timeout_seconds

    def build_request(self, video_id: str) -> Request:
        query = urlencode({"v": video_id, "pbj": "1"})
        headers = {
            "accept": "application/json",
            "x-spf-referer": self._host_config.page_url,
            "x-youtube-client-name": self._client_name,
            "x-youtube-client-version": self._host_config.client_version,
            "x-youtube-identity-token": self._host_config.identity_token,
        }
        if self._session_cookie is not None:
            headers["cookie"] = self._session_cookie
        return Request(f"{self._base_url}/watch?{query}", headers=headers, method="GET")

    def fetch_watch_json(self, video_id: str) -> object:
        request = self.build_request(video_id)
        try:
            with urlopen(request, timeout=self._timeout_seconds) as response:
                raw_body = response.read().decode("utf-8", errors="replace")
        except HTTPError as exc:
            raise MetadataFetchError(
                f"watch endpoint returned HTTP {exc.code} for video_id={video_id}"
            ) from exc
        except (URLError, TimeoutError, OSError) as exc:
            raise MetadataFetchError(f"watch request failed for video_id={video_id}: {exc}") from exc

        try:
            return cast(object, json.loads(raw_body))
        except json.JSONDecodeError as exc:
            raise MetadataFetchError(
                f"watch endpoint returned non-JSON body for video_id={video_id}"
            ) from exc

    def get_video_details(self, video_id: str) -> VideoDetails | None:
        try:
            payload = self.fetch_watch_json(video_id)
        except MetadataFetchError as exc:
            LOGGER.error("failed to fetch video details: %s", exc)
            return None

        result = decode_video_details(payload)
        if isinstance(result, VideoDetailsDecodeFailure):
            LOGGER.error(
                "failed to get videoDetails video_id=%s reason=%s detail=%s",
                video_id,
                result.reason,
                result.message,
            )
            return None
        return result.details


def _owner_channel_name(player_response: dict[str, Any]) -> str | None:
    microformat = player_response.get("microformat")
    if not isinstance(microformat, dict):
        return None
    renderer = cast(dict[str, Any], microformat).get("playerMicroformatRenderer")
    if not isinstance(renderer, dict):
        return None
    raw_name = cast(dict[str, Any], renderer).get("ownerChannelName")
    if isinstance(raw_name, str) and raw_name.strip():
        return raw_name
    return None
