from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from structlog.contextvars import bind_contextvars, reset_contextvars

from ytsort.models.video import VideoDetails

LOGGER = logging.getLogger("ytsort.collector")

FetchDetails = Callable[[str], VideoDetails | None]
ProgressCallback = Callable[[int, int], None]


class VideoCollector:
    """Fetches details for each id strictly one after another.

    Ids whose fetch comes back empty are logged and skipped. Progress is
    reported after every id, successful or not.
    """

    def __init__(self, fetch_details: FetchDetails) -> None:
        self._fetch_details = fetch_details

    def collect(
        self,
        video_ids: Sequence[str],
        on_progress: ProgressCallback | None = None,
        *,
        on_video: Callable[[VideoDetails], None] | None = None,
    ) -> list[VideoDetails]:
        total = len(video_ids)
        videos: list[VideoDetails] = []

        for processed, video_id in enumerate(video_ids, start=1):
            context_tokens = bind_contextvars(video_id=video_id)
            try:
                LOGGER.debug("processing video_id=%s", video_id)
                details = self._fetch_details(video_id)
                if details is None:
                    LOGGER.warning("couldn't fetch details for video_id=%s", video_id)
                else:
                    videos.append(details)
                    if on_video is not None:
                        on_video(details)
            finally:
                reset_contextvars(**context_tokens)

            LOGGER.info("processing videos: %s out of %s", processed, total)
            if on_progress is not None:
                on_progress(processed, total)

        return videos
