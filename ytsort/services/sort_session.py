from __future__ import annotations

import threading
from dataclasses import dataclass
from html import escape
from typing import Literal

from ytsort.models.video import VideoDetails, resolve_sort_field
from ytsort.services.renderer import render_progress, render_table

SessionStatus = Literal["pending", "running", "finished", "failed"]


@dataclass(frozen=True)
class SessionSnapshot:
    status: SessionStatus
    processed: int
    total: int
    videos: tuple[VideoDetails, ...]
    error: str | None


class SortSession:
    """Owns the collected videos and progress of one collection run.

    Rendering reads a consistent snapshot, so the table can be requested
    from another thread while collection is still appending.
    """

    def __init__(self, *, base_url: str, default_sort_key: str = "viewCount") -> None:
        self._base_url = base_url
        self._default_sort_key = resolve_sort_field(default_sort_key).key
        self._lock = threading.Lock()
        self._status: SessionStatus = "pending"
        self._processed = 0
        self._total = 0
        self._videos: list[VideoDetails] = []
        self._error: str | None = None

    def start(self, total: int) -> None:
        with self._lock:
            self._status = "running"
            self._processed = 0
            self._total = total
            self._videos = []
            self._error = None

    def add_video(self, video: VideoDetails) -> None:
        with self._lock:
            self._videos.append(video)

    def record_progress(self, processed: int, total: int) -> None:
        with self._lock:
            self._processed = processed
            self._total = total

    def finish(self) -> None:
        with self._lock:
            self._status = "finished"

    def fail(self, message: str) -> None:
        with self._lock:
            self._status = "failed"
            self._error = message

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                status=self._status,
                processed=self._processed,
                total=self._total,
                videos=tuple(self._videos),
                error=self._error,
            )

    def render(self, sort_key: str | None = None) -> str:
        key = resolve_sort_field(sort_key or self._default_sort_key).key
        snapshot = self.snapshot()
        if snapshot.status == "failed":
            return _render_error(snapshot.error or "Collection failed.")
        if snapshot.status != "finished":
            return render_progress(snapshot.processed, snapshot.total)
        return render_table(snapshot.videos, key, base_url=self._base_url)


def _render_error(message: str) -> str:
    lines = "<br>".join(escape(line) for line in message.splitlines())
    return (
        "<!DOCTYPE html>\n<html><head><meta charset=\"utf-8\"><title>ytsort</title></head>"
        f'<body><p role="alert" style="font-family: Roboto, Arial, sans-serif;">{lines}</p>'
        "</body></html>\n"
    )
