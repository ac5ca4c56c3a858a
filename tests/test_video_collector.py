from __future__ import annotations

from helpers import make_video
from ytsort.models.video import VideoDetails
from ytsort.services.video_collector import VideoCollector


def test_collect_appends_successes_and_reports_every_id() -> None:
    fetched: list[str] = []
    progress: list[tuple[int, int]] = []

    def fetch(video_id: str) -> VideoDetails | None:
        fetched.append(video_id)
        if video_id == "missing":
            return None
        return make_video(video_id)

    videos = VideoCollector(fetch).collect(
        ["a", "missing", "b"],
        lambda processed, total: progress.append((processed, total)),
    )

    assert [video.video_id for video in videos] == ["a", "b"]
    assert fetched == ["a", "missing", "b"]
    assert progress == [(1, 3), (2, 3), (3, 3)]


def test_collect_runs_fetches_one_at_a_time() -> None:
    in_flight = 0
    max_in_flight = 0

    def fetch(video_id: str) -> VideoDetails:
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        in_flight -= 1
        return make_video(video_id)

    VideoCollector(fetch).collect(["a", "b", "c"])
    assert max_in_flight == 1


def test_collect_notifies_each_collected_video() -> None:
    seen: list[str] = []
    VideoCollector(lambda video_id: make_video(video_id)).collect(
        ["x", "y"],
        on_video=lambda video: seen.append(video.video_id),
    )
    assert seen == ["x", "y"]


def test_collect_with_no_ids_reports_nothing() -> None:
    progress: list[tuple[int, int]] = []
    videos = VideoCollector(lambda video_id: make_video(video_id)).collect(
        [],
        lambda processed, total: progress.append((processed, total)),
    )
    assert videos == []
    assert progress == []
