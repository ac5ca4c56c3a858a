from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from helpers import make_video
from ytsort.dependencies import get_session
from ytsort.main import create_app
from ytsort.services.background_collection import BackgroundCollection
from ytsort.services.sort_session import SortSession


@pytest.fixture
def session(data_dir: Path) -> SortSession:
    _ = data_dir
    return get_session()


@pytest.fixture
def client(session: SortSession) -> Iterator[TestClient]:
    _ = session
    with TestClient(create_app()) as test_client:
        yield test_client


def _finish(session: SortSession) -> None:
    session.start(3)
    session.add_video(make_video("a", view_count=10, owner_channel_name="Beta"))
    session.add_video(make_video("b", view_count=5, owner_channel_name="Alpha"))
    session.add_video(make_video("c", view_count=20, owner_channel_name="Gamma"))
    session.record_progress(3, 3)
    session.finish()


def test_progress_page_while_collecting(client: TestClient, session: SortSession) -> None:
    session.start(4)
    session.record_progress(1, 4)

    response = client.get("/")
    assert response.status_code == 200
    assert "Processing videos: 1 out of 4" in response.text
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"


def test_table_resorts_by_query_parameter(client: TestClient, session: SortSession) -> None:
    _finish(session)

    by_views = client.get("/").text
    assert by_views.index("Video c") < by_views.index("Video a") < by_views.index("Video b")

    by_channel = client.get("/", params={"sort": "ownerChannelName"}).text
    assert by_channel.index("Video b") < by_channel.index("Video a") < by_channel.index("Video c")


def test_unknown_sort_key_is_bad_request(client: TestClient, session: SortSession) -> None:
    _finish(session)
    response = client.get("/", params={"sort": "dislikes"})
    assert response.status_code == 400
    assert "dislikes" in response.json()["detail"]


def test_videos_endpoint_exposes_collected_records(client: TestClient, session: SortSession) -> None:
    _finish(session)
    payload = client.get("/videos").json()

    assert payload["status"] == "finished"
    assert payload["total"] == 3
    assert [record["videoId"] for record in payload["data"]] == ["a", "b", "c"]
    assert payload["data"][0]["ownerChannelName"] == "Beta"


def test_status_and_health(client: TestClient, session: SortSession) -> None:
    session.fail("You need to be logged in to use YouTube sort.")

    status = client.get("/status").json()
    assert status["status"] == "failed"
    assert status["error"].startswith("You need to be logged in")

    health = client.get("/health")
    assert health.json() == {"status": "ok", "session": "failed"}
    assert health.headers["X-Request-ID"]


def test_request_id_is_echoed(client: TestClient) -> None:
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_background_collection_starts_with_app(session: SortSession) -> None:
    def _job() -> None:
        _finish(session)

    collection = BackgroundCollection(_job)
    with TestClient(create_app(collection=collection)) as test_client:
        collection.join(timeout=5)
        response = test_client.get("/videos")

    assert response.json()["status"] == "finished"
