from __future__ import annotations

import logging
from collections.abc import Callable

from ytsort.config import AppSettings
from ytsort.models.video import VideoDetails
from ytsort.repositories.response_cache_repository import KeyValueStore
from ytsort.services.host_config import HostConfig, HostConfigError, extract_ytcfg
from ytsort.services.metadata_fetcher import WatchMetadataClient
from ytsort.services.page_scanner import scan_page_video_ids
from ytsort.services.page_source import PlaylistPage
from ytsort.services.response_cache import cached
from ytsort.services.sort_session import SortSession
from ytsort.services.video_collector import FetchDetails, ProgressCallback, VideoCollector

LOGGER = logging.getLogger("ytsort.pipeline")

ClientFactory = Callable[[HostConfig], WatchMetadataClient]


class SortPipeline:
    """Validates the page's host config, scans it, and collects video details."""

    def __init__(
        self,
        settings: AppSettings,
        session: SortSession,
        *,
        cache_store: KeyValueStore | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._settings = settings
        self._session = session
        self._cache_store = cache_store
        self._client_factory = client_factory or self._build_client

    @property
    def session(self) -> SortSession:
        return self._session

    def resolve_host_config(self, page: PlaylistPage) -> HostConfig:
        return HostConfig.from_ytcfg(
            extract_ytcfg(page.html),
            page_url=page.url,
            fallback_client_version=self._settings.fallback_client_version,
            legacy_client_version_prefix=self._settings.legacy_client_version_prefix,
            identity_token_override=self._settings.identity_token,
            client_version_override=self._settings.client_version,
        )

    def run(
        self,
        page: PlaylistPage,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> list[VideoDetails]:
        try:
            host_config = self.resolve_host_config(page)
        except HostConfigError as exc:
            LOGGER.error("host configuration rejected: %s", str(exc).replace("\n", " "))
            self._session.fail(str(exc))
            raise

        video_ids = scan_page_video_ids(page.html)
        LOGGER.info("found %s videos page_url=%s", len(video_ids), page.url)
        if not video_ids:
            LOGGER.warning(
                "no visible watch links on page page_url=%s; "
                "save the rendered playlist page from the browser and pass the file",
                page.url,
            )

        collector = VideoCollector(self._build_fetch(host_config))
        self._session.start(len(video_ids))
        try:
            videos = collector.collect(
                video_ids,
                self._progress_reporter(on_progress),
                on_video=self._session.add_video,
            )
        except Exception as exc:
            self._session.fail(f"Collection failed: {exc}")
            raise
        self._session.finish()
        LOGGER.info(
            "collection finished collected=%s skipped=%s",
            len(videos),
            len(video_ids) - len(videos),
        )
        return videos

    def _progress_reporter(self, on_progress: ProgressCallback | None) -> ProgressCallback:
        if on_progress is None:
            return self._session.record_progress

        def _report(processed: int, total: int) -> None:
            self._session.record_progress(processed, total)
            on_progress(processed, total)

        return _report

    def _build_fetch(self, host_config: HostConfig) -> FetchDetails:
        client = self._client_factory(host_config)
        if self._cache_store is None:
            return client.get_video_details
        return cached(
            self._cache_store,
            client.get_video_details,
            encode=VideoDetails.to_record,
            decode=VideoDetails.from_record,
        )

    def _build_client(self, host_config: HostConfig) -> WatchMetadataClient:
        return WatchMetadataClient(
            base_url=self._settings.base_url,
            host_config=host_config,
            client_name=self._settings.client_name,
            session_cookie=self._settings.session_cookie,
            timeout_seconds=self._settings.http_timeout_seconds,
        )
