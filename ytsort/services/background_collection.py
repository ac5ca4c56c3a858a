from __future__ import annotations

import logging
import threading
from collections.abc import Callable

LOGGER = logging.getLogger("ytsort.background")


class BackgroundCollection:
    """Runs one collection job on a daemon thread while the app serves pages."""

    def __init__(self, job: Callable[[], object], *, name: str = "ytsort-collection") -> None:
        self._job = job
        self._name = name
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(target=self._run, name=self._name)
        self._thread.daemon = True
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        try:
            self._job()
        except Exception:
            LOGGER.exception("background collection failed")
