from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from ytsort.dependencies import reset_cached_dependencies


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    runtime_dir = tmp_path / "runtime-data"
    monkeypatch.setenv("YTSORT_DATA_DIR", str(runtime_dir))
    monkeypatch.delenv("YTSORT_IDENTITY_TOKEN", raising=False)
    monkeypatch.delenv("YTSORT_CLIENT_VERSION", raising=False)
    monkeypatch.delenv("YTSORT_SESSION_COOKIE", raising=False)
    reset_cached_dependencies()
    yield runtime_dir
    reset_cached_dependencies()


@pytest.fixture(autouse=True)
def _restore_ytsort_logger() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    yield
    for name in ("ytsort", "uvicorn"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
