from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

import structlog
from structlog.typing import EventDict, Processor

from ytsort.config import AppSettings

LOG_FILE_NAME = "ytsort.log"
ROOT_LOGGER_NAME = "ytsort"
# uvicorn.error and uvicorn.access propagate to this one.
SERVER_LOGGER_NAME = "uvicorn"


class _StderrHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Writes to whatever `sys.stderr` is when a record is emitted.

    rich swaps `sys.stderr` for a proxy while a progress bar is live, so log
    lines printed during collection land above the bar instead of through it.
    """

    def __init__(self) -> None:
        super().__init__(stream=sys.stderr)

    @property
    def stream(self) -> TextIO:  # type: ignore[override]
        return sys.stderr

    @stream.setter
    def stream(self, _value: TextIO) -> None:
        pass


def configure_application_logging(
    settings: AppSettings,
    *,
    server_logs: bool = False,
) -> Path:
    """Route `ytsort.*` records to stderr and to a JSON log file.

    stdout is left alone since `render` may write the table there. With
    `server_logs`, uvicorn's error and access records share the same
    handlers at INFO.
    """
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = settings.log_dir / LOG_FILE_NAME

    _configure_structlog()
    handlers = (_build_console_handler(settings.log_level), _build_file_handler(log_file))

    _attach_handlers(logging.getLogger(ROOT_LOGGER_NAME), handlers, level=logging.DEBUG)
    server_logger = logging.getLogger(SERVER_LOGGER_NAME)
    if server_logs:
        _attach_handlers(server_logger, handlers, level=logging.INFO)
    else:
        _reset_handlers(server_logger)

    logging.getLogger(ROOT_LOGGER_NAME).debug(
        "logging configured console_level=%s path=%s server_logs=%s",
        settings.log_level.upper(),
        log_file,
        server_logs,
    )
    return log_file


def _attach_handlers(
    logger: logging.Logger,
    handlers: Iterable[logging.Handler],
    *,
    level: int,
) -> None:
    _reset_handlers(logger)
    logger.setLevel(level)
    logger.propagate = False
    for handler in handlers:
        logger.addHandler(handler)


def _build_console_handler(raw_level: str) -> logging.Handler:
    handler = _StderrHandler()
    handler.setLevel(_resolve_log_level(raw_level))
    handler.setFormatter(
        _build_console_formatter(enable_colors=_stream_supports_color(sys.stderr))
    )
    return handler


def _build_file_handler(log_file: Path) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(_build_file_formatter())
    return handler


def _resolve_log_level(raw_level: str) -> int:
    resolved = logging.getLevelName(raw_level.strip().upper())
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _build_console_formatter(*, enable_colors: bool) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=enable_colors),
        ],
    )


def _build_file_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_pre_chain(),
        processors=[
            _add_record_metadata,
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
    )


def _shared_pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]


def _add_record_metadata(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        event_dict["lineno"] = record.lineno
        event_dict["func_name"] = record.funcName
        event_dict["thread_name"] = record.threadName
    return event_dict


def _stream_supports_color(stream: object) -> bool:
    isatty = getattr(stream, "isatty", None)
    if not callable(isatty):
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        return False
