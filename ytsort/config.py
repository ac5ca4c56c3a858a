from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = ".ytsort"
DEFAULT_BASE_URL = "https://www.youtube.com"
# The watch endpoint does not return the pbj JSON array for 1.x web clients.
DEFAULT_FALLBACK_CLIENT_VERSION = "2.20180308"
DEFAULT_LEGACY_CLIENT_VERSION_PREFIX = "1."
_DATA_DIR_RELATIVE_DEFAULTS: tuple[tuple[str, Path], ...] = (
    ("db_path", Path("cache.db")),
    ("log_dir", Path("logs")),
)
_PATH_FIELDS: tuple[str, ...] = (
    "data_dir",
    *(field_name for field_name, _ in _DATA_DIR_RELATIVE_DEFAULTS),
)
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = (
    "cache_enabled",
)


def _default_in_data_dir(relative_path: Path) -> Path:
    return Path(DEFAULT_DATA_DIR) / relative_path


def _data_dir_default_note(relative_path: Path) -> str:
    return f"Defaults to `${{YTSORT_DATA_DIR}}/{relative_path}` when not explicitly set."


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == 1:
            return True
        if value == 0:
            return False
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _normalize_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if normalized:
        return normalized
    return None


class AppSettings(BaseSettings):
    """
    Canonical runtime configuration.

    Every option is read from `YTSORT_*` environment variables (or `.env`).
    Values found in the page's `ytcfg` are used unless an override is set here.
    """

    model_config = SettingsConfigDict(
        env_prefix="YTSORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Paths.
    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        description="Root runtime directory for the response cache and logs.",
    )
    db_path: Path = Field(
        default=_default_in_data_dir(Path("cache.db")),
        description=f"SQLite response cache path. {_data_dir_default_note(Path('cache.db'))}",
    )
    log_dir: Path = Field(
        default=_default_in_data_dir(Path("logs")),
        description=f"Directory for application logs. {_data_dir_default_note(Path('logs'))}",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level. The log file always records DEBUG.",
    )

    # Watch endpoint.
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Origin of the video platform; the watch endpoint is resolved against it.",
    )
    client_name: str = Field(
        default="1",
        description="Value of the x-youtube-client-name header.",
    )
    fallback_client_version: str = Field(
        default=DEFAULT_FALLBACK_CLIENT_VERSION,
        description="Client version sent instead of a detected legacy (1.x) version.",
    )
    legacy_client_version_prefix: str = Field(
        default=DEFAULT_LEGACY_CLIENT_VERSION_PREFIX,
        description="Detected client versions starting with this prefix use the fallback.",
    )
    identity_token: str | None = Field(
        default=None,
        description="Overrides the ID_TOKEN read from the page ytcfg.",
    )
    client_version: str | None = Field(
        default=None,
        description="Overrides the INNERTUBE_CONTEXT_CLIENT_VERSION read from the page ytcfg.",
    )
    session_cookie: str | None = Field(
        default=None,
        description="Raw Cookie header of the logged-in browser session, sent with every request.",
    )
    http_timeout_seconds: float | None = Field(
        default=None,
        description="Socket timeout for page and metadata requests. Unset waits indefinitely.",
    )

    # Cache and rendering.
    cache_enabled: bool = Field(
        default=True,
        description="Memoize watch-endpoint responses in the SQLite cache.",
    )
    default_sort_key: str = Field(
        default="viewCount",
        description="Sort key used when none is requested.",
    )

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("YTSORT_BASE_URL must be a string.")
        normalized = value.strip().rstrip("/")
        if not normalized:
            raise ValueError("YTSORT_BASE_URL must not be empty.")
        return normalized

    @field_validator("fallback_client_version", "legacy_client_version_prefix", mode="before")
    @classmethod
    def _normalize_required_text(cls, value: Any, info: ValidationInfo) -> str:
        normalized = _normalize_optional_text(value)
        if normalized is None:
            raise ValueError(f"YTSORT_{str(info.field_name).upper()} must not be empty.")
        return normalized

    @field_validator("http_timeout_seconds", mode="before")
    @classmethod
    def _normalize_timeout(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator(*_PATH_FIELDS, mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if value is None:
            return None
        return _resolve_path(value)

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)

    @field_validator("identity_token", "client_version", "session_cookie", mode="before")
    @classmethod
    def _normalize_optional_strings(cls, value: Any) -> str | None:
        return _normalize_optional_text(value)


def _apply_path_defaults(settings: AppSettings) -> AppSettings:
    updates: dict[str, Path] = {}
    for field_name, relative_default in _DATA_DIR_RELATIVE_DEFAULTS:
        if field_name in settings.model_fields_set:
            continue
        updates[field_name] = settings.data_dir / relative_default
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def _resolve_path_fields(settings: AppSettings) -> AppSettings:
    resolved_updates = {
        field_name: _resolve_path(getattr(settings, field_name))
        for field_name in _PATH_FIELDS
    }
    return settings.model_copy(update=resolved_updates)


def load_settings() -> AppSettings:
    settings = AppSettings()
    settings = _apply_path_defaults(settings)
    settings = _resolve_path_fields(settings)
    return settings
