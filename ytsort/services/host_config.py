from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, cast

LOGGER = logging.getLogger("ytsort.host")

YTCFG_SET_PATTERN = re.compile(r"ytcfg\.set\(\s*")
ID_TOKEN_KEY = "ID_TOKEN"
CLIENT_VERSION_KEY = "INNERTUBE_CONTEXT_CLIENT_VERSION"

NOT_ON_HOST_MESSAGE = "You don't seem to be on youtube.com.\n\n(window.ytcfg is missing)"
NOT_LOGGED_IN_MESSAGE = (
    "You need to be logged in to use YouTube sort.\n\n"
    "If you're logged in, please refresh your browser and try again."
)


class HostConfigError(Exception):
    pass


class HostEnvironmentError(HostConfigError):
    def __init__(self, message: str = NOT_ON_HOST_MESSAGE) -> None:
        super().__init__(message)


class NotLoggedInError(HostConfigError):
    def __init__(self, message: str = NOT_LOGGED_IN_MESSAGE) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class HostConfig:
    """Session values the watch endpoint needs, validated once at startup."""

    identity_token: str
    client_version: str
    page_url: str

    @classmethod
    def from_ytcfg(
        cls,
        ytcfg: dict[str, Any] | None,
        *,
        page_url: str,
        fallback_client_version: str,
        legacy_client_version_prefix: str,
        identity_token_override: str | None = None,
        client_version_override: str | None = None,
    ) -> HostConfig:
        if ytcfg is None:
            raise HostEnvironmentError()

        identity_token = identity_token_override or _coerce_nonempty_string(
            ytcfg.get(ID_TOKEN_KEY)
        )
        if identity_token is None:
            raise NotLoggedInError()

        raw_version = client_version_override or _coerce_version(ytcfg.get(CLIENT_VERSION_KEY))
        client_version = resolve_client_version(
            raw_version,
            fallback=fallback_client_version,
            legacy_prefix=legacy_client_version_prefix,
        )
        return cls(
            identity_token=identity_token,
            client_version=client_version,
            page_url=page_url,
        )


def resolve_client_version(
    raw_version: str | None,
    *,
    fallback: str,
    legacy_prefix: str,
) -> str:
    if raw_version is None:
        LOGGER.warning("client version missing from ytcfg; using fallback=%s", fallback)
        return fallback
    if raw_version.startswith(legacy_prefix):
        LOGGER.info(
            "legacy client version detected version=%s; using fallback=%s",
            raw_version,
            fallback,
        )
        return fallback
    return raw_version


def extract_ytcfg(html_text: str) -> dict[str, Any] | None:
    """Merge every `ytcfg.set(...)` call found in the page's inline scripts.

    Both `ytcfg.set({...})` and `ytcfg.set("KEY", value)` forms are read.
    Returns None when the page never configures `ytcfg`.
    """
    decoder = json.JSONDecoder()
    merged: dict[str, Any] = {}
    found = False

    for matched in YTCFG_SET_PATTERN.finditer(html_text):
        position = matched.end()
        try:
            first, end = decoder.raw_decode(html_text, position)
        except json.JSONDecodeError:
            continue

        if isinstance(first, dict):
            found = True
            for key, value in cast(dict[object, object], first).items():
                merged[str(key)] = value
            continue

        if isinstance(first, str):
            separator = re.compile(r"\s*,\s*").match(html_text, end)
            if separator is None:
                continue
            try:
                value, _ = decoder.raw_decode(html_text, separator.end())
            except json.JSONDecodeError:
                continue
            found = True
            merged[first] = value

    if not found:
        return None
    return merged


def _coerce_nonempty_string(raw_value: object) -> str | None:
    if isinstance(raw_value, str) and raw_value.strip():
        return raw_value.strip()
    return None


def _coerce_version(raw_value: object) -> str | None:
    if isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, int | float):
        return str(raw_value)
    return _coerce_nonempty_string(raw_value)
