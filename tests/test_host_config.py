from __future__ import annotations

import pytest

from ytsort.services.host_config import (
    HostConfig,
    HostEnvironmentError,
    NotLoggedInError,
    extract_ytcfg,
    resolve_client_version,
)

FALLBACK = "2.20180308"


def _host_config(ytcfg: dict[str, object] | None, **overrides: str | None) -> HostConfig:
    return HostConfig.from_ytcfg(
        ytcfg,
        page_url="https://www.youtube.com/playlist?list=PL1",
        fallback_client_version=FALLBACK,
        legacy_client_version_prefix="1.",
        identity_token_override=overrides.get("identity_token"),
        client_version_override=overrides.get("client_version"),
    )


def test_extract_ytcfg_merges_object_and_pair_calls() -> None:
    html_text = """
    <script>var x = 1; ytcfg.set({"INNERTUBE_CONTEXT_CLIENT_VERSION": "2.2024", "LOGGED_IN": true});</script>
    <script>ytcfg.set("ID_TOKEN", "token-value");</script>
    <script>ytcfg.set({"INNERTUBE_CONTEXT_CLIENT_VERSION": "2.2025"});</script>
    """
    ytcfg = extract_ytcfg(html_text)
    assert ytcfg == {
        "INNERTUBE_CONTEXT_CLIENT_VERSION": "2.2025",
        "LOGGED_IN": True,
        "ID_TOKEN": "token-value",
    }


def test_extract_ytcfg_returns_none_without_config() -> None:
    assert extract_ytcfg("<html><script>window.other = {};</script></html>") is None
    assert extract_ytcfg("<script>ytcfg.set(notJson);</script>") is None


def test_missing_ytcfg_is_environment_error() -> None:
    with pytest.raises(HostEnvironmentError) as exc_info:
        _host_config(None)
    assert "window.ytcfg is missing" in str(exc_info.value)


def test_missing_identity_token_is_not_logged_in() -> None:
    with pytest.raises(NotLoggedInError) as exc_info:
        _host_config({"INNERTUBE_CONTEXT_CLIENT_VERSION": "2.2024"})
    assert "logged in" in str(exc_info.value)


def test_identity_token_override_satisfies_login_check() -> None:
    config = _host_config({"INNERTUBE_CONTEXT_CLIENT_VERSION": "2.2024"}, identity_token="abc")
    assert config.identity_token == "abc"
    assert config.client_version == "2.2024"


def test_legacy_client_version_uses_fallback() -> None:
    config = _host_config({"ID_TOKEN": "t", "INNERTUBE_CONTEXT_CLIENT_VERSION": "1.20180101"})
    assert config.client_version == FALLBACK


def test_resolve_client_version_branches() -> None:
    assert resolve_client_version("2.20240101", fallback=FALLBACK, legacy_prefix="1.") == "2.20240101"
    assert resolve_client_version("1.5", fallback=FALLBACK, legacy_prefix="1.") == FALLBACK
    assert resolve_client_version("10.1", fallback=FALLBACK, legacy_prefix="1.") == "10.1"
    assert resolve_client_version(None, fallback=FALLBACK, legacy_prefix="1.") == FALLBACK
