from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

LOGGER = logging.getLogger("ytsort.page")


class PageLoadError(Exception):
    pass


@dataclass(frozen=True)
class PlaylistPage:
    html: str
    url: str


def load_playlist_page(
    source: str,
    *,
    base_url: str,
    session_cookie: str | None = None,
    timeout_seconds: float | None = None,
) -> PlaylistPage:
    """Load a playlist page from an http(s) URL or a saved HTML file.

    For a saved file the page URL (sent as the referer) falls back to the
    site origin, since the file does not record where it came from.

    A fetched playlist URL returns the server HTML, whose video list is
    built client-side from `ytInitialData` and usually has no watch anchors.
    Pass a page saved from the browser after it has rendered instead.
    """
    normalized = source.strip()
    if normalized.startswith(("http://", "https://")):
        return PlaylistPage(
            html=_fetch_page_html(
                normalized,
                session_cookie=session_cookie,
                timeout_seconds=timeout_seconds,
            ),
            url=normalized,
        )

    path = Path(normalized).expanduser()
    try:
        html_text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise PageLoadError(f"Could not read page file {path}: {exc}") from exc
    LOGGER.info("loaded playlist page from file path=%s bytes=%s", path, len(html_text))
    return PlaylistPage(html=html_text, url=f"{base_url.rstrip('/')}/")


def _fetch_page_html(
    url: str,
    *,
    session_cookie: str | None,
    timeout_seconds: float | None,
) -> str:
    headers = {"accept": "text/html", "accept-language": "en-US,en;q=0.8"}
    if session_cookie is not None:
        headers["cookie"] = session_cookie
    request = Request(url, headers=headers, method="GET")
    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            html_text = response.read().decode("utf-8", errors="replace")
    except HTTPError as exc:
        raise PageLoadError(f"Playlist page request returned HTTP {exc.code}: {url}") from exc
    except (URLError, TimeoutError, OSError) as exc:
        raise PageLoadError(f"Playlist page request failed: {exc}") from exc

    LOGGER.info("fetched playlist page url=%s bytes=%s", url, len(html_text))
    return html_text
