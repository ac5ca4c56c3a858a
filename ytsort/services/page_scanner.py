from __future__ import annotations

import logging
import re
from html.parser import HTMLParser

LOGGER = logging.getLogger("ytsort.scanner")

WATCH_HREF_PREFIX = "/watch"
VIDEO_ID_PATTERN = re.compile(r"v=([-\w]+)")
_VOID_TAGS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)
_NEVER_RENDERED_TAGS: frozenset[str] = frozenset({"template", "script", "style", "noscript"})
# Start tag -> (open tags it implicitly closes, tags that bound the search).
_IMPLIED_END_TAGS: dict[str, tuple[frozenset[str], frozenset[str]]] = {
    "li": (frozenset({"li"}), frozenset({"ul", "ol", "menu"})),
    "dt": (frozenset({"dt", "dd"}), frozenset({"dl"})),
    "dd": (frozenset({"dt", "dd"}), frozenset({"dl"})),
    "tr": (frozenset({"tr", "td", "th"}), frozenset({"table", "thead", "tbody", "tfoot"})),
    "td": (frozenset({"td", "th"}), frozenset({"tr", "table"})),
    "th": (frozenset({"td", "th"}), frozenset({"tr", "table"})),
    "option": (frozenset({"option"}), frozenset({"select", "datalist", "optgroup"})),
    "p": (
        frozenset({"p"}),
        frozenset({"div", "section", "article", "body", "li", "td", "th", "table", "button"}),
    ),
}


class _WatchLinkParser(HTMLParser):
    """Collects watch-page hrefs of anchors that would get a layout box.

    An anchor is skipped when it or an ancestor carries the `hidden`
    attribute, has an inline `display: none` style, or lives in an element
    that is never rendered. Omitted end tags of list items, table rows and
    cells, definition terms, options and paragraphs are closed the way a
    browser closes them when the next sibling opens; other unclosed elements
    stay open until an ancestor's end tag.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._open_elements: list[tuple[str, bool]] = []
        self.hrefs: list[str] = []

    def _inside_hidden(self) -> bool:
        return bool(self._open_elements) and self._open_elements[-1][1]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        tag_name = tag.lower()
        self._close_implied(tag_name)
        attrs_map = {name.lower(): (value or "").strip() for name, value in attrs}
        hidden = (
            self._inside_hidden()
            or tag_name in _NEVER_RENDERED_TAGS
            or _has_no_layout_box(attrs_map)
        )

        if tag_name == "a" and not hidden:
            href = attrs_map.get("href", "")
            if href.startswith(WATCH_HREF_PREFIX):
                self.hrefs.append(href)

        if tag_name not in _VOID_TAGS:
            self._open_elements.append((tag_name, hidden))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.handle_starttag(tag, attrs)
        if tag.lower() not in _VOID_TAGS:
            self.handle_endtag(tag)

    def _close_implied(self, tag_name: str) -> None:
        implied = _IMPLIED_END_TAGS.get(tag_name)
        if implied is None:
            return
        closes, scope = implied
        cut: int | None = None
        for index in range(len(self._open_elements) - 1, -1, -1):
            open_tag = self._open_elements[index][0]
            if open_tag in scope:
                break
            if open_tag in closes:
                cut = index
        if cut is not None:
            del self._open_elements[cut:]

    def handle_endtag(self, tag: str) -> None:
        tag_name = tag.lower()
        for index in range(len(self._open_elements) - 1, -1, -1):
            if self._open_elements[index][0] == tag_name:
                del self._open_elements[index:]
                return


def _has_no_layout_box(attrs_map: dict[str, str]) -> bool:
    if "hidden" in attrs_map:
        return True
    style = "".join(attrs_map.get("style", "").lower().split())
    return "display:none" in style


def extract_video_id(url: str) -> str | None:
    matched = VIDEO_ID_PATTERN.search(url)
    if matched is None:
        return None
    return matched.group(1)


def find_visible_watch_urls(html_text: str) -> list[str]:
    parser = _WatchLinkParser()
    parser.feed(html_text)
    parser.close()
    return parser.hrefs


def scan_page_video_ids(html_text: str) -> list[str]:
    """Return unique video ids of the visible watch links, in page order."""
    video_ids: list[str] = []
    for url in find_visible_watch_urls(html_text):
        video_id = extract_video_id(url)
        if video_id is None:
            LOGGER.warning("failed to parse video id from url=%s", url)
            continue
        video_ids.append(video_id)
    return list(dict.fromkeys(video_ids))
