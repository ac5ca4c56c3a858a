from __future__ import annotations

import math
from collections.abc import Iterable
from html import escape
from typing import Any
from urllib.parse import quote, urlencode

from ytsort.models.video import SORT_FIELDS, SortField, VideoDetails, resolve_sort_field

PAGE_FONT = "Roboto, Arial, sans-serif"
_TABLE_STYLE = f"color: hsl(0, 0%, 6.7%); font-family: {PAGE_FONT}; border-spacing: 1em;"
_SORTABLE_HEADER_STYLE = "cursor: pointer; border-bottom: 1px solid;"
_RANK_STYLE = "color: hsla(0, 0%, 6.7%, .6);"
# Columns always present; any other sort key gets its own column.
_FIXED_COLUMN_KEYS: frozenset[str] = frozenset(
    {"viewCount", "averageRating", "ownerChannelName", "lengthSeconds", "title"}
)


def format_duration(total_seconds: int) -> str:
    seconds = max(0, int(total_seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def sort_videos(videos: Iterable[VideoDetails], sort_key: str) -> list[VideoDetails]:
    field = resolve_sort_field(sort_key)
    if field.numeric:
        return sorted(videos, key=lambda video: _numeric_value(field, video), reverse=True)
    return sorted(videos, key=lambda video: _text_value(field, video))


def _numeric_value(field: SortField, video: VideoDetails) -> float:
    value = field.value_of(video)
    if value is None:
        return -math.inf
    return float(value)


def _text_value(field: SortField, video: VideoDetails) -> str:
    value = field.value_of(video)
    if value is None:
        return ""
    return str(value)


def render_table(
    videos: Iterable[VideoDetails],
    sort_key: str,
    *,
    base_url: str,
) -> str:
    """Render the collected videos as a complete HTML page sorted by `sort_key`.

    Sortable column headers link to `?sort=<key>`, which the app answers by
    rendering again with that key.
    """
    field = resolve_sort_field(sort_key)
    ordered = sort_videos(videos, field.key)
    origin = base_url.rstrip("/")
    extra_field = None if field.key in _FIXED_COLUMN_KEYS else field

    header_cells = [
        "<th></th>",
        _sort_header(SORT_FIELDS["viewCount"], field),
        _sort_header(SORT_FIELDS["averageRating"], field),
    ]
    if extra_field is not None:
        header_cells.append(_sort_header(extra_field, field))
    header_cells.extend(
        [
            _sort_header(SORT_FIELDS["ownerChannelName"], field),
            _sort_header(SORT_FIELDS["lengthSeconds"], field),
            "<th></th>",
            _sort_header(SORT_FIELDS["title"], field),
        ]
    )

    rows = [
        _render_row(rank, video, extra_field=extra_field, origin=origin)
        for rank, video in enumerate(ordered, start=1)
    ]
    body = f"""
    <table style="{_TABLE_STYLE}">
      <thead>
        <tr>
          {"".join(header_cells)}
        </tr>
      </thead>
      <tbody>
      {"".join(rows)}
      </tbody>
    </table>
    """
    return _page(f"Videos sorted by {field.label}", body)


def render_progress(done: int, total: int) -> str:
    body = f"""
    <main style="font-family: {PAGE_FONT};">
      <div style="display: inline-block;">
        <p>Processing videos: {done} out of {total}</p>
        <div><progress style="width: 100%;" value="{done}" max="{total}"></progress></div>
      </div>
    </main>
    """
    # Reload until the table replaces the progress page.
    return _page("Processing videos", body, refresh_seconds=2)


def _render_row(
    rank: int,
    video: VideoDetails,
    *,
    extra_field: SortField | None,
    origin: str,
) -> str:
    cells = [
        f'<td style="{_RANK_STYLE}">{rank}</td>',
        f"<td>{video.view_count}</td>",
        f"<td>{_format_rating(video.average_rating)}</td>",
    ]
    if extra_field is not None:
        cells.append(f"<td>{_escape_value(extra_field.value_of(video))}</td>")
    cells.extend(
        [
            f"<td>{_author_link(video, origin)}</td>",
            f"<td>{format_duration(video.length_seconds)}</td>",
            f"<td>{_thumbnail_link(video, origin)}</td>",
            f"<td>{_watch_link(video.video_id, escape(video.title), origin)}</td>",
        ]
    )
    return f'<tr style="padding: 1em;">{"".join(cells)}</tr>\n'


def _sort_header(column: SortField, current: SortField) -> str:
    href = escape(f"?{urlencode({'sort': column.key})}")
    marker = ""
    if column.key == current.key:
        marker = ' aria-sort="descending"' if column.numeric else ' aria-sort="ascending"'
    return (
        f'<th style="{_SORTABLE_HEADER_STYLE}"{marker}>'
        f'<a href="{href}" style="color: inherit; text-decoration: none;">'
        f"{escape(column.label)}</a></th>"
    )


def _watch_link(video_id: str, children: str, origin: str) -> str:
    href = escape(f"{origin}/watch?{urlencode({'v': video_id})}")
    return f'<a href="{href}" target="_blank">{children}</a>'


def _thumbnail_link(video: VideoDetails, origin: str) -> str:
    url = video.thumbnail_url
    if url is None:
        return ""
    return _watch_link(video.video_id, f'<img src="{escape(url)}">', origin)


def _author_link(video: VideoDetails, origin: str) -> str:
    name = video.channel_name
    if name is None:
        return ""
    if video.channel_id is None:
        return escape(name)
    href = escape(f"{origin}/channel/{quote(video.channel_id)}")
    return f'<a href="{href}" target="_blank">{escape(name)}</a>'


def _format_rating(value: float | None) -> str:
    if value is None:
        return ""
    return f"{value:.2f}"


def _escape_value(value: Any) -> str:
    if value is None:
        return ""
    return escape(str(value))


def _page(title: str, body: str, *, refresh_seconds: int | None = None) -> str:
    refresh = ""
    if refresh_seconds is not None:
        refresh = f'<meta http-equiv="refresh" content="{refresh_seconds}">'
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    {refresh}
    <title>{escape(title)}</title>
  </head>
  <body>
    {body}
  </body>
</html>
"""
