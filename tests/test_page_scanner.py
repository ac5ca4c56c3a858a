from __future__ import annotations

import logging

import pytest

from ytsort.services.page_scanner import (
    extract_video_id,
    find_visible_watch_urls,
    scan_page_video_ids,
)


def test_extract_video_id_reads_v_parameter() -> None:
    assert extract_video_id("/watch?v=dQw4w9WgXcQ&list=PL123&index=2") == "dQw4w9WgXcQ"
    assert extract_video_id("/watch?list=PL123&v=a-b_c") == "a-b_c"
    assert extract_video_id("/watch?list=PL123") is None


def test_scan_deduplicates_in_first_seen_order() -> None:
    html_text = """
    <div>
      <a href="/watch?v=bbb&list=PL1&index=1">B</a>
      <a href="/watch?v=aaa&list=PL1&index=2">A</a>
      <a href="/watch?v=bbb&list=PL1&index=1"><img src="thumb.jpg"></a>
      <a href="/watch?v=ccc&list=PL1&index=3">C</a>
      <a href="/watch?v=aaa">A again</a>
    </div>
    """
    assert scan_page_video_ids(html_text) == ["bbb", "aaa", "ccc"]


def test_scan_skips_non_watch_links() -> None:
    html_text = """
    <a href="/channel/UC123">channel</a>
    <a href="https://www.youtube.com/watch?v=absolute">absolute</a>
    <a href="/watch?v=relative">relative</a>
    <a>no href</a>
    """
    assert scan_page_video_ids(html_text) == ["relative"]


def test_scan_skips_links_without_layout_box() -> None:
    html_text = """
    <a href="/watch?v=shown">shown</a>
    <a href="/watch?v=own_hidden" hidden>hidden attribute</a>
    <div style="display: none"><span><a href="/watch?v=in_hidden_div">nested</a></span></div>
    <div STYLE="color: red;display:NONE;"><a href="/watch?v=upper_style">upper</a></div>
    <template><a href="/watch?v=in_template">template</a></template>
    <div><a href="/watch?v=after_hidden">visible again</a></div>
    """
    assert scan_page_video_ids(html_text) == ["shown", "after_hidden"]


def test_visibility_resets_after_hidden_subtree_closes() -> None:
    html_text = """
    <section hidden><p>stale<br><img src="x.jpg"></p></section>
    <a href="/watch?v=later">later</a>
    """
    assert find_visible_watch_urls(html_text) == ["/watch?v=later"]


def test_omitted_end_tags_close_hidden_siblings() -> None:
    html_text = """
    <ul>
      <li hidden><a href="/watch?v=hidden_item">hidden</a>
      <li><a href="/watch?v=next_item">shown</a>
    </ul>
    <table>
      <tr style="display:none"><td><a href="/watch?v=hidden_row">hidden</a>
      <tr><td><a href="/watch?v=next_row">shown</a>
    </table>
    """
    assert scan_page_video_ids(html_text) == ["next_item", "next_row"]


def test_nested_list_item_keeps_outer_hidden_item_open() -> None:
    html_text = """
    <ul><li hidden><ul><li><a href="/watch?v=nested">nested</a></ul></li></ul>
    <a href="/watch?v=after">after</a>
    """
    assert scan_page_video_ids(html_text) == ["after"]


def test_unparseable_link_is_logged_and_skipped(caplog: pytest.LogCaptureFixture) -> None:
    html_text = '<a href="/watch?list=PL1">broken</a><a href="/watch?v=ok">ok</a>'
    with caplog.at_level(logging.WARNING, logger="ytsort.scanner"):
        video_ids = scan_page_video_ids(html_text)

    assert video_ids == ["ok"]
    assert any("/watch?list=PL1" in record.getMessage() for record in caplog.records)


def test_empty_page_yields_empty_list() -> None:
    assert scan_page_video_ids("") == []
    assert scan_page_video_ids("<html><body><p>No videos</p></body></html>") == []
