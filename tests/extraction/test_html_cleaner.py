from __future__ import annotations

from folio.extraction.html_cleaner import clean_html, extract_title

_DOCUMENT = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html>
<html><head><title>Head title</title><style>p { color: red }</style></head>
<body>
  <p onmouseover="track()">Hello &amp;amp; welcome,   reader .</p>
  <script>steal()</script>
  <p><a href="javascript:alert(1)">bad</a> <a href="https://example.com/x">web</a>
     <a href="notes.xhtml#n2">note</a> <a href="other.xhtml">other</a></p>
  <p><span> </span></p>
  <iframe src="https://example.com/embed"></iframe>
</body></html>
"""


def test_clean_html_strips_active_content() -> None:
    html, plain = clean_html(_DOCUMENT)

    assert "<script" not in html
    assert "<style" not in html
    assert "<iframe" not in html
    assert "onmouseover" not in html
    assert "Head title" not in plain
    assert "steal" not in plain


def test_clean_html_rewrites_links() -> None:
    html, _plain = clean_html(_DOCUMENT)

    assert "javascript:" not in html
    assert 'href="https://example.com/x"' in html
    assert 'href="#n2"' in html
    assert '<a href="#">other</a>' in html


def test_clean_html_repairs_entities_and_whitespace() -> None:
    html, plain = clean_html(_DOCUMENT)

    assert "Hello &amp; welcome, reader.</p>" in html
    assert "<span" not in html
    assert plain.startswith("Hello & welcome, reader. bad web note other")


def test_clean_html_handles_blank_input() -> None:
    assert clean_html("") == ("", "")
    assert clean_html("   \n") == ("", "")


def test_extract_title_prefers_h1_then_h2_then_title() -> None:
    assert extract_title("<html><body><h2>Sub</h2><h1>Main</h1></body></html>") == "Main"
    assert extract_title("<html><body><h2> Only   sub </h2></body></html>") == "Only sub"
    assert extract_title("<html><head><title>Doc</title></head><body><p>x</p></body></html>") == "Doc"
    assert extract_title("<p>No headings</p>") is None
