from __future__ import annotations

import pytest

from folio.extraction.images import DEFAULT_IMAGE_MIME_TYPE, detect_mime_type, is_recognized_image
from folio.extraction.normalization import (
    CHAPTER_PATTERN,
    count_words,
    looks_like_file_name,
    normalize_language_tag,
    normalize_plain_text,
    paragraph_to_html,
    title_from_file_name,
)


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (b"\xff\xd8\xff\xe0rest", "image/jpeg"),
        (b"\x89PNG\r\n\x1a\n", "image/png"),
        (b"GIF89a....", "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"BM\x00\x00\x00\x00", DEFAULT_IMAGE_MIME_TYPE),
        (b"\x89P", DEFAULT_IMAGE_MIME_TYPE),
    ],
)
def test_detect_mime_type(payload: bytes, expected: str) -> None:
    assert detect_mime_type(payload) == expected


def test_is_recognized_image_accepts_jpeg_and_png_only() -> None:
    assert is_recognized_image(b"\xff\xd8\xff\xdb")
    assert is_recognized_image(b"\x89PNG\r\n")
    assert not is_recognized_image(b"GIF89a")


def test_count_words_splits_on_whitespace() -> None:
    assert count_words("  one two\tthree\nfour  ") == 4
    assert count_words("") == 0
    assert count_words(None) == 0


def test_normalize_plain_text() -> None:
    raw = "First line   \r\nsecond\r\n\r\n\r\n\r\nThird\n"
    assert normalize_plain_text(raw) == "First line\nsecond\n\nThird"


def test_paragraph_to_html_escapes_and_keeps_line_breaks() -> None:
    assert paragraph_to_html("a < b\nc & d") == "<p>a &lt; b<br/>c &amp; d</p>"


def test_title_from_file_name() -> None:
    assert title_from_file_name("my-awesome_book.pdf") == "My Awesome Book"
    assert title_from_file_name("dir/book.fb2.zip") == "Book"


def test_looks_like_file_name() -> None:
    assert looks_like_file_name("chapter-01")
    assert looks_like_file_name("SF20_Code-4")
    assert looks_like_file_name("   ")
    assert not looks_like_file_name("Chapter One")
    assert not looks_like_file_name("Prologue")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("en-US", "en"), ("eng", "en"), ("English", "en"), ("ru_RU", "ru"), ("zz", "zz"), ("xyz", None), ("", None)],
)
def test_normalize_language_tag(raw: str, expected: str | None) -> None:
    assert normalize_language_tag(raw) == expected


def test_chapter_pattern_matches_numbered_headings() -> None:
    assert CHAPTER_PATTERN.match("Chapter 12")
    assert CHAPTER_PATTERN.match("  part IV: The Return")
    assert CHAPTER_PATTERN.match("Глава 3")
    assert not CHAPTER_PATTERN.match("Partial results")
    assert not CHAPTER_PATTERN.match("The chapter 1")
