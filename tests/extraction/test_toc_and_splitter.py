from __future__ import annotations

import pytest

from folio.extraction.models import ContentUnit
from folio.extraction.splitter import ChapterSplitter
from folio.extraction.toc import MAX_SLUG_LENGTH, generate_toc, inject_anchor_ids, slugify


def test_slugify_keeps_ascii_words() -> None:
    assert slugify("Hello, World! 2") == "hello-world-2"
    assert slugify("  Über  --  alles ") == "ber-alles"
    assert len(slugify("word " * 40)) <= MAX_SLUG_LENGTH
    assert not slugify("word " * 40).endswith("-")


def test_inject_anchor_ids_deduplicates_and_keeps_existing_ids() -> None:
    html = '<h1>Intro</h1><h2 class="x">Intro</h2><h3 id="keep">Keep</h3><h2>¿?</h2><h4>Deep</h4>'

    anchored = inject_anchor_ids(html, 3)

    assert anchored == (
        '<h1 id="ch3-intro">Intro</h1>'
        '<h2 class="x" id="ch3-intro-2">Intro</h2>'
        '<h3 id="keep">Keep</h3>'
        '<h2 id="ch3-h0">¿?</h2>'
        "<h4>Deep</h4>"
    )


def test_generate_toc_nests_headings_across_chapters() -> None:
    chapters = [
        (1, '<h1 id="a">A</h1><p>x</p><h2 id="b">B</h2><h3>C</h3>'),
        (2, '<h2 id="d">D</h2><h1 id="e">E <em>too</em></h1>'),
    ]

    toc = generate_toc(chapters)

    assert [entry.title for entry in toc] == ["A", "E too"]
    first = toc[0]
    assert [child.title for child in first.children] == ["B", "D"]
    assert first.children[0].children[0].title == "C"
    assert first.children[0].children[0].anchor is None
    assert first.children[1].chapter_number == 2
    assert toc[1].anchor == "#e"


def _unit(title: str, paragraphs: list[str], order_index: int = 0) -> ContentUnit:
    return ContentUnit(
        title=title,
        html="".join(f"<p>{text}</p>" for text in paragraphs),
        plain_text=" ".join(paragraphs),
        order_index=order_index,
    )


def test_splitter_breaks_long_units_at_paragraphs() -> None:
    paragraphs = [f"Paragraph {n} has five words" for n in range(1, 7)]
    story = _unit("Story", paragraphs)

    parts = ChapterSplitter(max_words_per_part=10).split(story, base_order_index=4)

    assert [part.title for part in parts] == ["Story - Part 1", "Story - Part 2", "Story - Part 3"]
    assert [part.order_index for part in parts] == [4, 5, 6]
    assert all(part.total_parts == 3 for part in parts)
    assert [part.part_number for part in parts] == [1, 2, 3]
    assert parts[0].html == "<p>Paragraph 1 has five words</p><p>Paragraph 2 has five words</p>"
    assert all(part.word_count <= 10 for part in parts)


def test_splitter_renumbers_following_units() -> None:
    long_unit = _unit("Long", [f"Sentence {n} of five words" for n in range(1, 5)], 0)
    short_unit = _unit("Short", ["Tiny"], 1)

    units = ChapterSplitter(max_words_per_part=10).split_all([long_unit, short_unit])

    assert [unit.title for unit in units] == ["Long - Part 1", "Long - Part 2", "Short"]
    assert [unit.order_index for unit in units] == [0, 1, 2]
    assert units[2].part_number is None


def test_splitter_disabled_by_default() -> None:
    unit = _unit("Whole", [f"Words {n} words words words" for n in range(50)], 7)

    assert ChapterSplitter().split(unit, 0) == [
        ContentUnit(title="Whole", html=unit.html, plain_text=unit.plain_text, order_index=0)
    ]
    with pytest.raises(ValueError):
        ChapterSplitter(-1)
