from __future__ import annotations

from folio.typography import (
    apply_contractions,
    apply_currency,
    apply_dashes,
    apply_ellipses,
    apply_fractions,
    apply_minus_signs,
    apply_names,
    apply_smart_quotes,
    bind_titles,
    number_to_fraction,
    replace_backticks,
    space_adjacent_quotes,
)

NBSP = "\u00a0"
WJ = "\u2060"
HAIR = "\u200a"


def test_smart_quotes_curl_text_but_not_attributes() -> None:
    html = '<p class="lead">"Hello," she said. It\'s mine.</p>'

    assert apply_smart_quotes(html) == '<p class="lead">“Hello,” she said. It’s mine.</p>'


def test_smart_quotes_single_quotations() -> None:
    assert apply_smart_quotes("<p>'Run' he said.</p>") == "<p>\u2018Run\u2019 he said.</p>"


def test_backticks_become_straight_quotes() -> None:
    assert replace_backticks("<p>`Tis</p>") == "<p>'Tis</p>"


def test_contractions_fix_leading_elisions() -> None:
    assert apply_contractions("<p>‘Tis the season</p>") == "<p>’Tis the season</p>"
    assert apply_contractions("<p>in the '90s</p>") == "<p>in the ’90s</p>"
    assert apply_contractions("<p>six o'clock</p>") == "<p>six o’clock</p>"


def test_double_hyphen_becomes_joined_em_dash() -> None:
    assert apply_dashes("<p>word--word</p>") == f"<p>word{WJ}—word</p>"


def test_number_range_becomes_en_dash() -> None:
    assert apply_dashes("<p>pages 10-20</p>") == f"<p>pages 10{WJ}–{WJ}20</p>"


def test_minus_sign_before_numbers() -> None:
    assert apply_minus_signs("<p>It was -5 outside</p>") == "<p>It was \u22125 outside</p>"


def test_ellipsis_is_joined_to_preceding_word() -> None:
    assert apply_ellipses("<p>Wait...</p>") == f"<p>Wait{WJ}{HAIR}{WJ}…</p>"
    assert apply_ellipses("<p>Wait... then go</p>") == f"<p>Wait{WJ}{HAIR}{WJ}… then go</p>"


def test_fractions() -> None:
    assert apply_fractions("<p>1/2 cup</p>") == "<p>½ cup</p>"
    assert apply_fractions("<p>2 1/2 miles</p>") == "<p>2½ miles</p>"
    assert apply_fractions("<p>7/16 inch</p>") == "<p>\u2077\u2044\u2081\u2086 inch</p>"
    assert apply_fractions("<p>on 1/2/2020</p>") == "<p>on 1/2/2020</p>"
    assert number_to_fraction("3", "4") == "¾"


def test_titles_are_bound_to_names() -> None:
    html = bind_titles("<p>Mr. Smith and Mrs Jones</p>")

    assert html == f"<p>Mr.{NBSP}Smith and Mrs.{NBSP}Jones</p>"


def test_names_and_ok() -> None:
    assert apply_names("<p>O.K. then</p>") == "<p>OK then</p>"
    assert apply_names("<p>M'Gregor met O'Brien</p>") == "<p>McGregor met O’Brien</p>"


def test_pre_decimal_currency() -> None:
    assert apply_currency("<p>L5 and 3 s. 6 d.</p>") == f"<p>£5 and 3{NBSP}s. 6{NBSP}d.</p>"


def test_adjacent_quotes_get_hair_space() -> None:
    assert space_adjacent_quotes("“‘x’”") == f"“{HAIR}‘x’{HAIR}”"


def test_dashes_leave_attribute_text_alone() -> None:
    assert apply_dashes('<p title="1990–2000">1990–2000</p>') == (
        f'<p title="1990–2000">1990{WJ}–{WJ}2000</p>'
    )
    assert apply_dashes('<p title="a – b">a – b</p>') == f'<p title="a – b">a{WJ}—b</p>'
    assert apply_dashes('<p title="wait—now">wait—now</p>') == f'<p title="wait—now">wait{WJ}—now</p>'
    assert apply_dashes('<p title="x ― y">x</p>') == '<p title="x ― y">x</p>'


def test_ellipses_leave_attribute_text_alone() -> None:
    assert apply_ellipses('<p title="wait...">wait...</p>') == f'<p title="wait...">wait{WJ}{HAIR}{WJ}…</p>'


def test_adjacent_quotes_leave_attribute_text_alone() -> None:
    nested = "“‘x’”"

    assert space_adjacent_quotes(f'<p title="{nested}">{nested}</p>') == (
        f'<p title="{nested}">“{HAIR}‘x’{HAIR}”</p>'
    )


def test_possessive_after_emphasis() -> None:
    assert apply_contractions("<p><i>Titanic</i>'s hull</p>") == "<p><i>Titanic</i>’s hull</p>"


def test_long_digit_runs_are_not_fractions() -> None:
    html = "<p>" + "9" * 5000 + "/2 and 1234567/8</p>"

    assert apply_fractions(html) == html
