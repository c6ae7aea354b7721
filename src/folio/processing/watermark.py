"""Detection of pirate-library watermark pages.

Scanned and converted books often carry a short page advertising the site
they were downloaded from.  Such a page is recognized by a known domain or by
at least two stock phrases in one language, and only when it is short.
"""

from __future__ import annotations

from folio.markup import strip_tags

MAX_WATERMARK_CHARS = 500
MIN_PHRASE_HITS = 2

PIRACY_DOMAINS = (
    "royallib.com",
    "royallib.ru",
    "flibusta.is",
    "flibusta.net",
    "flibs.me",
    "lib.rus.ec",
    "litmir.me",
    "litmir.net",
    "coollib.com",
    "coollib.net",
    "loveread.ec",
    "loveread.me",
    "readli.net",
    "bookscafe.net",
    "aldebaran.ru",
    "litres.ru/download",
    "fb2.top",
    "knigavuhe.org",
    "rulit.me",
    "e-reading.club",
    "e-reading-lib.com",
)

PIRACY_PHRASES: dict[str, tuple[str, ...]] = {
    "ru": (
        "Спасибо, что скачали",
        "скачали книгу",
        "бесплатной электронной библиотеке",
        "Все книги автора",
        "книга в других форматах",
        "Приятного чтения",
        "Оцените книгу",
        "Скачать бесплатно",
        "электронная библиотека",
        "Конвертация выполнена",
        "FictionBook Editor",
        "Эта же книга в других форматах",
    ),
    "en": (
        "Downloaded from",
        "Thanks for downloading",
        "free ebook library",
        "pirate library",
        "support the author by purchasing",
        "This ebook was created",
        "Converted by",
    ),
}


def is_piracy_watermark(html: str) -> bool:
    """Return True when the whole chapter looks like a download-site watermark."""

    if not html:
        return False

    plain_text = strip_tags(html)
    if len(plain_text) >= MAX_WATERMARK_CHARS:
        return False

    lowered_html = html.lower()
    if any(domain in lowered_html for domain in PIRACY_DOMAINS):
        return True

    lowered_text = plain_text.lower()
    for phrases in PIRACY_PHRASES.values():
        hits = sum(1 for phrase in phrases if phrase.lower() in lowered_text)
        if hits >= MIN_PHRASE_HITS:
            return True
    return False
