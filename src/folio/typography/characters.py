"""Code points and character classes used by the typography rewrites."""

from __future__ import annotations

NBSP = "\u00a0"
WORD_JOINER = "\u2060"
HAIR_SPACE = "\u200a"
SOFT_HYPHEN = "\u00ad"

EN_DASH = "–"
EM_DASH = "—"
TWO_EM_DASH = "⸺"
THREE_EM_DASH = "⸻"
HORIZONTAL_BAR = "―"
MINUS_SIGN = "−"

ELLIPSIS = "…"

LEFT_DOUBLE = "“"
RIGHT_DOUBLE = "”"
LEFT_SINGLE = "‘"
RIGHT_SINGLE = "’"

# Regex fragments.  ``re`` has no \p{L}; a word character that is neither a
# digit nor an underscore is a letter.
LETTER = r"[^\W\d_]"
UPPER = "A-ZÀ-ÖØ-ÞА-ЯЁІЇЄҐ"
CURLY_QUOTES = "“”‘’"
