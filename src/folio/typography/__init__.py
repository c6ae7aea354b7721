"""Pure typography rewrites over chapter HTML."""

from .contractions import apply_contractions
from .currency import apply_currency
from .dashes import apply_dashes, apply_minus_signs
from .ellipses import apply_ellipses
from .fractions import apply_fractions, number_to_fraction
from .names import apply_names, bind_titles
from .quotes import apply_smart_quotes, replace_backticks, space_adjacent_quotes

__all__ = [
    "apply_contractions",
    "apply_currency",
    "apply_dashes",
    "apply_ellipses",
    "apply_fractions",
    "apply_minus_signs",
    "apply_names",
    "apply_smart_quotes",
    "bind_titles",
    "number_to_fraction",
    "replace_backticks",
    "space_adjacent_quotes",
]
