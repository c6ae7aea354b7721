"""Archaic spelling modernization for English texts."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import re

from folio.markup import sub_outside_tags
from folio.processing.context import ProcessingContext


@dataclass(frozen=True, slots=True)
class SpellingPattern:
    """One modernization: ``source`` (plus optional suffix alternation) -> ``target``."""

    source: str
    target: str
    suffix: str | None = None


SPELLING_PATTERNS: tuple[SpellingPattern, ...] = (
    SpellingPattern("connexion", "connection", "s"),
    SpellingPattern("reflexion", "reflection", "s"),
    SpellingPattern("inflexion", "inflection", "s"),
    SpellingPattern("to-day", "today"),
    SpellingPattern("to-morrow", "tomorrow"),
    SpellingPattern("to-night", "tonight"),
    SpellingPattern("now-a-days", "nowadays"),
    SpellingPattern("any-one", "anyone"),
    SpellingPattern("every-one", "everyone"),
    SpellingPattern("some-one", "someone"),
    SpellingPattern("no-one", "no one"),
    SpellingPattern("any-thing", "anything"),
    SpellingPattern("every-thing", "everything"),
    SpellingPattern("some-thing", "something"),
    SpellingPattern("any-where", "anywhere"),
    SpellingPattern("every-where", "everywhere"),
    SpellingPattern("some-where", "somewhere"),
    SpellingPattern("mean-while", "meanwhile"),
    SpellingPattern("shew", "show", "n|ed|ing|s"),
    SpellingPattern("gaol", "jail", "er|ers|s|ed"),
    SpellingPattern("despatch", "dispatch", "es|ed|ing"),
    SpellingPattern("behove", "behoove", "s|d"),
    SpellingPattern("waggon", "wagon", "s|er|ers"),
    SpellingPattern("clew", "clue", "s"),
    SpellingPattern("burthen", "burden", "s|ed|some"),
    SpellingPattern("hindoo", "hindu", "s"),
    SpellingPattern("intrust", "entrust", "s|ed|ing"),
    SpellingPattern("dulness", "dullness"),
    SpellingPattern("skilful", "skillful", "ly|ness"),
    SpellingPattern("wilful", "willful", "ly|ness"),
    SpellingPattern("fulfil", "fulfill", "s|ment"),
    SpellingPattern("instalment", "installment", "s"),
)

_ET_CETERA_RE = re.compile(r"&(?:amp;)?c\.")

# Compounds that modern English writes solid.  ``any-one`` style pairs are
# handled by SPELLING_PATTERNS first.
COMPOUND_WORDS: frozenset[str] = frozenset(
    """
    anyone everyone someone anything everything something nothing anywhere
    everywhere somewhere nowhere today tomorrow tonight cannot into onto upon
    within without throughout already always afternoon beforehand meanwhile
    nowadays overnight sometime sometimes whatever whenever wherever whoever
    whomever caretaker housekeeper bookkeeper gamekeeper gatekeeper goalkeeper
    shopkeeper storekeeper timekeeper beekeeper innkeeper peacekeeper
    groundskeeper zookeeper airplane bedroom bathroom classroom courtyard
    doorway driveway fireplace football hallway headache heartbeat highway
    horseback keyboard lighthouse mailbox notebook outside rainbow raindrop
    railroad railway seashore sidewalk snowflake somebody staircase sunlight
    sunshine teacup teaspoon toothbrush typewriter underground upstairs
    downstairs waterfall weekend wildlife windmill workshop backbone barefoot
    birthmark bloodstream eardrum eyelash eyebrow fingernail fingerprint
    footprint forehead haircut handbag handbook handwriting headlight
    heartbreak kneecap thumbnail toenail birdhouse blackbird bluebird
    butterfly catfish cornfield dragonfly earthquake earthworm farmhouse
    firefly goldfish grasshopper greenhouse horseshoe jellyfish moonlight
    nightfall rattlesnake scarecrow seagull seaside snowball snowman starfish
    strawberry sunflower thunderstorm watermelon windstorm blackmail
    breakfast daydream driftwood fingertip forecast frostbite guesswork
    handshake headfirst heartfelt homesick landmark lifeguard limestone
    masterpiece nightmare outburst outbreak outcome outdoors outlaw overcome
    overlook overpower overtake overwhelm pancake paperwork patchwork
    peppermint quicksand raincoat sailboat sandpaper sawdust seashell
    silverware snowstorm southeast southwest spotlight springtime stagecoach
    standpoint steamboat stockyard storehouse stronghold sunburn sundown
    sunset sunrise tablecloth tablespoon teapot therefore thoroughfare
    touchstone trademark uphill upstream wallpaper warehouse warship
    washroom wasteland watchdog watchman waterfront waterproof wheelbarrow
    whirlpool whitewash widespread wildfire windfall wintertime wishbone
    woodwork worldwide worthwhile
    """.split()
)

_HYPHENATED_RE = re.compile(r"\b([a-zA-Z]+)-([a-zA-Z]+)\b")


def _case_mapped(pattern: SpellingPattern) -> tuple[re.Pattern[str], Callable[[re.Match[str]], str]]:
    first, rest = pattern.source[0], pattern.source[1:]
    suffix = f"({pattern.suffix})?" if pattern.suffix else "()"
    regex = re.compile(rf"\b([{first.upper()}{first.lower()}]){re.escape(rest)}{suffix}\b")
    target_first, target_rest = pattern.target[0], pattern.target[1:]

    def _replace(match: re.Match[str]) -> str:
        initial = target_first.upper() if match.group(1).isupper() else target_first.lower()
        return f"{initial}{target_rest}{match.group(2) or ''}"

    return regex, _replace


_COMPILED_PATTERNS = tuple(_case_mapped(pattern) for pattern in SPELLING_PATTERNS)


def _preserve_capitalization(original: str, replacement: str) -> str:
    letters = original.replace("-", "")
    if letters.isupper():
        return replacement.upper()
    if original[0].isupper():
        return replacement[0].upper() + replacement[1:].lower()
    return replacement.lower()


def _join_compound(match: re.Match[str]) -> str:
    combined = match.group(1) + match.group(2)
    if combined.lower() in COMPOUND_WORDS:
        return _preserve_capitalization(match.group(0), combined)
    return match.group(0)


def modernize_hyphenation(html: str) -> str:
    """Join archaic hyphenated compounds: ``care-taker`` -> ``caretaker``."""

    return sub_outside_tags(_HYPHENATED_RE, _join_compound, html)


def modernize_spelling(html: str) -> str:
    html = sub_outside_tags(_ET_CETERA_RE, "etc.", html)
    for regex, replace in _COMPILED_PATTERNS:
        html = sub_outside_tags(regex, replace, html)
    return modernize_hyphenation(html)


class SpellingProcessor:
    """Pipeline stage; only English text is modernized."""

    name = "spelling"

    def process(self, html: str, context: ProcessingContext) -> str:
        if not context.options.enable_spelling or not context.is_english:
            return html
        return modernize_spelling(html)
