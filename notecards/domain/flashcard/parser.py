"""
Flashcard syntax parser.

Detects flashcard markup inside the text of a single block:

- Basic cards: ``>>`` (forward), ``<<`` (reverse), ``<>`` (bidirectional), ``==`` (forward)
- Concept cards: ``::`` (bidirectional), ``:>`` (forward), ``:<`` (reverse)
- Descriptor cards: ``;;`` (forward), ``;<`` (reverse), ``;<>`` (bidirectional)
- Cloze cards: ``{{occlusion}}`` spans
- Multi-line cards: triple markers such as ``>>>``, ``:::`` and ``;;;``
- Disabled cards: a marker followed by ``-``, e.g. ``>>-``

Patterns are tried in table order and the first acceptable match wins. Longer
markers are not preferred over shorter ones unless the table puts them first.
"""

import re
import threading
from typing import Tuple

from cachetools import LRUCache, cached

from .models import CardDirection, CardPattern, CardType, FlashcardParseResult

CLOZE_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

PARSE_CACHE_SIZE = 4096

# Any character except a line terminator
_LINE_CHAR = r"[^\n\r\u2028\u2029]"

# Back text: optional for disabled cards, optional and multi-line for triple
# markers, required for everything else.
_OPTIONAL_BACK = rf"({_LINE_CHAR}*)"
_MULTILINE_BACK = r"([\s\S]*)"
_REQUIRED_BACK = rf"({_LINE_CHAR}+)"


def _card(marker: str, back: str, card_type: CardType, direction: CardDirection) -> CardPattern:
    pattern = re.compile(rf"^({_LINE_CHAR}+?)\s*{re.escape(marker)}\s*{back}$")
    return CardPattern(pattern=pattern, card_type=card_type, card_direction=direction)


def _disabled(marker: str, card_type: CardType) -> CardPattern:
    return _card(marker, _OPTIONAL_BACK, card_type, CardDirection.DISABLED)


def _multiline(marker: str, card_type: CardType, direction: CardDirection) -> CardPattern:
    return _card(marker, _MULTILINE_BACK, card_type, direction)


def _standard(marker: str, card_type: CardType, direction: CardDirection) -> CardPattern:
    return _card(marker, _REQUIRED_BACK, card_type, direction)


BASIC, CONCEPT, DESCRIPTOR = CardType.BASIC, CardType.CONCEPT, CardType.DESCRIPTOR
FORWARD, REVERSE, BIDIRECTIONAL = CardDirection.FORWARD, CardDirection.REVERSE, CardDirection.BIDIRECTIONAL

# Order matters: disabled markers first so ">>-" never parses as ">>" with a
# leading "-" in the back, then triple markers, then "<>" forms before the
# single-direction pairs.
CARD_PATTERNS: Tuple[CardPattern, ...] = (
    # Disabled, descriptor before basic so ";<>-" is not read as "<>-"
    _disabled(";<>-", DESCRIPTOR),
    _disabled(";<-", DESCRIPTOR),
    _disabled(";;-", DESCRIPTOR),
    _disabled(">>-", BASIC),
    _disabled("<<-", BASIC),
    _disabled("<>-", BASIC),
    _disabled("==-", BASIC),
    _disabled("::-", CONCEPT),
    _disabled(":>-", CONCEPT),
    _disabled(":<-", CONCEPT),
    # Multi-line
    _multiline(">>>", BASIC, FORWARD),
    _multiline("<<<", BASIC, REVERSE),
    _multiline("<><>", BASIC, BIDIRECTIONAL),
    _multiline("===", BASIC, FORWARD),
    _multiline(":::", CONCEPT, BIDIRECTIONAL),
    _multiline(":>>", CONCEPT, FORWARD),
    _multiline(":<<", CONCEPT, REVERSE),
    _multiline(";;;", DESCRIPTOR, FORWARD),
    _multiline(";;<>", DESCRIPTOR, BIDIRECTIONAL),
    _multiline(";<<", DESCRIPTOR, REVERSE),
    # Bidirectional
    _standard(";<>", DESCRIPTOR, BIDIRECTIONAL),
    _standard("<>", BASIC, BIDIRECTIONAL),
    # Standard
    _standard(">>", BASIC, FORWARD),
    _standard("<<", BASIC, REVERSE),
    _standard("==", BASIC, FORWARD),
    _standard("::", CONCEPT, BIDIRECTIONAL),
    _standard(":>", CONCEPT, FORWARD),
    _standard(":<", CONCEPT, REVERSE),
    _standard(";;", DESCRIPTOR, FORWARD),
    _standard(";<", DESCRIPTOR, REVERSE),
)


@cached(cache=LRUCache(maxsize=PARSE_CACHE_SIZE), lock=threading.Lock())
def parse_flashcard(text: str) -> FlashcardParseResult:
    """
    Parse block text into flashcard metadata.

    Args:
        text (str): Flattened text of one block

    Returns:
        FlashcardParseResult: Card metadata, or a result with ``is_card`` False
    """
    trimmed_text = text.strip()
    if not trimmed_text:
        return FlashcardParseResult.not_a_card()

    # Cloze spans win over any separator present in the same text
    occlusions = tuple(match.group(1).strip() for match in CLOZE_PATTERN.finditer(trimmed_text))
    if occlusions:
        return FlashcardParseResult.cloze(occlusions)

    for card_pattern in CARD_PATTERNS:
        match = card_pattern.pattern.match(trimmed_text)
        if not match:
            continue

        front = match.group(1).strip()
        back = match.group(2).strip()
        if not front:
            continue

        return FlashcardParseResult.separator(
            card_pattern.card_type, card_pattern.card_direction, front, back or None
        )

    return FlashcardParseResult.not_a_card()
