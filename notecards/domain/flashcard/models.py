from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Pattern, Tuple


class CardType(str, Enum):
    """Kinds of flashcard recognised in block text."""

    BASIC = "basic"
    CONCEPT = "concept"
    DESCRIPTOR = "descriptor"
    CLOZE = "cloze"


class CardDirection(str, Enum):
    """Which way a separator card is reviewed. Cloze cards have no direction."""

    FORWARD = "forward"
    REVERSE = "reverse"
    BIDIRECTIONAL = "bidirectional"
    DISABLED = "disabled"


@dataclass(frozen=True)
class CardPattern:
    """A compiled separator pattern tagged with the card it produces."""

    pattern: Pattern[str]
    card_type: CardType
    card_direction: CardDirection


@dataclass(frozen=True)
class FlashcardParseResult:
    """Outcome of parsing one block of text.

    A cloze result only carries ``cloze_occlusions``; a separator result only
    carries direction, front and back. ``card_front`` is never empty when
    ``is_card`` is true for separator cards.
    """

    is_card: bool
    card_type: Optional[CardType] = None
    card_direction: Optional[CardDirection] = None
    card_front: Optional[str] = None
    card_back: Optional[str] = None
    cloze_occlusions: Optional[Tuple[str, ...]] = None

    @classmethod
    def not_a_card(cls) -> 'FlashcardParseResult':
        return cls(is_card=False)

    @classmethod
    def cloze(cls, occlusions: Tuple[str, ...]) -> 'FlashcardParseResult':
        return cls(is_card=True, card_type=CardType.CLOZE, cloze_occlusions=occlusions)

    @classmethod
    def separator(
        cls, card_type: CardType, direction: CardDirection, front: str, back: Optional[str]
    ) -> 'FlashcardParseResult':
        return cls(is_card=True, card_type=card_type, card_direction=direction, card_front=front, card_back=back)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the result, leaving out fields that do not apply."""
        result = {key: value for key, value in asdict(self).items() if value is not None}
        if self.card_type is not None:
            result["card_type"] = self.card_type.value
        if self.card_direction is not None:
            result["card_direction"] = self.card_direction.value
        if self.cloze_occlusions is not None:
            result["cloze_occlusions"] = list(self.cloze_occlusions)
        return result
