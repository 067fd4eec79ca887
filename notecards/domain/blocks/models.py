from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..flashcard.models import CardDirection, CardType, FlashcardParseResult


@dataclass
class BlockData:
    """Synchronization record for one identified node of a document."""

    node_id: str
    type: str
    content: Dict[str, Any]
    text_content: str
    position: int
    attrs: Optional[Dict[str, Any]] = None
    is_card: bool = False
    card_type: Optional[CardType] = None
    card_direction: Optional[CardDirection] = None
    card_front: Optional[str] = None
    card_back: Optional[str] = None
    cloze_occlusions: Optional[List[str]] = None

    def apply_flashcard(self, result: FlashcardParseResult) -> None:
        """Copy parsed flashcard fields onto the block."""
        self.is_card = result.is_card
        self.card_type = result.card_type
        self.card_direction = result.card_direction
        self.card_front = result.card_front
        self.card_back = result.card_back
        self.cloze_occlusions = list(result.cloze_occlusions) if result.cloze_occlusions is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "type": self.type,
            "content": self.content,
            "text_content": self.text_content,
            "position": self.position,
            "attrs": self.attrs,
            "is_card": self.is_card,
            "card_type": self.card_type.value if self.card_type else None,
            "card_direction": self.card_direction.value if self.card_direction else None,
            "card_front": self.card_front,
            "card_back": self.card_back,
            "cloze_occlusions": self.cloze_occlusions,
        }


def blocks_are_different(a: BlockData, b: BlockData) -> bool:
    """Check whether a block must be re-sent to the store.

    Attributes are not compared; they are carried along with any other change.
    """
    return (
        a.type != b.type
        or a.text_content != b.text_content
        or a.position != b.position
        or a.content != b.content
        or a.is_card != b.is_card
        or a.card_type != b.card_type
        or a.card_direction != b.card_direction
        or a.card_front != b.card_front
        or a.card_back != b.card_back
        or a.cloze_occlusions != b.cloze_occlusions
    )
