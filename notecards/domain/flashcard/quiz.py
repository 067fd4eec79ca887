from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from ..blocks.models import BlockData
from .models import CardDirection, CardType

UNTITLED = "Untitled"


@dataclass
class DocumentFlashcards:
    """Flashcard blocks of one document, as offered for a quiz."""

    document_id: str
    title: Optional[str] = None
    flashcards: List[BlockData] = field(default_factory=list)

    @property
    def display_title(self) -> str:
        return self.title or UNTITLED


@dataclass
class QuizCard:
    """One reviewable side of a flashcard block."""

    block: BlockData
    document_title: str
    direction: CardDirection


def review_directions(block: BlockData) -> List[CardDirection]:
    """
    Directions in which a flashcard block is reviewed.

    Cloze cards are always shown forward; disabled cards are never shown.
    """
    if block.card_type == CardType.CLOZE:
        return [CardDirection.FORWARD]
    if block.card_direction == CardDirection.BIDIRECTIONAL:
        return [CardDirection.FORWARD, CardDirection.REVERSE]
    if block.card_direction in (CardDirection.FORWARD, CardDirection.REVERSE):
        return [block.card_direction]
    return []


def expand_cards_for_quiz(documents: Iterable[DocumentFlashcards], selected_document_ids: Set[str]) -> List[QuizCard]:
    """
    Expand the flashcards of the selected documents into quiz cards.

    Args:
        documents: Documents with their flashcard blocks
        selected_document_ids: Documents chosen for the quiz

    Returns:
        List[QuizCard]: Cards in document and block order
    """
    cards: List[QuizCard] = []
    for document in documents:
        if document.document_id not in selected_document_ids:
            continue
        for block in document.flashcards:
            cards.extend(
                QuizCard(block=block, document_title=document.display_title, direction=direction)
                for direction in review_directions(block)
            )
    return cards


def compute_expanded_card_count(documents: Iterable[DocumentFlashcards], selected_document_ids: Set[str]) -> int:
    return sum(
        len(review_directions(block))
        for document in documents
        if document.document_id in selected_document_ids
        for block in document.flashcards
    )
