import logging
from typing import List

from fastapi import APIRouter

from notecards.api.models.models import (
    FlashcardParseResponse,
    QuizCardResponse,
    QuizExpandRequest,
    QuizResponse,
    SyntaxMatchResponse,
    TextRequest,
)
from notecards.core.error_handling import handle_exceptions
from notecards.domain.blocks.models import BlockData
from notecards.domain.flashcard.parser import parse_flashcard
from notecards.domain.flashcard.quiz import DocumentFlashcards, expand_cards_for_quiz
from notecards.domain.flashcard.syntax import find_flashcard_syntax

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/flashcards/parse", response_model=FlashcardParseResponse, response_model_exclude_none=True)
@handle_exceptions()
async def parse_text(request: TextRequest):
    """
    Parse block text for flashcard syntax.

    Args:
        request (TextRequest): Text to parse

    Returns:
        FlashcardParseResponse: Card metadata
    """
    return parse_flashcard(request.text).to_dict()


@router.post("/flashcards/syntax", response_model=List[SyntaxMatchResponse])
@handle_exceptions()
async def highlight_text(request: TextRequest):
    """Locate flashcard markers in block text."""
    return [
        SyntaxMatchResponse(
            from_=match.from_, to=match.to, card_type=match.card_type, disabled=match.disabled, text=match.text
        )
        for match in find_flashcard_syntax(request.text)
    ]


@router.post("/quiz/expand", response_model=QuizResponse)
@handle_exceptions()
async def expand_quiz(request: QuizExpandRequest):
    """
    Expand flashcards of the selected documents into quiz cards.

    Args:
        request (QuizExpandRequest): Documents and the selection

    Returns:
        QuizResponse: Quiz cards and their count
    """
    documents = [
        DocumentFlashcards(
            document_id=document.document_id,
            title=document.title,
            flashcards=[BlockData(**block.model_dump()) for block in document.flashcards],
        )
        for document in request.documents
    ]
    cards = expand_cards_for_quiz(documents, set(request.selected_document_ids))
    logger.debug(f"Expanded {len(cards)} quiz cards from {len(documents)} documents")

    return QuizResponse(
        cards=[
            QuizCardResponse(block=card.block.to_dict(), document_title=card.document_title, direction=card.direction)
            for card in cards
        ],
        count=len(cards),
    )
