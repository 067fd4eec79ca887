from .models import CardDirection, CardType, FlashcardParseResult
from .parser import CARD_PATTERNS, parse_flashcard

__all__ = ['CARD_PATTERNS', 'CardDirection', 'CardType', 'FlashcardParseResult', 'parse_flashcard']
