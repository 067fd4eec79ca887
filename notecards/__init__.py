from .domain.flashcard.parser import parse_flashcard

__all__ = ['parse_flashcard']
