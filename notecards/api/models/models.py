from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notecards.domain.flashcard.models import CardDirection, CardType


class TextRequest(BaseModel):
    """Request schema for parsing or highlighting block text"""

    text: str = Field(..., description="Flattened text of one block")

    class Config:
        json_schema_extra = {"example": {"text": "What is the capital of France? >> Paris"}}


class FlashcardParseResponse(BaseModel):
    """Response schema for a parsed block; absent fields are omitted"""

    is_card: bool
    card_type: Optional[CardType] = None
    card_direction: Optional[CardDirection] = None
    card_front: Optional[str] = None
    card_back: Optional[str] = None
    cloze_occlusions: Optional[List[str]] = None


class SyntaxMatchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: int = Field(..., alias="from")
    to: int
    card_type: CardType
    disabled: bool
    text: str


class DocumentContentRequest(BaseModel):
    """Request schema carrying the current editor document"""

    doc: Dict[str, Any] = Field(..., description="Document tree as ProseMirror JSON")

    @field_validator("doc")
    def validate_doc(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate that the document has a root node type.

        Raises:
            ValueError: If the root type is missing
        """
        if not value.get("type"):
            raise ValueError("Document root must declare a node type")
        return value

    class Config:
        json_schema_extra = {
            "example": {
                "doc": {
                    "type": "doc",
                    "content": [
                        {
                            "type": "paragraph",
                            "attrs": {"blockId": "b1"},
                            "content": [{"type": "text", "text": "term :: definition"}],
                        }
                    ],
                }
            }
        }


class DocumentSyncResponse(BaseModel):
    document_id: str
    block_count: int
    initial_sync_done: bool
    pending_changes: bool


class BlockResponse(BaseModel):
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


class FlashcardListResponse(BaseModel):
    document_id: str
    flashcards: List[BlockResponse]
    count: int


class QuizDocument(BaseModel):
    document_id: str
    title: Optional[str] = None
    flashcards: List[BlockResponse] = []


class QuizExpandRequest(BaseModel):
    """Request schema for expanding flashcards into quiz cards"""

    documents: List[QuizDocument]
    selected_document_ids: List[str] = Field(..., description="Documents included in the quiz")


class QuizCardResponse(BaseModel):
    block: BlockResponse
    document_title: str
    direction: CardDirection


class QuizResponse(BaseModel):
    cards: List[QuizCardResponse]
    count: int
