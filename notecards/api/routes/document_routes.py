import logging
from typing import List

from fastapi import APIRouter, Depends

from notecards.api.models.models import (
    BlockResponse,
    DocumentContentRequest,
    DocumentSyncResponse,
    FlashcardListResponse,
)
from notecards.core.container import SessionManager, get_block_store, get_session_manager
from notecards.core.error_handling import handle_exceptions
from notecards.core.exceptions.base import ConfigurationError, ResourceNotFoundError, ValidationError
from notecards.storage.base import BlockStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/documents")


@router.put("/{document_id}/content", response_model=DocumentSyncResponse)
@handle_exceptions(
    {
        ValidationError: (400, "Invalid document content"),
        ConfigurationError: (500, "Sync session is misconfigured"),
    }
)
async def update_document_content(
    document_id: str,
    request: DocumentContentRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Feed the current editor document into its sync session.

    The first call for a document stores its full block set; later calls
    stage changes that are written after the debounce interval.

    Args:
        document_id (str): Owning document identifier
        request (DocumentContentRequest): Current document tree

    Returns:
        DocumentSyncResponse: Session state after applying the document
    """
    engine = await manager.apply_document(document_id, request.doc)
    return DocumentSyncResponse(
        document_id=document_id,
        block_count=len(engine.blocks),
        initial_sync_done=engine.initial_sync_done,
        pending_changes=engine.has_pending_changes,
    )


@router.delete("/{document_id}/session", status_code=204)
@handle_exceptions({ResourceNotFoundError: (404, "Sync session not found")})
async def close_document_session(document_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Close the sync session of a document, writing any staged changes."""
    await manager.close_session(document_id)


@router.get("/{document_id}/blocks", response_model=List[BlockResponse])
@handle_exceptions()
async def list_blocks(document_id: str, store: BlockStore = Depends(get_block_store)):
    """List stored blocks of a document ordered by position."""
    return [block.to_dict() for block in await store.list_by_document(document_id)]


@router.get("/{document_id}/flashcards", response_model=FlashcardListResponse)
@handle_exceptions()
async def list_flashcards(document_id: str, store: BlockStore = Depends(get_block_store)):
    """List stored flashcard blocks of a document."""
    flashcards = [block.to_dict() for block in await store.list_flashcards(document_id)]
    return FlashcardListResponse(document_id=document_id, flashcards=flashcards, count=len(flashcards))
