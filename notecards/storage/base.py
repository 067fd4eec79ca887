from abc import ABC, abstractmethod
from typing import List

from notecards.domain.blocks.models import BlockData


class BlockStore(ABC):
    """Abstract base class for block stores."""

    @abstractmethod
    async def upsert_block(self, document_id: str, block: BlockData) -> None:
        """Create or replace a block, matched by node id."""
        pass

    @abstractmethod
    async def delete_block(self, document_id: str, node_id: str) -> None:
        """Delete a block by node id, ignoring unknown ids."""
        pass

    @abstractmethod
    async def delete_blocks(self, document_id: str, node_ids: List[str]) -> None:
        """Delete several blocks by node id, ignoring unknown ids."""
        pass

    @abstractmethod
    async def sync_blocks(self, document_id: str, blocks: List[BlockData]) -> None:
        """Replace the block set of a document with the given blocks."""
        pass

    @abstractmethod
    async def list_by_document(self, document_id: str) -> List[BlockData]:
        """Get the blocks of a document ordered by position."""
        pass

    @abstractmethod
    async def list_flashcards(self, document_id: str) -> List[BlockData]:
        """Get the blocks of a document that are flashcards, ordered by position."""
        pass

    @abstractmethod
    async def clear_document(self, document_id: str) -> None:
        """Remove every block of a document."""
        pass
