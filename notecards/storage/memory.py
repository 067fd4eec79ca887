import asyncio
import copy
from typing import Dict, List

from notecards.core.exceptions.domain import BlockStorageError
from notecards.domain.blocks.models import BlockData

from .base import BlockStore


class InMemoryBlockStore(BlockStore):
    """In-memory dictionary block store implementation."""

    def __init__(self):
        self.documents: Dict[str, Dict[str, BlockData]] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _validate(document_id: str, block: BlockData) -> None:
        if not document_id:
            raise BlockStorageError("upsert", "document id is required")
        if not block.node_id:
            raise BlockStorageError("upsert", "block node id is required", {"document_id": document_id})

    async def upsert_block(self, document_id: str, block: BlockData) -> None:
        self._validate(document_id, block)
        async with self._lock:
            self.documents.setdefault(document_id, {})[block.node_id] = copy.deepcopy(block)

    async def delete_block(self, document_id: str, node_id: str) -> None:
        async with self._lock:
            self.documents.get(document_id, {}).pop(node_id, None)

    async def delete_blocks(self, document_id: str, node_ids: List[str]) -> None:
        async with self._lock:
            blocks = self.documents.get(document_id, {})
            for node_id in node_ids:
                blocks.pop(node_id, None)

    async def sync_blocks(self, document_id: str, blocks: List[BlockData]) -> None:
        for block in blocks:
            self._validate(document_id, block)
        async with self._lock:
            self.documents[document_id] = {block.node_id: copy.deepcopy(block) for block in blocks}

    async def list_by_document(self, document_id: str) -> List[BlockData]:
        async with self._lock:
            blocks = list(self.documents.get(document_id, {}).values())
        return sorted(blocks, key=lambda block: block.position)

    async def list_flashcards(self, document_id: str) -> List[BlockData]:
        return [block for block in await self.list_by_document(document_id) if block.is_card]

    async def clear_document(self, document_id: str) -> None:
        async with self._lock:
            self.documents.pop(document_id, None)
