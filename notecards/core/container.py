import asyncio
import logging
from typing import Any, Dict, List, Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from notecards.core.config import settings
from notecards.core.error_handling import handle_service_errors
from notecards.core.exceptions.base import ResourceNotFoundError, ValidationError
from notecards.core.exceptions.domain import BlockStorageError
from notecards.domain.blocks.models import BlockData
from notecards.domain.blocks.sync import BlockSyncEngine
from notecards.domain.editor.models import DocumentNode
from notecards.storage.base import BlockStore
from notecards.storage.memory import InMemoryBlockStore

logger = logging.getLogger(__name__)

store_retry = retry(
    retry=retry_if_exception_type(BlockStorageError),
    stop=stop_after_attempt(settings.max_retries),
    wait=wait_exponential(
        multiplier=settings.retry_backoff_min, min=settings.retry_backoff_min, max=settings.retry_backoff_max
    ),
    reraise=True,
)


class BlockPersistence:
    """Sync engine callbacks backed by a block store.

    Each write is retried on storage errors; once retries are exhausted the
    failure is logged and dropped.
    """

    def __init__(self, store: BlockStore):
        self.store = store

    @handle_service_errors()
    @store_retry
    async def initial_sync(self, document_id: str, blocks: List[BlockData]) -> None:
        await self.store.sync_blocks(document_id, blocks)

    @handle_service_errors()
    @store_retry
    async def update_block(self, document_id: str, block: BlockData) -> None:
        await self.store.upsert_block(document_id, block)

    @handle_service_errors()
    @store_retry
    async def delete_blocks(self, document_id: str, node_ids: List[str]) -> None:
        await self.store.delete_blocks(document_id, node_ids)


class SessionManager:
    """Manages one sync engine per open document."""

    def __init__(self, store: BlockStore, attribute_name: Optional[str] = None, debounce_ms: Optional[int] = None):
        self.persistence = BlockPersistence(store)
        self.attribute_name = attribute_name or settings.block_id_attribute
        self.debounce_ms = settings.debounce_ms if debounce_ms is None else debounce_ms
        self._sessions: Dict[str, BlockSyncEngine] = {}
        self._lock = asyncio.Lock()

    @property
    def open_sessions(self) -> int:
        return len(self._sessions)

    def get_session(self, document_id: str) -> Optional[BlockSyncEngine]:
        return self._sessions.get(document_id)

    async def open_session(self, document_id: str) -> BlockSyncEngine:
        """Get the engine of a document, creating it on first use."""
        async with self._lock:
            if engine := self._sessions.get(document_id):
                return engine

            engine = BlockSyncEngine(
                document_id=document_id,
                on_initial_sync=self.persistence.initial_sync,
                on_block_update=self.persistence.update_block,
                on_blocks_delete=self.persistence.delete_blocks,
                attribute_name=self.attribute_name,
                debounce_ms=self.debounce_ms,
            )
            self._sessions[document_id] = engine
            logger.info(f"Opened sync session for document {document_id}")
            return engine

    async def apply_document(self, document_id: str, doc: Dict[str, Any]) -> BlockSyncEngine:
        """
        Feed the current editor document into its sync session.

        Args:
            document_id: Owning document identifier
            doc: Document tree as ProseMirror JSON

        Returns:
            BlockSyncEngine: The session engine

        Raises:
            ValidationError: If the document tree is malformed
        """
        try:
            tree = DocumentNode.from_json(doc)
        except (ValueError, TypeError, AttributeError) as e:
            raise ValidationError(f"Invalid document tree: {e}", "doc")

        engine = await self.open_session(document_id)
        engine.on_document_change(tree)
        return engine

    async def close_session(self, document_id: str) -> None:
        """
        Tear down a session, flushing staged changes first.

        Raises:
            ResourceNotFoundError: If the document has no open session
        """
        async with self._lock:
            engine = self._sessions.pop(document_id, None)
        if engine is None:
            raise ResourceNotFoundError("Sync session", document_id)

        engine.destroy()
        await engine.wait_for_deliveries()
        logger.info(f"Closed sync session for document {document_id}")

    async def close_all(self) -> None:
        async with self._lock:
            engines = list(self._sessions.values())
            self._sessions.clear()
        for engine in engines:
            engine.destroy()
        await asyncio.gather(*(engine.wait_for_deliveries() for engine in engines))


class DependencyContainer:
    """Holder for application-wide dependencies."""

    _store: Optional[BlockStore] = None
    _session_manager: Optional[SessionManager] = None

    @classmethod
    def get_block_store(cls) -> BlockStore:
        if cls._store is None:
            cls._store = InMemoryBlockStore()
            logger.info("Created new InMemoryBlockStore instance")
        return cls._store

    @classmethod
    def get_session_manager(cls) -> SessionManager:
        if cls._session_manager is None:
            cls._session_manager = SessionManager(cls.get_block_store())
            logger.info("Created new SessionManager instance")
        return cls._session_manager

    @classmethod
    def reset(cls) -> None:
        cls._store = None
        cls._session_manager = None


# FastAPI dependencies
async def get_block_store() -> BlockStore:
    """Dependency for getting the block store."""
    return DependencyContainer.get_block_store()


async def get_session_manager() -> SessionManager:
    """Dependency for getting the session manager."""
    return DependencyContainer.get_session_manager()


# Application lifecycle management
async def init_dependencies():
    """Initialize application dependencies."""
    logger.info("Initializing application dependencies...")
    DependencyContainer.reset()
    DependencyContainer.get_session_manager()
    logger.info("Dependencies initialized successfully")


async def cleanup_dependencies():
    """Cleanup application dependencies, flushing open sessions."""
    try:
        logger.info("Cleaning up application dependencies...")
        if DependencyContainer._session_manager is not None:
            await DependencyContainer._session_manager.close_all()
        DependencyContainer.reset()
        logger.info("Dependencies cleaned up successfully")
    except Exception as e:
        logger.error(f"Error during dependency cleanup: {e}")
        raise
