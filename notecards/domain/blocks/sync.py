import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from notecards.core.exceptions.base import ConfigurationError

from ..editor.models import DocumentNode
from .extraction import extract_blocks
from .models import BlockData, blocks_are_different

logger = logging.getLogger(__name__)

OnInitialSync = Callable[[str, List[BlockData]], Any]
OnBlockUpdate = Callable[[str, BlockData], Any]
OnBlocksDelete = Callable[[str, List[str]], Any]


class BlockSyncEngine:
    """
    Keeps the blocks of one open document in sync with an external store.

    The host editor calls ``on_document_change`` after every transaction,
    including selection-only ones. The first call reports the full block set
    through ``on_initial_sync``; later calls stage additions, changes and
    removals and flush them after ``debounce_ms`` of quiet.

    Callbacks are fire-and-forget: plain callables are invoked directly and
    awaitables they return are scheduled on the event loop without being
    awaited. Pending changes are cleared whether or not a callback fails.
    """

    def __init__(
        self,
        document_id: str,
        on_initial_sync: OnInitialSync,
        on_block_update: OnBlockUpdate,
        on_blocks_delete: OnBlocksDelete,
        attribute_name: str = "blockId",
        debounce_ms: int = 300,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize the engine for one document.

        Args:
            document_id: Identifier every callback is scoped to
            on_initial_sync: Receives the complete block list once
            on_block_update: Receives each new or changed block
            on_blocks_delete: Receives the removed node identifiers of a flush
            attribute_name: Node attribute holding the block identifier
            debounce_ms: Quiet period before staged changes are flushed
            loop: Event loop for the debounce timer and asynchronous callbacks.
                Defaults to the loop running when a flush is first scheduled, so
                hosts calling in from synchronous code must pass one.

        Raises:
            ConfigurationError: If the document identifier is missing
        """
        if not document_id or not str(document_id).strip():
            raise ConfigurationError(
                "BlockSyncEngine requires a valid document_id to be configured",
                {"attribute_name": attribute_name},
            )

        self.document_id = document_id
        self.attribute_name = attribute_name
        self.debounce_ms = debounce_ms
        self._on_initial_sync = on_initial_sync
        self._on_block_update = on_block_update
        self._on_blocks_delete = on_blocks_delete
        self._loop = loop

        self._previous_blocks: Dict[str, BlockData] = {}
        self._pending_updates: Dict[str, BlockData] = {}
        # dict keys keep deletion order stable
        self._pending_deletes: Dict[str, None] = {}
        self._debounce_timer: Optional[asyncio.TimerHandle] = None
        self._initial_sync_done = False
        self._last_doc_json: Optional[Dict[str, Any]] = None
        self._destroyed = False
        self._deliveries: Set[asyncio.Future] = set()

    @property
    def initial_sync_done(self) -> bool:
        return self._initial_sync_done

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending_updates or self._pending_deletes)

    @property
    def flush_scheduled(self) -> bool:
        return self._debounce_timer is not None

    @property
    def blocks(self) -> Dict[str, BlockData]:
        """Last extracted block set, keyed by node identifier."""
        return dict(self._previous_blocks)

    def on_document_change(self, doc: DocumentNode) -> None:
        """
        Handle a transaction from the host editor.

        Args:
            doc: Current document tree
        """
        if self._destroyed:
            logger.debug("Ignoring change for closed document %s", self.document_id)
            return

        doc_json = doc.to_json()
        if self._initial_sync_done and doc_json == self._last_doc_json:
            return
        self._last_doc_json = doc_json

        current_blocks = extract_blocks(doc, self.attribute_name)

        if not self._initial_sync_done:
            self._initial_sync_done = True
            self._previous_blocks = current_blocks
            logger.info("Initial sync of %d blocks for document %s", len(current_blocks), self.document_id)
            self._dispatch(self._on_initial_sync, self.document_id, list(current_blocks.values()))
            return

        for node_id, block in current_blocks.items():
            previous_block = self._previous_blocks.get(node_id)
            if previous_block is None or blocks_are_different(previous_block, block):
                self._pending_updates[node_id] = block
                self._pending_deletes.pop(node_id, None)

        for node_id in self._previous_blocks:
            if node_id not in current_blocks:
                self._pending_deletes[node_id] = None
                self._pending_updates.pop(node_id, None)

        self._previous_blocks = current_blocks

        if self.has_pending_changes:
            self._schedule_flush()

    def flush(self) -> None:
        """Deliver staged updates one block at a time, then staged deletes as one batch."""
        updates = list(self._pending_updates.values())
        deletes = list(self._pending_deletes)
        self._pending_updates.clear()
        self._pending_deletes.clear()

        if updates or deletes:
            logger.debug(
                "Flushing %d updates and %d deletes for document %s", len(updates), len(deletes), self.document_id
            )

        try:
            for block in updates:
                self._dispatch(self._on_block_update, self.document_id, block)
        finally:
            if deletes:
                self._dispatch(self._on_blocks_delete, self.document_id, deletes)

    def destroy(self) -> None:
        """Cancel the pending timer and flush whatever is still staged."""
        if self._destroyed:
            return
        self._destroyed = True
        self._cancel_timer()
        self.flush()

    async def wait_for_deliveries(self) -> None:
        """Wait until every scheduled asynchronous callback has finished."""
        while self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)

    def _schedule_flush(self) -> None:
        self._cancel_timer()
        self._debounce_timer = self._event_loop().call_later(self.debounce_ms / 1000, self._on_timer)

    def _event_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            raise ConfigurationError(
                "BlockSyncEngine needs an event loop: pass loop= or call it from a running loop",
                {"document_id": self.document_id},
            )

    def _cancel_timer(self) -> None:
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
            self._debounce_timer = None

    def _on_timer(self) -> None:
        self._debounce_timer = None
        self.flush()

    def _dispatch(self, callback: Callable[..., Any], *args: Any) -> None:
        result = callback(*args)
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result, loop=self._event_loop())
            self._deliveries.add(future)
            future.add_done_callback(self._on_delivery_done)

    def _on_delivery_done(self, future: asyncio.Future) -> None:
        self._deliveries.discard(future)
        if future.cancelled():
            return
        if error := future.exception():
            logger.error(
                "Block delivery failed for document %s: %s",
                self.document_id,
                error,
                extra={"details": {"document_id": self.document_id}},
                exc_info=error,
            )
