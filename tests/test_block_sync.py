import asyncio
import logging
from unittest.mock import AsyncMock, Mock

import pytest

from notecards.core.exceptions.base import ConfigurationError
from notecards.domain.blocks.sync import BlockSyncEngine
from notecards.domain.flashcard.models import CardType

DEBOUNCE_MS = 20
SETTLE = 0.1


@pytest.fixture
def engine(callbacks):
    return BlockSyncEngine(
        document_id="doc-1",
        on_initial_sync=callbacks.on_initial_sync,
        on_block_update=callbacks.on_block_update,
        on_blocks_delete=callbacks.on_blocks_delete,
        debounce_ms=DEBOUNCE_MS,
    )


class TestConfiguration:

    @pytest.mark.parametrize("document_id", ["", None, "   "])
    def test_missing_document_id_fails_fast(self, callbacks, document_id):
        with pytest.raises(ConfigurationError):
            BlockSyncEngine(
                document_id=document_id,
                on_initial_sync=callbacks.on_initial_sync,
                on_block_update=callbacks.on_block_update,
                on_blocks_delete=callbacks.on_blocks_delete,
            )


class TestInitialSync:

    async def test_first_change_sends_all_blocks(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "one"), make_paragraph("b", "x >> y")))

        callbacks.on_initial_sync.assert_called_once()
        document_id, blocks = callbacks.on_initial_sync.call_args.args
        assert document_id == "doc-1"
        assert [b.node_id for b in blocks] == ["a", "b"]
        assert blocks[1].card_type == CardType.BASIC
        assert not engine.has_pending_changes
        assert not engine.flush_scheduled

        await asyncio.sleep(SETTLE)
        callbacks.on_block_update.assert_not_called()
        callbacks.on_blocks_delete.assert_not_called()

    async def test_empty_document_still_syncs(self, engine, callbacks, make_doc):
        engine.on_document_change(make_doc())
        callbacks.on_initial_sync.assert_called_once_with("doc-1", [])
        assert engine.initial_sync_done

    async def test_initial_sync_happens_once(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "one")))
        engine.on_document_change(make_doc(make_paragraph("a", "two")))

        assert callbacks.on_initial_sync.call_count == 1


class TestChangeDetection:

    async def test_rapid_edits_flush_once_with_final_content(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "start"), make_paragraph("b", "steady")))

        for text in ("s", "st", "stop"):
            engine.on_document_change(make_doc(make_paragraph("a", text), make_paragraph("b", "steady")))
        callbacks.on_block_update.assert_not_called()
        assert engine.flush_scheduled

        await asyncio.sleep(SETTLE)

        callbacks.on_block_update.assert_called_once()
        document_id, block = callbacks.on_block_update.call_args.args
        assert document_id == "doc-1"
        assert block.node_id == "a"
        assert block.text_content == "stop"
        callbacks.on_blocks_delete.assert_not_called()

    async def test_unchanged_document_is_a_no_op(self, engine, callbacks, make_doc, make_paragraph):
        doc = make_doc(make_paragraph("a", "one"))
        engine.on_document_change(doc)

        engine.on_document_change(doc)
        engine.on_document_change(make_doc(make_paragraph("a", "one")))

        assert not engine.flush_scheduled
        await asyncio.sleep(SETTLE)
        callbacks.on_block_update.assert_not_called()

    async def test_updates_are_sent_one_block_per_call(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "one")))
        engine.on_document_change(
            make_doc(make_paragraph("a", "one"), make_paragraph("b", "two"), make_paragraph("c", "3"))
        )

        await asyncio.sleep(SETTLE)

        assert [call.args[1].node_id for call in callbacks.on_block_update.call_args_list] == ["b", "c"]

    async def test_position_shift_marks_blocks_changed(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "one"), make_paragraph("b", "two")))
        engine.on_document_change(
            make_doc(make_paragraph("new", "zero"), make_paragraph("a", "one"), make_paragraph("b", "two"))
        )

        await asyncio.sleep(SETTLE)

        updated = {call.args[1].node_id: call.args[1].position for call in callbacks.on_block_update.call_args_list}
        assert updated == {"new": 0, "a": 1, "b": 2}

    async def test_removed_block_is_deleted_once(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "one"), make_paragraph("b", "two")))
        engine.on_document_change(make_doc(make_paragraph("a", "one")))

        await asyncio.sleep(SETTLE)

        callbacks.on_blocks_delete.assert_called_once_with("doc-1", ["b"])
        callbacks.on_block_update.assert_not_called()

        engine.on_document_change(make_doc(make_paragraph("a", "one!")))
        await asyncio.sleep(SETTLE)

        assert callbacks.on_blocks_delete.call_count == 1
        assert [call.args[1].node_id for call in callbacks.on_block_update.call_args_list] == ["a"]

    async def test_deletes_are_batched(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(
            make_doc(make_paragraph("a", "1"), make_paragraph("b", "2"), make_paragraph("c", "3"))
        )
        engine.on_document_change(make_doc(make_paragraph("a", "1"), make_paragraph("c", "3")))
        engine.on_document_change(make_doc(make_paragraph("a", "1")))

        await asyncio.sleep(SETTLE)

        callbacks.on_blocks_delete.assert_called_once_with("doc-1", ["b", "c"])
        # "c" moved from position 2 to 1 before being removed
        callbacks.on_block_update.assert_not_called()

    async def test_readded_block_cancels_pending_delete(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "1"), make_paragraph("b", "2")))
        engine.on_document_change(make_doc(make_paragraph("a", "1")))
        engine.on_document_change(make_doc(make_paragraph("a", "1"), make_paragraph("b", "2")))

        await asyncio.sleep(SETTLE)

        callbacks.on_blocks_delete.assert_not_called()
        assert [call.args[1].node_id for call in callbacks.on_block_update.call_args_list] == ["b"]

    async def test_flashcard_change_is_detected(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "term :: definition")))
        engine.on_document_change(make_doc(make_paragraph("a", "term ::- definition")))

        await asyncio.sleep(SETTLE)

        block = callbacks.on_block_update.call_args.args[1]
        assert block.card_direction.value == "disabled"


class TestTeardown:

    async def test_destroy_flushes_staged_update(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "one")))
        engine.on_document_change(make_doc(make_paragraph("a", "two")))

        engine.destroy()

        callbacks.on_block_update.assert_called_once()
        assert not engine.flush_scheduled
        await asyncio.sleep(SETTLE)
        callbacks.on_block_update.assert_called_once()

    async def test_destroy_is_idempotent_and_final(self, engine, callbacks, make_doc, make_paragraph):
        engine.on_document_change(make_doc(make_paragraph("a", "one")))
        engine.destroy()
        engine.destroy()

        engine.on_document_change(make_doc(make_paragraph("a", "changed")))
        await asyncio.sleep(SETTLE)

        assert engine.is_destroyed
        callbacks.on_block_update.assert_not_called()
        callbacks.on_blocks_delete.assert_not_called()

    async def test_engines_do_not_share_timers(self, callbacks, make_doc, make_paragraph):
        other = Mock(
            on_initial_sync=Mock(return_value=None),
            on_block_update=Mock(return_value=None),
            on_blocks_delete=Mock(return_value=None),
        )
        first = BlockSyncEngine(
            "doc-1",
            callbacks.on_initial_sync,
            callbacks.on_block_update,
            callbacks.on_blocks_delete,
            debounce_ms=DEBOUNCE_MS,
        )
        second = BlockSyncEngine(
            "doc-2", other.on_initial_sync, other.on_block_update, other.on_blocks_delete, debounce_ms=DEBOUNCE_MS
        )

        for engine in (first, second):
            engine.on_document_change(make_doc(make_paragraph("a", "one")))
            engine.on_document_change(make_doc(make_paragraph("a", "two")))
        second.destroy()

        await asyncio.sleep(SETTLE)

        assert callbacks.on_block_update.call_args.args[0] == "doc-1"
        assert other.on_block_update.call_args.args[0] == "doc-2"


class TestCallbackFailures:

    async def test_pending_changes_cleared_when_callback_raises(self, engine, callbacks, make_doc, make_paragraph):
        callbacks.on_block_update.side_effect = RuntimeError("store down")
        engine.on_document_change(make_doc(make_paragraph("a", "1"), make_paragraph("b", "2")))
        engine.on_document_change(make_doc(make_paragraph("a", "changed")))

        with pytest.raises(RuntimeError):
            engine.flush()

        assert not engine.has_pending_changes
        callbacks.on_blocks_delete.assert_called_once_with("doc-1", ["b"])

    async def test_async_callbacks_are_scheduled(self, make_doc, make_paragraph):
        on_initial_sync, on_block_update, on_blocks_delete = AsyncMock(), AsyncMock(), AsyncMock()
        engine = BlockSyncEngine("doc-1", on_initial_sync, on_block_update, on_blocks_delete, debounce_ms=DEBOUNCE_MS)

        engine.on_document_change(make_doc(make_paragraph("a", "1")))
        engine.on_document_change(make_doc(make_paragraph("a", "2")))
        engine.destroy()
        await engine.wait_for_deliveries()

        on_initial_sync.assert_awaited_once()
        on_block_update.assert_awaited_once()

    async def test_failed_async_delivery_is_logged(self, make_doc, make_paragraph, caplog):
        on_initial_sync = AsyncMock(side_effect=RuntimeError("rejected"))
        engine = BlockSyncEngine("doc-1", on_initial_sync, AsyncMock(), AsyncMock())

        with caplog.at_level(logging.ERROR, logger="notecards.domain.blocks.sync"):
            engine.on_document_change(make_doc(make_paragraph("a", "1")))
            await engine.wait_for_deliveries()

        assert "Block delivery failed for document doc-1" in caplog.text


class TestSnapshotIsolation:

    async def test_in_place_mark_edit_is_staged(self, engine, callbacks, make_doc):
        link = {"type": "text", "text": "docs", "marks": [{"type": "link", "attrs": {"href": "one"}}]}
        doc = make_doc({"type": "paragraph", "attrs": {"blockId": "a"}, "content": [link]})
        engine.on_document_change(doc)

        doc.content[0].content[0].marks[0]["attrs"]["href"] = "two"
        engine.on_document_change(doc)
        await asyncio.sleep(SETTLE)

        callbacks.on_block_update.assert_called_once()
        _, block = callbacks.on_block_update.call_args.args
        assert block.content["content"][0]["marks"][0]["attrs"]["href"] == "two"
        _, [initial] = callbacks.on_initial_sync.call_args.args
        assert initial.content["content"][0]["marks"][0]["attrs"]["href"] == "one"


class TestEventLoop:

    def test_edit_outside_a_loop_raises_configuration_error(self, callbacks, make_doc, make_paragraph):
        engine = BlockSyncEngine(
            "doc-1", callbacks.on_initial_sync, callbacks.on_block_update, callbacks.on_blocks_delete
        )
        engine.on_document_change(make_doc(make_paragraph("a", "one")))
        callbacks.on_initial_sync.assert_called_once()

        with pytest.raises(ConfigurationError):
            engine.on_document_change(make_doc(make_paragraph("a", "two")))

    def test_explicit_loop_serves_synchronous_host(self, callbacks, make_doc, make_paragraph):
        loop = asyncio.new_event_loop()
        try:
            engine = BlockSyncEngine(
                "doc-1",
                callbacks.on_initial_sync,
                callbacks.on_block_update,
                callbacks.on_blocks_delete,
                debounce_ms=DEBOUNCE_MS,
                loop=loop,
            )
            engine.on_document_change(make_doc(make_paragraph("a", "one")))
            engine.on_document_change(make_doc(make_paragraph("a", "two")))
            loop.run_until_complete(asyncio.sleep(SETTLE))
        finally:
            loop.close()

        callbacks.on_block_update.assert_called_once()
        assert callbacks.on_block_update.call_args.args[1].text_content == "two"
