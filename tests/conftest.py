from typing import Any, Dict, Optional
from unittest.mock import Mock

import pytest

from notecards.domain.editor.models import DocumentNode
from notecards.storage.memory import InMemoryBlockStore


def _text(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


@pytest.fixture
def make_paragraph():
    def _make(node_id: Optional[str], text: str = "", node_type: str = "paragraph", **attrs) -> Dict[str, Any]:
        node_attrs = dict(attrs)
        if node_id is not None:
            node_attrs["blockId"] = node_id
        node: Dict[str, Any] = {"type": node_type, "attrs": node_attrs}
        if text:
            node["content"] = [_text(text)]
        return node

    return _make


@pytest.fixture
def make_doc():
    def _make(*children: Dict[str, Any]) -> DocumentNode:
        return DocumentNode.from_json({"type": "doc", "content": list(children)})

    return _make


@pytest.fixture
def callbacks():
    return Mock(
        on_initial_sync=Mock(return_value=None),
        on_block_update=Mock(return_value=None),
        on_blocks_delete=Mock(return_value=None),
    )


@pytest.fixture
def block_store():
    return InMemoryBlockStore()
