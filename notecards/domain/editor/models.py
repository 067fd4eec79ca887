import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class Visit(Enum):
    """Signal returned by a tree visitor for each node."""

    DESCEND = "descend"
    SKIP = "skip"


NodeVisitor = Callable[['DocumentNode', int], Visit]

# Node types that never hold content and occupy a single position
LEAF_NODE_TYPES = frozenset({"hardBreak", "hard_break", "horizontalRule", "horizontal_rule", "image", "mention"})

# Leaf nodes that sit inside text blocks alongside text
INLINE_LEAF_TYPES = frozenset({"hardBreak", "hard_break", "image", "mention"})


@dataclass
class DocumentNode:
    """A node of an editor document tree in ProseMirror's JSON shape.

    Text nodes carry ``text`` and no content; every other node carries an
    ordered list of children. Positions follow ProseMirror's token counting so
    offsets reported by ``descendants`` line up with editor positions.
    """

    type: str
    attrs: Dict[str, Any] = field(default_factory=dict)
    content: List['DocumentNode'] = field(default_factory=list)
    text: Optional[str] = None
    marks: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_text(self) -> bool:
        return self.text is not None

    @property
    def is_inline(self) -> bool:
        return self.is_text or self.type in INLINE_LEAF_TYPES

    @property
    def is_textblock(self) -> bool:
        """Check if the node is a block whose children are all inline, including an empty one."""
        if self.is_text or self.type in LEAF_NODE_TYPES:
            return False
        return all(child.is_inline for child in self.content)

    @property
    def text_content(self) -> str:
        if self.is_text:
            return self.text
        return ''.join(child.text_content for child in self.content)

    @property
    def node_size(self) -> int:
        if self.is_text:
            return len(self.text)
        if self.type in LEAF_NODE_TYPES:
            return 1
        return 2 + sum(child.node_size for child in self.content)

    def descendants(self, visitor: NodeVisitor) -> None:
        """Walk all descendants depth-first in document order.

        Args:
            visitor: Called with each node and its position. Returning
                ``Visit.SKIP`` stops the walk from entering that node's children.
        """
        self._walk_children(visitor, 0)

    def _walk_children(self, visitor: NodeVisitor, start: int) -> None:
        pos = start
        for child in self.content:
            if visitor(child, pos) is Visit.DESCEND and child.content:
                child._walk_children(visitor, pos + 1)
            pos += child.node_size

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.attrs:
            data["attrs"] = copy.deepcopy(self.attrs)
        if self.is_text:
            data["text"] = self.text
        if self.content:
            data["content"] = [child.to_json() for child in self.content]
        if self.marks:
            data["marks"] = copy.deepcopy(self.marks)
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'DocumentNode':
        """Build a tree from ProseMirror JSON.

        Raises:
            ValueError: If a node has no type
        """
        node_type = data.get("type")
        if not node_type:
            raise ValueError("Document node is missing its type")

        return cls(
            type=node_type,
            attrs=copy.deepcopy(data.get("attrs") or {}),
            content=[cls.from_json(child) for child in data.get("content") or []],
            text=data.get("text"),
            marks=copy.deepcopy(data.get("marks") or []),
        )
