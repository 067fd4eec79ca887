from typing import Dict, Optional

from ..editor.models import DocumentNode, Visit
from ..flashcard.parser import parse_flashcard
from .models import BlockData


def extract_block_data(node: DocumentNode, position: int, attribute_name: str) -> Optional[BlockData]:
    """
    Build the block record for a node carrying an identifier.

    Args:
        node (DocumentNode): Candidate node
        position (int): Index of the node among identified nodes
        attribute_name (str): Attribute holding the node identifier

    Returns:
        Optional[BlockData]: Block record, or None if the node has no identifier
    """
    node_id = node.attrs.get(attribute_name)
    if not node_id:
        return None

    text_content = node.text_content
    block = BlockData(
        node_id=str(node_id),
        type=node.type,
        content=node.to_json(),
        text_content=text_content,
        position=position,
        attrs=dict(node.attrs) if len(node.attrs) > 1 else None,
    )
    block.apply_flashcard(parse_flashcard(text_content))
    return block


def extract_blocks(doc: DocumentNode, attribute_name: str) -> Dict[str, BlockData]:
    """
    Collect every identified block of a document in document order.

    An identified node is synchronized as a whole: its children are never
    extracted on their own, so a list item and its inner paragraph are not
    saved twice.

    Args:
        doc (DocumentNode): Document root
        attribute_name (str): Attribute holding the node identifier

    Returns:
        Dict[str, BlockData]: Blocks keyed by node identifier
    """
    blocks: Dict[str, BlockData] = {}
    position = 0

    def visit(node: DocumentNode, _pos: int) -> Visit:
        nonlocal position
        block = extract_block_data(node, position, attribute_name)
        if block is None:
            return Visit.DESCEND
        blocks[block.node_id] = block
        position += 1
        return Visit.SKIP

    doc.descendants(visit)
    return blocks
