from .extraction import extract_block_data, extract_blocks
from .models import BlockData, blocks_are_different
from .sync import BlockSyncEngine

__all__ = ['BlockData', 'BlockSyncEngine', 'blocks_are_different', 'extract_block_data', 'extract_blocks']
