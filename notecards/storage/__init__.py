from .base import BlockStore
from .memory import InMemoryBlockStore

__all__ = ['BlockStore', 'InMemoryBlockStore']
