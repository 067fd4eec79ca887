from .base import AppError, ConfigurationError, ResourceNotFoundError, ValidationError
from .domain import BlockStorageError, BlockSyncError

__all__ = [
    'AppError',
    'BlockStorageError',
    'BlockSyncError',
    'ConfigurationError',
    'ResourceNotFoundError',
    'ValidationError',
]
