from typing import Dict, Optional

from .base import AppError


class BlockSyncError(AppError):
    """Block synchronization errors"""

    def __init__(self, message: str, document_id: str, details: Optional[Dict] = None):
        super().__init__(
            message=message, error_code="BLOCK_SYNC_ERROR", details={"document_id": document_id, **(details or {})}
        )


class BlockStorageError(AppError):
    """Raised when block store operations fail"""

    def __init__(self, operation: str, reason: str, details: Optional[Dict] = None):
        super().__init__(
            f"Block storage {operation} failed: {reason}",
            "BLOCK_STORAGE_ERROR",
            {"operation": operation, "reason": reason, **(details or {})},
        )
