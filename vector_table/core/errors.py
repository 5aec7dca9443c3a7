"""
Error taxonomy for the vector table.
Every error carries the stage of the request that failed.
"""


class VectorTableError(Exception):
    """Base class for all vector table errors."""

    stage = "unknown"

    def __init__(self, message: str, stage: str = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ValidationError(VectorTableError):
    """Bad input: dimension mismatch, non-finite components, invalid parameters."""

    stage = "validation"


class StorageError(VectorTableError):
    """Failure reported by the record store."""

    stage = "store"


class NotFoundError(VectorTableError):
    """A referenced record id does not exist."""

    stage = "lookup"

    def __init__(self, record_id: int, message: str = None):
        super().__init__(message or f"Vector record {record_id} not found")
        self.record_id = record_id
