"""Persistence errors raised by the sync orchestrator."""


class SyncPersistenceError(Exception):
    """Base class for sync persistence failures."""


class DuplicateOperationError(SyncPersistenceError):
    """An operation with the same content hash was already persisted."""

    def __init__(self, operation_hash: str, existing_operation_id: str | None = None) -> None:
        self.operation_hash = operation_hash
        self.existing_operation_id = existing_operation_id
        super().__init__(f"Sync operation already persisted for hash {operation_hash}")


class UndoEntryPersistenceError(SyncPersistenceError):
    """The operation row was committed but its undo entry could not be stored.

    The operation is left with status ``partial`` and cannot be undone.
    """

    def __init__(self, operation_id: str, cause: Exception) -> None:
        self.operation_id = operation_id
        self.cause = cause
        super().__init__(f"Undo entry not persisted for operation {operation_id}: {cause}")
