from __future__ import annotations


class ReconcileError(Exception):
    """Base class for failures that abort a reconcile pass."""


class StoreError(ReconcileError):
    """An object store call failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class AlreadyExists(StoreError):
    pass


class CreateConflict(AlreadyExists):
    """A concurrent create won the race for the CronJob name."""


class WriteConflict(StoreError):
    """A conditional write lost against a newer resourceVersion."""


class ListError(StoreError):
    pass


class OwnershipLinkError(ReconcileError):
    pass


class ReconcileCancelled(ReconcileError):
    """The pass deadline expired before the next blocking call."""
