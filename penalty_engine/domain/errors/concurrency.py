"""Concurrency errors raised by conditional writes and keyed locks."""

from __future__ import annotations

from uuid import UUID

from penalty_engine.domain.exceptions import PenaltyEngineError


class SanctionRecordConflictError(PenaltyEngineError):
    """Raised when a conditional ledger update matched no row.

    The record was changed, deactivated or expired by a concurrent writer
    (an administrator or the expiration sweep) between read and write.

    Attributes:
        record_id: The record whose update lost the race.
    """

    def __init__(self, record_id: UUID, reason: str = "record changed concurrently") -> None:
        """Initialize with the conflicting record.

        Args:
            record_id: The record whose update lost the race.
            reason: Short description of the conflict.
        """
        super().__init__(f"Conditional update rejected for sanction record {record_id}: {reason}")
        self.record_id = record_id


class PenaltyEngineTimeoutError(PenaltyEngineError):
    """Raised when a lock or operation exceeds its caller-supplied timeout."""

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        """Initialize with the operation and the elapsed budget.

        Args:
            operation: Name of the operation that timed out.
            timeout_seconds: The budget that elapsed.
        """
        super().__init__(f"{operation} timed out after {timeout_seconds}s")
        self.operation = operation
        self.timeout_seconds = timeout_seconds
