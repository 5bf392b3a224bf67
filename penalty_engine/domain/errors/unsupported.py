"""Error for collaborator-facing operations that are declared but not supported yet."""

from __future__ import annotations

from penalty_engine.domain.exceptions import PenaltyEngineError


class UnsupportedOperationError(PenaltyEngineError):
    """Raised by operations the engine declares but does not implement.

    Callers get an explicit "not yet supported" signal instead of guessed
    behavior.
    """

    def __init__(self, operation: str) -> None:
        """Initialize with the unsupported operation name.

        Args:
            operation: The operation that was invoked.
        """
        super().__init__(f"{operation} is not yet supported")
        self.operation = operation
