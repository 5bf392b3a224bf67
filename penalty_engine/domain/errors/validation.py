"""Validation errors for catalog entries and ledger records.

Validation runs synchronously before any write. Every failed check
contributes one human-readable message, and the full list is surfaced
to the caller verbatim.
"""

from __future__ import annotations

from collections.abc import Iterable

from penalty_engine.domain.exceptions import PenaltyEngineError


class PenaltyValidationError(PenaltyEngineError):
    """Raised when an entity or command fails validation.

    Attributes:
        errors: Every validation message, in check order.
    """

    def __init__(self, errors: Iterable[str], subject: str = "penalty entity") -> None:
        """Initialize with the collected validation messages.

        Args:
            errors: Validation messages (at least one).
            subject: What was being validated, used in the summary message.
        """
        self.errors: list[str] = list(errors)
        self.subject = subject
        super().__init__(f"Invalid {subject}: {', '.join(self.errors)}")


def raise_if_invalid(errors: list[str], subject: str) -> None:
    """Raise PenaltyValidationError when any message was collected.

    Args:
        errors: Collected validation messages.
        subject: What was being validated.

    Raises:
        PenaltyValidationError: If errors is non-empty.
    """
    if errors:
        raise PenaltyValidationError(errors, subject=subject)
