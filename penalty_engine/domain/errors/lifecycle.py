"""Invariant-violation errors for catalog and ledger lifecycle operations.

These signal programming or usage errors (e.g. extending a permanent
sanction), not bad user input, and are never downgraded to a default.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from penalty_engine.domain.exceptions import PenaltyEngineError


class SanctionInvariantError(PenaltyEngineError):
    """Raised when a lifecycle operation would break a record invariant.

    Attributes:
        record_id: The ledger record involved, if known.
    """

    def __init__(self, message: str, record_id: Optional[UUID] = None) -> None:
        """Initialize with a description and the record involved.

        Args:
            message: What invariant the operation would break.
            record_id: The ledger record involved.
        """
        super().__init__(message)
        self.record_id = record_id


class SystemDefaultDeletionError(PenaltyEngineError):
    """Raised when deleting a system-default catalog entry.

    System defaults can only be deactivated; custom entries may be deleted.
    """

    def __init__(self, entity_id: UUID, entity_name: str = "catalog entry") -> None:
        """Initialize with the protected entry.

        Args:
            entity_id: The system-default entry.
            entity_name: Kind of catalog entry, for the message.
        """
        super().__init__(
            f"Cannot delete system default {entity_name} {entity_id}; deactivate it instead"
        )
        self.entity_id = entity_id


class InactiveInfractionDefinitionError(PenaltyEngineError):
    """Raised when reporting an infraction kind the program has deactivated."""

    def __init__(self, program_id: str, kind: str) -> None:
        """Initialize with the program and kind.

        Args:
            program_id: Program owning the inactive definition.
            kind: The infraction kind value.
        """
        super().__init__(f"Infraction kind '{kind}' is deactivated for program {program_id}")
        self.program_id = program_id
        self.kind = kind


class DuplicateSanctionError(PenaltyEngineError):
    """Raised when a rule is applied twice for the same infraction event."""

    def __init__(self, infraction_event_id: UUID, rule_id: UUID) -> None:
        """Initialize with the duplicated pair.

        Args:
            infraction_event_id: The originating infraction event.
            rule_id: The sanction rule already applied for it.
        """
        super().__init__(
            f"Sanction rule {rule_id} already applied for infraction event {infraction_event_id}"
        )
        self.infraction_event_id = infraction_event_id
        self.rule_id = rule_id
