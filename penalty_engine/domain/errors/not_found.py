"""Not-found errors for catalog entries and ledger records.

Operations referencing a missing definition, rule or record fail with
one of these instead of returning an empty or default object.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from penalty_engine.domain.exceptions import PenaltyEngineError


class PenaltyNotFoundError(PenaltyEngineError):
    """Base error for lookups that matched nothing.

    Attributes:
        entity_id: The identifier that was looked up, if any.
    """

    entity_name: str = "entity"

    def __init__(self, entity_id: Optional[UUID] = None, message: Optional[str] = None) -> None:
        """Initialize with the missing identifier.

        Args:
            entity_id: Identifier that was not found.
            message: Optional custom error message.
        """
        msg = message or f"{self.entity_name} not found: {entity_id}"
        super().__init__(msg)
        self.entity_id = entity_id


class InfractionDefinitionNotFoundError(PenaltyNotFoundError):
    """Raised when an infraction definition cannot be found."""

    entity_name = "Infraction definition"


class SanctionRuleNotFoundError(PenaltyNotFoundError):
    """Raised when a sanction rule cannot be found."""

    entity_name = "Sanction rule"


class SanctionRecordNotFoundError(PenaltyNotFoundError):
    """Raised when a user sanction record cannot be found."""

    entity_name = "Sanction record"
