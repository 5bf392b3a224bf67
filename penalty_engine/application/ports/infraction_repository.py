"""Infraction catalog and infraction event log ports.

The catalog stores InfractionDefinition rows per program. The event log
is append-only and records every reported occurrence.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID

from penalty_engine.domain.models.infraction import (
    InfractionDefinition,
    InfractionEvent,
    InfractionKind,
)


class InfractionDefinitionRepositoryProtocol(Protocol):
    """Persistence contract for infraction definitions."""

    async def create(self, definition: InfractionDefinition) -> InfractionDefinition:
        """Persist a new definition and return it."""
        ...

    async def get_by_id(self, definition_id: UUID) -> Optional[InfractionDefinition]:
        """Return the definition, or None if it does not exist."""
        ...

    async def get_by_program_and_kind(
        self, program_id: str, kind: InfractionKind
    ) -> Optional[InfractionDefinition]:
        """Return the program's definition for a kind, or None.

        When several definitions share a kind (custom entries), the most
        recently updated active one wins.
        """
        ...

    async def list_by_program(
        self,
        program_id: str,
        *,
        is_active: Optional[bool] = None,
        is_custom: Optional[bool] = None,
    ) -> list[InfractionDefinition]:
        """List a program's definitions, optionally filtered by status."""
        ...

    async def update(self, definition: InfractionDefinition) -> InfractionDefinition:
        """Replace a stored definition.

        Raises:
            InfractionDefinitionNotFoundError: If it does not exist.
        """
        ...

    async def delete(self, definition_id: UUID) -> None:
        """Remove a definition.

        Raises:
            InfractionDefinitionNotFoundError: If it does not exist.
        """
        ...


class InfractionEventLogProtocol(Protocol):
    """Append-only log of infraction occurrences."""

    async def record(self, event: InfractionEvent) -> InfractionEvent:
        """Append an occurrence and return it."""
        ...

    async def find_by_user_in_range(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        *,
        program_id: Optional[str] = None,
        kind: Optional[InfractionKind] = None,
    ) -> list[InfractionEvent]:
        """Return the user's occurrences with start <= occurred_at <= end.

        Args:
            user_id: User to query.
            start: Inclusive window start.
            end: Inclusive window end.
            program_id: Restrict to one program.
            kind: Restrict to one infraction kind.
        """
        ...
