"""In-memory infraction catalog and event log.

Used by tests and by the local composition root. Both stubs guard their
dictionaries with an asyncio.Lock.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional
from uuid import UUID

from penalty_engine.application.ports.infraction_repository import (
    InfractionDefinitionRepositoryProtocol,
    InfractionEventLogProtocol,
)
from penalty_engine.domain.errors.not_found import InfractionDefinitionNotFoundError
from penalty_engine.domain.models.infraction import (
    InfractionDefinition,
    InfractionEvent,
    InfractionKind,
)


class InfractionDefinitionRepositoryStub(InfractionDefinitionRepositoryProtocol):
    """Dictionary-backed infraction catalog."""

    def __init__(self) -> None:
        self._definitions: dict[UUID, InfractionDefinition] = {}
        self._lock = asyncio.Lock()

    def clear(self) -> None:
        """Clear all stored data for test cleanup."""
        self._definitions.clear()

    async def create(self, definition: InfractionDefinition) -> InfractionDefinition:
        async with self._lock:
            self._definitions[definition.definition_id] = definition
        return definition

    async def get_by_id(self, definition_id: UUID) -> Optional[InfractionDefinition]:
        return self._definitions.get(definition_id)

    async def get_by_program_and_kind(
        self, program_id: str, kind: InfractionKind
    ) -> Optional[InfractionDefinition]:
        matches = [
            d
            for d in self._definitions.values()
            if d.program_id == program_id and d.kind is kind
        ]
        if not matches:
            return None
        # Active entries first, then the most recently updated
        matches.sort(key=lambda d: (d.is_active, d.updated_at), reverse=True)
        return matches[0]

    async def list_by_program(
        self,
        program_id: str,
        *,
        is_active: Optional[bool] = None,
        is_custom: Optional[bool] = None,
    ) -> list[InfractionDefinition]:
        return [
            d
            for d in self._definitions.values()
            if d.program_id == program_id
            and (is_active is None or d.is_active == is_active)
            and (is_custom is None or d.is_custom == is_custom)
        ]

    async def update(self, definition: InfractionDefinition) -> InfractionDefinition:
        async with self._lock:
            if definition.definition_id not in self._definitions:
                raise InfractionDefinitionNotFoundError(definition.definition_id)
            self._definitions[definition.definition_id] = definition
        return definition

    async def delete(self, definition_id: UUID) -> None:
        async with self._lock:
            if self._definitions.pop(definition_id, None) is None:
                raise InfractionDefinitionNotFoundError(definition_id)


class InfractionEventLogStub(InfractionEventLogProtocol):
    """Append-only in-memory infraction log."""

    def __init__(self) -> None:
        self._events: list[InfractionEvent] = []
        self._lock = asyncio.Lock()

    def clear(self) -> None:
        """Clear all stored data for test cleanup."""
        self._events.clear()

    @property
    def events(self) -> list[InfractionEvent]:
        """All recorded events in append order."""
        return list(self._events)

    async def record(self, event: InfractionEvent) -> InfractionEvent:
        async with self._lock:
            self._events.append(event)
        return event

    async def find_by_user_in_range(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        *,
        program_id: Optional[str] = None,
        kind: Optional[InfractionKind] = None,
    ) -> list[InfractionEvent]:
        return [
            e
            for e in self._events
            if e.user_id == user_id
            and start <= e.occurred_at <= end
            and (program_id is None or e.program_id == program_id)
            and (kind is None or e.kind is kind)
        ]
