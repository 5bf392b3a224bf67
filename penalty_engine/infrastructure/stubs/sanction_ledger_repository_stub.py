"""In-memory user sanction ledger.

Conditional updates compare the stored ``version`` (and active flag)
under the stub's lock, mirroring the WHERE clause of the PostgreSQL
adapter.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional
from uuid import UUID

from penalty_engine.application.ports.sanction_ledger_repository import (
    SanctionLedgerRepositoryProtocol,
)
from penalty_engine.domain.errors.lifecycle import DuplicateSanctionError
from penalty_engine.domain.models.sanction_record import UserSanctionRecord


class SanctionLedgerRepositoryStub(SanctionLedgerRepositoryProtocol):
    """Dictionary-backed sanction ledger."""

    def __init__(self) -> None:
        self._records: dict[UUID, UserSanctionRecord] = {}
        self._lock = asyncio.Lock()

    def clear(self) -> None:
        """Clear all stored data for test cleanup."""
        self._records.clear()

    def _ordered(self, records: list[UserSanctionRecord]) -> list[UserSanctionRecord]:
        return sorted(records, key=lambda r: r.start_date)

    async def create(self, record: UserSanctionRecord) -> UserSanctionRecord:
        async with self._lock:
            if record.infraction_event_id is not None:
                for existing in self._records.values():
                    if (
                        existing.infraction_event_id == record.infraction_event_id
                        and existing.rule_id == record.rule_id
                    ):
                        raise DuplicateSanctionError(record.infraction_event_id, record.rule_id)
            self._records[record.record_id] = record
        return record

    async def get_by_id(self, record_id: UUID) -> Optional[UserSanctionRecord]:
        return self._records.get(record_id)

    async def find_by_user(
        self, user_id: str, *, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        return self._ordered(
            [
                r
                for r in self._records.values()
                if r.user_id == user_id and (program_id is None or r.program_id == program_id)
            ]
        )

    async def find_by_program(self, program_id: str) -> list[UserSanctionRecord]:
        return self._ordered([r for r in self._records.values() if r.program_id == program_id])

    async def find_by_rule(self, rule_id: UUID) -> list[UserSanctionRecord]:
        return self._ordered([r for r in self._records.values() if r.rule_id == rule_id])

    async def find_by_infraction_event(
        self, infraction_event_id: UUID
    ) -> list[UserSanctionRecord]:
        return self._ordered(
            [
                r
                for r in self._records.values()
                if r.infraction_event_id == infraction_event_id
            ]
        )

    async def find_by_applier(self, applied_by: str) -> list[UserSanctionRecord]:
        return self._ordered([r for r in self._records.values() if r.applied_by == applied_by])

    async def find_active_flagged(
        self, *, user_id: Optional[str] = None, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        return self._ordered(
            [
                r
                for r in self._records.values()
                if r.is_active
                and (user_id is None or r.user_id == user_id)
                and (program_id is None or r.program_id == program_id)
            ]
        )

    async def find_started_between(
        self, start: datetime, end: datetime, *, user_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        return self._ordered(
            [
                r
                for r in self._records.values()
                if start <= r.start_date <= end and (user_id is None or r.user_id == user_id)
            ]
        )

    async def update_conditionally(
        self,
        record: UserSanctionRecord,
        *,
        expected_version: int,
        require_active: bool = True,
    ) -> bool:
        async with self._lock:
            stored = self._records.get(record.record_id)
            if stored is None or stored.version != expected_version:
                return False
            if require_active and not stored.is_active:
                return False
            self._records[record.record_id] = record
            return True

    async def bulk_deactivate_expired(self, now: datetime) -> list[UserSanctionRecord]:
        async with self._lock:
            expired = [
                r for r in self._records.values() if r.is_active and r.is_expired(now)
            ]
            transitioned = []
            for record in expired:
                updated = record.expire(now)
                self._records[record.record_id] = updated
                transitioned.append(updated)
        return transitioned
