"""User sanction ledger port.

Records are never hard-deleted. Per-record mutations go through
``update_conditionally`` so an administrator and the expiration sweep
racing on the same record cannot lose each other's writes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID

from penalty_engine.domain.models.sanction_record import UserSanctionRecord


class SanctionLedgerRepositoryProtocol(Protocol):
    """Persistence contract for the user sanction ledger."""

    async def create(self, record: UserSanctionRecord) -> UserSanctionRecord:
        """Persist a new record.

        Raises:
            DuplicateSanctionError: If a record already exists for the same
                (infraction_event_id, rule_id) pair.
        """
        ...

    async def get_by_id(self, record_id: UUID) -> Optional[UserSanctionRecord]:
        ...

    async def find_by_user(
        self, user_id: str, *, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        ...

    async def find_by_program(self, program_id: str) -> list[UserSanctionRecord]:
        ...

    async def find_by_rule(self, rule_id: UUID) -> list[UserSanctionRecord]:
        ...

    async def find_by_infraction_event(
        self, infraction_event_id: UUID
    ) -> list[UserSanctionRecord]:
        ...

    async def find_by_applier(self, applied_by: str) -> list[UserSanctionRecord]:
        ...

    async def find_active_flagged(
        self, *, user_id: Optional[str] = None, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        """Return records whose active flag is set, optionally scoped.

        Date-based filtering (currently active vs. expired) is applied by
        the ledger service against its time authority.
        """
        ...

    async def find_started_between(
        self, start: datetime, end: datetime, *, user_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        """Return records with start <= start_date <= end."""
        ...

    async def update_conditionally(
        self,
        record: UserSanctionRecord,
        *,
        expected_version: int,
        require_active: bool = True,
    ) -> bool:
        """Write ``record`` only if the stored row is unchanged.

        Equivalent to ``UPDATE ... WHERE id = ? AND version = ?
        [AND is_active = true]``. ``record.version`` is the new version.

        Returns:
            True if the row was updated, False if the condition failed.
        """
        ...

    async def bulk_deactivate_expired(self, now: datetime) -> list[UserSanctionRecord]:
        """Deactivate every active, non-permanent record whose end date < now.

        Idempotent: a second run finds nothing to transition.

        Returns:
            The records as they were stored after the transition.
        """
        ...
