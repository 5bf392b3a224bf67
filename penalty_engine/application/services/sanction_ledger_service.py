"""User sanction ledger service.

The ledger exclusively owns UserSanctionRecord instances. Lifecycle
mutations (deactivate, extend, reduce, add note) read the record, apply
the domain transition and persist it with a conditional update keyed on
the record's previous ``version``; if another writer got there first
the update matches no row and SanctionRecordConflictError is raised.
Nothing is retried automatically.

Sanction events are published fire-and-forget: a publish failure is
logged and never fails the ledger operation.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

import structlog

from penalty_engine.application.ports.sanction_event_publisher import (
    SanctionEventPublisherProtocol,
)
from penalty_engine.application.ports.sanction_ledger_repository import (
    SanctionLedgerRepositoryProtocol,
)
from penalty_engine.application.ports.time_authority import TimeAuthorityProtocol
from penalty_engine.application.services.base import LoggingMixin
from penalty_engine.domain.errors.concurrency import SanctionRecordConflictError
from penalty_engine.domain.errors.lifecycle import SanctionInvariantError
from penalty_engine.domain.errors.not_found import SanctionRecordNotFoundError
from penalty_engine.domain.events.sanction import (
    SanctionAppliedEvent,
    SanctionDeactivatedEvent,
    SanctionEvent,
    SanctionExpiredEvent,
)
from penalty_engine.domain.models.penalty_outcomes import UserSanctionStatus
from penalty_engine.domain.models.sanction_record import UserSanctionRecord
from penalty_engine.domain.models.sanction_rule import RestrictionLevel, SanctionKind


class SanctionLedgerService(LoggingMixin):
    """Lifecycle, queries and aggregates over the user sanction ledger."""

    def __init__(
        self,
        repository: SanctionLedgerRepositoryProtocol,
        publisher: SanctionEventPublisherProtocol,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._repository = repository
        self._publisher = publisher
        self._time = time_authority
        self._init_logger()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def record_sanction(
        self, record: UserSanctionRecord, *, notification_required: bool
    ) -> UserSanctionRecord:
        """Persist a new ledger entry and announce it.

        Raises:
            DuplicateSanctionError: If the rule was already applied for the
                same infraction event.
        """
        log = self._log_operation(
            "record_sanction",
            user_id=record.user_id,
            program_id=record.program_id,
            rule_id=str(record.rule_id),
        )
        stored = await self._repository.create(record)
        log.info(
            "sanction_applied",
            record_id=str(stored.record_id),
            sanction_kind=stored.sanction_kind.value,
            severity=stored.severity.value,
            end_date=stored.end_date.isoformat() if stored.end_date else None,
        )
        await self._publish(
            SanctionAppliedEvent.from_record(stored, notification_required), log
        )
        return stored

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_record(self, record_id: UUID) -> UserSanctionRecord:
        """Return a record.

        Raises:
            SanctionRecordNotFoundError: If it does not exist.
        """
        record = await self._repository.get_by_id(record_id)
        if record is None:
            raise SanctionRecordNotFoundError(record_id)
        return record

    async def find_by_user(
        self, user_id: str, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        return await self._repository.find_by_user(user_id, program_id=program_id)

    async def find_by_program(self, program_id: str) -> list[UserSanctionRecord]:
        return await self._repository.find_by_program(program_id)

    async def find_by_rule(self, rule_id: UUID) -> list[UserSanctionRecord]:
        return await self._repository.find_by_rule(rule_id)

    async def find_by_infraction_event(self, event_id: UUID) -> list[UserSanctionRecord]:
        return await self._repository.find_by_infraction_event(event_id)

    async def find_by_applier(self, applied_by: str) -> list[UserSanctionRecord]:
        return await self._repository.find_by_applier(applied_by)

    async def find_by_date_range(
        self, start: datetime, end: datetime, user_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        """Records whose start date falls in [start, end]."""
        return await self._repository.find_started_between(start, end, user_id=user_id)

    async def find_active(
        self, user_id: Optional[str] = None, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        """Records that are currently active (flag set and not past end date)."""
        now = self._time.now()
        flagged = await self._repository.find_active_flagged(
            user_id=user_id, program_id=program_id
        )
        return [r for r in flagged if r.is_currently_active(now)]

    async def find_expired(
        self, user_id: str, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        now = self._time.now()
        records = await self._repository.find_by_user(user_id, program_id=program_id)
        return [r for r in records if r.is_expired(now)]

    async def find_permanent(
        self, user_id: str, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        records = await self._repository.find_by_user(user_id, program_id=program_id)
        return [r for r in records if r.is_permanent]

    async def find_temporary(
        self, user_id: str, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        records = await self._repository.find_by_user(user_id, program_id=program_id)
        return [r for r in records if r.is_temporary]

    async def find_warnings(
        self, user_id: str, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        records = await self._repository.find_by_user(user_id, program_id=program_id)
        return [r for r in records if r.is_warning]

    async def find_expiring_within(self, hours: int) -> list[UserSanctionRecord]:
        """Active records whose end date falls within the next ``hours``."""
        now = self._time.now()
        horizon = now + timedelta(hours=hours)
        flagged = await self._repository.find_active_flagged()
        return [
            r
            for r in flagged
            if r.end_date is not None and now <= r.end_date <= horizon
        ]

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def total_active_points(self, user_id: str, program_id: str) -> int:
        active = await self.find_active(user_id, program_id)
        return sum(r.points_from_event for r in active)

    async def highest_active_restriction(
        self, user_id: str, program_id: str
    ) -> Optional[RestrictionLevel]:
        active = await self.find_active(user_id, program_id)
        return _highest_restriction(active)

    async def most_severe_active_kind(
        self, user_id: str, program_id: str
    ) -> Optional[SanctionKind]:
        active = await self.find_active(user_id, program_id)
        return _most_severe_kind(active)

    async def get_user_status(self, user_id: str, program_id: str) -> UserSanctionStatus:
        """Summarize what the user's active sanctions allow in a program."""
        now = self._time.now()
        active = await self.find_active(user_id, program_id)
        return UserSanctionStatus(
            user_id=user_id,
            program_id=program_id,
            has_active_sanctions=bool(active),
            can_make_reservations=all(r.can_make_reservations(now) for r in active),
            needs_approval=any(r.needs_approval_for_reservations(now) for r in active),
            can_make_advance_reservations=all(
                r.can_make_advance_reservations(now) for r in active
            ),
            active_records=tuple(active),
            total_active_points=sum(r.points_from_event for r in active),
            highest_restriction=_highest_restriction(active),
            most_severe_kind=_most_severe_kind(active),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def deactivate(
        self, record_id: UUID, deactivated_by: str, reason: str
    ) -> UserSanctionRecord:
        """Deactivate an active record.

        Raises:
            SanctionRecordNotFoundError: If it does not exist.
            SanctionInvariantError: If it is already inactive.
            SanctionRecordConflictError: If it changed concurrently.
        """
        log = self._log_operation(
            "deactivate", record_id=str(record_id), deactivated_by=deactivated_by
        )
        current = await self.get_record(record_id)
        if not current.is_active:
            raise SanctionInvariantError("Sanction is already inactive", record_id=record_id)
        now = self._time.now()
        updated = current.deactivate(deactivated_by, reason, now)
        await self._write(current, updated, require_active=True)
        log.info("sanction_deactivated", reason=reason)
        await self._publish(
            SanctionDeactivatedEvent(
                record_id=updated.record_id,
                user_id=updated.user_id,
                program_id=updated.program_id,
                deactivated_by=deactivated_by,
                reason=reason,
                occurred_at=now,
            ),
            log,
        )
        return updated

    async def extend(
        self, record_id: UUID, days: int, extended_by: str, reason: str
    ) -> UserSanctionRecord:
        """Push an active record's end date later by ``days``.

        Raises:
            SanctionRecordNotFoundError: If it does not exist.
            SanctionInvariantError: If it is permanent, open-ended, or days <= 0.
            SanctionRecordConflictError: If it changed or was deactivated concurrently.
        """
        log = self._log_operation("extend", record_id=str(record_id), days=days)
        current = await self.get_record(record_id)
        updated = current.extend(days, extended_by, reason, self._time.now())
        await self._write(current, updated, require_active=True)
        log.info("sanction_extended", end_date=updated.end_date.isoformat())
        return updated

    async def reduce(
        self, record_id: UUID, days: int, reduced_by: str, reason: str
    ) -> UserSanctionRecord:
        """Pull an active record's end date earlier, never before now + 1 day.

        Raises:
            SanctionRecordNotFoundError: If it does not exist.
            SanctionInvariantError: If it is permanent, open-ended, or days <= 0.
            SanctionRecordConflictError: If it changed or was deactivated concurrently.
        """
        log = self._log_operation("reduce", record_id=str(record_id), days=days)
        current = await self.get_record(record_id)
        updated = current.reduce(days, reduced_by, reason, self._time.now())
        await self._write(current, updated, require_active=True)
        log.info("sanction_reduced", end_date=updated.end_date.isoformat())
        return updated

    async def add_note(self, record_id: UUID, text: str, added_by: str) -> UserSanctionRecord:
        """Append a note; allowed on inactive records too.

        Raises:
            SanctionRecordNotFoundError: If it does not exist.
            SanctionRecordConflictError: If it changed concurrently.
        """
        current = await self.get_record(record_id)
        updated = current.add_note(text, added_by, self._time.now())
        await self._write(current, updated, require_active=False)
        self._log_operation("add_note", record_id=str(record_id)).info("sanction_note_added")
        return updated

    async def bulk_deactivate_expired_penalties(self) -> list[UserSanctionRecord]:
        """Run the expiration sweep.

        Only active records whose end date has passed are transitioned, so
        running the sweep again immediately finds nothing.
        """
        log = self._log_operation("bulk_deactivate_expired_penalties")
        now = self._time.now()
        expired = await self._repository.bulk_deactivate_expired(now)
        for record in expired:
            await self._publish(
                SanctionExpiredEvent(
                    record_id=record.record_id,
                    user_id=record.user_id,
                    program_id=record.program_id,
                    end_date=record.end_date,
                    occurred_at=now,
                ),
                log,
            )
        log.info("expiration_sweep_complete", expired_count=len(expired))
        return expired

    async def count_pending_expiration(self) -> int:
        """Active-flagged records the next sweep would transition."""
        now = self._time.now()
        flagged = await self._repository.find_active_flagged()
        return sum(1 for r in flagged if r.is_expired(now))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _write(
        self,
        current: UserSanctionRecord,
        updated: UserSanctionRecord,
        *,
        require_active: bool,
    ) -> None:
        applied = await self._repository.update_conditionally(
            updated,
            expected_version=current.version,
            require_active=require_active,
        )
        if not applied:
            self._log_operation("conditional_update", record_id=str(current.record_id)).warning(
                "sanction_record_conflict"
            )
            raise SanctionRecordConflictError(current.record_id)

    async def _publish(self, event: SanctionEvent, log: structlog.BoundLogger) -> None:
        try:
            await self._publisher.publish(event)
        except Exception as exc:
            # Delivery is one-way; a failed notification never undoes the write
            log.warning(
                "sanction_event_publish_failed",
                event_type=event.event_type,
                record_id=str(event.record_id),
                error=str(exc),
            )


def _highest_restriction(records: list[UserSanctionRecord]) -> Optional[RestrictionLevel]:
    return max((r.restriction_level for r in records), key=lambda lvl: lvl.rank, default=None)


def _most_severe_kind(records: list[UserSanctionRecord]) -> Optional[SanctionKind]:
    if not records:
        return None
    return max(records, key=lambda r: r.severity.rank).sanction_kind
