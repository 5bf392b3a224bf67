"""Unit tests for SanctionLedgerService.

Covers lifecycle transitions with conditional writes, the expiration
sweep, aggregates and fire-and-forget event publication.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from penalty_engine.application.services import SanctionLedgerService
from penalty_engine.domain.errors import (
    DuplicateSanctionError,
    SanctionInvariantError,
    SanctionRecordConflictError,
    SanctionRecordNotFoundError,
)
from penalty_engine.domain.events.sanction import (
    SANCTION_APPLIED_EVENT_TYPE,
    SANCTION_DEACTIVATED_EVENT_TYPE,
    SANCTION_EXPIRED_EVENT_TYPE,
)
from penalty_engine.domain.models.sanction_record import UserSanctionRecord
from penalty_engine.domain.models.sanction_rule import (
    RestrictionLevel,
    SanctionKind,
    SanctionRule,
)
from penalty_engine.infrastructure.stubs import (
    SanctionEventPublisherStub,
    SanctionLedgerRepositoryStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority


def _rule(
    fake_time: FakeTimeAuthority,
    kind: SanctionKind = SanctionKind.TEMPORARY_SUSPENSION,
    duration_days: int = 5,
    restriction_level: RestrictionLevel = RestrictionLevel.LIMITED_RESERVATIONS,
) -> SanctionRule:
    return SanctionRule.create(
        program_id="prog-1",
        name=f"{kind.value} rule",
        description="Test rule",
        min_points=20,
        max_points=49,
        sanction_kind=kind,
        duration_days=duration_days,
        restriction_level=restriction_level,
        now=fake_time.now(),
    )


async def _apply(
    ledger: SanctionLedgerService,
    fake_time: FakeTimeAuthority,
    *,
    user_id: str = "user-1",
    rule: SanctionRule | None = None,
    points_from_event: int = 10,
    infraction_event_id=None,
) -> UserSanctionRecord:
    record = UserSanctionRecord.create_from_rule(
        rule=rule or _rule(fake_time),
        user_id=user_id,
        applied_by="admin-1",
        reason="Repeated no-shows",
        now=fake_time.now(),
        points_from_event=points_from_event,
        infraction_event_id=infraction_event_id,
    )
    return await ledger.record_sanction(record, notification_required=True)


class TestRecordSanction:
    async def test_record_persists_and_publishes(
        self,
        ledger: SanctionLedgerService,
        publisher: SanctionEventPublisherStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        record = await _apply(ledger, fake_time)

        assert await ledger.get_record(record.record_id) == record
        applied = publisher.events_of_type(SANCTION_APPLIED_EVENT_TYPE)
        assert len(applied) == 1
        assert applied[0].record_id == record.record_id

    async def test_same_rule_same_event_rejected(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        rule = _rule(fake_time)
        event_id = uuid4()
        await _apply(ledger, fake_time, rule=rule, infraction_event_id=event_id)

        with pytest.raises(DuplicateSanctionError):
            await _apply(ledger, fake_time, rule=rule, infraction_event_id=event_id)

    async def test_publish_failure_does_not_fail_operation(
        self,
        ledger_repository: SanctionLedgerRepositoryStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        failing = SanctionEventPublisherStub(fail_with=ConnectionError("broker down"))
        ledger = SanctionLedgerService(ledger_repository, failing, fake_time)

        record = await _apply(ledger, fake_time)

        assert await ledger_repository.get_by_id(record.record_id) == record

    async def test_publisher_is_awaited(
        self,
        ledger_repository: SanctionLedgerRepositoryStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        publisher = AsyncMock()
        ledger = SanctionLedgerService(ledger_repository, publisher, fake_time)

        await _apply(ledger, fake_time)

        publisher.publish.assert_awaited_once()


class TestQueries:
    async def test_get_missing_record(self, ledger: SanctionLedgerService) -> None:
        with pytest.raises(SanctionRecordNotFoundError):
            await ledger.get_record(uuid4())

    async def test_status_queries(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        temporary = await _apply(ledger, fake_time)
        warning = await _apply(
            ledger,
            fake_time,
            rule=_rule(fake_time, SanctionKind.WARNING, 0, RestrictionLevel.NONE),
        )
        permanent = await _apply(
            ledger,
            fake_time,
            rule=_rule(
                fake_time,
                SanctionKind.PERMANENT_SUSPENSION,
                0,
                RestrictionLevel.NO_RESERVATIONS,
            ),
        )
        fake_time.advance_days(6)

        assert await ledger.find_expired("user-1") == [temporary]
        assert await ledger.find_permanent("user-1") == [permanent]
        assert await ledger.find_temporary("user-1") == [temporary]
        assert await ledger.find_warnings("user-1") == [warning]
        active_ids = {r.record_id for r in await ledger.find_active("user-1")}
        assert active_ids == {warning.record_id, permanent.record_id}

    async def test_find_by_keys(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        rule = _rule(fake_time)
        event_id = uuid4()
        record = await _apply(ledger, fake_time, rule=rule, infraction_event_id=event_id)
        await _apply(ledger, fake_time, user_id="user-2")

        assert await ledger.find_by_rule(rule.rule_id) == [record]
        assert await ledger.find_by_infraction_event(event_id) == [record]
        assert len(await ledger.find_by_program("prog-1")) == 2
        assert len(await ledger.find_by_applier("admin-1")) == 2
        assert await ledger.find_by_user("user-2", "other-program") == []

    async def test_find_by_date_range(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        early = await _apply(ledger, fake_time)
        fake_time.advance_days(10)
        await _apply(ledger, fake_time)
        start = early.start_date - timedelta(hours=1)

        found = await ledger.find_by_date_range(start, start + timedelta(days=2))

        assert found == [early]

    async def test_find_expiring_within(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        soon = await _apply(ledger, fake_time, rule=_rule(fake_time, duration_days=1))
        await _apply(ledger, fake_time, rule=_rule(fake_time, duration_days=30))

        assert await ledger.find_expiring_within(48) == [soon]


class TestAggregates:
    async def test_user_status_and_aggregates(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        await _apply(ledger, fake_time, points_from_event=10)
        await _apply(
            ledger,
            fake_time,
            points_from_event=25,
            rule=_rule(
                fake_time,
                SanctionKind.PARTIAL_SUSPENSION,
                14,
                RestrictionLevel.APPROVAL_REQUIRED,
            ),
        )

        status = await ledger.get_user_status("user-1", "prog-1")

        assert status.has_active_sanctions is True
        assert status.can_make_reservations is True
        assert status.needs_approval is True
        assert status.total_active_points == 35
        assert status.highest_restriction is RestrictionLevel.APPROVAL_REQUIRED
        assert status.most_severe_kind is SanctionKind.PARTIAL_SUSPENSION
        assert await ledger.total_active_points("user-1", "prog-1") == 35
        assert (
            await ledger.highest_active_restriction("user-1", "prog-1")
            is RestrictionLevel.APPROVAL_REQUIRED
        )
        assert (
            await ledger.most_severe_active_kind("user-1", "prog-1")
            is SanctionKind.PARTIAL_SUSPENSION
        )

    async def test_status_without_sanctions(self, ledger: SanctionLedgerService) -> None:
        status = await ledger.get_user_status("nobody", "prog-1")

        assert status.has_active_sanctions is False
        assert status.can_make_reservations is True
        assert status.highest_restriction is None
        assert status.most_severe_kind is None


class TestDeactivate:
    async def test_deactivate_clears_flag_and_publishes(
        self,
        ledger: SanctionLedgerService,
        publisher: SanctionEventPublisherStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        record = await _apply(ledger, fake_time)

        updated = await ledger.deactivate(record.record_id, "admin-2", "appeal granted")

        assert updated.is_active is False
        assert not updated.is_currently_active(fake_time.now())
        assert updated.notes[-1] == "Deactivated by admin-2: appeal granted"
        assert len(publisher.events_of_type(SANCTION_DEACTIVATED_EVENT_TYPE)) == 1

    async def test_deactivate_twice_rejected(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        record = await _apply(ledger, fake_time)
        await ledger.deactivate(record.record_id, "admin-2", "appeal granted")

        with pytest.raises(SanctionInvariantError):
            await ledger.deactivate(record.record_id, "admin-2", "again")


class TestExtendAndReduce:
    async def test_extend_adds_days_and_note(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        record = await _apply(ledger, fake_time)

        extended = await ledger.extend(record.record_id, 3, "admin-2", "another no-show")

        assert extended.end_date == record.end_date + timedelta(days=3)
        assert extended.notes[-1] == "Extended by 3 days by admin-2: another no-show"
        assert (await ledger.get_record(record.record_id)).end_date == extended.end_date

    async def test_reduce_floors_at_tomorrow(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        record = await _apply(ledger, fake_time)

        reduced = await ledger.reduce(record.record_id, 30, "admin-2", "good behavior")

        assert reduced.end_date == fake_time.now() + timedelta(days=1)

    async def test_extend_permanent_rejected(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        record = await _apply(
            ledger,
            fake_time,
            rule=_rule(
                fake_time,
                SanctionKind.PERMANENT_SUSPENSION,
                0,
                RestrictionLevel.NO_RESERVATIONS,
            ),
        )

        with pytest.raises(SanctionInvariantError):
            await ledger.extend(record.record_id, 3, "admin", "reason")

    async def test_extend_after_sweep_conflicts(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        record = await _apply(ledger, fake_time)
        fake_time.advance_days(6)
        await ledger.bulk_deactivate_expired_penalties()

        with pytest.raises(SanctionRecordConflictError):
            await ledger.extend(record.record_id, 3, "admin", "late extension")

    async def test_stale_write_conflicts(
        self,
        ledger_repository: SanctionLedgerRepositoryStub,
        publisher: SanctionEventPublisherStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        ledger = SanctionLedgerService(ledger_repository, publisher, fake_time)
        record = await _apply(ledger, fake_time)
        fake_time.advance(seconds=1)
        await ledger.add_note(record.record_id, "first", "admin-1")

        applied = await ledger_repository.update_conditionally(
            record.extend(1, "admin-2", "stale", fake_time.now()),
            expected_version=record.version,
        )

        assert applied is False

    async def test_stale_write_in_same_tick_conflicts(
        self,
        ledger_repository: SanctionLedgerRepositoryStub,
        publisher: SanctionEventPublisherStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        ledger = SanctionLedgerService(ledger_repository, publisher, fake_time)
        record = await _apply(ledger, fake_time)
        stale = await ledger.get_record(record.record_id)
        await ledger.add_note(record.record_id, "note from admin A", "admin-a")

        applied = await ledger_repository.update_conditionally(
            stale.add_note("note from admin B", "admin-b", fake_time.now()),
            expected_version=stale.version,
            require_active=False,
        )

        stored = await ledger.get_record(record.record_id)
        assert applied is False
        assert stored.version == 2
        assert stored.notes[-1].endswith("admin-a: note from admin A")

    async def test_add_note_allowed_on_inactive_record(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        record = await _apply(ledger, fake_time)
        await ledger.deactivate(record.record_id, "admin-2", "appeal")
        fake_time.advance(seconds=5)

        noted = await ledger.add_note(record.record_id, "closed out", "admin-3")

        assert noted.notes[-1] == f"[{fake_time.now().isoformat()}] admin-3: closed out"


class TestExpirationSweep:
    async def test_sweep_expires_only_past_end_date(
        self,
        ledger: SanctionLedgerService,
        publisher: SanctionEventPublisherStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        short = await _apply(ledger, fake_time, rule=_rule(fake_time, duration_days=2))
        long = await _apply(ledger, fake_time, rule=_rule(fake_time, duration_days=30))
        permanent = await _apply(
            ledger,
            fake_time,
            rule=_rule(
                fake_time,
                SanctionKind.PERMANENT_SUSPENSION,
                0,
                RestrictionLevel.NO_RESERVATIONS,
            ),
        )
        fake_time.advance_days(3)

        assert await ledger.count_pending_expiration() == 1
        expired = await ledger.bulk_deactivate_expired_penalties()

        assert [r.record_id for r in expired] == [short.record_id]
        assert (await ledger.get_record(long.record_id)).is_active
        assert (await ledger.get_record(permanent.record_id)).is_active
        assert len(publisher.events_of_type(SANCTION_EXPIRED_EVENT_TYPE)) == 1

    async def test_sweep_is_idempotent(
        self, ledger: SanctionLedgerService, fake_time: FakeTimeAuthority
    ) -> None:
        record = await _apply(ledger, fake_time, rule=_rule(fake_time, duration_days=1))
        fake_time.advance_days(2)

        first = await ledger.bulk_deactivate_expired_penalties()
        state_after_first = await ledger.get_record(record.record_id)
        second = await ledger.bulk_deactivate_expired_penalties()

        assert len(first) == 1
        assert second == []
        assert await ledger.get_record(record.record_id) == state_after_first
        assert await ledger.count_pending_expiration() == 0
