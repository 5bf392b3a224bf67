"""Unit tests for sanction lifecycle event payloads."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from penalty_engine.domain.events.sanction import (
    SANCTION_APPLIED_EVENT_TYPE,
    SANCTION_DEACTIVATED_EVENT_TYPE,
    SANCTION_EXPIRED_EVENT_TYPE,
    SanctionAppliedEvent,
    SanctionDeactivatedEvent,
    SanctionExpiredEvent,
)
from penalty_engine.domain.models.sanction_record import UserSanctionRecord
from penalty_engine.domain.models.sanction_rule import (
    RestrictionLevel,
    SanctionKind,
    SanctionRule,
)
from penalty_engine.domain.models.severity import SeverityLevel

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _record() -> UserSanctionRecord:
    rule = SanctionRule.create(
        program_id="prog-1",
        name="Partial Suspension",
        description="Approval required",
        min_points=50,
        max_points=99,
        sanction_kind=SanctionKind.PARTIAL_SUSPENSION,
        duration_days=14,
        restriction_level=RestrictionLevel.APPROVAL_REQUIRED,
        now=NOW,
    )
    return UserSanctionRecord.create_from_rule(
        rule=rule, user_id="user-1", applied_by="svc", reason="r", now=NOW
    )


class TestSanctionAppliedEvent:
    def test_from_record_carries_severity(self) -> None:
        record = _record()

        event = SanctionAppliedEvent.from_record(record, notification_required=True)

        assert event.event_type == SANCTION_APPLIED_EVENT_TYPE
        assert event.severity is SeverityLevel.HIGH
        assert event.sanction_kind == "partial_suspension"
        assert event.end_date == NOW + timedelta(days=14)

    def test_to_dict_is_serializable(self) -> None:
        record = _record()

        payload = SanctionAppliedEvent.from_record(record, True).to_dict()

        assert payload["event_type"] == "sanction.applied"
        assert payload["record_id"] == str(record.record_id)
        assert payload["severity"] == "high"
        assert payload["notification_required"] is True
        assert payload["occurred_at"] == NOW.isoformat()
        assert payload["schema_version"] == 1


class TestOtherEvents:
    def test_deactivated_event(self) -> None:
        event = SanctionDeactivatedEvent(
            record_id=uuid4(),
            user_id="u",
            program_id="p",
            deactivated_by="admin",
            reason="appeal",
            occurred_at=NOW,
        )

        assert event.event_type == SANCTION_DEACTIVATED_EVENT_TYPE
        assert event.to_dict()["deactivated_by"] == "admin"

    def test_expired_event_with_open_end(self) -> None:
        event = SanctionExpiredEvent(
            record_id=uuid4(), user_id="u", program_id="p", end_date=None, occurred_at=NOW
        )

        assert event.event_type == SANCTION_EXPIRED_EVENT_TYPE
        assert event.to_dict()["end_date"] is None
