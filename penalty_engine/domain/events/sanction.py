"""Sanction lifecycle events.

Events are published one-way to the notification fan-out. The engine
never waits on delivery, and delivery failure never fails the operation
that raised the event.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from penalty_engine.domain.models.sanction_record import UserSanctionRecord
from penalty_engine.domain.models.severity import SeverityLevel

# =============================================================================
# Event Type Constants
# =============================================================================

SANCTION_APPLIED_EVENT_TYPE: str = "sanction.applied"
SANCTION_DEACTIVATED_EVENT_TYPE: str = "sanction.deactivated"
SANCTION_EXPIRED_EVENT_TYPE: str = "sanction.expired"

SANCTION_EVENT_SCHEMA_VERSION: int = 1


@dataclass(frozen=True)
class SanctionAppliedEvent:
    """Raised when a sanction record is created for a user.

    Attributes:
        record_id: The new ledger record.
        user_id: Sanctioned user.
        program_id: Program the sanction applies in.
        sanction_kind: Kind value of the applied sanction.
        severity: Severity implied by the sanction kind; notification
            channels are chosen from this.
        notification_required: False for LOW severity sanctions.
        end_date: When the sanction ends, None if open-ended.
        occurred_at: When it was applied.
    """

    record_id: UUID
    user_id: str
    program_id: str
    sanction_kind: str
    severity: SeverityLevel
    notification_required: bool
    end_date: Optional[datetime]
    occurred_at: datetime
    schema_version: int = SANCTION_EVENT_SCHEMA_VERSION

    @property
    def event_type(self) -> str:
        return SANCTION_APPLIED_EVENT_TYPE

    @classmethod
    def from_record(
        cls, record: UserSanctionRecord, notification_required: bool
    ) -> SanctionAppliedEvent:
        return cls(
            record_id=record.record_id,
            user_id=record.user_id,
            program_id=record.program_id,
            sanction_kind=record.sanction_kind.value,
            severity=record.severity,
            notification_required=notification_required,
            end_date=record.end_date,
            occurred_at=record.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the publisher."""
        return {
            "event_type": self.event_type,
            "record_id": str(self.record_id),
            "user_id": self.user_id,
            "program_id": self.program_id,
            "sanction_kind": self.sanction_kind,
            "severity": self.severity.value,
            "notification_required": self.notification_required,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": self.schema_version,
        }


@dataclass(frozen=True)
class SanctionDeactivatedEvent:
    """Raised when an administrator deactivates a sanction."""

    record_id: UUID
    user_id: str
    program_id: str
    deactivated_by: str
    reason: str
    occurred_at: datetime
    schema_version: int = SANCTION_EVENT_SCHEMA_VERSION

    @property
    def event_type(self) -> str:
        return SANCTION_DEACTIVATED_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "record_id": str(self.record_id),
            "user_id": self.user_id,
            "program_id": self.program_id,
            "deactivated_by": self.deactivated_by,
            "reason": self.reason,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": self.schema_version,
        }


@dataclass(frozen=True)
class SanctionExpiredEvent:
    """Raised by the expiration sweep for each record it deactivates."""

    record_id: UUID
    user_id: str
    program_id: str
    end_date: Optional[datetime]
    occurred_at: datetime
    schema_version: int = SANCTION_EVENT_SCHEMA_VERSION

    @property
    def event_type(self) -> str:
        return SANCTION_EXPIRED_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "record_id": str(self.record_id),
            "user_id": self.user_id,
            "program_id": self.program_id,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": self.schema_version,
        }


SanctionEvent = SanctionAppliedEvent | SanctionDeactivatedEvent | SanctionExpiredEvent
