"""User sanction ledger entry.

A UserSanctionRecord is one applied consequence instance. Records are
never hard-deleted: deactivation and expiration are status transitions,
and notes are append-only.

Derived state is computed against a caller-supplied ``now`` so that
every service reads time through its TimeAuthorityProtocol:

    currently_active = is_active AND (permanent OR no end date OR now <= end)
    expired          = NOT permanent AND end date present AND now > end
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from penalty_engine.domain.errors.lifecycle import SanctionInvariantError
from penalty_engine.domain.errors.validation import raise_if_invalid
from penalty_engine.domain.models.sanction_rule import (
    RestrictionLevel,
    SanctionKind,
    SanctionRule,
)
from penalty_engine.domain.models.severity import SeverityLevel

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class UserSanctionRecord:
    """One sanction applied to one user.

    Attributes:
        record_id: Unique identifier.
        user_id: Sanctioned user.
        program_id: Program the sanction applies in.
        rule_id: Sanction rule that produced the record.
        infraction_event_id: Originating infraction event, if any.
        total_points: User's accumulated points when the sanction was applied.
        points_from_event: Points contributed by the originating event.
        sanction_kind: Consequence kind, copied from the rule.
        restriction_level: Restriction level, possibly overridden.
        start_date: When the sanction took effect.
        end_date: When it ends; None for permanent or open-ended sanctions.
        is_active: Cleared by deactivation or the expiration sweep.
        reason: Why the sanction was applied.
        applied_by: Identity of the applier.
        notes: Append-only administrative notes.
        created_at: Creation time (UTC).
        updated_at: Last mutation time (UTC).
        version: Incremented by every transition; the ledger writes only
            when the stored version still matches the one that was read.
    """

    record_id: UUID
    user_id: str
    program_id: str
    rule_id: UUID
    infraction_event_id: Optional[UUID]
    total_points: int
    points_from_event: int
    sanction_kind: SanctionKind
    restriction_level: RestrictionLevel
    start_date: datetime
    end_date: Optional[datetime]
    is_active: bool
    reason: str
    applied_by: str
    notes: tuple[str, ...]
    created_at: datetime
    updated_at: datetime
    version: int = 1

    def __post_init__(self) -> None:
        errors: list[str] = []
        if not self.user_id:
            errors.append("User ID is required")
        if not self.program_id:
            errors.append("Program ID is required")
        if self.total_points < 0 or self.points_from_event < 0:
            errors.append("Penalty points cannot be negative")
        if not self.reason or not self.reason.strip():
            errors.append("Reason is required")
        if not self.applied_by:
            errors.append("Applied by is required")
        if self.version < 1:
            errors.append("Version must be at least 1")
        if self.end_date is not None and self.end_date <= self.start_date:
            errors.append("End date must be after start date")
        if self.sanction_kind is SanctionKind.PERMANENT_SUSPENSION and self.end_date is not None:
            errors.append("Permanent suspension must not have an end date")
        raise_if_invalid(errors, subject="sanction record")

    @classmethod
    def create_from_rule(
        cls,
        *,
        rule: SanctionRule,
        user_id: str,
        applied_by: str,
        reason: str,
        now: datetime,
        duration_days: Optional[int] = None,
        restriction_level: Optional[RestrictionLevel] = None,
        total_points: int = 0,
        points_from_event: Optional[int] = None,
        infraction_event_id: Optional[UUID] = None,
        notes: Optional[str] = None,
        program_id: Optional[str] = None,
    ) -> UserSanctionRecord:
        """Build a record applying ``rule`` to ``user_id`` starting at ``now``.

        A resolved duration of 0 days produces no end date (open-ended
        warning or permanent sanction). Without caller-computed totals the
        record carries 0 accumulated points and ``rule.max_points`` as the
        points from this application.

        Raises:
            PenaltyValidationError: If the resulting record is invalid.
        """
        days = rule.duration_days if duration_days is None else duration_days
        end_date = now + timedelta(days=days) if days > 0 else None
        return cls(
            record_id=uuid4(),
            user_id=user_id,
            program_id=program_id or rule.program_id,
            rule_id=rule.rule_id,
            infraction_event_id=infraction_event_id,
            total_points=total_points,
            points_from_event=(
                rule.max_points if points_from_event is None else points_from_event
            ),
            sanction_kind=rule.sanction_kind,
            restriction_level=restriction_level or rule.restriction_level,
            start_date=now,
            end_date=end_date,
            is_active=True,
            reason=reason,
            applied_by=applied_by,
            notes=(notes,) if notes else (),
            created_at=now,
            updated_at=now,
        )

    # Derived state

    @property
    def is_permanent(self) -> bool:
        return self.sanction_kind is SanctionKind.PERMANENT_SUSPENSION

    @property
    def is_temporary(self) -> bool:
        return not self.is_permanent and self.sanction_kind is not SanctionKind.WARNING

    @property
    def is_warning(self) -> bool:
        return self.sanction_kind is SanctionKind.WARNING

    @property
    def severity(self) -> SeverityLevel:
        return self.sanction_kind.severity

    def is_currently_active(self, now: datetime) -> bool:
        if not self.is_active:
            return False
        if self.is_permanent or self.end_date is None:
            return True
        return now <= self.end_date

    def is_expired(self, now: datetime) -> bool:
        if self.is_permanent or self.end_date is None:
            return False
        return now > self.end_date

    def remaining_days(self, now: datetime) -> Optional[int]:
        """Whole days left, rounded up; None for permanent or open-ended records."""
        if self.is_permanent or self.end_date is None:
            return None
        remaining = (self.end_date - now).total_seconds()
        return max(0, math.ceil(remaining / _SECONDS_PER_DAY))

    def total_duration_days(self) -> Optional[int]:
        if self.is_permanent or self.end_date is None:
            return None
        duration = (self.end_date - self.start_date).total_seconds()
        return math.ceil(duration / _SECONDS_PER_DAY)

    def status_text(self, now: datetime) -> str:
        if not self.is_active:
            return "Inactive"
        if self.is_expired(now):
            return "Expired"
        if self.is_permanent:
            return "Permanent"
        remaining = self.remaining_days(now)
        if remaining is None:
            return "Active"
        if remaining == 0:
            return "Expires today"
        if remaining == 1:
            return "Expires in 1 day"
        return f"Expires in {remaining} days"

    def can_make_reservations(self, now: datetime) -> bool:
        if not self.is_currently_active(now):
            return True
        return self.restriction_level is not RestrictionLevel.NO_RESERVATIONS

    def needs_approval_for_reservations(self, now: datetime) -> bool:
        if not self.is_currently_active(now):
            return False
        return self.restriction_level is RestrictionLevel.APPROVAL_REQUIRED

    def can_make_advance_reservations(self, now: datetime) -> bool:
        if not self.is_currently_active(now):
            return True
        return self.restriction_level not in (
            RestrictionLevel.NO_ADVANCE_RESERVATIONS,
            RestrictionLevel.NO_RESERVATIONS,
        )

    # Lifecycle transitions. Each returns a new record; the ledger persists
    # it with a conditional update keyed on the previous version.

    def deactivate(self, deactivated_by: str, reason: str, now: datetime) -> UserSanctionRecord:
        """Clear the active flag and record who did it.

        After this, ``is_currently_active`` is False regardless of dates.
        """
        note = f"Deactivated by {deactivated_by}: {reason}"
        return replace(
            self,
            is_active=False,
            notes=self.notes + (note,),
            updated_at=now,
            version=self.version + 1,
        )

    def expire(self, now: datetime) -> UserSanctionRecord:
        """Status transition applied by the expiration sweep."""
        note = f"Expired automatically at {now.isoformat()}"
        return replace(
            self,
            is_active=False,
            notes=self.notes + (note,),
            updated_at=now,
            version=self.version + 1,
        )

    def extend(
        self, days: int, extended_by: str, reason: str, now: datetime
    ) -> UserSanctionRecord:
        """Push the end date later by ``days``.

        Raises:
            SanctionInvariantError: If the record is permanent, has no end
                date, or ``days`` is not positive.
        """
        end_date = self._require_adjustable_end_date("extend", days)
        note = f"Extended by {days} days by {extended_by}: {reason}"
        return replace(
            self,
            end_date=end_date + timedelta(days=days),
            notes=self.notes + (note,),
            updated_at=now,
            version=self.version + 1,
        )

    def reduce(
        self, days: int, reduced_by: str, reason: str, now: datetime
    ) -> UserSanctionRecord:
        """Pull the end date earlier by ``days``, never earlier than now + 1 day.

        Raises:
            SanctionInvariantError: If the record is permanent, has no end
                date, or ``days`` is not positive.
        """
        end_date = self._require_adjustable_end_date("reduce", days)
        new_end = end_date - timedelta(days=days)
        if new_end <= now:
            new_end = now + timedelta(days=1)
        note = f"Reduced by {days} days by {reduced_by}: {reason}"
        return replace(
            self,
            end_date=new_end,
            notes=self.notes + (note,),
            updated_at=now,
            version=self.version + 1,
        )

    def add_note(self, text: str, added_by: str, now: datetime) -> UserSanctionRecord:
        """Append a timestamped note; nothing else changes."""
        return replace(
            self,
            notes=self.notes + (f"[{now.isoformat()}] {added_by}: {text}",),
            updated_at=now,
            version=self.version + 1,
        )

    def _require_adjustable_end_date(self, operation: str, days: int) -> datetime:
        if self.is_permanent:
            raise SanctionInvariantError(
                f"Cannot {operation} a permanent sanction", record_id=self.record_id
            )
        if self.end_date is None:
            raise SanctionInvariantError(
                f"Cannot {operation} a sanction without an end date",
                record_id=self.record_id,
            )
        if days <= 0:
            raise SanctionInvariantError(
                f"Days to {operation} must be positive", record_id=self.record_id
            )
        return self.end_date
