"""Result types returned by the penalty engine and its catalogs.

These are read-only value objects handed back to collaborators; none of
them is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from penalty_engine.domain.models.infraction import InfractionEvent, InfractionKind
from penalty_engine.domain.models.sanction_record import UserSanctionRecord
from penalty_engine.domain.models.sanction_rule import (
    RestrictionLevel,
    SanctionKind,
    SanctionRule,
)
from penalty_engine.domain.models.severity import RiskLevel, SeverityLevel


@dataclass(frozen=True)
class RestrictionDescriptor:
    """Why an action was denied: one blocking sanction or an exhausted quota."""

    sanction_kind: SanctionKind
    description: str
    expires_at: Optional[datetime]
    severity: SeverityLevel
    record_id: Optional[UUID] = None


@dataclass(frozen=True)
class EffectiveRestriction:
    """A restriction in force after a sanction is applied."""

    sanction_kind: SanctionKind
    description: str
    expires_at: Optional[datetime]


@dataclass(frozen=True)
class AppliedPenalty:
    """Outcome of applying one sanction rule to a user."""

    record: UserSanctionRecord
    effective_restrictions: tuple[EffectiveRestriction, ...]
    notification_required: bool


@dataclass(frozen=True)
class InfractionProcessingResult:
    """Decision returned by process_infraction.

    Attributes:
        event: The recorded infraction occurrence.
        applied_sanctions: Ledger entries created for this occurrence.
        warnings: Human-readable risk and repeat warnings.
        escalation_required: True when a human should review the user.
        repeat_count: Occurrences of the same kind in the lookback window,
            including this one.
        risk_level: Risk level after this occurrence.
    """

    event: InfractionEvent
    applied_sanctions: tuple[UserSanctionRecord, ...]
    warnings: tuple[str, ...]
    escalation_required: bool
    repeat_count: int
    risk_level: RiskLevel


@dataclass(frozen=True)
class ActionValidationResult:
    """Answer to "can this user perform this action"."""

    allowed: bool
    restrictions: tuple[RestrictionDescriptor, ...] = ()
    warnings: tuple[str, ...] = ()
    remaining_actions: Optional[int] = None


@dataclass(frozen=True)
class ScoreBreakdownEntry:
    """Per-kind slice of a penalty score."""

    kind: InfractionKind
    count: int
    total_points: int
    average_severity: float


@dataclass(frozen=True)
class PenaltyScore:
    """Windowed risk score for a user."""

    total_score: int
    breakdown: tuple[ScoreBreakdownEntry, ...]
    risk_level: RiskLevel
    recommendations: tuple[str, ...]
    window_start: datetime
    window_end: datetime

    def count_for(self, kind: InfractionKind) -> int:
        for entry in self.breakdown:
            if entry.kind is kind:
                return entry.count
        return 0


@dataclass(frozen=True)
class RuleRecommendation:
    """Most severe applicable rule for a point value, plus the rest."""

    recommended: Optional[SanctionRule]
    alternatives: tuple[SanctionRule, ...] = ()


@dataclass(frozen=True)
class RuleCreationResult:
    """A created rule with non-blocking overlap warnings."""

    rule: SanctionRule
    warnings: tuple[str, ...] = ()
    conflicts: tuple[SanctionRule, ...] = ()


@dataclass(frozen=True)
class UserSanctionStatus:
    """Snapshot of a user's active sanctions in a program."""

    user_id: str
    program_id: str
    has_active_sanctions: bool
    can_make_reservations: bool
    needs_approval: bool
    can_make_advance_reservations: bool
    active_records: tuple[UserSanctionRecord, ...]
    total_active_points: int
    highest_restriction: Optional[RestrictionLevel]
    most_severe_kind: Optional[SanctionKind]


@dataclass(frozen=True)
class InfractionCatalogStats:
    total: int
    active: int
    inactive: int
    system_defaults: int
    custom: int
    average_points: float
    points_distribution: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class SanctionRuleCatalogStats:
    total: int
    active: int
    by_kind: dict[SanctionKind, int] = field(default_factory=dict)
    by_restriction_level: dict[RestrictionLevel, int] = field(default_factory=dict)
    by_severity: dict[SeverityLevel, int] = field(default_factory=dict)
    average_duration_days: float = 0.0
    min_points_covered: Optional[int] = None
    max_points_covered: Optional[int] = None
