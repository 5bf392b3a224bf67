"""Sanction rules: accumulated-point ranges mapped to a consequence.

A SanctionRule belongs to a program and says "a user whose points fall in
[min_points, max_points] receives this kind of sanction, for this many
days, at this restriction level".

Invariants:
- 0 <= min_points <= max_points <= 1000
- permanent-suspension => duration_days == 0
- any other non-warning kind => duration_days > 0
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from penalty_engine.domain.errors.validation import raise_if_invalid
from penalty_engine.domain.models.severity import SeverityLevel
from penalty_engine.domain.models.user_action import UserAction

MAX_RULE_POINTS: int = 1000


class SanctionKind(str, Enum):
    """Closed set of sanction kinds."""

    WARNING = "warning"
    TEMPORARY_SUSPENSION = "temporary_suspension"
    PARTIAL_SUSPENSION = "partial_suspension"
    FULL_SUSPENSION = "full_suspension"
    PERMANENT_SUSPENSION = "permanent_suspension"
    LIMITED_ACCESS = "limited_access"
    CUSTOM_RESTRICTION = "custom_restriction"
    RESERVATION_SUSPENSION = "reservation_suspension"
    MODIFICATION_SUSPENSION = "modification_suspension"
    WAITING_LIST_SUSPENSION = "waiting_list_suspension"

    @property
    def severity(self) -> SeverityLevel:
        """Severity implied by the kind; unlisted kinds are LOW."""
        return SANCTION_SEVERITY.get(self, SeverityLevel.LOW)

    @property
    def is_escalation_trigger(self) -> bool:
        """Applying this kind always requires escalation review."""
        return self in (SanctionKind.FULL_SUSPENSION, SanctionKind.PERMANENT_SUSPENSION)


SANCTION_SEVERITY: dict[SanctionKind, SeverityLevel] = {
    SanctionKind.WARNING: SeverityLevel.LOW,
    SanctionKind.TEMPORARY_SUSPENSION: SeverityLevel.MEDIUM,
    SanctionKind.PARTIAL_SUSPENSION: SeverityLevel.HIGH,
    SanctionKind.FULL_SUSPENSION: SeverityLevel.CRITICAL,
    SanctionKind.PERMANENT_SUSPENSION: SeverityLevel.CRITICAL,
}


class RestrictionLevel(str, Enum):
    """How far a sanction limits reservations, ordered least to most restrictive."""

    NONE = "none"
    LIMITED_RESERVATIONS = "limited_reservations"
    NO_ADVANCE_RESERVATIONS = "no_advance_reservations"
    SPECIFIC_RESOURCES_ONLY = "specific_resources_only"
    APPROVAL_REQUIRED = "approval_required"
    NO_RESERVATIONS = "no_reservations"

    @property
    def rank(self) -> int:
        return list(RestrictionLevel).index(self)

    @property
    def description(self) -> str:
        return _RESTRICTION_DESCRIPTIONS[self]


_RESTRICTION_DESCRIPTIONS: dict[RestrictionLevel, str] = {
    RestrictionLevel.NONE: "No restrictions",
    RestrictionLevel.LIMITED_RESERVATIONS: "Limited number of reservations",
    RestrictionLevel.NO_ADVANCE_RESERVATIONS: "Same-day reservations only",
    RestrictionLevel.SPECIFIC_RESOURCES_ONLY: "Specific resources only",
    RestrictionLevel.APPROVAL_REQUIRED: "All reservations require approval",
    RestrictionLevel.NO_RESERVATIONS: "No reservations allowed",
}


def validate_rule_configuration(
    min_points: int,
    max_points: int,
    sanction_kind: SanctionKind,
    duration_days: int,
    daily_action_limit: Optional[int] = None,
) -> list[str]:
    """Check a rule's range, duration and kind against each other.

    Returns:
        Every failed check as a message; empty when valid.
    """
    errors: list[str] = []
    if min_points < 0:
        errors.append("Minimum points cannot be negative")
    if max_points < min_points:
        errors.append("Maximum points must be greater than or equal to minimum points")
    if max_points > MAX_RULE_POINTS:
        errors.append(f"Maximum points cannot exceed {MAX_RULE_POINTS}")
    if duration_days < 0:
        errors.append("Sanction duration cannot be negative")
    if sanction_kind is SanctionKind.PERMANENT_SUSPENSION and duration_days != 0:
        errors.append("Permanent suspension must have zero duration")
    if (
        sanction_kind not in (SanctionKind.WARNING, SanctionKind.PERMANENT_SUSPENSION)
        and duration_days == 0
    ):
        errors.append("Temporary sanctions must have a duration greater than 0")
    if daily_action_limit is not None and daily_action_limit < 1:
        errors.append("Daily action limit must be at least 1")
    return errors


@dataclass(frozen=True)
class SanctionRuleUpdate:
    """Mutable fields of a sanction rule; None leaves a field unchanged.

    ``daily_action_limit`` cannot be reset through None, so
    ``clear_daily_action_limit`` drops the rule's own quota and the
    configured default applies again.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    min_points: Optional[int] = None
    max_points: Optional[int] = None
    sanction_kind: Optional[SanctionKind] = None
    duration_days: Optional[int] = None
    restriction_level: Optional[RestrictionLevel] = None
    is_active: Optional[bool] = None
    daily_action_limit: Optional[int] = None
    clear_daily_action_limit: bool = False

    def __post_init__(self) -> None:
        if self.clear_daily_action_limit and self.daily_action_limit is not None:
            raise_if_invalid(
                ["Cannot both set and clear the daily action limit"],
                subject="sanction rule update",
            )

    @property
    def changes_range(self) -> bool:
        return self.min_points is not None or self.max_points is not None


@dataclass(frozen=True)
class SanctionRule:
    """Program-scoped mapping from a point range to a sanction.

    Attributes:
        rule_id: Unique identifier.
        program_id: Owning program.
        name: Display name.
        description: Shown to users in restriction descriptors.
        min_points: Inclusive lower bound.
        max_points: Inclusive upper bound.
        sanction_kind: Consequence applied.
        duration_days: Length of the sanction; 0 means open-ended.
        restriction_level: Reservation restriction while active.
        is_active: Inactive rules are never applied.
        is_custom: False for system defaults.
        created_at: Creation time (UTC).
        updated_at: Last mutation time (UTC).
        daily_action_limit: Per-day action quota for limited-access rules.
    """

    rule_id: UUID
    program_id: str
    name: str
    description: str
    min_points: int
    max_points: int
    sanction_kind: SanctionKind
    duration_days: int
    restriction_level: RestrictionLevel
    is_active: bool
    is_custom: bool
    created_at: datetime
    updated_at: datetime
    daily_action_limit: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate the rule, collecting every failed check."""
        errors: list[str] = []
        if not self.program_id or not self.program_id.strip():
            errors.append("Program ID is required")
        if not self.name or not self.name.strip():
            errors.append("Sanction rule name is required")
        if not self.description or not self.description.strip():
            errors.append("Sanction rule description is required")
        errors.extend(
            validate_rule_configuration(
                self.min_points,
                self.max_points,
                self.sanction_kind,
                self.duration_days,
                self.daily_action_limit,
            )
        )
        raise_if_invalid(errors, subject="sanction rule")

    @classmethod
    def create(
        cls,
        *,
        program_id: str,
        name: str,
        description: str,
        min_points: int,
        max_points: int,
        sanction_kind: SanctionKind,
        duration_days: int,
        restriction_level: RestrictionLevel,
        now: datetime,
        is_custom: bool = True,
        is_active: bool = True,
        daily_action_limit: Optional[int] = None,
    ) -> SanctionRule:
        """Create a new rule with a fresh identifier.

        Raises:
            PenaltyValidationError: If any field is invalid.
        """
        return cls(
            rule_id=uuid4(),
            program_id=program_id,
            name=name,
            description=description,
            min_points=min_points,
            max_points=max_points,
            sanction_kind=sanction_kind,
            duration_days=duration_days,
            restriction_level=restriction_level,
            is_active=is_active,
            is_custom=is_custom,
            created_at=now,
            updated_at=now,
            daily_action_limit=daily_action_limit,
        )

    def applies_to(self, points: int) -> bool:
        """True when ``points`` lies inside this rule's inclusive range."""
        return self.min_points <= points <= self.max_points

    def overlaps(self, min_points: int, max_points: int) -> bool:
        """True when [min_points, max_points] intersects this rule's range."""
        return self.min_points <= max_points and min_points <= self.max_points

    @property
    def severity(self) -> SeverityLevel:
        return self.sanction_kind.severity

    @property
    def is_permanent(self) -> bool:
        return self.sanction_kind is SanctionKind.PERMANENT_SUSPENSION

    @property
    def is_temporary(self) -> bool:
        return self.sanction_kind not in (
            SanctionKind.PERMANENT_SUSPENSION,
            SanctionKind.WARNING,
        )

    @property
    def is_system_default(self) -> bool:
        return not self.is_custom

    @property
    def can_be_deleted(self) -> bool:
        return self.is_custom

    @property
    def point_range_text(self) -> str:
        if self.min_points == self.max_points:
            return f"{self.min_points} points"
        return f"{self.min_points}-{self.max_points} points"

    @property
    def duration_text(self) -> str:
        if self.sanction_kind is SanctionKind.WARNING:
            return "No duration (warning only)"
        if self.is_permanent:
            return "Permanent"
        if self.duration_days == 1:
            return "1 day"
        return f"{self.duration_days} days"

    def apply_update(self, update: SanctionRuleUpdate, now: datetime) -> SanctionRule:
        """Return a copy with the update applied.

        Raises:
            PenaltyValidationError: If the merged rule is invalid.
        """

        def pick(new: object, current: object) -> object:
            return current if new is None else new

        return replace(
            self,
            name=pick(update.name, self.name),
            description=pick(update.description, self.description),
            min_points=pick(update.min_points, self.min_points),
            max_points=pick(update.max_points, self.max_points),
            sanction_kind=pick(update.sanction_kind, self.sanction_kind),
            duration_days=pick(update.duration_days, self.duration_days),
            restriction_level=pick(update.restriction_level, self.restriction_level),
            is_active=pick(update.is_active, self.is_active),
            daily_action_limit=(
                None
                if update.clear_daily_action_limit
                else pick(update.daily_action_limit, self.daily_action_limit)
            ),
            updated_at=now,
        )

    def activate(self, now: datetime) -> SanctionRule:
        return replace(self, is_active=True, updated_at=now)

    def deactivate(self, now: datetime) -> SanctionRule:
        return replace(self, is_active=False, updated_at=now)

    def clone_for_program(self, program_id: str, now: datetime) -> SanctionRule:
        """Copy this rule into another program as a customizable entry."""
        return replace(
            self,
            rule_id=uuid4(),
            program_id=program_id,
            is_custom=True,
            created_at=now,
            updated_at=now,
        )


@dataclass(frozen=True)
class SanctionRuleDefaults:
    """One row of the default sanction ladder."""

    name: str
    description: str
    min_points: int
    max_points: int
    sanction_kind: SanctionKind
    duration_days: int
    restriction_level: RestrictionLevel


DEFAULT_SANCTION_RULES: tuple[SanctionRuleDefaults, ...] = (
    SanctionRuleDefaults(
        "Initial Warning",
        "Formal warning for accumulated infractions",
        0,
        19,
        SanctionKind.WARNING,
        0,
        RestrictionLevel.NONE,
    ),
    SanctionRuleDefaults(
        "Temporary Suspension",
        "Reservations limited for one week",
        20,
        49,
        SanctionKind.TEMPORARY_SUSPENSION,
        7,
        RestrictionLevel.LIMITED_RESERVATIONS,
    ),
    SanctionRuleDefaults(
        "Partial Suspension",
        "All reservations require approval for two weeks",
        50,
        99,
        SanctionKind.PARTIAL_SUSPENSION,
        14,
        RestrictionLevel.APPROVAL_REQUIRED,
    ),
    SanctionRuleDefaults(
        "Full Suspension",
        "No reservations allowed for thirty days",
        100,
        199,
        SanctionKind.FULL_SUSPENSION,
        30,
        RestrictionLevel.NO_RESERVATIONS,
    ),
    SanctionRuleDefaults(
        "Permanent Suspension",
        "Reservation privileges permanently revoked",
        200,
        MAX_RULE_POINTS,
        SanctionKind.PERMANENT_SUSPENSION,
        0,
        RestrictionLevel.NO_RESERVATIONS,
    ),
)


# Actions each kind blocks outright while the sanction is currently active.
# Full and permanent suspensions block every action.
_BLOCKED_ACTIONS: dict[SanctionKind, frozenset[UserAction]] = {
    SanctionKind.RESERVATION_SUSPENSION: frozenset({UserAction.CREATE_RESERVATION}),
    SanctionKind.MODIFICATION_SUSPENSION: frozenset({UserAction.MODIFY_RESERVATION}),
    SanctionKind.WAITING_LIST_SUSPENSION: frozenset({UserAction.JOIN_WAITING_LIST}),
    SanctionKind.FULL_SUSPENSION: frozenset(UserAction),
    SanctionKind.PERMANENT_SUSPENSION: frozenset(UserAction),
}


def sanction_blocks_action(kind: SanctionKind, action: UserAction) -> bool:
    """True when an active sanction of ``kind`` forbids ``action``."""
    return action in _BLOCKED_ACTIONS.get(kind, frozenset())
