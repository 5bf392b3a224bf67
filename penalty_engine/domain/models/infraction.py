"""Infraction catalog entries and the infraction event log entry.

An InfractionDefinition describes one kind of trigger-able bad behavior
for a program: its default severity and point value. An InfractionEvent
is a single recorded occurrence of that behavior by a user.

Usage:
    definition = InfractionDefinition.from_defaults(
        program_id="prog-1",
        kind=InfractionKind.NO_SHOW,
        now=time_authority.now(),
    )
    event = InfractionEvent.record(
        definition=definition,
        user_id="user-42",
        triggered_by="reservation-service",
        occurred_at=time_authority.now(),
    )
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from penalty_engine.domain.errors.validation import raise_if_invalid
from penalty_engine.domain.models.severity import SeverityLevel

MIN_PENALTY_POINTS: int = 0
MAX_PENALTY_POINTS: int = 100


class InfractionKind(str, Enum):
    """Closed set of infraction kinds a program can trigger."""

    NO_SHOW = "no_show"
    LATE_CANCELLATION = "late_cancellation"
    REPEATED_CANCELLATION = "repeated_cancellation"
    RESOURCE_MISUSE = "resource_misuse"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    WAITING_LIST_NO_RESPONSE = "waiting_list_no_response"
    WAITING_LIST_REJECTION_ABUSE = "waiting_list_rejection_abuse"
    REASSIGNMENT_REJECTION_ABUSE = "reassignment_rejection_abuse"
    POLICY_VIOLATION = "policy_violation"
    FALSE_INFORMATION = "false_information"
    CUSTOM = "custom"

    @property
    def is_system_kind(self) -> bool:
        """True for every kind the engine can synthesize a definition for."""
        return self is not InfractionKind.CUSTOM


@dataclass(frozen=True)
class InfractionDefaults:
    """Default catalog values for an infraction kind."""

    name: str
    description: str
    severity: SeverityLevel
    penalty_points: int


DEFAULT_INFRACTIONS: dict[InfractionKind, InfractionDefaults] = {
    InfractionKind.NO_SHOW: InfractionDefaults(
        "No Show",
        "User failed to show up for a confirmed reservation",
        SeverityLevel.MEDIUM,
        10,
    ),
    InfractionKind.LATE_CANCELLATION: InfractionDefaults(
        "Late Cancellation",
        "User cancelled a reservation with insufficient notice",
        SeverityLevel.LOW,
        5,
    ),
    InfractionKind.REPEATED_CANCELLATION: InfractionDefaults(
        "Repeated Cancellation",
        "User repeatedly cancelled reservations in a short period",
        SeverityLevel.MEDIUM,
        15,
    ),
    InfractionKind.RESOURCE_MISUSE: InfractionDefaults(
        "Resource Misuse",
        "User misused or damaged a reserved resource",
        SeverityLevel.HIGH,
        20,
    ),
    InfractionKind.UNAUTHORIZED_ACCESS: InfractionDefaults(
        "Unauthorized Access",
        "User accessed a resource without a valid reservation",
        SeverityLevel.HIGH,
        25,
    ),
    InfractionKind.WAITING_LIST_NO_RESPONSE: InfractionDefaults(
        "Waiting List No Response",
        "User did not respond to a waiting list offer in time",
        SeverityLevel.LOW,
        5,
    ),
    InfractionKind.WAITING_LIST_REJECTION_ABUSE: InfractionDefaults(
        "Waiting List Rejection Abuse",
        "User repeatedly rejected waiting list offers",
        SeverityLevel.MEDIUM,
        10,
    ),
    InfractionKind.REASSIGNMENT_REJECTION_ABUSE: InfractionDefaults(
        "Reassignment Rejection Abuse",
        "User repeatedly rejected resource reassignment proposals",
        SeverityLevel.MEDIUM,
        10,
    ),
    InfractionKind.POLICY_VIOLATION: InfractionDefaults(
        "Policy Violation",
        "User violated reservation or usage policies",
        SeverityLevel.MEDIUM,
        15,
    ),
    InfractionKind.FALSE_INFORMATION: InfractionDefaults(
        "False Information",
        "User provided false information in a reservation request",
        SeverityLevel.HIGH,
        20,
    ),
    InfractionKind.CUSTOM: InfractionDefaults(
        "Custom Infraction",
        "Custom infraction defined by the program",
        SeverityLevel.MEDIUM,
        10,
    ),
}


@dataclass(frozen=True)
class InfractionDefinitionUpdate:
    """Mutable fields of an infraction definition.

    Fields left as None are not changed. The merged definition is
    re-validated as a whole.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    severity: Optional[SeverityLevel] = None
    penalty_points: Optional[int] = None
    is_active: Optional[bool] = None

    @property
    def is_empty(self) -> bool:
        """True when the update changes nothing."""
        return all(
            value is None
            for value in (
                self.name,
                self.description,
                self.severity,
                self.penalty_points,
                self.is_active,
            )
        )


@dataclass(frozen=True)
class InfractionDefinition:
    """Catalog entry describing one kind of infraction for a program.

    Attributes:
        definition_id: Unique identifier.
        program_id: Owning program.
        kind: Infraction kind.
        name: Display name.
        description: What the infraction means.
        severity: Default severity of an occurrence.
        penalty_points: Points added to a user's score per occurrence (0-100).
        is_active: Inactive definitions cannot be triggered.
        is_custom: False for system defaults, True for program-authored entries.
        created_at: Creation time (UTC).
        updated_at: Last mutation time (UTC).
    """

    definition_id: UUID
    program_id: str
    kind: InfractionKind
    name: str
    description: str
    severity: SeverityLevel
    penalty_points: int
    is_active: bool
    is_custom: bool
    created_at: datetime
    updated_at: datetime

    def __post_init__(self) -> None:
        """Validate the definition, collecting every failed check."""
        errors: list[str] = []
        if not self.program_id or not self.program_id.strip():
            errors.append("Program ID is required")
        if not self.name or not self.name.strip():
            errors.append("Infraction name is required")
        if not self.description or not self.description.strip():
            errors.append("Infraction description is required")
        if not MIN_PENALTY_POINTS <= self.penalty_points <= MAX_PENALTY_POINTS:
            errors.append(
                f"Penalty points must be between {MIN_PENALTY_POINTS} and {MAX_PENALTY_POINTS}"
            )
        if self.kind is InfractionKind.CUSTOM and not self.is_custom:
            errors.append("Custom infraction kind must be flagged as custom")
        raise_if_invalid(errors, subject="infraction definition")

    @classmethod
    def create(
        cls,
        *,
        program_id: str,
        kind: InfractionKind,
        name: str,
        description: str,
        severity: SeverityLevel,
        penalty_points: int,
        now: datetime,
        is_custom: bool = True,
        is_active: bool = True,
    ) -> InfractionDefinition:
        """Create a new definition with a fresh identifier.

        Raises:
            PenaltyValidationError: If any field is invalid.
        """
        return cls(
            definition_id=uuid4(),
            program_id=program_id,
            kind=kind,
            name=name,
            description=description,
            severity=severity,
            penalty_points=penalty_points,
            is_active=is_active,
            is_custom=is_custom,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_defaults(
        cls,
        *,
        program_id: str,
        kind: InfractionKind,
        now: datetime,
        is_custom: bool = False,
    ) -> InfractionDefinition:
        """Build a definition from the default table for ``kind``."""
        defaults = DEFAULT_INFRACTIONS[kind]
        return cls.create(
            program_id=program_id,
            kind=kind,
            name=defaults.name,
            description=defaults.description,
            severity=defaults.severity,
            penalty_points=defaults.penalty_points,
            now=now,
            is_custom=is_custom or kind is InfractionKind.CUSTOM,
        )

    @property
    def is_system_default(self) -> bool:
        return not self.is_custom

    @property
    def can_be_deleted(self) -> bool:
        return self.is_custom

    def has_points_between(self, min_points: int, max_points: int) -> bool:
        """True when the point value lies in [min_points, max_points]."""
        return min_points <= self.penalty_points <= max_points

    def apply_update(
        self, update: InfractionDefinitionUpdate, now: datetime
    ) -> InfractionDefinition:
        """Return a copy with the update applied.

        Raises:
            PenaltyValidationError: If the merged definition is invalid.
        """
        return replace(
            self,
            name=self.name if update.name is None else update.name,
            description=(
                self.description if update.description is None else update.description
            ),
            severity=self.severity if update.severity is None else update.severity,
            penalty_points=(
                self.penalty_points
                if update.penalty_points is None
                else update.penalty_points
            ),
            is_active=self.is_active if update.is_active is None else update.is_active,
            updated_at=now,
        )

    def activate(self, now: datetime) -> InfractionDefinition:
        return replace(self, is_active=True, updated_at=now)

    def deactivate(self, now: datetime) -> InfractionDefinition:
        return replace(self, is_active=False, updated_at=now)

    def clone_for_program(self, program_id: str, now: datetime) -> InfractionDefinition:
        """Copy this definition into another program as a customizable entry."""
        return replace(
            self,
            definition_id=uuid4(),
            program_id=program_id,
            is_custom=True,
            created_at=now,
            updated_at=now,
        )


@dataclass(frozen=True)
class InfractionEvent:
    """One recorded occurrence of an infraction by a user.

    Point value and severity are copied from the definition at recording
    time so later catalog edits never rewrite a user's history.
    """

    event_id: UUID
    user_id: str
    program_id: str
    kind: InfractionKind
    definition_id: Optional[UUID]
    name: str
    severity: SeverityLevel
    penalty_points: int
    triggered_by: str
    occurred_at: datetime
    notes: Optional[str] = None
    resource_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the occurrence."""
        errors: list[str] = []
        if not self.user_id:
            errors.append("User ID is required")
        if not self.program_id:
            errors.append("Program ID is required")
        if not self.triggered_by:
            errors.append("Triggered by is required")
        if not MIN_PENALTY_POINTS <= self.penalty_points <= MAX_PENALTY_POINTS:
            errors.append(
                f"Penalty points must be between {MIN_PENALTY_POINTS} and {MAX_PENALTY_POINTS}"
            )
        raise_if_invalid(errors, subject="infraction event")

    @classmethod
    def record(
        cls,
        *,
        definition: InfractionDefinition,
        user_id: str,
        triggered_by: str,
        occurred_at: datetime,
        notes: Optional[str] = None,
        resource_id: Optional[str] = None,
        persisted_definition: bool = True,
    ) -> InfractionEvent:
        """Create an occurrence of ``definition`` for ``user_id``.

        Args:
            persisted_definition: False when the definition was synthesized
                from defaults and has no catalog row to reference.
        """
        return cls(
            event_id=uuid4(),
            user_id=user_id,
            program_id=definition.program_id,
            kind=definition.kind,
            definition_id=definition.definition_id if persisted_definition else None,
            name=definition.name,
            severity=definition.severity,
            penalty_points=definition.penalty_points,
            triggered_by=triggered_by,
            occurred_at=occurred_at,
            notes=notes,
            resource_id=resource_id,
        )
