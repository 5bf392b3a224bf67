"""Penalty engine orchestration.

Consumes infraction reports from reservation, waiting-list and
reassignment collaborators, decides which sanctions to apply, computes
windowed risk scores, and answers "may this user perform this action".

process_infraction flow:
    1. Resolve the infraction definition (program entry, system default,
       or built-in defaults for system kinds) and record the occurrence.
    2. Load the program's active sanction rules.
    3. Count occurrences of the same kind for this user and program in
       the lookback window, including the new one (repeat_count).
    4. Escalation gate, per rule: repeat_count 1 applies only LOW rules,
       2 only MEDIUM, 3 or more only HIGH. Other rules are skipped.
    5. Apply every rule that passes the gate.
    6. Score the user over the scoring window.
    7. Escalation is required when a full or permanent suspension was
       applied, the risk level is CRITICAL, or repeat_count >= 3.

Steps 1-5 run under a per-(user, program) lock so two concurrent reports
cannot both observe the same repeat_count.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Optional
from uuid import UUID

import structlog

from penalty_engine.application.ports.infraction_repository import (
    InfractionEventLogProtocol,
)
from penalty_engine.application.ports.time_authority import TimeAuthorityProtocol
from penalty_engine.application.ports.user_action_counter import UserActionCounterProtocol
from penalty_engine.application.services.base import LoggingMixin
from penalty_engine.application.services.infraction_catalog_service import (
    InfractionCatalogService,
)
from penalty_engine.application.services.keyed_lock import KeyedLockRegistry
from penalty_engine.application.services.sanction_ledger_service import (
    SanctionLedgerService,
)
from penalty_engine.application.services.sanction_rule_catalog_service import (
    SanctionRuleCatalogService,
)
from penalty_engine.config.penalty_config import (
    DEFAULT_PENALTY_ENGINE_CONFIG,
    PenaltyEngineConfig,
)
from penalty_engine.domain.errors.not_found import SanctionRuleNotFoundError
from penalty_engine.domain.errors.unsupported import UnsupportedOperationError
from penalty_engine.domain.errors.validation import PenaltyValidationError
from penalty_engine.domain.models.infraction import InfractionEvent, InfractionKind
from penalty_engine.domain.models.penalty_outcomes import (
    ActionValidationResult,
    AppliedPenalty,
    EffectiveRestriction,
    InfractionProcessingResult,
    PenaltyScore,
    RestrictionDescriptor,
    ScoreBreakdownEntry,
    UserSanctionStatus,
)
from penalty_engine.domain.models.sanction_record import UserSanctionRecord
from penalty_engine.domain.models.sanction_rule import (
    RestrictionLevel,
    SanctionKind,
    SanctionRule,
    sanction_blocks_action,
)
from penalty_engine.domain.models.severity import (
    RiskLevel,
    SeverityLevel,
    risk_level_for_score,
)
from penalty_engine.domain.models.user_action import UserAction

# Static recommendations keyed by risk level
_RISK_RECOMMENDATIONS: dict[RiskLevel, tuple[str, ...]] = {
    RiskLevel.CRITICAL: (
        "Immediate supervisor review required",
        "Consider temporary account suspension",
        "Schedule mandatory training session",
    ),
    RiskLevel.HIGH: (
        "Schedule review meeting with user",
        "Implement additional monitoring",
        "Consider warning notification",
    ),
    RiskLevel.MEDIUM: (
        "Send educational materials",
        "Monitor for pattern escalation",
    ),
    RiskLevel.LOW: (),
}

NO_SHOW_CONFIRMATION_THRESHOLD = 3
ESCALATION_REPEAT_THRESHOLD = 3

HIGH_RISK_WARNING = "User has high penalty risk - consider additional monitoring"
CRITICAL_RISK_WARNING = "User has critical penalty risk - immediate review required"
APPROACHING_THRESHOLD_WARNING = (
    "User approaching penalty threshold - consider reviewing behavior"
)
FAIL_CLOSED_WARNING = "Sanction status could not be verified; action denied"


def severity_for_repeat_count(repeat_count: int) -> Optional[SeverityLevel]:
    """Rule severity the escalation gate admits for a repeat count.

    Counts of 3 and above all map to HIGH; CRITICAL rules are never
    applied automatically.
    """
    if repeat_count <= 0:
        return None
    if repeat_count == 1:
        return SeverityLevel.LOW
    if repeat_count == 2:
        return SeverityLevel.MEDIUM
    return SeverityLevel.HIGH


class PenaltyEngineService(LoggingMixin):
    """Orchestrates catalogs, ledger and event log into penalty decisions."""

    def __init__(
        self,
        infraction_catalog: InfractionCatalogService,
        rule_catalog: SanctionRuleCatalogService,
        ledger: SanctionLedgerService,
        event_log: InfractionEventLogProtocol,
        action_counter: UserActionCounterProtocol,
        time_authority: TimeAuthorityProtocol,
        config: PenaltyEngineConfig = DEFAULT_PENALTY_ENGINE_CONFIG,
        locks: Optional[KeyedLockRegistry] = None,
    ) -> None:
        self._infractions = infraction_catalog
        self._rules = rule_catalog
        self._ledger = ledger
        self._event_log = event_log
        self._action_counter = action_counter
        self._time = time_authority
        self._config = config
        self._locks = locks if locks is not None else KeyedLockRegistry()
        self._init_logger()

    # ------------------------------------------------------------------
    # Infraction processing
    # ------------------------------------------------------------------

    async def process_infraction(
        self,
        user_id: str,
        program_id: str,
        kind: InfractionKind,
        triggered_by: str,
        notes: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> InfractionProcessingResult:
        """Record an infraction and apply the sanctions it triggers.

        Raises:
            InfractionDefinitionNotFoundError: Custom kind not defined for the program.
            InactiveInfractionDefinitionError: The program deactivated this kind.
            PenaltyValidationError: The occurrence or a resulting record is invalid.
            PenaltyEngineTimeoutError: The per-user lock was not acquired in time.
        """
        log = self._log_operation(
            "process_infraction",
            user_id=user_id,
            program_id=program_id,
            kind=kind.value,
            triggered_by=triggered_by,
        )
        async with self._locks.hold(
            (user_id, program_id),
            timeout_seconds=self._config.lock_timeout_seconds,
            operation="process_infraction",
        ):
            definition, persisted = await self._infractions.resolve_for_infraction(
                program_id, kind
            )
            now = self._time.now()
            event = await self._event_log.record(
                InfractionEvent.record(
                    definition=definition,
                    user_id=user_id,
                    triggered_by=triggered_by,
                    occurred_at=now,
                    notes=notes,
                    resource_id=resource_id,
                    persisted_definition=persisted,
                )
            )
            log.info(
                "infraction_recorded",
                event_id=str(event.event_id),
                penalty_points=event.penalty_points,
            )

            rules = await self._rules.list_for_program_or_defaults(program_id)
            repeat_count = await self._count_repeats(event, now)
            score = await self.calculate_penalty_score(user_id, program_id)

            gate = severity_for_repeat_count(repeat_count)
            applied: list[UserSanctionRecord] = []
            for rule in rules:
                if rule.severity is not gate:
                    continue
                outcome = await self._apply_rule(
                    rule,
                    user_id=user_id,
                    program_id=program_id,
                    triggered_by=triggered_by,
                    reason=f"{kind.value} infraction reported",
                    notes=notes,
                    infraction_event_id=event.event_id,
                    total_points=score.total_score,
                    points_from_event=event.penalty_points,
                )
                applied.append(outcome.record)

        warnings: list[str] = []
        if score.risk_level is RiskLevel.HIGH:
            warnings.append(HIGH_RISK_WARNING)
        elif score.risk_level is RiskLevel.CRITICAL:
            warnings.append(CRITICAL_RISK_WARNING)
        if repeat_count >= ESCALATION_REPEAT_THRESHOLD:
            warnings.append(
                f"User has {repeat_count} similar events in the last "
                f"{self._config.repeat_lookback_days} days"
            )

        escalation_required = (
            any(r.sanction_kind.is_escalation_trigger for r in applied)
            or score.risk_level is RiskLevel.CRITICAL
            or repeat_count >= ESCALATION_REPEAT_THRESHOLD
        )
        log.info(
            "infraction_processed",
            event_id=str(event.event_id),
            repeat_count=repeat_count,
            applied_count=len(applied),
            risk_level=score.risk_level.value,
            escalation_required=escalation_required,
        )
        return InfractionProcessingResult(
            event=event,
            applied_sanctions=tuple(applied),
            warnings=tuple(warnings),
            escalation_required=escalation_required,
            repeat_count=repeat_count,
            risk_level=score.risk_level,
        )

    async def _count_repeats(self, event: InfractionEvent, now: datetime) -> int:
        history = await self._event_log.find_by_user_in_range(
            event.user_id,
            now - self._config.repeat_lookback,
            now,
            program_id=event.program_id,
            kind=event.kind,
        )
        previous = sum(1 for e in history if e.event_id != event.event_id)
        return previous + 1

    # ------------------------------------------------------------------
    # Applying sanctions
    # ------------------------------------------------------------------

    async def apply_penalty(
        self,
        user_id: str,
        rule_id: UUID,
        triggered_by: str,
        reason: str,
        custom_duration_days: Optional[int] = None,
        custom_restrictions: Optional[list[str]] = None,
        notes: Optional[str] = None,
        *,
        program_id: Optional[str] = None,
        total_points: int = 0,
        points_from_event: Optional[int] = None,
    ) -> AppliedPenalty:
        """Apply one rule to a user.

        The end date is now + (custom_duration_days or the rule's duration)
        days; a resolved duration of 0 leaves the sanction open-ended.

        Raises:
            SanctionRuleNotFoundError: If the rule does not exist.
            PenaltyValidationError: If the resulting record is invalid.
        """
        rule = await self._rules.get_rule(rule_id)
        return await self._apply_rule(
            rule,
            user_id=user_id,
            program_id=program_id or rule.program_id,
            triggered_by=triggered_by,
            reason=reason,
            custom_duration_days=custom_duration_days,
            custom_restrictions=custom_restrictions,
            notes=notes,
            total_points=total_points,
            points_from_event=points_from_event,
        )

    async def _apply_rule(
        self,
        rule: SanctionRule,
        *,
        user_id: str,
        program_id: str,
        triggered_by: str,
        reason: str,
        custom_duration_days: Optional[int] = None,
        custom_restrictions: Optional[list[str]] = None,
        notes: Optional[str] = None,
        infraction_event_id: Optional[UUID] = None,
        total_points: int = 0,
        points_from_event: Optional[int] = None,
    ) -> AppliedPenalty:
        if custom_duration_days is not None and custom_duration_days < 0:
            raise PenaltyValidationError(
                ["Sanction duration cannot be negative"], subject="sanction record"
            )
        record_notes = notes
        if custom_restrictions:
            restriction_note = f"Custom restrictions: {', '.join(custom_restrictions)}"
            record_notes = f"{notes}\n{restriction_note}" if notes else restriction_note

        record = UserSanctionRecord.create_from_rule(
            rule=rule,
            user_id=user_id,
            applied_by=triggered_by,
            reason=reason,
            now=self._time.now(),
            duration_days=custom_duration_days,
            total_points=total_points,
            points_from_event=points_from_event,
            infraction_event_id=infraction_event_id,
            notes=record_notes,
            program_id=program_id,
        )
        notification_required = rule.severity is not SeverityLevel.LOW
        stored = await self._ledger.record_sanction(
            record, notification_required=notification_required
        )

        restrictions = [
            EffectiveRestriction(
                sanction_kind=rule.sanction_kind,
                description=rule.description,
                expires_at=stored.end_date,
            )
        ]
        restrictions.extend(
            EffectiveRestriction(
                sanction_kind=SanctionKind.CUSTOM_RESTRICTION,
                description=text,
                expires_at=stored.end_date,
            )
            for text in custom_restrictions or ()
        )
        return AppliedPenalty(
            record=stored,
            effective_restrictions=tuple(restrictions),
            notification_required=notification_required,
        )

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    async def calculate_penalty_score(
        self,
        user_id: str,
        program_id: Optional[str] = None,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> PenaltyScore:
        """Sum infraction points in a window (default: the last 90 days).

        Raises:
            PenaltyValidationError: If window_start is after window_end.
        """
        end = window_end or self._time.now()
        start = window_start or end - self._config.score_window
        if start > end:
            raise PenaltyValidationError(
                ["Score window start must not be after its end"], subject="score window"
            )
        events = await self._event_log.find_by_user_in_range(
            user_id, start, end, program_id=program_id
        )

        totals: dict[InfractionKind, list[int]] = {}
        for event in events:
            count, points, severity_sum = totals.get(event.kind, [0, 0, 0])
            totals[event.kind] = [
                count + 1,
                points + event.penalty_points,
                severity_sum + event.severity.weight,
            ]
        breakdown = tuple(
            ScoreBreakdownEntry(
                kind=kind,
                count=count,
                total_points=points,
                average_severity=severity_sum / count,
            )
            for kind, (count, points, severity_sum) in totals.items()
        )
        total_score = sum(event.penalty_points for event in events)
        risk_level = risk_level_for_score(
            total_score,
            medium_threshold=self._config.medium_risk_threshold,
            high_threshold=self._config.high_risk_threshold,
            critical_threshold=self._config.critical_risk_threshold,
        )

        recommendations = list(_RISK_RECOMMENDATIONS[risk_level])
        no_show_count = totals.get(InfractionKind.NO_SHOW, [0])[0]
        if no_show_count >= NO_SHOW_CONFIRMATION_THRESHOLD:
            recommendations.append("Implement confirmation requirements")

        return PenaltyScore(
            total_score=total_score,
            breakdown=breakdown,
            risk_level=risk_level,
            recommendations=tuple(recommendations),
            window_start=start,
            window_end=end,
        )

    # ------------------------------------------------------------------
    # Action authorization
    # ------------------------------------------------------------------

    async def validate_user_action(
        self,
        user_id: str,
        action: UserAction,
        resource_id: Optional[str] = None,
        program_id: Optional[str] = None,
    ) -> ActionValidationResult:
        """Decide whether the user's active sanctions allow ``action``.

        On an internal error the decision is never a silent allow: the
        error propagates, or with ``fail_closed`` configured the action is
        denied with a warning.
        """
        log = self._log_operation(
            "validate_user_action",
            user_id=user_id,
            action=action.value,
            program_id=program_id,
            resource_id=resource_id,
        )
        try:
            result = await self._evaluate_action(user_id, action, program_id, log)
        except Exception:
            if not self._config.fail_closed:
                log.exception("action_validation_failed")
                raise
            log.exception("action_validation_failed_closed")
            return ActionValidationResult(allowed=False, warnings=(FAIL_CLOSED_WARNING,))

        if result.allowed:
            log.debug("user_action_allowed", remaining_actions=result.remaining_actions)
        else:
            log.info(
                "user_action_denied",
                restrictions=[r.sanction_kind.value for r in result.restrictions],
            )
        return result

    async def _evaluate_action(
        self,
        user_id: str,
        action: UserAction,
        program_id: Optional[str],
        log: structlog.BoundLogger,
    ) -> ActionValidationResult:
        active = await self._ledger.find_active(user_id, program_id)
        restrictions: list[RestrictionDescriptor] = []
        warnings: list[str] = []
        remaining_actions: Optional[int] = None

        for record in active:
            rule = await self._find_rule(record, log)
            description = rule.description if rule is not None else record.reason

            if sanction_blocks_action(record.sanction_kind, action):
                restrictions.append(
                    RestrictionDescriptor(
                        sanction_kind=record.sanction_kind,
                        description=description,
                        expires_at=record.end_date,
                        severity=record.severity,
                        record_id=record.record_id,
                    )
                )

            if record.sanction_kind is SanctionKind.LIMITED_ACCESS:
                limit = self._config.default_daily_action_limit
                if rule is not None and rule.daily_action_limit is not None:
                    limit = rule.daily_action_limit
                used = await self._action_counter.count_actions(
                    user_id, action, self._start_of_local_day()
                )
                if used >= limit:
                    restrictions.append(
                        RestrictionDescriptor(
                            sanction_kind=record.sanction_kind,
                            description=f"Daily limit of {limit} {action.label} actions reached",
                            expires_at=record.end_date,
                            severity=record.severity,
                            record_id=record.record_id,
                        )
                    )
                else:
                    remaining = limit - used
                    if remaining_actions is None or remaining < remaining_actions:
                        remaining_actions = remaining
                    if remaining <= 1:
                        warnings.append(
                            f"Only {remaining} {action.label} actions remaining today"
                        )

        score = await self.calculate_penalty_score(user_id, program_id)
        if score.risk_level is RiskLevel.MEDIUM:
            warnings.append(APPROACHING_THRESHOLD_WARNING)

        return ActionValidationResult(
            allowed=not restrictions,
            restrictions=tuple(restrictions),
            warnings=tuple(warnings),
            remaining_actions=remaining_actions,
        )

    async def _find_rule(
        self, record: UserSanctionRecord, log: structlog.BoundLogger
    ) -> Optional[SanctionRule]:
        try:
            return await self._rules.get_rule(record.rule_id)
        except SanctionRuleNotFoundError:
            log.warning(
                "sanction_rule_missing_for_record",
                record_id=str(record.record_id),
                rule_id=str(record.rule_id),
            )
            return None

    def _start_of_local_day(self) -> datetime:
        """Midnight today in the configured local zone."""
        local_now = self._time.now().astimezone(self._config.tzinfo)
        return datetime.combine(local_now.date(), time.min, tzinfo=self._config.tzinfo)

    # ------------------------------------------------------------------
    # Status and maintenance
    # ------------------------------------------------------------------

    async def get_user_penalty_status(self, user_id: str, program_id: str) -> UserSanctionStatus:
        return await self._ledger.get_user_status(user_id, program_id)

    async def highest_restriction(
        self, user_id: str, program_id: str
    ) -> Optional[RestrictionLevel]:
        return await self._ledger.highest_active_restriction(user_id, program_id)

    async def process_expired_penalties(self) -> list[UserSanctionRecord]:
        """Run the expiration sweep once."""
        return await self._ledger.bulk_deactivate_expired_penalties()

    # ------------------------------------------------------------------
    # Declared but not yet supported
    # ------------------------------------------------------------------

    async def remove_penalty(self, record_id: UUID, removed_by: str, reason: str) -> None:
        raise UnsupportedOperationError("remove_penalty")

    async def escalate_penalty(self, record_id: UUID, escalated_by: str, reason: str) -> None:
        raise UnsupportedOperationError("escalate_penalty")

    async def generate_penalty_analytics(self, program_id: str) -> None:
        raise UnsupportedOperationError("generate_penalty_analytics")

    async def optimize_penalty_configuration(self, program_id: str) -> None:
        raise UnsupportedOperationError("optimize_penalty_configuration")

    async def process_bulk_penalty_operations(self, operations: list[dict[str, object]]) -> None:
        raise UnsupportedOperationError("process_bulk_penalty_operations")

    async def predict_penalty_risk(self, user_id: str, program_id: str) -> None:
        raise UnsupportedOperationError("predict_penalty_risk")

    async def process_penalty_appeal(self, record_id: UUID, appellant: str, reason: str) -> None:
        raise UnsupportedOperationError("process_penalty_appeal")
