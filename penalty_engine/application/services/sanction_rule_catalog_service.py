"""Sanction rule catalog service.

Owns the per-program point-range rules. Overlapping ranges are allowed
but reported: creating or re-ranging a rule that overlaps an existing
one returns warnings instead of failing.
"""

from __future__ import annotations

from collections import Counter
from typing import Optional
from uuid import UUID

from penalty_engine.application.ports.sanction_rule_repository import (
    SanctionRuleRepositoryProtocol,
)
from penalty_engine.application.ports.time_authority import TimeAuthorityProtocol
from penalty_engine.application.services.base import LoggingMixin
from penalty_engine.config.penalty_config import (
    DEFAULT_PENALTY_ENGINE_CONFIG,
    PenaltyEngineConfig,
)
from penalty_engine.domain.errors.lifecycle import SystemDefaultDeletionError
from penalty_engine.domain.errors.not_found import SanctionRuleNotFoundError
from penalty_engine.domain.models.penalty_outcomes import (
    RuleCreationResult,
    RuleRecommendation,
    SanctionRuleCatalogStats,
)
from penalty_engine.domain.models.sanction_rule import (
    DEFAULT_SANCTION_RULES,
    RestrictionLevel,
    SanctionKind,
    SanctionRule,
    SanctionRuleUpdate,
)


def _ladder_key(rule: SanctionRule) -> tuple[SanctionKind, int, int]:
    return rule.sanction_kind, rule.min_points, rule.max_points


def _overlap_warning(rule: SanctionRule) -> str:
    return f"Point range overlaps with rule '{rule.name}' ({rule.point_range_text})"


class SanctionRuleCatalogService(LoggingMixin):
    """Manages sanction rules per program."""

    def __init__(
        self,
        repository: SanctionRuleRepositoryProtocol,
        time_authority: TimeAuthorityProtocol,
        config: PenaltyEngineConfig = DEFAULT_PENALTY_ENGINE_CONFIG,
    ) -> None:
        self._repository = repository
        self._time = time_authority
        self._config = config
        self._init_logger()

    async def create_rule(
        self,
        *,
        program_id: str,
        name: str,
        description: str,
        min_points: int,
        max_points: int,
        sanction_kind: SanctionKind,
        duration_days: int,
        restriction_level: RestrictionLevel,
        is_custom: bool = True,
        daily_action_limit: Optional[int] = None,
    ) -> RuleCreationResult:
        """Validate and store a rule, reporting overlapping ranges.

        Raises:
            PenaltyValidationError: If the rule is invalid. Nothing is written.
        """
        log = self._log_operation("create_rule", program_id=program_id, name=name)
        rule = SanctionRule.create(
            program_id=program_id,
            name=name,
            description=description,
            min_points=min_points,
            max_points=max_points,
            sanction_kind=sanction_kind,
            duration_days=duration_days,
            restriction_level=restriction_level,
            now=self._time.now(),
            is_custom=is_custom,
            daily_action_limit=daily_action_limit,
        )
        conflicts = await self.find_overlapping(program_id, min_points, max_points)
        stored = await self._repository.create(rule)
        if conflicts:
            log.warning(
                "sanction_rule_overlap_detected",
                rule_id=str(stored.rule_id),
                conflicting_rule_ids=[str(r.rule_id) for r in conflicts],
            )
        log.info("sanction_rule_created", rule_id=str(stored.rule_id))
        return RuleCreationResult(
            rule=stored,
            warnings=tuple(_overlap_warning(r) for r in conflicts),
            conflicts=tuple(conflicts),
        )

    async def get_rule(self, rule_id: UUID) -> SanctionRule:
        """Return a rule.

        Raises:
            SanctionRuleNotFoundError: If it does not exist.
        """
        rule = await self._repository.get_by_id(rule_id)
        if rule is None:
            raise SanctionRuleNotFoundError(rule_id)
        return rule

    async def update_rule(self, rule_id: UUID, update: SanctionRuleUpdate) -> RuleCreationResult:
        """Apply a partial update; the merged rule is re-validated.

        Raises:
            SanctionRuleNotFoundError: If it does not exist.
            PenaltyValidationError: If the merged rule is invalid.
        """
        log = self._log_operation("update_rule", rule_id=str(rule_id))
        current = await self.get_rule(rule_id)
        updated = current.apply_update(update, self._time.now())
        conflicts: list[SanctionRule] = []
        if update.changes_range:
            conflicts = await self.find_overlapping(
                updated.program_id,
                updated.min_points,
                updated.max_points,
                exclude_rule_id=rule_id,
            )
        stored = await self._repository.update(updated)
        log.info("sanction_rule_updated", overlap_count=len(conflicts))
        return RuleCreationResult(
            rule=stored,
            warnings=tuple(_overlap_warning(r) for r in conflicts),
            conflicts=tuple(conflicts),
        )

    async def activate_rule(self, rule_id: UUID) -> SanctionRule:
        current = await self.get_rule(rule_id)
        stored = await self._repository.update(current.activate(self._time.now()))
        self._log_operation("activate_rule", rule_id=str(rule_id)).info(
            "sanction_rule_activated"
        )
        return stored

    async def deactivate_rule(self, rule_id: UUID) -> SanctionRule:
        current = await self.get_rule(rule_id)
        stored = await self._repository.update(current.deactivate(self._time.now()))
        self._log_operation("deactivate_rule", rule_id=str(rule_id)).info(
            "sanction_rule_deactivated"
        )
        return stored

    async def delete_rule(self, rule_id: UUID) -> None:
        """Delete a custom rule.

        Raises:
            SanctionRuleNotFoundError: If it does not exist.
            SystemDefaultDeletionError: If it is a system default.
        """
        log = self._log_operation("delete_rule", rule_id=str(rule_id))
        rule = await self.get_rule(rule_id)
        if not rule.can_be_deleted:
            log.warning("system_default_deletion_rejected")
            raise SystemDefaultDeletionError(rule_id, "sanction rule")
        await self._repository.delete(rule_id)
        log.info("sanction_rule_deleted")

    async def list_by_program(
        self,
        program_id: str,
        *,
        is_active: Optional[bool] = None,
        is_custom: Optional[bool] = None,
    ) -> list[SanctionRule]:
        return await self._repository.list_by_program(
            program_id, is_active=is_active, is_custom=is_custom
        )

    async def list_active(self, program_id: str) -> list[SanctionRule]:
        return await self._repository.list_by_program(program_id, is_active=True)

    async def list_for_program_or_defaults(self, program_id: str) -> list[SanctionRule]:
        """Active rules of the program, or the system defaults if it has none."""
        rules = await self.list_active(program_id)
        if rules or program_id == self._config.system_program_id:
            return rules
        return await self._repository.list_by_program(
            self._config.system_program_id, is_active=True, is_custom=False
        )

    async def find_applicable(self, program_id: str, points: int) -> list[SanctionRule]:
        """Active rules whose range contains ``points``."""
        rules = await self.list_active(program_id)
        return [r for r in rules if r.applies_to(points)]

    async def find_overlapping(
        self,
        program_id: str,
        min_points: int,
        max_points: int,
        *,
        exclude_rule_id: Optional[UUID] = None,
    ) -> list[SanctionRule]:
        rules = await self._repository.list_by_program(program_id)
        return [
            r
            for r in rules
            if r.rule_id != exclude_rule_id and r.overlaps(min_points, max_points)
        ]

    async def recommend_for_points(self, program_id: str, points: int) -> RuleRecommendation:
        """Pick the most severe applicable rule; the rest become alternatives.

        Ties keep catalog order (ascending min_points).
        """
        applicable = await self.find_applicable(program_id, points)
        if not applicable:
            return RuleRecommendation(recommended=None)
        ranked = sorted(applicable, key=lambda r: r.severity.rank, reverse=True)
        return RuleRecommendation(recommended=ranked[0], alternatives=tuple(ranked[1:]))

    async def install_system_defaults(
        self, program_id: Optional[str] = None
    ) -> list[SanctionRule]:
        """Seed the default ladder as system-default rules.

        Skipped when the program already has system-default rules.
        """
        target = program_id or self._config.system_program_id
        log = self._log_operation("install_system_defaults", program_id=target)
        if await self._repository.list_by_program(target, is_custom=False):
            log.info("sanction_rule_defaults_already_installed")
            return []
        now = self._time.now()
        installed = []
        for defaults in DEFAULT_SANCTION_RULES:
            rule = SanctionRule.create(
                program_id=target,
                name=defaults.name,
                description=defaults.description,
                min_points=defaults.min_points,
                max_points=defaults.max_points,
                sanction_kind=defaults.sanction_kind,
                duration_days=defaults.duration_days,
                restriction_level=defaults.restriction_level,
                now=now,
                is_custom=False,
            )
            installed.append(await self._repository.create(rule))
        log.info("sanction_rule_defaults_installed", installed_count=len(installed))
        return installed

    async def clone_system_defaults(self, program_id: str) -> list[SanctionRule]:
        """Copy every system-default rule into ``program_id`` as custom rules.

        A default whose kind and point range the program already holds is
        skipped, so cloning twice never yields two rules that the escalation
        gate would both apply.
        """
        log = self._log_operation("clone_system_defaults", program_id=program_id)
        now = self._time.now()
        defaults = await self._repository.list_by_program(
            self._config.system_program_id, is_custom=False
        )
        held = {_ladder_key(r) for r in await self._repository.list_by_program(program_id)}
        cloned = []
        for rule in defaults:
            if _ladder_key(rule) in held:
                continue
            cloned.append(await self._repository.create(rule.clone_for_program(program_id, now)))
        log.info(
            "sanction_rule_defaults_cloned",
            cloned_count=len(cloned),
            skipped_count=len(defaults) - len(cloned),
        )
        return cloned

    async def get_statistics(self, program_id: str) -> SanctionRuleCatalogStats:
        rules = await self._repository.list_by_program(program_id)
        if not rules:
            return SanctionRuleCatalogStats(total=0, active=0)
        return SanctionRuleCatalogStats(
            total=len(rules),
            active=sum(1 for r in rules if r.is_active),
            by_kind=dict(Counter(r.sanction_kind for r in rules)),
            by_restriction_level=dict(Counter(r.restriction_level for r in rules)),
            by_severity=dict(Counter(r.severity for r in rules)),
            average_duration_days=round(
                sum(r.duration_days for r in rules) / len(rules), 2
            ),
            min_points_covered=min(r.min_points for r in rules),
            max_points_covered=max(r.max_points for r in rules),
        )
