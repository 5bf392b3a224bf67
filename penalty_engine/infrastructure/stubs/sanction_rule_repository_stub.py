"""In-memory sanction rule catalog."""

from __future__ import annotations

import asyncio
from typing import Optional
from uuid import UUID

from penalty_engine.application.ports.sanction_rule_repository import (
    SanctionRuleRepositoryProtocol,
)
from penalty_engine.domain.errors.not_found import SanctionRuleNotFoundError
from penalty_engine.domain.models.sanction_rule import SanctionRule


class SanctionRuleRepositoryStub(SanctionRuleRepositoryProtocol):
    """Dictionary-backed sanction rule catalog."""

    def __init__(self) -> None:
        self._rules: dict[UUID, SanctionRule] = {}
        self._lock = asyncio.Lock()

    def clear(self) -> None:
        """Clear all stored data for test cleanup."""
        self._rules.clear()

    async def create(self, rule: SanctionRule) -> SanctionRule:
        async with self._lock:
            self._rules[rule.rule_id] = rule
        return rule

    async def get_by_id(self, rule_id: UUID) -> Optional[SanctionRule]:
        return self._rules.get(rule_id)

    async def list_by_program(
        self,
        program_id: str,
        *,
        is_active: Optional[bool] = None,
        is_custom: Optional[bool] = None,
    ) -> list[SanctionRule]:
        rules = [
            r
            for r in self._rules.values()
            if r.program_id == program_id
            and (is_active is None or r.is_active == is_active)
            and (is_custom is None or r.is_custom == is_custom)
        ]
        return sorted(rules, key=lambda r: (r.min_points, r.max_points))

    async def update(self, rule: SanctionRule) -> SanctionRule:
        async with self._lock:
            if rule.rule_id not in self._rules:
                raise SanctionRuleNotFoundError(rule.rule_id)
            self._rules[rule.rule_id] = rule
        return rule

    async def delete(self, rule_id: UUID) -> None:
        async with self._lock:
            if self._rules.pop(rule_id, None) is None:
                raise SanctionRuleNotFoundError(rule_id)
