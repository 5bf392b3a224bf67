"""Sanction rule catalog port."""

from __future__ import annotations

from typing import Optional, Protocol
from uuid import UUID

from penalty_engine.domain.models.sanction_rule import SanctionRule


class SanctionRuleRepositoryProtocol(Protocol):
    """Persistence contract for sanction rules."""

    async def create(self, rule: SanctionRule) -> SanctionRule:
        ...

    async def get_by_id(self, rule_id: UUID) -> Optional[SanctionRule]:
        ...

    async def list_by_program(
        self,
        program_id: str,
        *,
        is_active: Optional[bool] = None,
        is_custom: Optional[bool] = None,
    ) -> list[SanctionRule]:
        """List a program's rules ordered by min_points."""
        ...

    async def update(self, rule: SanctionRule) -> SanctionRule:
        """Replace a stored rule.

        Raises:
            SanctionRuleNotFoundError: If it does not exist.
        """
        ...

    async def delete(self, rule_id: UUID) -> None:
        """Remove a rule.

        Raises:
            SanctionRuleNotFoundError: If it does not exist.
        """
        ...
