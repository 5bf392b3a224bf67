"""Port onto the reservation collaborators' action history.

Used to enforce per-day quotas for limited-access sanctions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from penalty_engine.domain.models.user_action import UserAction


class UserActionCounterProtocol(Protocol):
    """Counts actions a user has already performed."""

    async def count_actions(self, user_id: str, action: UserAction, since: datetime) -> int:
        """Return how many times ``user_id`` performed ``action`` at or after ``since``."""
        ...
