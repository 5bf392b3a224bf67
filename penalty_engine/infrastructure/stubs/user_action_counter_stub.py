"""In-memory action history for daily quota checks."""

from __future__ import annotations

from datetime import datetime

from penalty_engine.application.ports.user_action_counter import UserActionCounterProtocol
from penalty_engine.domain.models.user_action import UserAction


class UserActionCounterStub(UserActionCounterProtocol):
    """Counts actions previously registered with ``register_action``."""

    def __init__(self) -> None:
        self._actions: list[tuple[str, UserAction, datetime]] = []

    def clear(self) -> None:
        self._actions.clear()

    def register_action(self, user_id: str, action: UserAction, at: datetime) -> None:
        """Record that ``user_id`` performed ``action`` at ``at``."""
        self._actions.append((user_id, action, at))

    async def count_actions(self, user_id: str, action: UserAction, since: datetime) -> int:
        return sum(
            1
            for uid, performed, at in self._actions
            if uid == user_id and performed is action and at >= since
        )
