"""Outbound port for sanction lifecycle notifications.

Publishing is fire-and-forget from the engine's perspective. Callers log
and swallow publisher failures; a sanction is never rolled back because
a notification could not be delivered.
"""

from __future__ import annotations

from typing import Protocol

from penalty_engine.domain.events.sanction import SanctionEvent


class SanctionEventPublisherProtocol(Protocol):
    """Publishes sanction events to the notification fan-out."""

    async def publish(self, event: SanctionEvent) -> None:
        """Hand one event to the fan-out."""
        ...
