"""Recording publisher for sanction events."""

from __future__ import annotations

from penalty_engine.application.ports.sanction_event_publisher import (
    SanctionEventPublisherProtocol,
)
from penalty_engine.domain.events.sanction import SanctionEvent


class SanctionEventPublisherStub(SanctionEventPublisherProtocol):
    """Keeps published events in memory; can be told to fail."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.published: list[SanctionEvent] = []
        self._fail_with = fail_with

    def clear(self) -> None:
        self.published.clear()

    def events_of_type(self, event_type: str) -> list[SanctionEvent]:
        return [e for e in self.published if e.event_type == event_type]

    async def publish(self, event: SanctionEvent) -> None:
        if self._fail_with is not None:
            raise self._fail_with
        self.published.append(event)
