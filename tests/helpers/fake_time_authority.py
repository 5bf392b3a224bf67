"""FakeTimeAuthority - controllable clock for deterministic tests.

Sanction expiry, rolling score windows and daily quotas all depend on
"now", so every service test injects this instead of the system clock.

Usage:
    >>> fake_time = FakeTimeAuthority(frozen_at=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
    >>> service = SanctionLedgerService(..., time_authority=fake_time)
    >>> fake_time.advance(delta=timedelta(days=6))  # a 5-day sanction has now expired
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from penalty_engine.application.ports.time_authority import TimeAuthorityProtocol

DEFAULT_FAKE_TIME = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


class FakeTimeAuthority(TimeAuthorityProtocol):
    """Time only moves when a test moves it.

    The monotonic clock advances together with ``advance()`` but is not
    affected by ``set_time()``.
    """

    def __init__(
        self,
        frozen_at: datetime | None = None,
        *,
        start_monotonic: float = 0.0,
    ) -> None:
        frozen_at = frozen_at or DEFAULT_FAKE_TIME
        if frozen_at.tzinfo is None:
            frozen_at = frozen_at.replace(tzinfo=timezone.utc)
        self._current_time: datetime = frozen_at
        self._monotonic_base: float = start_monotonic
        self._monotonic_advances: float = 0.0

    def now(self) -> datetime:
        return self._current_time

    def utcnow(self) -> datetime:
        return self._current_time

    def monotonic(self) -> float:
        return self._monotonic_base + self._monotonic_advances

    def advance(
        self,
        seconds: float | int | None = None,
        delta: timedelta | None = None,
    ) -> None:
        """Advance time by ``delta`` or ``seconds``.

        Raises:
            ValueError: If neither is provided or the amount is negative.
        """
        if delta is not None:
            advance_seconds = delta.total_seconds()
        elif seconds is not None:
            advance_seconds = float(seconds)
        else:
            raise ValueError("Must provide either 'seconds' or 'delta' argument")

        if advance_seconds < 0:
            raise ValueError(
                f"Cannot advance time backwards. Got {advance_seconds} seconds. "
                "Use set_time() for explicit time changes."
            )

        self._current_time += timedelta(seconds=advance_seconds)
        self._monotonic_advances += advance_seconds

    def advance_days(self, days: float) -> None:
        self.advance(delta=timedelta(days=days))

    def set_time(self, dt: datetime) -> None:
        """Jump to ``dt`` without touching the monotonic clock."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        self._current_time = dt
