"""Penalty engine configuration with environment variable overrides.

Environment Variables:
- PENALTY_REPEAT_LOOKBACK_DAYS: Window for counting repeat infractions (default: 30)
- PENALTY_SCORE_WINDOW_DAYS: Rolling window for risk scores (default: 90)
- PENALTY_MEDIUM_RISK_THRESHOLD: Lowest MEDIUM score (default: 20)
- PENALTY_HIGH_RISK_THRESHOLD: Lowest HIGH score (default: 50)
- PENALTY_CRITICAL_RISK_THRESHOLD: Lowest CRITICAL score (default: 100)
- PENALTY_DEFAULT_DAILY_ACTION_LIMIT: Limited-access quota when a rule sets none (default: 1)
- PENALTY_LOCAL_TIMEZONE: IANA zone used for "since local midnight" (default: UTC)
- PENALTY_LOCK_TIMEOUT_SECONDS: Per-user lock wait in process_infraction (default: 10.0)
- PENALTY_FAIL_CLOSED: Deny on internal error in validate_user_action (default: false)
- PENALTY_SYSTEM_PROGRAM_ID: Program holding system-default catalog entries (default: system)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable, falling back to ``default`` if unset or invalid."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable, falling back to ``default`` if unset or invalid."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean environment variable ("1", "true", "yes", "on" are true)."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# Windows
# =============================================================================

DEFAULT_REPEAT_LOOKBACK_DAYS = 30
DEFAULT_SCORE_WINDOW_DAYS = 90

# =============================================================================
# Risk thresholds
# =============================================================================

DEFAULT_MEDIUM_RISK_THRESHOLD = 20
DEFAULT_HIGH_RISK_THRESHOLD = 50
DEFAULT_CRITICAL_RISK_THRESHOLD = 100

# =============================================================================
# Authorization
# =============================================================================

DEFAULT_DAILY_ACTION_LIMIT = 1
DEFAULT_LOCAL_TIMEZONE = "UTC"
DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0
DEFAULT_SYSTEM_PROGRAM_ID = "system"


@dataclass(frozen=True)
class PenaltyEngineConfig:
    """Tunable parameters of the penalty engine.

    Attributes:
        repeat_lookback_days: Days of history counted for repeat escalation.
        score_window_days: Days of history summed into the risk score.
        medium_risk_threshold: Lowest score classified MEDIUM.
        high_risk_threshold: Lowest score classified HIGH.
        critical_risk_threshold: Lowest score classified CRITICAL.
        default_daily_action_limit: Daily quota for limited-access sanctions
            whose rule does not set one.
        local_timezone: IANA zone whose midnight starts a quota day.
        lock_timeout_seconds: How long process_infraction waits for the
            per-user lock before giving up.
        fail_closed: When true, validate_user_action denies on internal
            errors instead of propagating them.
        system_program_id: Program that holds the system-default catalogs.
    """

    repeat_lookback_days: int = DEFAULT_REPEAT_LOOKBACK_DAYS
    score_window_days: int = DEFAULT_SCORE_WINDOW_DAYS
    medium_risk_threshold: int = DEFAULT_MEDIUM_RISK_THRESHOLD
    high_risk_threshold: int = DEFAULT_HIGH_RISK_THRESHOLD
    critical_risk_threshold: int = DEFAULT_CRITICAL_RISK_THRESHOLD
    default_daily_action_limit: int = DEFAULT_DAILY_ACTION_LIMIT
    local_timezone: str = DEFAULT_LOCAL_TIMEZONE
    lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    fail_closed: bool = False
    system_program_id: str = DEFAULT_SYSTEM_PROGRAM_ID

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.repeat_lookback_days <= 0:
            raise ValueError(
                f"repeat_lookback_days must be positive, got {self.repeat_lookback_days}"
            )
        if self.score_window_days <= 0:
            raise ValueError(
                f"score_window_days must be positive, got {self.score_window_days}"
            )
        if not (
            0
            < self.medium_risk_threshold
            < self.high_risk_threshold
            < self.critical_risk_threshold
        ):
            raise ValueError(
                "risk thresholds must be positive and strictly increasing, got "
                f"{self.medium_risk_threshold}/{self.high_risk_threshold}/"
                f"{self.critical_risk_threshold}"
            )
        if self.default_daily_action_limit < 1:
            raise ValueError(
                "default_daily_action_limit must be at least 1, got "
                f"{self.default_daily_action_limit}"
            )
        if self.lock_timeout_seconds <= 0:
            raise ValueError(
                f"lock_timeout_seconds must be positive, got {self.lock_timeout_seconds}"
            )
        if not self.system_program_id:
            raise ValueError("system_program_id must not be empty")
        try:
            ZoneInfo(self.local_timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown local_timezone: {self.local_timezone}") from exc

    @property
    def repeat_lookback(self) -> timedelta:
        return timedelta(days=self.repeat_lookback_days)

    @property
    def score_window(self) -> timedelta:
        return timedelta(days=self.score_window_days)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.local_timezone)

    @classmethod
    def from_environment(cls) -> PenaltyEngineConfig:
        """Create config from PENALTY_* environment variables with defaults.

        Raises:
            ValueError: If the resulting combination is invalid.
        """
        return cls(
            repeat_lookback_days=_get_int_env(
                "PENALTY_REPEAT_LOOKBACK_DAYS", DEFAULT_REPEAT_LOOKBACK_DAYS
            ),
            score_window_days=_get_int_env(
                "PENALTY_SCORE_WINDOW_DAYS", DEFAULT_SCORE_WINDOW_DAYS
            ),
            medium_risk_threshold=_get_int_env(
                "PENALTY_MEDIUM_RISK_THRESHOLD", DEFAULT_MEDIUM_RISK_THRESHOLD
            ),
            high_risk_threshold=_get_int_env(
                "PENALTY_HIGH_RISK_THRESHOLD", DEFAULT_HIGH_RISK_THRESHOLD
            ),
            critical_risk_threshold=_get_int_env(
                "PENALTY_CRITICAL_RISK_THRESHOLD", DEFAULT_CRITICAL_RISK_THRESHOLD
            ),
            default_daily_action_limit=_get_int_env(
                "PENALTY_DEFAULT_DAILY_ACTION_LIMIT", DEFAULT_DAILY_ACTION_LIMIT
            ),
            local_timezone=os.environ.get("PENALTY_LOCAL_TIMEZONE", DEFAULT_LOCAL_TIMEZONE),
            lock_timeout_seconds=_get_float_env(
                "PENALTY_LOCK_TIMEOUT_SECONDS", DEFAULT_LOCK_TIMEOUT_SECONDS
            ),
            fail_closed=_get_bool_env("PENALTY_FAIL_CLOSED", False),
            system_program_id=os.environ.get(
                "PENALTY_SYSTEM_PROGRAM_ID", DEFAULT_SYSTEM_PROGRAM_ID
            ),
        )


# Pre-defined configurations

DEFAULT_PENALTY_ENGINE_CONFIG = PenaltyEngineConfig()

# Short lock timeout so a deadlocked test fails fast
TEST_PENALTY_ENGINE_CONFIG = PenaltyEngineConfig(lock_timeout_seconds=1.0)

# Deny on internal errors
FAIL_CLOSED_PENALTY_ENGINE_CONFIG = PenaltyEngineConfig(fail_closed=True)
