"""Severity and risk levels with explicit ordering.

Severity is a closed enumeration (low < medium < high < critical). Enum
members are str-valued for serialization, so ordering is exposed through
``rank`` rather than comparison operators.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Optional


class SeverityLevel(str, Enum):
    """Severity of an infraction or a sanction."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Ordering rank, 1 (low) through 4 (critical)."""
        return _SEVERITY_RANK[self]

    @property
    def weight(self) -> int:
        """Weight used when averaging severities in score breakdowns."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[SeverityLevel, int] = {
    SeverityLevel.LOW: 1,
    SeverityLevel.MEDIUM: 2,
    SeverityLevel.HIGH: 3,
    SeverityLevel.CRITICAL: 4,
}


def most_severe(levels: Iterable[SeverityLevel]) -> Optional[SeverityLevel]:
    """Return the highest-ranked severity, or None for an empty iterable."""
    return max(levels, key=lambda level: level.rank, default=None)


class RiskLevel(str, Enum):
    """Risk classification derived from a user's windowed penalty score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def risk_level_for_score(
    score: int,
    medium_threshold: int = 20,
    high_threshold: int = 50,
    critical_threshold: int = 100,
) -> RiskLevel:
    """Classify a penalty score.

    Args:
        score: Sum of infraction points in the scoring window.
        medium_threshold: Lowest score classified MEDIUM.
        high_threshold: Lowest score classified HIGH.
        critical_threshold: Lowest score classified CRITICAL.

    Returns:
        The risk level for the score.
    """
    if score >= critical_threshold:
        return RiskLevel.CRITICAL
    if score >= high_threshold:
        return RiskLevel.HIGH
    if score >= medium_threshold:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
