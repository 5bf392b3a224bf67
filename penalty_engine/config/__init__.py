"""Configuration for the penalty engine.

Available Configurations:
- PenaltyEngineConfig: windows, risk thresholds, quotas and locking
"""

from penalty_engine.config.penalty_config import (
    DEFAULT_PENALTY_ENGINE_CONFIG,
    FAIL_CLOSED_PENALTY_ENGINE_CONFIG,
    TEST_PENALTY_ENGINE_CONFIG,
    PenaltyEngineConfig,
)

__all__ = [
    "PenaltyEngineConfig",
    "DEFAULT_PENALTY_ENGINE_CONFIG",
    "TEST_PENALTY_ENGINE_CONFIG",
    "FAIL_CLOSED_PENALTY_ENGINE_CONFIG",
]
