"""Domain errors for the penalty engine.

All exceptions inherit from PenaltyEngineError.
"""

from penalty_engine.domain.errors.concurrency import (
    PenaltyEngineTimeoutError,
    SanctionRecordConflictError,
)
from penalty_engine.domain.errors.lifecycle import (
    DuplicateSanctionError,
    InactiveInfractionDefinitionError,
    SanctionInvariantError,
    SystemDefaultDeletionError,
)
from penalty_engine.domain.errors.not_found import (
    InfractionDefinitionNotFoundError,
    PenaltyNotFoundError,
    SanctionRecordNotFoundError,
    SanctionRuleNotFoundError,
)
from penalty_engine.domain.errors.unsupported import UnsupportedOperationError
from penalty_engine.domain.errors.validation import PenaltyValidationError

__all__: list[str] = [
    "DuplicateSanctionError",
    "InactiveInfractionDefinitionError",
    "InfractionDefinitionNotFoundError",
    "PenaltyEngineTimeoutError",
    "PenaltyNotFoundError",
    "PenaltyValidationError",
    "SanctionInvariantError",
    "SanctionRecordConflictError",
    "SanctionRecordNotFoundError",
    "SanctionRuleNotFoundError",
    "SystemDefaultDeletionError",
    "UnsupportedOperationError",
]
