"""Domain events raised by the sanction ledger."""

from penalty_engine.domain.events.sanction import (
    SANCTION_APPLIED_EVENT_TYPE,
    SANCTION_DEACTIVATED_EVENT_TYPE,
    SANCTION_EXPIRED_EVENT_TYPE,
    SanctionAppliedEvent,
    SanctionDeactivatedEvent,
    SanctionEvent,
    SanctionExpiredEvent,
)

__all__ = [
    "SANCTION_APPLIED_EVENT_TYPE",
    "SANCTION_DEACTIVATED_EVENT_TYPE",
    "SANCTION_EXPIRED_EVENT_TYPE",
    "SanctionAppliedEvent",
    "SanctionDeactivatedEvent",
    "SanctionEvent",
    "SanctionExpiredEvent",
]
