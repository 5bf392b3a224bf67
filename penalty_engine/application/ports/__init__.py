"""Application ports - contracts for persistence and outbound adapters.

Available ports:
- InfractionDefinitionRepositoryProtocol: infraction catalog storage
- InfractionEventLogProtocol: append-only infraction occurrence log
- SanctionRuleRepositoryProtocol: sanction rule catalog storage
- SanctionLedgerRepositoryProtocol: user sanction ledger with conditional writes
- SanctionEventPublisherProtocol: notification fan-out
- UserActionCounterProtocol: reservation action history for daily quotas
- TimeAuthorityProtocol: injected clock
"""

from penalty_engine.application.ports.infraction_repository import (
    InfractionDefinitionRepositoryProtocol,
    InfractionEventLogProtocol,
)
from penalty_engine.application.ports.sanction_event_publisher import (
    SanctionEventPublisherProtocol,
)
from penalty_engine.application.ports.sanction_ledger_repository import (
    SanctionLedgerRepositoryProtocol,
)
from penalty_engine.application.ports.sanction_rule_repository import (
    SanctionRuleRepositoryProtocol,
)
from penalty_engine.application.ports.time_authority import TimeAuthorityProtocol
from penalty_engine.application.ports.user_action_counter import UserActionCounterProtocol

__all__: list[str] = [
    "InfractionDefinitionRepositoryProtocol",
    "InfractionEventLogProtocol",
    "SanctionEventPublisherProtocol",
    "SanctionLedgerRepositoryProtocol",
    "SanctionRuleRepositoryProtocol",
    "TimeAuthorityProtocol",
    "UserActionCounterProtocol",
]
