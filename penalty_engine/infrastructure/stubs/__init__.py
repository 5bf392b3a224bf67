"""In-memory stub implementations of every application port."""

from penalty_engine.infrastructure.stubs.infraction_repository_stub import (
    InfractionDefinitionRepositoryStub,
    InfractionEventLogStub,
)
from penalty_engine.infrastructure.stubs.sanction_event_publisher_stub import (
    SanctionEventPublisherStub,
)
from penalty_engine.infrastructure.stubs.sanction_ledger_repository_stub import (
    SanctionLedgerRepositoryStub,
)
from penalty_engine.infrastructure.stubs.sanction_rule_repository_stub import (
    SanctionRuleRepositoryStub,
)
from penalty_engine.infrastructure.stubs.user_action_counter_stub import (
    UserActionCounterStub,
)

__all__: list[str] = [
    "InfractionDefinitionRepositoryStub",
    "InfractionEventLogStub",
    "SanctionEventPublisherStub",
    "SanctionLedgerRepositoryStub",
    "SanctionRuleRepositoryStub",
    "UserActionCounterStub",
]
