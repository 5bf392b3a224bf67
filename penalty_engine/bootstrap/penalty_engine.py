"""Composition root for the penalty engine.

Builds the four services on top of the in-memory stubs, optionally
swapping the sanction ledger for the PostgreSQL repository.

Usage:
    engine = build_penalty_engine()
    await engine.install_system_defaults()
    result = await engine.penalty_engine.process_infraction(...)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

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
from penalty_engine.application.ports.user_action_counter import (
    UserActionCounterProtocol,
)
from penalty_engine.application.services import (
    InfractionCatalogService,
    KeyedLockRegistry,
    PenaltyEngineService,
    SanctionLedgerService,
    SanctionRuleCatalogService,
)
from penalty_engine.config.penalty_config import PenaltyEngineConfig
from penalty_engine.infrastructure.adapters.time_authority import SystemTimeAuthority
from penalty_engine.infrastructure.stubs import (
    InfractionDefinitionRepositoryStub,
    InfractionEventLogStub,
    SanctionEventPublisherStub,
    SanctionLedgerRepositoryStub,
    SanctionRuleRepositoryStub,
    UserActionCounterStub,
)


@dataclass(frozen=True)
class PenaltyEngineContainer:
    """Wired services sharing one config, clock and lock registry."""

    config: PenaltyEngineConfig
    time_authority: TimeAuthorityProtocol
    infraction_catalog: InfractionCatalogService
    rule_catalog: SanctionRuleCatalogService
    ledger: SanctionLedgerService
    penalty_engine: PenaltyEngineService

    async def install_system_defaults(self) -> None:
        """Seed both catalogs for the system program."""
        await self.infraction_catalog.install_system_defaults()
        await self.rule_catalog.install_system_defaults()


def build_penalty_engine(
    config: Optional[PenaltyEngineConfig] = None,
    time_authority: Optional[TimeAuthorityProtocol] = None,
    *,
    infraction_repository: Optional[InfractionDefinitionRepositoryProtocol] = None,
    event_log: Optional[InfractionEventLogProtocol] = None,
    rule_repository: Optional[SanctionRuleRepositoryProtocol] = None,
    ledger_repository: Optional[SanctionLedgerRepositoryProtocol] = None,
    publisher: Optional[SanctionEventPublisherProtocol] = None,
    action_counter: Optional[UserActionCounterProtocol] = None,
    use_postgres_ledger: bool = False,
) -> PenaltyEngineContainer:
    """Wire the penalty engine.

    Any collaborator left as None gets its in-memory stub. With
    ``use_postgres_ledger`` the ledger is backed by DATABASE_URL instead.

    Raises:
        ValueError: If ``use_postgres_ledger`` is set without DATABASE_URL.
    """
    config = config or PenaltyEngineConfig.from_environment()
    time_authority = time_authority or SystemTimeAuthority()

    if ledger_repository is None and use_postgres_ledger:
        from penalty_engine.bootstrap.database import get_session_factory
        from penalty_engine.infrastructure.adapters.persistence import (
            PostgresSanctionLedgerRepository,
        )

        ledger_repository = PostgresSanctionLedgerRepository(get_session_factory())

    infraction_catalog = InfractionCatalogService(
        infraction_repository or InfractionDefinitionRepositoryStub(),
        time_authority,
        config,
    )
    rule_catalog = SanctionRuleCatalogService(
        rule_repository or SanctionRuleRepositoryStub(),
        time_authority,
        config,
    )
    ledger = SanctionLedgerService(
        ledger_repository or SanctionLedgerRepositoryStub(),
        publisher or SanctionEventPublisherStub(),
        time_authority,
    )
    engine = PenaltyEngineService(
        infraction_catalog=infraction_catalog,
        rule_catalog=rule_catalog,
        ledger=ledger,
        event_log=event_log or InfractionEventLogStub(),
        action_counter=action_counter or UserActionCounterStub(),
        time_authority=time_authority,
        config=config,
        locks=KeyedLockRegistry(),
    )
    return PenaltyEngineContainer(
        config=config,
        time_authority=time_authority,
        infraction_catalog=infraction_catalog,
        rule_catalog=rule_catalog,
        ledger=ledger,
        penalty_engine=engine,
    )
