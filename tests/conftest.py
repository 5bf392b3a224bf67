"""
Pytest configuration and shared fixtures for penalty engine tests.

Testing Standards:
- Async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for port doubles, in-memory stubs for end-to-end service tests
- Time always comes from FakeTimeAuthority
"""

from __future__ import annotations

import pytest

from penalty_engine.application.services import (
    InfractionCatalogService,
    KeyedLockRegistry,
    PenaltyEngineService,
    SanctionLedgerService,
    SanctionRuleCatalogService,
)
from penalty_engine.config.penalty_config import (
    TEST_PENALTY_ENGINE_CONFIG,
    PenaltyEngineConfig,
)
from penalty_engine.infrastructure.stubs import (
    InfractionDefinitionRepositoryStub,
    InfractionEventLogStub,
    SanctionEventPublisherStub,
    SanctionLedgerRepositoryStub,
    SanctionRuleRepositoryStub,
    UserActionCounterStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def fake_time() -> FakeTimeAuthority:
    return FakeTimeAuthority()


@pytest.fixture
def config() -> PenaltyEngineConfig:
    return TEST_PENALTY_ENGINE_CONFIG


@pytest.fixture
def infraction_repository() -> InfractionDefinitionRepositoryStub:
    return InfractionDefinitionRepositoryStub()


@pytest.fixture
def event_log() -> InfractionEventLogStub:
    return InfractionEventLogStub()


@pytest.fixture
def rule_repository() -> SanctionRuleRepositoryStub:
    return SanctionRuleRepositoryStub()


@pytest.fixture
def ledger_repository() -> SanctionLedgerRepositoryStub:
    return SanctionLedgerRepositoryStub()


@pytest.fixture
def publisher() -> SanctionEventPublisherStub:
    return SanctionEventPublisherStub()


@pytest.fixture
def action_counter() -> UserActionCounterStub:
    return UserActionCounterStub()


@pytest.fixture
def infraction_catalog(
    infraction_repository: InfractionDefinitionRepositoryStub,
    fake_time: FakeTimeAuthority,
    config: PenaltyEngineConfig,
) -> InfractionCatalogService:
    return InfractionCatalogService(infraction_repository, fake_time, config)


@pytest.fixture
def rule_catalog(
    rule_repository: SanctionRuleRepositoryStub,
    fake_time: FakeTimeAuthority,
    config: PenaltyEngineConfig,
) -> SanctionRuleCatalogService:
    return SanctionRuleCatalogService(rule_repository, fake_time, config)


@pytest.fixture
def ledger(
    ledger_repository: SanctionLedgerRepositoryStub,
    publisher: SanctionEventPublisherStub,
    fake_time: FakeTimeAuthority,
) -> SanctionLedgerService:
    return SanctionLedgerService(ledger_repository, publisher, fake_time)


@pytest.fixture
def engine(
    infraction_catalog: InfractionCatalogService,
    rule_catalog: SanctionRuleCatalogService,
    ledger: SanctionLedgerService,
    event_log: InfractionEventLogStub,
    action_counter: UserActionCounterStub,
    fake_time: FakeTimeAuthority,
    config: PenaltyEngineConfig,
) -> PenaltyEngineService:
    """PenaltyEngineService wired to in-memory stubs."""
    return PenaltyEngineService(
        infraction_catalog=infraction_catalog,
        rule_catalog=rule_catalog,
        ledger=ledger,
        event_log=event_log,
        action_counter=action_counter,
        time_authority=fake_time,
        config=config,
        locks=KeyedLockRegistry(),
    )


@pytest.fixture
async def seeded_engine(
    engine: PenaltyEngineService,
    infraction_catalog: InfractionCatalogService,
    rule_catalog: SanctionRuleCatalogService,
) -> PenaltyEngineService:
    """Engine whose system program holds the default catalogs."""
    await infraction_catalog.install_system_defaults()
    await rule_catalog.install_system_defaults()
    return engine
