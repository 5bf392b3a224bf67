"""PostgreSQL persistence adapters."""

from penalty_engine.infrastructure.adapters.persistence.sanction_ledger_repository import (
    SANCTION_LEDGER_DDL,
    PostgresSanctionLedgerRepository,
)

__all__: list[str] = ["SANCTION_LEDGER_DDL", "PostgresSanctionLedgerRepository"]
