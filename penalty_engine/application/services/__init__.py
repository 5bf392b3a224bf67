"""Application services for the penalty engine.

- InfractionCatalogService: infraction definitions per program
- SanctionRuleCatalogService: point-range sanction rules per program
- SanctionLedgerService: user sanction records and the expiration sweep
- PenaltyEngineService: infraction processing, scoring and action authorization
"""

from penalty_engine.application.services.infraction_catalog_service import (
    InfractionCatalogService,
)
from penalty_engine.application.services.keyed_lock import KeyedLockRegistry
from penalty_engine.application.services.penalty_engine_service import (
    PenaltyEngineService,
    severity_for_repeat_count,
)
from penalty_engine.application.services.sanction_ledger_service import (
    SanctionLedgerService,
)
from penalty_engine.application.services.sanction_rule_catalog_service import (
    SanctionRuleCatalogService,
)

__all__: list[str] = [
    "InfractionCatalogService",
    "KeyedLockRegistry",
    "PenaltyEngineService",
    "SanctionLedgerService",
    "SanctionRuleCatalogService",
    "severity_for_repeat_count",
]
