"""Domain models for the penalty engine."""

from penalty_engine.domain.models.infraction import (
    DEFAULT_INFRACTIONS,
    MAX_PENALTY_POINTS,
    MIN_PENALTY_POINTS,
    InfractionDefaults,
    InfractionDefinition,
    InfractionDefinitionUpdate,
    InfractionEvent,
    InfractionKind,
)
from penalty_engine.domain.models.penalty_outcomes import (
    ActionValidationResult,
    AppliedPenalty,
    EffectiveRestriction,
    InfractionCatalogStats,
    InfractionProcessingResult,
    PenaltyScore,
    RestrictionDescriptor,
    RuleCreationResult,
    RuleRecommendation,
    SanctionRuleCatalogStats,
    ScoreBreakdownEntry,
    UserSanctionStatus,
)
from penalty_engine.domain.models.sanction_record import UserSanctionRecord
from penalty_engine.domain.models.sanction_rule import (
    DEFAULT_SANCTION_RULES,
    MAX_RULE_POINTS,
    RestrictionLevel,
    SanctionKind,
    SanctionRule,
    SanctionRuleDefaults,
    SanctionRuleUpdate,
    sanction_blocks_action,
    validate_rule_configuration,
)
from penalty_engine.domain.models.severity import (
    RiskLevel,
    SeverityLevel,
    most_severe,
    risk_level_for_score,
)
from penalty_engine.domain.models.user_action import UserAction

__all__ = [
    "DEFAULT_INFRACTIONS",
    "DEFAULT_SANCTION_RULES",
    "MAX_PENALTY_POINTS",
    "MAX_RULE_POINTS",
    "MIN_PENALTY_POINTS",
    "ActionValidationResult",
    "AppliedPenalty",
    "EffectiveRestriction",
    "InfractionCatalogStats",
    "InfractionDefaults",
    "InfractionDefinition",
    "InfractionDefinitionUpdate",
    "InfractionEvent",
    "InfractionKind",
    "InfractionProcessingResult",
    "PenaltyScore",
    "RestrictionDescriptor",
    "RestrictionLevel",
    "RiskLevel",
    "RuleCreationResult",
    "RuleRecommendation",
    "SanctionKind",
    "SanctionRule",
    "SanctionRuleCatalogStats",
    "SanctionRuleDefaults",
    "SanctionRuleUpdate",
    "ScoreBreakdownEntry",
    "SeverityLevel",
    "UserAction",
    "UserSanctionRecord",
    "UserSanctionStatus",
    "most_severe",
    "risk_level_for_score",
    "sanction_blocks_action",
    "validate_rule_configuration",
]
