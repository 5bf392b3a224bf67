"""Unit tests for SanctionRule validation, ranges and blocking."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from penalty_engine.domain.errors import PenaltyValidationError
from penalty_engine.domain.models.sanction_rule import (
    DEFAULT_SANCTION_RULES,
    RestrictionLevel,
    SanctionKind,
    SanctionRule,
    SanctionRuleUpdate,
    sanction_blocks_action,
    validate_rule_configuration,
)
from penalty_engine.domain.models.severity import SeverityLevel
from penalty_engine.domain.models.user_action import UserAction

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _rule(**overrides: object) -> SanctionRule:
    fields: dict[str, object] = {
        "program_id": "prog-1",
        "name": "Temporary Suspension",
        "description": "Reservations limited",
        "min_points": 20,
        "max_points": 49,
        "sanction_kind": SanctionKind.TEMPORARY_SUSPENSION,
        "duration_days": 7,
        "restriction_level": RestrictionLevel.LIMITED_RESERVATIONS,
        "now": NOW,
    }
    fields.update(overrides)
    return SanctionRule.create(**fields)  # type: ignore[arg-type]


class TestAppliesTo:
    @given(
        bounds=st.tuples(
            st.integers(min_value=0, max_value=1000), st.integers(min_value=0, max_value=1000)
        ),
        points=st.integers(min_value=-50, max_value=1100),
    )
    def test_applies_to_matches_inclusive_range(
        self, bounds: tuple[int, int], points: int
    ) -> None:
        low, high = sorted(bounds)
        rule = _rule(
            min_points=low,
            max_points=high,
            sanction_kind=SanctionKind.WARNING,
            duration_days=0,
        )

        assert rule.applies_to(points) == (low <= points <= high)

    def test_warning_rule_scenario(self) -> None:
        rule = _rule(
            min_points=0,
            max_points=10,
            sanction_kind=SanctionKind.WARNING,
            duration_days=0,
            restriction_level=RestrictionLevel.NONE,
        )

        assert rule.applies_to(5)
        assert rule.severity is SeverityLevel.LOW

    def test_overlaps(self) -> None:
        rule = _rule(min_points=20, max_points=49)

        assert rule.overlaps(49, 60)
        assert rule.overlaps(0, 20)
        assert not rule.overlaps(50, 99)


class TestKindDurationValidation:
    @given(
        kind=st.sampled_from(list(SanctionKind)),
        duration=st.integers(min_value=0, max_value=365),
    )
    def test_duration_kind_rules(self, kind: SanctionKind, duration: int) -> None:
        errors = validate_rule_configuration(0, 10, kind, duration)

        if kind is SanctionKind.PERMANENT_SUSPENSION:
            assert (errors == []) == (duration == 0)
        elif kind is SanctionKind.WARNING:
            assert errors == []
        else:
            assert (errors == []) == (duration > 0)

    def test_permanent_with_duration_rejected(self) -> None:
        with pytest.raises(PenaltyValidationError) as exc_info:
            _rule(sanction_kind=SanctionKind.PERMANENT_SUSPENSION, duration_days=3)

        assert exc_info.value.errors == ["Permanent suspension must have zero duration"]

    def test_temporary_without_duration_rejected(self) -> None:
        with pytest.raises(PenaltyValidationError) as exc_info:
            _rule(duration_days=0)

        assert exc_info.value.errors == [
            "Temporary sanctions must have a duration greater than 0"
        ]

    def test_range_errors_are_all_reported(self) -> None:
        errors = validate_rule_configuration(-1, -5, SanctionKind.WARNING, -2)

        assert errors == [
            "Minimum points cannot be negative",
            "Maximum points must be greater than or equal to minimum points",
            "Sanction duration cannot be negative",
        ]

    def test_max_points_capped(self) -> None:
        errors = validate_rule_configuration(0, 1001, SanctionKind.WARNING, 0)

        assert errors == ["Maximum points cannot exceed 1000"]

    def test_daily_action_limit_must_be_positive(self) -> None:
        with pytest.raises(PenaltyValidationError) as exc_info:
            _rule(sanction_kind=SanctionKind.LIMITED_ACCESS, daily_action_limit=0)

        assert exc_info.value.errors == ["Daily action limit must be at least 1"]

    def test_name_and_description_required(self) -> None:
        with pytest.raises(PenaltyValidationError) as exc_info:
            _rule(name="", description="")

        assert exc_info.value.errors == [
            "Sanction rule name is required",
            "Sanction rule description is required",
        ]


class TestSeverityMapping:
    @pytest.mark.parametrize(
        ("kind", "severity"),
        [
            (SanctionKind.WARNING, SeverityLevel.LOW),
            (SanctionKind.TEMPORARY_SUSPENSION, SeverityLevel.MEDIUM),
            (SanctionKind.PARTIAL_SUSPENSION, SeverityLevel.HIGH),
            (SanctionKind.FULL_SUSPENSION, SeverityLevel.CRITICAL),
            (SanctionKind.PERMANENT_SUSPENSION, SeverityLevel.CRITICAL),
            (SanctionKind.LIMITED_ACCESS, SeverityLevel.LOW),
            (SanctionKind.RESERVATION_SUSPENSION, SeverityLevel.LOW),
        ],
    )
    def test_kind_severity(self, kind: SanctionKind, severity: SeverityLevel) -> None:
        assert kind.severity is severity

    def test_escalation_triggers(self) -> None:
        triggers = {kind for kind in SanctionKind if kind.is_escalation_trigger}
        assert triggers == {SanctionKind.FULL_SUSPENSION, SanctionKind.PERMANENT_SUSPENSION}


class TestDescriptiveHelpers:
    def test_point_range_text(self) -> None:
        assert _rule().point_range_text == "20-49 points"
        assert (
            _rule(min_points=5, max_points=5).point_range_text == "5 points"
        )

    def test_duration_text(self) -> None:
        assert _rule().duration_text == "7 days"
        assert _rule(duration_days=1).duration_text == "1 day"
        assert (
            _rule(sanction_kind=SanctionKind.WARNING, duration_days=0).duration_text
            == "No duration (warning only)"
        )
        assert (
            _rule(
                sanction_kind=SanctionKind.PERMANENT_SUSPENSION, duration_days=0
            ).duration_text
            == "Permanent"
        )

    def test_restriction_level_rank_and_description(self) -> None:
        assert RestrictionLevel.NONE.rank < RestrictionLevel.NO_RESERVATIONS.rank
        assert RestrictionLevel.APPROVAL_REQUIRED.description == (
            "All reservations require approval"
        )


class TestRuleUpdate:
    def test_changes_range(self) -> None:
        assert SanctionRuleUpdate(min_points=1).changes_range
        assert not SanctionRuleUpdate(name="x").changes_range

    def test_apply_update_revalidates_merged_rule(self) -> None:
        with pytest.raises(PenaltyValidationError):
            _rule().apply_update(SanctionRuleUpdate(min_points=60), NOW)

    def test_apply_update_keeps_unset_fields(self) -> None:
        updated = _rule().apply_update(SanctionRuleUpdate(duration_days=10), NOW)

        assert updated.duration_days == 10
        assert updated.min_points == 20
        assert updated.sanction_kind is SanctionKind.TEMPORARY_SUSPENSION

    def test_unset_limit_keeps_existing_daily_limit(self) -> None:
        rule = _rule(sanction_kind=SanctionKind.LIMITED_ACCESS, daily_action_limit=3)

        assert rule.apply_update(SanctionRuleUpdate(name="Renamed"), NOW).daily_action_limit == 3

    def test_clear_daily_action_limit(self) -> None:
        rule = _rule(sanction_kind=SanctionKind.LIMITED_ACCESS, daily_action_limit=3)

        updated = rule.apply_update(SanctionRuleUpdate(clear_daily_action_limit=True), NOW)

        assert updated.daily_action_limit is None

    def test_set_and_clear_together_rejected(self) -> None:
        with pytest.raises(PenaltyValidationError, match="both set and clear"):
            SanctionRuleUpdate(daily_action_limit=2, clear_daily_action_limit=True)


class TestDefaultLadder:
    def test_ladder_rows_are_valid_rules(self) -> None:
        for row in DEFAULT_SANCTION_RULES:
            rule = _rule(
                name=row.name,
                description=row.description,
                min_points=row.min_points,
                max_points=row.max_points,
                sanction_kind=row.sanction_kind,
                duration_days=row.duration_days,
                restriction_level=row.restriction_level,
            )
            assert rule.min_points == row.min_points

    def test_ladder_covers_zero_to_max(self) -> None:
        assert DEFAULT_SANCTION_RULES[0].min_points == 0
        assert DEFAULT_SANCTION_RULES[-1].max_points == 1000
        for lower, upper in zip(DEFAULT_SANCTION_RULES, DEFAULT_SANCTION_RULES[1:]):
            assert upper.min_points == lower.max_points + 1


class TestSanctionBlocksAction:
    @pytest.mark.parametrize(
        ("kind", "action"),
        [
            (SanctionKind.RESERVATION_SUSPENSION, UserAction.CREATE_RESERVATION),
            (SanctionKind.MODIFICATION_SUSPENSION, UserAction.MODIFY_RESERVATION),
            (SanctionKind.WAITING_LIST_SUSPENSION, UserAction.JOIN_WAITING_LIST),
        ],
    )
    def test_targeted_suspensions_block_their_action(
        self, kind: SanctionKind, action: UserAction
    ) -> None:
        assert sanction_blocks_action(kind, action)
        others = [a for a in UserAction if a is not action]
        assert not any(sanction_blocks_action(kind, a) for a in others)

    @pytest.mark.parametrize(
        "kind", [SanctionKind.FULL_SUSPENSION, SanctionKind.PERMANENT_SUSPENSION]
    )
    def test_full_and_permanent_block_everything(self, kind: SanctionKind) -> None:
        assert all(sanction_blocks_action(kind, action) for action in UserAction)

    @pytest.mark.parametrize(
        "kind",
        [
            SanctionKind.WARNING,
            SanctionKind.TEMPORARY_SUSPENSION,
            SanctionKind.PARTIAL_SUSPENSION,
            SanctionKind.LIMITED_ACCESS,
            SanctionKind.CUSTOM_RESTRICTION,
        ],
    )
    def test_other_kinds_block_nothing(self, kind: SanctionKind) -> None:
        assert not any(sanction_blocks_action(kind, action) for action in UserAction)
