"""
Tests for bonus resolution.

Covers:
- Advantage/disadvantage behaviors set the result flags
- Flat behaviors add a bonus keyed by rule name
- Display entry wording and icons
- Condition findings bypass behavior
"""

import pytest

from tactical_rules.models import (
    Behavior,
    Effect,
    EvaluationResult,
    RuleFinding,
    RuleName,
)
from tactical_rules.combat.bonuses import (
    apply_finding,
    display_entry,
    outcome_text,
    resolve_finding,
)


def _flanking() -> RuleFinding:
    return RuleFinding(
        rule=RuleName.FLANKING,
        label="Flanking",
        reason="An ally is on the opposite side.",
    )


def _low_ground() -> RuleFinding:
    return RuleFinding(
        rule=RuleName.LOW_GROUND,
        label="Low Ground",
        reason="Attacker is 10+ ft below the target.",
    )


def _condition(effect: Effect) -> RuleFinding:
    return RuleFinding(
        rule=RuleName.CONDITION,
        label="Target Stunned",
        reason="Target is stunned.",
        effect=effect,
        subject="target",
        status="stunned",
    )


class TestResolveFinding:

    def test_flat_behavior(self):
        resolved = resolve_finding(_flanking(), Behavior.flat(2))
        assert resolved.modifier == 2
        assert resolved.effect is None

    def test_advantage_behavior(self):
        resolved = resolve_finding(_flanking(), Behavior.advantage())
        assert resolved.effect == Effect.ADVANTAGE
        assert resolved.modifier is None

    def test_input_finding_is_untouched(self):
        finding = _flanking()
        resolve_finding(finding, Behavior.flat(3))
        assert finding.modifier is None

    def test_condition_ignores_behavior(self):
        finding = _condition(Effect.ADVANTAGE)
        assert resolve_finding(finding, Behavior.flat(5)) == finding

    def test_positional_requires_behavior(self):
        with pytest.raises(ValueError):
            resolve_finding(_flanking(), None)


class TestApplyFinding:

    def test_flat_bonus_keyed_by_rule(self):
        result = EvaluationResult()
        apply_finding(result, _flanking(), Behavior.flat(2))
        assert result.bonuses == {"flanking": 2}
        assert not result.advantage and not result.disadvantage
        assert result.total_bonus == 2

    def test_penalty(self):
        result = EvaluationResult()
        apply_finding(result, _low_ground(), Behavior.flat(-3))
        assert result.bonuses == {"lowGround": -3}
        assert result.entries[0].description.endswith("-3 penalty to the attack roll.")

    def test_advantage_flag(self):
        result = EvaluationResult()
        apply_finding(result, _flanking(), Behavior.advantage())
        assert result.advantage
        assert result.bonuses == {}

    def test_disadvantage_flag(self):
        result = EvaluationResult()
        apply_finding(result, _low_ground(), Behavior.disadvantage())
        assert result.disadvantage
        assert result.bonuses == {}

    def test_condition_finding(self):
        result = EvaluationResult()
        apply_finding(result, _condition(Effect.DISADVANTAGE))
        assert result.disadvantage
        assert result.findings[0].status == "stunned"

    def test_bonuses_sum_across_rules(self):
        result = EvaluationResult()
        apply_finding(result, _flanking(), Behavior.flat(2))
        apply_finding(
            result,
            RuleFinding(rule=RuleName.HIGH_GROUND, label="High Ground", reason="Above."),
            Behavior.flat(1),
        )
        assert result.bonuses == {"flanking": 2, "highGround": 1}
        assert result.total_bonus == 3
        assert len(result.entries) == 2


class TestDisplay:

    def test_outcome_text(self):
        assert outcome_text(Effect.ADVANTAGE, None) == "Advantage on the attack roll."
        assert outcome_text(Effect.DISADVANTAGE, None) == "Disadvantage on the attack roll."
        assert outcome_text(None, 2) == "+2 bonus to the attack roll."
        assert outcome_text(None, -1) == "-1 penalty to the attack roll."

    def test_flanking_entry(self):
        entry = display_entry(resolve_finding(_flanking(), Behavior.flat(2)))
        assert entry.label == "Flanking"
        assert entry.description == (
            "An ally is on the opposite side. +2 bonus to the attack roll."
        )
        assert entry.icon == "fa-solid fa-people-arrows"

    def test_condition_entry_icons(self):
        assert display_entry(_condition(Effect.ADVANTAGE)).icon == "fa-solid fa-circle-up"
        assert display_entry(_condition(Effect.DISADVANTAGE)).icon == "fa-solid fa-circle-down"

    def test_condition_entry_text(self):
        entry = display_entry(_condition(Effect.ADVANTAGE))
        assert entry.description == "Target is stunned. Advantage on the attack roll."
