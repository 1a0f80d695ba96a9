"""
Condition-based advantage and disadvantage.

This module provides:
- CONDITION_RULES: the fixed table mapping attacker/target statuses to roll
  effects, in evaluation order.
- ConditionEvaluator: a stateless evaluator that turns two status sets and an
  attack category into RuleFindings.

Every matching status yields its own finding. Findings are never merged or
cancelled against each other here.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import AttackCategory, Effect, RuleFinding, RuleName, TokenState

ATTACKER = "attacker"
TARGET = "target"


@dataclass(frozen=True)
class ConditionRule:
    """One row of the condition table.

    Attributes:
        subject: Whose status is checked, "attacker" or "target".
        status: Status tag that triggers the row.
        label: Display label.
        melee: Effect on melee attacks, or None if the row does not apply.
        ranged: Effect on ranged attacks, or None if the row does not apply.
        melee_reason: Reason text for melee attacks.
        ranged_reason: Reason text for ranged attacks (defaults to melee_reason).
    """

    subject: str
    status: str
    label: str
    melee: Effect | None
    ranged: Effect | None
    melee_reason: str
    ranged_reason: str = ""

    def effect_for(self, category: AttackCategory) -> Effect | None:
        return self.melee if category.is_melee else self.ranged

    def reason_for(self, category: AttackCategory) -> str:
        if category.is_ranged and self.ranged_reason:
            return self.ranged_reason
        return self.melee_reason


def _both(subject: str, status: str, label: str, effect: Effect, reason: str) -> ConditionRule:
    return ConditionRule(subject, status, label, effect, effect, reason)


ADV = Effect.ADVANTAGE
DIS = Effect.DISADVANTAGE

CONDITION_RULES: tuple[ConditionRule, ...] = (
    # Attacker conditions
    _both(ATTACKER, "blinded", "Blinded", DIS, "Attacker is blinded."),
    _both(ATTACKER, "frightened", "Frightened", DIS, "Attacker is frightened."),
    _both(ATTACKER, "invisible", "Invisible", ADV, "Attacker is invisible."),
    _both(ATTACKER, "poisoned", "Poisoned", DIS, "Attacker is poisoned."),
    _both(ATTACKER, "prone", "Prone", DIS, "Attacker is prone."),
    _both(ATTACKER, "restrained", "Restrained", DIS, "Attacker is restrained."),
    # Target conditions
    _both(TARGET, "blinded", "Target Blinded", ADV, "Target cannot see the attacker."),
    _both(TARGET, "invisible", "Target Invisible", DIS, "Target is invisible."),
    _both(TARGET, "paralyzed", "Target Paralyzed", ADV, "Target is paralyzed."),
    _both(TARGET, "petrified", "Target Petrified", ADV, "Target is petrified."),
    ConditionRule(
        TARGET, "prone", "Target Prone",
        melee=ADV,
        ranged=DIS,
        melee_reason="Target is prone. Melee has advantage.",
        ranged_reason="Target is prone. Ranged has disadvantage.",
    ),
    _both(TARGET, "restrained", "Target Restrained", ADV, "Target is restrained."),
    _both(TARGET, "stunned", "Target Stunned", ADV, "Target is stunned."),
    _both(TARGET, "unconscious", "Target Unconscious", ADV, "Target is unconscious."),
)


class ConditionEvaluator:
    """Stateless evaluator for the condition table."""

    def __init__(self, rules: tuple[ConditionRule, ...] = CONDITION_RULES) -> None:
        self.rules = rules

    def findings(
        self,
        attacker: TokenState,
        target: TokenState,
        category: AttackCategory,
    ) -> list[RuleFinding]:
        """Collect a finding for every table row whose status is present.

        Args:
            attacker: The attacking token.
            target: The token being attacked.
            category: Attack category; decides the prone-target row.

        Returns:
            Findings in table order, attacker rows first.
        """
        results: list[RuleFinding] = []
        for rule in self.rules:
            subject = attacker if rule.subject == ATTACKER else target
            if not subject.has_status(rule.status):
                continue
            effect = rule.effect_for(category)
            if effect is None:
                continue
            results.append(
                RuleFinding(
                    rule=RuleName.CONDITION,
                    label=rule.label,
                    reason=rule.reason_for(category),
                    effect=effect,
                    subject=rule.subject,
                    status=rule.status,
                )
            )
        return results


def get_condition_findings(
    attacker: TokenState,
    target: TokenState,
    category: AttackCategory,
) -> list[RuleFinding]:
    """Condition findings using the default table."""
    return ConditionEvaluator().findings(attacker, target, category)
