"""
Turn detected rules into concrete roll effects.

A positional finding plus its configured Behavior becomes either an
advantage/disadvantage flag or a flat bonus keyed by rule name. Condition
findings already carry their effect and are applied as-is.
"""

from __future__ import annotations

from ..models import (
    Behavior,
    DisplayEntry,
    Effect,
    EvaluationResult,
    RuleFinding,
    RuleName,
)

RULE_ICONS: dict[RuleName, str] = {
    RuleName.SURROUNDED: "fa-solid fa-arrows-to-circle",
    RuleName.FLANKING: "fa-solid fa-people-arrows",
    RuleName.HIGH_GROUND: "fa-solid fa-mountain",
    RuleName.LOW_GROUND: "fa-solid fa-mountain",
}

EFFECT_ICONS: dict[Effect, str] = {
    Effect.ADVANTAGE: "fa-solid fa-circle-up",
    Effect.DISADVANTAGE: "fa-solid fa-circle-down",
}


def outcome_text(effect: Effect | None, modifier: int | None) -> str:
    """Sentence describing what a rule does to the roll."""
    if effect is not None:
        return f"{effect.value.capitalize()} on the attack roll."
    if modifier:
        kind = "bonus" if modifier > 0 else "penalty"
        return f"{modifier:+d} {kind} to the attack roll."
    return ""


def resolve_finding(finding: RuleFinding, behavior: Behavior | None = None) -> RuleFinding:
    """Fill in a finding's outcome from its configured behavior.

    Condition findings are returned unchanged; behavior does not govern them.

    Raises:
        ValueError: If a positional finding arrives without a behavior.
    """
    if finding.rule == RuleName.CONDITION:
        return finding
    if behavior is None:
        raise ValueError(f"no behavior configured for {finding.rule.value}")
    if behavior.is_effect:
        return finding.model_copy(update={"effect": behavior.effect, "modifier": None})
    return finding.model_copy(update={"effect": None, "modifier": behavior.modifier})


def display_entry(finding: RuleFinding) -> DisplayEntry:
    """Build the note line shown next to the roll."""
    if finding.rule in RULE_ICONS:
        icon = RULE_ICONS[finding.rule]
    elif finding.effect is not None:
        icon = EFFECT_ICONS[finding.effect]
    else:
        icon = ""
    text = outcome_text(finding.effect, finding.modifier)
    description = f"{finding.reason} {text}".strip()
    return DisplayEntry(label=finding.label, description=description, icon=icon)


def apply_finding(
    result: EvaluationResult,
    finding: RuleFinding,
    behavior: Behavior | None = None,
) -> RuleFinding:
    """Resolve *finding* and record it, its flag or bonus, and its entry on *result*.

    Args:
        result: The evaluation being assembled.
        finding: A detected rule.
        behavior: Configured behavior for positional rules.

    Returns:
        The resolved finding as stored on the result.
    """
    resolved = resolve_finding(finding, behavior)
    if resolved.effect == Effect.ADVANTAGE:
        result.advantage = True
    elif resolved.effect == Effect.DISADVANTAGE:
        result.disadvantage = True
    elif resolved.modifier:
        result.bonuses[resolved.rule.value] = resolved.modifier
    result.findings.append(resolved)
    result.entries.append(display_entry(resolved))
    return resolved
