"""
Attack evaluation pipeline.

Provides the single entry point that hosts call before rolling an attack:
it runs the positional rules, the condition table and the bonus resolver,
and returns a fresh EvaluationResult. Nothing on the battlefield is
mutated and no state is kept between calls.

Functions:
    evaluate_attack: Evaluate one attack against the current battlefield.

Models:
    Battlefield: Tokens, grid layout and wall oracle for one evaluation.
    AttackRequest: Attacker, target and category bundled together.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from ..config import RuleConfig
from ..models import (
    AttackCategory,
    Effect,
    EvaluationResult,
    GridType,
    RuleFinding,
    RuleName,
    TokenState,
)
from .blocking import BlockingOracle, GuardedOracle, OpenField
from .bonuses import apply_finding
from .conditions import ConditionEvaluator
from .positioning import (
    are_opposed,
    find_flanking_ally,
    has_high_ground,
    has_low_ground,
    is_surrounded,
)

logger = logging.getLogger("tactical-rules.combat")


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Battlefield:
    """Read-only view of the scene for one evaluation.

    Attributes:
        tokens: Every token on the scene. Attacker and target may be included.
            Any iterable is accepted and stored as a tuple.
        grid_type: Layout of the grid; only square grids are evaluated.
        grid_size: Pixels per cell, used for oracle query points. Must be >= 1.
        oracle: Wall collision queries supplied by the host.

    Raises:
        ValueError: If grid_size is below 1.
    """

    tokens: Sequence[TokenState] = ()
    grid_type: GridType = GridType.SQUARE
    grid_size: float = 100
    oracle: BlockingOracle = field(default_factory=OpenField)

    def __post_init__(self) -> None:
        # Rules read the token list more than once per evaluation.
        object.__setattr__(self, "tokens", tuple(self.tokens))
        if self.grid_size < 1:
            raise ValueError(f"grid_size must be >= 1, got {self.grid_size}")


class AttackRequest(BaseModel):
    """One attack to evaluate."""

    model_config = ConfigDict(frozen=True)

    attacker: TokenState
    target: TokenState | None = None
    category: AttackCategory | str


def coerce_category(category: AttackCategory | str | None) -> AttackCategory | None:
    """Map an enum member or host action code to an AttackCategory, or None."""
    if isinstance(category, AttackCategory):
        return category
    if isinstance(category, str):
        try:
            return AttackCategory(category.strip().lower())
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class RuleEngine:
    """Stateless orchestrator binding a RuleConfig to the rule evaluators.

    The engine holds configuration only. Each call to ``evaluate`` builds
    its own result, so one engine can serve concurrent evaluations as long
    as the battlefield oracle tolerates concurrent reads.
    """

    def __init__(
        self,
        config: RuleConfig | None = None,
        conditions: ConditionEvaluator | None = None,
    ) -> None:
        self.config = config or RuleConfig()
        self.conditions = conditions or ConditionEvaluator()

    def evaluate(
        self,
        request: AttackRequest,
        battlefield: Battlefield | None = None,
    ) -> EvaluationResult:
        return self.evaluate_attack(
            request.attacker, request.target, request.category, battlefield
        )

    def evaluate_attack(
        self,
        attacker: TokenState,
        target: TokenState | None,
        category: AttackCategory | str | None,
        battlefield: Battlefield | None = None,
    ) -> EvaluationResult:
        """Evaluate every enabled rule for one attack.

        Malformed requests (no target, unknown category, attacker and target
        on the same side, non-square grid) produce an empty result instead
        of an error.

        Args:
            attacker: The attacking token.
            target: The token being attacked, or None if nothing is targeted.
            category: Attack category or its host action code.
            battlefield: Scene tokens, grid and wall oracle.

        Returns:
            Findings, display entries, advantage/disadvantage flags and flat
            bonuses for this attack.
        """
        result = EvaluationResult()
        battlefield = battlefield or Battlefield()

        if target is None:
            logger.debug("No target selected, skipping rule evaluation")
            return result
        kind = coerce_category(category)
        if kind is None:
            logger.debug(f"Unrecognised attack category {category!r}, skipping")
            return result
        if not are_opposed(attacker, target):
            logger.debug(f"{attacker.id} and {target.id} are not opposed, skipping")
            return result
        if battlefield.grid_type != GridType.SQUARE:
            logger.debug(f"Grid type {battlefield.grid_type.value} unsupported, skipping")
            return result

        oracle = GuardedOracle(battlefield.oracle)
        cfg = self.config

        if kind.is_melee:
            self._melee_rules(result, attacker, target, battlefield, oracle)
        if kind.is_ranged:
            self._elevation_rules(result, attacker, target)
        if cfg.conditions.enabled:
            findings = self.conditions.findings(attacker, target, kind)
            # Advantages are listed before disadvantages.
            for finding in sorted(findings, key=lambda f: f.effect != Effect.ADVANTAGE):
                apply_finding(result, finding)

        result.oracle_failures = oracle.failures
        if oracle.failures:
            logger.warning(
                f"{oracle.failures} blocking queries failed while evaluating "
                f"{attacker.id} -> {target.id}"
            )
        logger.debug(
            f"Evaluated {attacker.id} -> {target.id} ({kind.value}): "
            f"{[f.label for f in result.findings]}"
        )
        return result

    # -----------------------------------------------------------------
    # Rule groups
    # -----------------------------------------------------------------

    def _melee_rules(
        self,
        result: EvaluationResult,
        attacker: TokenState,
        target: TokenState,
        battlefield: Battlefield,
        oracle: GuardedOracle,
    ) -> None:
        cfg = self.config
        if cfg.surrounded.enabled and is_surrounded(
            target, battlefield.tokens, oracle, battlefield.grid_size
        ):
            self._apply(result, RuleFinding(
                rule=RuleName.SURROUNDED,
                label="Surrounded",
                reason="All cardinal sides are blocked.",
            ))
            return

        if not cfg.flanking.enabled:
            return
        ally = find_flanking_ally(
            attacker, target, battlefield.tokens, cfg.flanking.requires_active
        )
        if ally is not None:
            self._apply(result, RuleFinding(
                rule=RuleName.FLANKING,
                label="Flanking",
                reason=f"{ally.name or 'An ally'} is on the opposite side.",
            ))

    def _elevation_rules(
        self,
        result: EvaluationResult,
        attacker: TokenState,
        target: TokenState,
    ) -> None:
        cfg = self.config
        threshold = cfg.elevation_threshold
        if cfg.high_ground.enabled and has_high_ground(attacker, target, threshold):
            self._apply(result, RuleFinding(
                rule=RuleName.HIGH_GROUND,
                label="High Ground",
                reason=f"Attacker is {threshold}+ ft above the target.",
            ))
        elif cfg.low_ground.enabled and has_low_ground(attacker, target, threshold):
            self._apply(result, RuleFinding(
                rule=RuleName.LOW_GROUND,
                label="Low Ground",
                reason=f"Attacker is {threshold}+ ft below the target.",
            ))

    def _apply(self, result: EvaluationResult, finding: RuleFinding) -> None:
        apply_finding(result, finding, self.config.settings_for(finding.rule).behavior)


def evaluate_attack(
    attacker: TokenState,
    target: TokenState | None,
    category: AttackCategory | str | None,
    rule_config: RuleConfig | None = None,
    battlefield: Battlefield | None = None,
) -> EvaluationResult:
    """Evaluate one attack with the given rule configuration.

    Convenience wrapper around ``RuleEngine(rule_config).evaluate_attack``.
    """
    return RuleEngine(rule_config).evaluate_attack(attacker, target, category, battlefield)
