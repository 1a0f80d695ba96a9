"""
Combat rule evaluation for tactical_rules.

Provides grid geometry for multi-cell tokens, the wall-blocking protocol,
positional rules (flanking, surrounded, high/low ground), the condition
table, the bonus resolver, and the attack evaluation pipeline.
"""

# Grid geometry
from .grid import (
    OPPOSITE,
    are_adjacent,
    neighbor_zones,
    occupied_cells,
    opposite,
    touched_zones,
)

# Wall blocking
from .blocking import BlockingOracle, GuardedOracle, OpenField

# Positional rules
from .positioning import (
    find_flanking_ally,
    has_high_ground,
    has_low_ground,
    is_flanking,
    is_surrounded,
)

# Condition table
from .conditions import CONDITION_RULES, ConditionEvaluator, get_condition_findings

# Bonus resolution
from .bonuses import apply_finding, resolve_finding

# Evaluation pipeline
from .pipeline import AttackRequest, Battlefield, RuleEngine, evaluate_attack

__all__ = [
    "OPPOSITE",
    "are_adjacent",
    "neighbor_zones",
    "occupied_cells",
    "opposite",
    "touched_zones",
    "BlockingOracle",
    "GuardedOracle",
    "OpenField",
    "find_flanking_ally",
    "has_high_ground",
    "has_low_ground",
    "is_flanking",
    "is_surrounded",
    "CONDITION_RULES",
    "ConditionEvaluator",
    "get_condition_findings",
    "apply_finding",
    "resolve_finding",
    "AttackRequest",
    "Battlefield",
    "RuleEngine",
    "evaluate_attack",
]
