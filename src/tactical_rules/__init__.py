"""
Tactical rules - positional and condition-based roll modifiers for
square-grid combat with multi-cell creatures.
"""

from .combat import Battlefield, BlockingOracle, OpenField, RuleEngine, evaluate_attack
from .config import RuleConfig, RuleConfigError, TacticalRulesError
from .models import *

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("tactical-rules")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = [
    "Battlefield",
    "BlockingOracle",
    "OpenField",
    "RuleEngine",
    "evaluate_attack",
    "RuleConfig",
    "RuleConfigError",
    "TacticalRulesError",
]
