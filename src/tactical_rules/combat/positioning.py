"""
Positional rules: flanking, surrounded, high ground and low ground.

All checks are pure functions of the supplied TokenState snapshots and the
blocking oracle. They never mutate their inputs and return the same answer
for the same inputs.

Category and grid-type gating (melee-only, ranged-only, square grid) is the
orchestrator's job; these functions answer the geometric question only.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from ..models import CARDINAL_ZONES, BoundingBox, Cell, TokenState, cell_center
from .blocking import BlockingOracle, GuardedOracle, OpenField
from .grid import are_adjacent, neighbor_zones, opposite, touched_zones

logger = logging.getLogger("tactical-rules.combat.positioning")

DEFAULT_ELEVATION_THRESHOLD = 10  # feet


def are_opposed(a: TokenState, b: TokenState) -> bool:
    """Tokens with different faction tags are enemies."""
    return a.faction != b.faction


def are_allied(a: TokenState, b: TokenState) -> bool:
    return a.faction == b.faction


# ---------------------------------------------------------------------------
# Flanking
# ---------------------------------------------------------------------------

def find_flanking_ally(
    attacker: TokenState,
    target: TokenState,
    tokens: Iterable[TokenState],
    requires_active: bool = False,
) -> TokenState | None:
    """Find an ally standing on the far side of the target from the attacker.

    The attacker must be adjacent to an opposed target. An ally qualifies
    when it shares the attacker's faction, is adjacent to the target, is
    not incapacitated (if *requires_active*), and touches the zone opposite
    any zone the attacker touches. Diagonal zones count.

    Args:
        attacker: The attacking token.
        target: The token being attacked.
        tokens: Every token on the scene; attacker and target are skipped.
        requires_active: Ignore allies with an incapacitating status.

    Returns:
        The first qualifying ally, or None.
    """
    if not are_opposed(attacker, target):
        return None
    if not are_adjacent(attacker.box, target.box):
        return None

    zones = neighbor_zones(target.box)
    attacker_zones = touched_zones(attacker.box, zones)
    if not attacker_zones:
        return None
    wanted = {opposite(z) for z in attacker_zones}

    for token in tokens:
        if token.id in (attacker.id, target.id):
            continue
        if not are_allied(token, attacker):
            continue
        if not are_adjacent(token.box, target.box):
            continue
        if requires_active and token.incapacitated:
            continue
        if wanted & touched_zones(token.box, zones):
            return token
    return None


def is_flanking(
    attacker: TokenState,
    target: TokenState,
    tokens: Iterable[TokenState],
    requires_active: bool = False,
) -> bool:
    """True if any ally completes a flank with the attacker."""
    return find_flanking_ally(attacker, target, tokens, requires_active) is not None


# ---------------------------------------------------------------------------
# Surrounded
# ---------------------------------------------------------------------------

def cell_has_enemy(cell: Cell, target: TokenState, tokens: Iterable[TokenState]) -> bool:
    """True if a token opposed to *target* covers *cell*."""
    return any(
        t.id != target.id and are_opposed(t, target) and t.box.contains(cell.gx, cell.gy)
        for t in tokens
    )


def cell_walled_off(
    cell: Cell,
    target_box: BoundingBox,
    oracle: BlockingOracle,
    grid_size: float,
) -> bool:
    """True if a wall lies between the target and the neighbouring *cell*.

    The ray runs from the centre of the target cell nearest to *cell* to the
    centre of *cell*.
    """
    origin = cell_center(target_box.nearest_cell(cell.gx, cell.gy), grid_size)
    return oracle.is_blocked(origin, cell_center(cell, grid_size))


def is_surrounded(
    target: TokenState,
    tokens: Iterable[TokenState],
    oracle: BlockingOracle | None = None,
    grid_size: float = 100,
) -> bool:
    """Check whether every cardinal side of the target is mostly blocked.

    For each of N, E, S and W independently, at least half (rounded up) of
    the cells along that side must hold an enemy of the target or be cut off
    by a wall. Counting stops as soon as a side reaches its threshold.

    A raw oracle is wrapped in a GuardedOracle, so a failing query counts
    as open rather than raising.

    Args:
        target: The token that may be surrounded.
        tokens: Every token on the scene.
        oracle: Wall collision queries; defaults to an open field.
        grid_size: Pixels per cell, used to build oracle query points.

    Returns:
        True only if all four sides are blocked.
    """
    oracle = oracle or OpenField()
    if not isinstance(oracle, GuardedOracle):
        oracle = GuardedOracle(oracle)
    tokens = list(tokens)
    zones = neighbor_zones(target.box)

    for zone in CARDINAL_ZONES:
        side = zones[zone]
        needed = math.ceil(len(side) / 2)
        blocked = 0
        for cell in side:
            if cell_has_enemy(cell, target, tokens) or cell_walled_off(
                cell, target.box, oracle, grid_size
            ):
                blocked += 1
                if blocked >= needed:
                    break
        if blocked < needed:
            logger.debug(f"{zone.value} side of {target.id} open ({blocked}/{needed})")
            return False
    return True


# ---------------------------------------------------------------------------
# Elevation
# ---------------------------------------------------------------------------

def has_high_ground(
    attacker: TokenState,
    target: TokenState,
    threshold: int = DEFAULT_ELEVATION_THRESHOLD,
) -> bool:
    """Attacker stands at least *threshold* feet above the target."""
    return attacker.elevation - target.elevation >= threshold


def has_low_ground(
    attacker: TokenState,
    target: TokenState,
    threshold: int = DEFAULT_ELEVATION_THRESHOLD,
) -> bool:
    """Attacker stands at least *threshold* feet below the target.

    Never true together with high ground for the same pair.
    """
    if has_high_ground(attacker, target, threshold):
        return False
    return target.elevation - attacker.elevation >= threshold
