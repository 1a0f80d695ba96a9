"""
Grid geometry for multi-cell tokens on a square grid.

Every positional rule reduces to two questions: "are these two tokens
adjacent?" and "which sides of the target does this token touch?". Both are
answered here so 1x1 and larger creatures follow the same code path.

Grid convention:
- Cell(0, 0) is the top-left of the scene; x grows east, y grows south.
- A token's BoundingBox covers columns x..x+w-1 and rows y..y+h-1.
- Adjacency uses Chebyshev distance, so diagonal neighbours count.

Zone layout around a WxH box::

    NW  [--- N ---]  NE
    [|]            [|]
    [W]    box     [E]
    [|]            [|]
    SW  [--- S ---]  SE
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from ..models import BoundingBox, Cell, Zone


OPPOSITE: dict[Zone, Zone] = {
    Zone.N: Zone.S,
    Zone.S: Zone.N,
    Zone.E: Zone.W,
    Zone.W: Zone.E,
    Zone.NE: Zone.SW,
    Zone.SW: Zone.NE,
    Zone.NW: Zone.SE,
    Zone.SE: Zone.NW,
}


def opposite(zone: Zone) -> Zone:
    """Return the zone on the far side of the box."""
    return OPPOSITE[zone]


# ---------------------------------------------------------------------------
# Occupancy
# ---------------------------------------------------------------------------

def occupied_cells(box: BoundingBox) -> set[Cell]:
    """All ``w * h`` cells covered by *box*."""
    return {
        Cell(gx=gx, gy=gy)
        for gx in range(box.x, box.right)
        for gy in range(box.y, box.bottom)
    }


def boxes_overlap(a: BoundingBox, b: BoundingBox) -> bool:
    return a.x < b.right and b.x < a.right and a.y < b.bottom and b.y < a.bottom


# ---------------------------------------------------------------------------
# Adjacency
# ---------------------------------------------------------------------------

def _gap(a_start: int, a_end: int, b_start: int, b_end: int) -> int:
    """Empty cells between two spans on one axis (negative when they overlap)."""
    return max(a_start - b_end, b_start - a_end)


def are_adjacent(a: BoundingBox, b: BoundingBox) -> bool:
    """Check whether two boxes touch without overlapping.

    True iff some cell of *a* that is not shared with *b* lies at Chebyshev
    distance exactly 1 from a cell of *b*, and the boxes do not overlap.
    Boxes more than one cell apart on either axis are rejected before any
    cells are scanned.

    Args:
        a: First token's box.
        b: Second token's box.

    Returns:
        True if the tokens are adjacent. Symmetric in its arguments.
    """
    if _gap(a.x, a.right, b.x, b.right) > 0 or _gap(a.y, a.bottom, b.y, b.bottom) > 0:
        return False
    if boxes_overlap(a, b):
        return False

    cells_b = occupied_cells(b)
    for ca in occupied_cells(a):
        if ca in cells_b:
            continue
        for cb in cells_b:
            if max(abs(ca.gx - cb.gx), abs(ca.gy - cb.gy)) == 1:
                return True
    return False


# ---------------------------------------------------------------------------
# Zones
# ---------------------------------------------------------------------------

def neighbor_zones(target: BoundingBox) -> dict[Zone, list[Cell]]:
    """Split the one-cell ring around *target* by direction.

    Cardinal zones list the cells along each side, west-to-east for N/S and
    north-to-south for E/W, so their length equals the side length.
    Diagonal zones hold the single corner cell.
    """
    x, y, w, h = target.x, target.y, target.w, target.h
    return {
        Zone.N: [Cell(gx=x + i, gy=y - 1) for i in range(w)],
        Zone.S: [Cell(gx=x + i, gy=y + h) for i in range(w)],
        Zone.W: [Cell(gx=x - 1, gy=y + i) for i in range(h)],
        Zone.E: [Cell(gx=x + w, gy=y + i) for i in range(h)],
        Zone.NW: [Cell(gx=x - 1, gy=y - 1)],
        Zone.NE: [Cell(gx=x + w, gy=y - 1)],
        Zone.SW: [Cell(gx=x - 1, gy=y + h)],
        Zone.SE: [Cell(gx=x + w, gy=y + h)],
    }


def touched_zones(box: BoundingBox, zones: Mapping[Zone, Iterable[Cell]]) -> set[Zone]:
    """Zones in which *box* occupies at least one cell."""
    cells = occupied_cells(box)
    return {
        zone
        for zone, zone_cells in zones.items()
        if any(c in cells for c in zone_cells)
    }
