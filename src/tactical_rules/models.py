"""
Data models for the tactical rules engine.

All battlefield inputs are immutable snapshots: the engine reads them for
the duration of one evaluation and never writes back. Results are fresh
values built per attack.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    model_validator,
)
from shortuuid import random

__all__ = [
    "Cell",
    "BoundingBox",
    "cell_center",
    "Faction",
    "Zone",
    "CARDINAL_ZONES",
    "GridType",
    "AttackCategory",
    "Effect",
    "RuleName",
    "INACTIVE_STATUSES",
    "TokenState",
    "MAX_MAGNITUDE",
    "InvalidBehaviorError",
    "Behavior",
    "RuleFinding",
    "DisplayEntry",
    "EvaluationResult",
]

# ---------------------------------------------------------------------------
# Grid primitives
# ---------------------------------------------------------------------------

class Cell(BaseModel):
    """A single grid square, addressed by column and row."""

    model_config = ConfigDict(frozen=True)

    gx: int = Field(description="Column (0 = left edge)")
    gy: int = Field(description="Row (0 = top edge)")

    def __repr__(self) -> str:
        return f"Cell(gx={self.gx}, gy={self.gy})"


class BoundingBox(BaseModel):
    """Top-left cell and extent of a token, in whole cells."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    w: int = Field(default=1, ge=1)
    h: int = Field(default=1, ge=1)

    @property
    def right(self) -> int:
        """Column just past the right edge."""
        return self.x + self.w

    @property
    def bottom(self) -> int:
        """Row just past the bottom edge."""
        return self.y + self.h

    def contains(self, gx: int, gy: int) -> bool:
        return self.x <= gx < self.right and self.y <= gy < self.bottom

    def nearest_cell(self, gx: int, gy: int) -> Cell:
        """The cell of this box closest to (gx, gy), clamped per axis."""
        return Cell(
            gx=max(self.x, min(self.right - 1, gx)),
            gy=max(self.y, min(self.bottom - 1, gy)),
        )


def cell_center(cell: Cell, grid_size: float) -> tuple[float, float]:
    """Pixel centre of a grid cell."""
    return ((cell.gx + 0.5) * grid_size, (cell.gy + 0.5) * grid_size)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Faction(str, Enum):
    """Token disposition. Tokens with different tags are opposed."""

    HOSTILE = "hostile"
    FRIENDLY = "friendly"
    NEUTRAL = "neutral"


class Zone(str, Enum):
    """Directional region around a bounding box."""

    N = "N"
    S = "S"
    E = "E"
    W = "W"
    NE = "NE"
    NW = "NW"
    SE = "SE"
    SW = "SW"

    @property
    def is_cardinal(self) -> bool:
        return len(self.value) == 1


CARDINAL_ZONES: tuple[Zone, ...] = (Zone.N, Zone.E, Zone.S, Zone.W)


class GridType(str, Enum):
    """Grid layouts a host may report. Only SQUARE is evaluated."""

    SQUARE = "square"
    HEX_ROW = "hex_row"
    HEX_COLUMN = "hex_column"
    GRIDLESS = "gridless"


class AttackCategory(str, Enum):
    """Attack types, keyed by their host action codes."""

    MELEE_WEAPON = "mwak"
    MELEE_SPELL = "msak"
    RANGED_WEAPON = "rwak"
    RANGED_SPELL = "rsak"
    NATURAL = "natural"

    @property
    def is_melee(self) -> bool:
        return self in (
            AttackCategory.MELEE_WEAPON,
            AttackCategory.MELEE_SPELL,
            AttackCategory.NATURAL,
        )

    @property
    def is_ranged(self) -> bool:
        return self in (AttackCategory.RANGED_WEAPON, AttackCategory.RANGED_SPELL)


class Effect(str, Enum):
    """Roll effect a finding can carry."""

    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


class RuleName(str, Enum):
    """Rules the engine can report. Values double as bonus keys."""

    FLANKING = "flanking"
    SURROUNDED = "surrounded"
    HIGH_GROUND = "highGround"
    LOW_GROUND = "lowGround"
    CONDITION = "condition"


# ---------------------------------------------------------------------------
# Token snapshot
# ---------------------------------------------------------------------------

# Statuses that stop a creature from contributing to a flank.
INACTIVE_STATUSES: frozenset[str] = frozenset({
    "dead",
    "prone",
    "incapacitated",
    "unconscious",
    "petrified",
    "stunned",
    "paralyzed",
})


class TokenState(BaseModel):
    """Read-only snapshot of one token for a single evaluation.

    Attributes:
        id: Identifier used to tell tokens apart (attacker/target exclusion).
        box: Cells covered by the token.
        faction: Disposition tag, compared by equality.
        elevation: Height above the reference plane, in feet.
        statuses: Active status tags (e.g. "prone", "blinded").
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: random(length=8))
    name: str = ""
    box: BoundingBox
    faction: Faction = Faction.HOSTILE
    elevation: int = 0
    statuses: frozenset[str] = Field(default_factory=frozenset)

    @model_validator(mode="before")
    @classmethod
    def _normalize_statuses(cls, data: Any) -> Any:
        """Accept a status name or any iterable of them, lowercased."""
        if isinstance(data, dict) and data.get("statuses") is not None:
            data = dict(data)
            statuses = data["statuses"]
            if isinstance(statuses, str):
                statuses = [statuses]
            data["statuses"] = frozenset(str(s).lower() for s in statuses)
        return data

    @computed_field  # type: ignore[prop-decorator]
    @property
    def incapacitated(self) -> bool:
        """True if any status prevents the token from acting."""
        return not INACTIVE_STATUSES.isdisjoint(self.statuses)

    def has_status(self, status: str) -> bool:
        return status in self.statuses

    @classmethod
    def from_pixels(
        cls,
        x: float,
        y: float,
        width: float | None = 1,
        height: float | None = 1,
        grid_size: float = 100,
        **kwargs: Any,
    ) -> "TokenState":
        """Build a snapshot from a host token's pixel position and cell size.

        The top-left cell is the floor of the pixel position divided by the
        grid size. Width and height are rounded to whole cells, never less
        than one.

        Args:
            x: Left edge in pixels.
            y: Top edge in pixels.
            width: Width in grid cells (fractional sizes are rounded).
            height: Height in grid cells.
            grid_size: Pixels per grid cell.
            **kwargs: Remaining TokenState fields (id, faction, elevation, ...).

        Returns:
            A TokenState with a derived bounding box.
        """
        g = grid_size or 1
        box = BoundingBox(
            x=math.floor(x / g),
            y=math.floor(y / g),
            w=max(1, _round_half_up(width or 1)),
            h=max(1, _round_half_up(height or 1)),
        )
        return cls(box=box, **kwargs)


def _round_half_up(value: float) -> int:
    # Half-up, so a 2.5-cell token covers 3 cells.
    return math.floor(value + 0.5)


# ---------------------------------------------------------------------------
# Behavior
# ---------------------------------------------------------------------------

MAX_MAGNITUDE = 5

_LEGACY_CODE = re.compile(r"^(plus|minus)([1-9])$")


class InvalidBehaviorError(ValueError):
    """Raised when a behavior value is not advantage/disadvantage or ±1..±5."""


class Behavior(BaseModel):
    """Configured outcome for a detected positional rule.

    Either a roll effect (advantage/disadvantage) or a signed flat modifier
    whose magnitude lies in 1..5.
    """

    model_config = ConfigDict(frozen=True)

    effect: Effect | None = None
    modifier: int = 0

    @model_validator(mode="after")
    def _check_shape(self) -> "Behavior":
        if self.effect is not None:
            if self.modifier != 0:
                raise InvalidBehaviorError("a roll-effect behavior carries no modifier")
        elif not 1 <= abs(self.modifier) <= MAX_MAGNITUDE:
            raise InvalidBehaviorError(
                f"modifier must be within ±1..±{MAX_MAGNITUDE}, got {self.modifier}"
            )
        return self

    @classmethod
    def advantage(cls) -> "Behavior":
        return cls(effect=Effect.ADVANTAGE)

    @classmethod
    def disadvantage(cls) -> "Behavior":
        return cls(effect=Effect.DISADVANTAGE)

    @classmethod
    def flat(cls, modifier: int) -> "Behavior":
        if not 1 <= abs(modifier) <= MAX_MAGNITUDE:
            raise InvalidBehaviorError(
                f"modifier must be within ±1..±{MAX_MAGNITUDE}, got {modifier}"
            )
        return cls(modifier=modifier)

    @classmethod
    def parse(cls, value: Any) -> "Behavior":
        """Coerce a config value into a Behavior.

        Accepts an existing Behavior, "advantage"/"disadvantage", the legacy
        setting codes "plus1".."plus5" / "minus1".."minus5", a signed int,
        or a numeric string such as "+2".

        Raises:
            InvalidBehaviorError: If the value cannot be interpreted.
        """
        if isinstance(value, Behavior):
            return value
        if isinstance(value, bool):
            raise InvalidBehaviorError(f"not a behavior: {value!r}")
        if isinstance(value, int):
            return cls.flat(value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text in (Effect.ADVANTAGE.value, Effect.DISADVANTAGE.value):
                return cls(effect=Effect(text))
            m = _LEGACY_CODE.match(text)
            if m:
                sign = 1 if m.group(1) == "plus" else -1
                return cls.flat(sign * int(m.group(2)))
            try:
                return cls.flat(int(text))
            except ValueError:
                pass
        if isinstance(value, dict):
            try:
                return cls.model_validate(value)
            except ValidationError as exc:
                raise InvalidBehaviorError(str(exc)) from exc
        raise InvalidBehaviorError(f"not a behavior: {value!r}")

    @property
    def is_effect(self) -> bool:
        return self.effect is not None

    def describe(self) -> str:
        """Short human phrase, e.g. "+2 bonus" or "advantage"."""
        if self.effect is not None:
            return self.effect.value
        kind = "bonus" if self.modifier > 0 else "penalty"
        return f"{self.modifier:+d} {kind}"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class RuleFinding(BaseModel):
    """One detected rule with its justification.

    Positional findings are detected without an outcome; the bonus resolver
    fills in ``effect`` or ``modifier`` from the configured Behavior.
    Condition findings always carry an effect.
    """

    model_config = ConfigDict(frozen=True)

    rule: RuleName
    label: str
    reason: str
    effect: Effect | None = None
    modifier: int | None = None
    subject: str | None = Field(
        default=None,
        description="'attacker' or 'target' for condition findings",
    )
    status: str | None = None


class DisplayEntry(BaseModel):
    """Presentation-ready line describing one applied rule."""

    model_config = ConfigDict(frozen=True)

    label: str
    description: str
    icon: str = ""


class EvaluationResult(BaseModel):
    """Everything one attack evaluation produced.

    Advantage and disadvantage are reported independently; a result can
    carry both. Flat bonuses are keyed by rule name and summed by the
    caller into the roll.
    """

    findings: list[RuleFinding] = Field(default_factory=list)
    entries: list[DisplayEntry] = Field(default_factory=list)
    advantage: bool = False
    disadvantage: bool = False
    bonuses: dict[str, int] = Field(default_factory=dict)
    oracle_failures: int = Field(
        default=0,
        description="Blocking queries that raised and were treated as open",
    )

    @property
    def total_bonus(self) -> int:
        return sum(self.bonuses.values())

    @property
    def is_empty(self) -> bool:
        return not self.findings

    def has_rule(self, rule: RuleName) -> bool:
        return any(f.rule == rule for f in self.findings)

    @property
    def advantages(self) -> list[RuleFinding]:
        return [f for f in self.findings if f.effect == Effect.ADVANTAGE]

    @property
    def disadvantages(self) -> list[RuleFinding]:
        return [f for f in self.findings if f.effect == Effect.DISADVANTAGE]
