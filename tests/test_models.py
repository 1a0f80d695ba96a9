"""
Tests for the data models.

Covers:
- BoundingBox validation and helpers
- TokenState construction, status normalisation, incapacitation
- TokenState.from_pixels rounding rules
- Behavior parsing and validation
- AttackCategory melee/ranged grouping
- EvaluationResult helpers
"""

import pytest
from pydantic import ValidationError

from tactical_rules.models import (
    AttackCategory,
    Behavior,
    BoundingBox,
    Cell,
    Effect,
    EvaluationResult,
    Faction,
    InvalidBehaviorError,
    RuleFinding,
    RuleName,
    TokenState,
    Zone,
    cell_center,
)


# ===================================================================
# Grid primitives
# ===================================================================

class TestBoundingBox:

    def test_defaults_to_single_cell(self):
        box = BoundingBox(x=2, y=3)
        assert (box.w, box.h) == (1, 1)
        assert box.right == 3 and box.bottom == 4

    @pytest.mark.parametrize("w,h", [(0, 1), (1, 0), (-1, 2)])
    def test_rejects_empty_extent(self, w, h):
        with pytest.raises(ValidationError):
            BoundingBox(x=0, y=0, w=w, h=h)

    def test_contains(self):
        box = BoundingBox(x=1, y=1, w=2, h=2)
        assert box.contains(1, 1)
        assert box.contains(2, 2)
        assert not box.contains(3, 1)
        assert not box.contains(0, 1)

    def test_nearest_cell_clamps(self):
        box = BoundingBox(x=0, y=0, w=2, h=2)
        assert box.nearest_cell(5, -3) == Cell(gx=1, gy=0)
        assert box.nearest_cell(-1, 1) == Cell(gx=0, gy=1)

    def test_cells_are_hashable_values(self):
        assert len({Cell(gx=1, gy=2), Cell(gx=1, gy=2)}) == 1

    def test_cell_center(self):
        assert cell_center(Cell(gx=2, gy=3), 100) == (250.0, 350.0)


class TestZone:

    def test_cardinals(self):
        assert {z for z in Zone if z.is_cardinal} == {Zone.N, Zone.S, Zone.E, Zone.W}


# ===================================================================
# Tokens
# ===================================================================

class TestTokenState:

    def test_defaults(self):
        token = TokenState(box=BoundingBox(x=0, y=0))
        assert len(token.id) == 8
        assert token.elevation == 0
        assert token.statuses == frozenset()
        assert not token.incapacitated

    def test_statuses_normalised(self):
        token = TokenState(box=BoundingBox(x=0, y=0), statuses=["Prone", "BLINDED"])
        assert token.statuses == frozenset({"prone", "blinded"})
        assert token.has_status("prone")

    def test_single_status_string(self):
        token = TokenState(box=BoundingBox(x=0, y=0), statuses="Prone")
        assert token.statuses == frozenset({"prone"})
        assert token.has_status("prone")
        assert token.incapacitated

    @pytest.mark.parametrize(
        "status",
        ["dead", "prone", "incapacitated", "unconscious", "petrified", "stunned", "paralyzed"],
    )
    def test_incapacitating_statuses(self, status):
        token = TokenState(box=BoundingBox(x=0, y=0), statuses={status})
        assert token.incapacitated

    def test_other_statuses_leave_token_active(self):
        token = TokenState(box=BoundingBox(x=0, y=0), statuses={"blinded", "poisoned"})
        assert not token.incapacitated

    def test_frozen(self):
        token = TokenState(box=BoundingBox(x=0, y=0))
        with pytest.raises(ValidationError):
            token.elevation = 30

    def test_faction_equality(self):
        a = TokenState(box=BoundingBox(x=0, y=0), faction="hostile")
        b = TokenState(box=BoundingBox(x=1, y=0), faction=Faction.HOSTILE)
        assert a.faction == b.faction

    def test_dump_includes_incapacitated(self):
        token = TokenState(box=BoundingBox(x=0, y=0), statuses={"stunned"})
        assert token.model_dump()["incapacitated"] is True


class TestFromPixels:

    def test_floor_position(self):
        token = TokenState.from_pixels(250, 140, 2, 2, grid_size=100)
        assert token.box == BoundingBox(x=2, y=1, w=2, h=2)

    def test_negative_pixels_floor_down(self):
        token = TokenState.from_pixels(-50, -150, grid_size=100)
        assert (token.box.x, token.box.y) == (-1, -2)

    @pytest.mark.parametrize(
        "size,expected", [(None, 1), (0, 1), (0.4, 1), (0.5, 1), (1.4, 1), (2.5, 3), (3, 3)]
    )
    def test_size_rounding(self, size, expected):
        token = TokenState.from_pixels(0, 0, size, size, grid_size=50)
        assert token.box.w == expected
        assert token.box.h == expected

    def test_extra_fields_pass_through(self):
        token = TokenState.from_pixels(
            0, 0, grid_size=100, id="orc", faction=Faction.HOSTILE, elevation=15
        )
        assert token.id == "orc"
        assert token.faction == Faction.HOSTILE
        assert token.elevation == 15


# ===================================================================
# Behavior
# ===================================================================

class TestBehavior:

    @pytest.mark.parametrize(
        "raw,effect,modifier",
        [
            ("advantage", Effect.ADVANTAGE, 0),
            ("Disadvantage", Effect.DISADVANTAGE, 0),
            ("plus1", None, 1),
            ("plus5", None, 5),
            ("minus2", None, -2),
            (3, None, 3),
            (-5, None, -5),
            ("+2", None, 2),
            ("-4", None, -4),
        ],
    )
    def test_parse(self, raw, effect, modifier):
        behavior = Behavior.parse(raw)
        assert behavior.effect == effect
        assert behavior.modifier == modifier

    @pytest.mark.parametrize("raw", [0, 6, -6, "plus6", "minus0", "sideways", True, None, 2.5])
    def test_parse_rejects(self, raw):
        with pytest.raises(InvalidBehaviorError):
            Behavior.parse(raw)

    def test_parse_passes_behavior_through(self):
        behavior = Behavior.flat(2)
        assert Behavior.parse(behavior) is behavior

    def test_parse_dict(self):
        assert Behavior.parse({"effect": "advantage"}) == Behavior.advantage()

    def test_parse_bad_dict(self):
        with pytest.raises(InvalidBehaviorError):
            Behavior.parse({"modifier": 9})

    def test_effect_with_modifier_rejected(self):
        with pytest.raises(ValidationError):
            Behavior(effect=Effect.ADVANTAGE, modifier=2)

    def test_describe(self):
        assert Behavior.advantage().describe() == "advantage"
        assert Behavior.flat(2).describe() == "+2 bonus"
        assert Behavior.flat(-3).describe() == "-3 penalty"

    def test_invalid_behavior_is_value_error(self):
        assert issubclass(InvalidBehaviorError, ValueError)


# ===================================================================
# Categories and results
# ===================================================================

class TestAttackCategory:

    def test_melee(self):
        melee = {c for c in AttackCategory if c.is_melee}
        assert melee == {
            AttackCategory.MELEE_WEAPON,
            AttackCategory.MELEE_SPELL,
            AttackCategory.NATURAL,
        }

    def test_ranged(self):
        ranged = {c for c in AttackCategory if c.is_ranged}
        assert ranged == {AttackCategory.RANGED_WEAPON, AttackCategory.RANGED_SPELL}

    def test_host_codes(self):
        assert AttackCategory("mwak") is AttackCategory.MELEE_WEAPON
        assert AttackCategory("rsak") is AttackCategory.RANGED_SPELL


class TestEvaluationResult:

    def test_empty(self):
        result = EvaluationResult()
        assert result.is_empty
        assert result.total_bonus == 0
        assert not result.advantage and not result.disadvantage

    def test_helpers(self):
        result = EvaluationResult(
            findings=[
                RuleFinding(rule=RuleName.FLANKING, label="Flanking", reason="", modifier=2),
                RuleFinding(
                    rule=RuleName.CONDITION, label="Poisoned", reason="",
                    effect=Effect.DISADVANTAGE,
                ),
            ],
            bonuses={"flanking": 2, "highGround": 1},
        )
        assert result.total_bonus == 3
        assert result.has_rule(RuleName.FLANKING)
        assert not result.has_rule(RuleName.SURROUNDED)
        assert [f.label for f in result.disadvantages] == ["Poisoned"]
        assert result.advantages == []


class TestExports:

    def test_package_exposes_models_only(self):
        import tactical_rules

        assert tactical_rules.TokenState is TokenState
        assert tactical_rules.Behavior is Behavior
        for name in ("math", "re", "random", "BaseModel", "Field"):
            assert not hasattr(tactical_rules, name)
