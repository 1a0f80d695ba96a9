"""
Rule configuration for the tactical rules engine.

A RuleConfig says, per rule, whether it is enabled and what it does when it
applies. It can be built in code, loaded from a ``rules.yaml`` file, or
converted from the flat setting keys hosts typically store.

Expected YAML format::

    flanking:
      enabled: true
      behavior: plus2          # or "advantage", or an int in ±1..±5
      requires_active: true
    surrounded:
      enabled: true
      behavior: advantage
    high_ground:
      enabled: true
      behavior: 2
    low_ground:
      enabled: false
      behavior: minus2
    conditions:
      enabled: true
    elevation_threshold: 10
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, ClassVar

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .models import Behavior, Effect, RuleName

logger = logging.getLogger("tactical-rules.config")


class TacticalRulesError(Exception):
    """Base error for the tactical rules package."""


class RuleConfigError(TacticalRulesError):
    """Raised when a rule configuration cannot be loaded or validated."""


class RuleSettings(BaseModel):
    """Enable flag and behavior for an advantage-class positional rule."""

    enabled: bool = True
    behavior: Behavior = Field(default_factory=lambda: Behavior.flat(2))

    forbidden_effect: ClassVar[Effect] = Effect.DISADVANTAGE

    @field_validator("behavior", mode="before")
    @classmethod
    def _parse_behavior(cls, value: Any) -> Behavior:
        return Behavior.parse(value)

    @field_validator("behavior")
    @classmethod
    def _check_effect_class(cls, value: Behavior) -> Behavior:
        forbidden = cls.forbidden_effect
        if value.effect == forbidden:
            raise ValueError(f"{forbidden.value} is not a valid behavior for this rule")
        return value


class FlankingSettings(RuleSettings):
    requires_active: bool = Field(
        default=True,
        description="Ignore allies that are prone, stunned, unconscious, etc.",
    )


class SurroundedSettings(RuleSettings):
    behavior: Behavior = Field(default_factory=Behavior.advantage)


class LowGroundSettings(RuleSettings):
    """Low ground is a disadvantage-class rule."""

    enabled: bool = False
    behavior: Behavior = Field(default_factory=lambda: Behavior.flat(-2))

    forbidden_effect: ClassVar[Effect] = Effect.ADVANTAGE


class ConditionSettings(BaseModel):
    enabled: bool = True


class RuleConfig(BaseModel):
    """Which rules run and what each one does."""

    flanking: FlankingSettings = Field(default_factory=FlankingSettings)
    surrounded: SurroundedSettings = Field(default_factory=SurroundedSettings)
    high_ground: RuleSettings = Field(default_factory=RuleSettings)
    low_ground: LowGroundSettings = Field(default_factory=LowGroundSettings)
    conditions: ConditionSettings = Field(default_factory=ConditionSettings)
    elevation_threshold: int = Field(
        default=10,
        ge=1,
        description="Elevation difference in feet for high/low ground",
    )

    def settings_for(self, rule: RuleName) -> RuleSettings:
        """Settings block for a positional rule."""
        return {
            RuleName.FLANKING: self.flanking,
            RuleName.SURROUNDED: self.surrounded,
            RuleName.HIGH_GROUND: self.high_ground,
            RuleName.LOW_GROUND: self.low_ground,
        }[rule]

    # -----------------------------------------------------------------
    # Loaders
    # -----------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "RuleConfig":
        """Validate a nested mapping.

        Raises:
            RuleConfigError: If any field is invalid.
        """
        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as e:
            raise RuleConfigError(f"Invalid rule configuration: {e}") from e

    @classmethod
    def from_yaml(cls, path: Path | str) -> "RuleConfig":
        """Load a configuration file, falling back to defaults if it is missing.

        Args:
            path: Path to the YAML file.

        Returns:
            The validated configuration.

        Raises:
            RuleConfigError: If the file is malformed or fails validation.
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Rule config {path} not found, using defaults")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise RuleConfigError(f"Malformed YAML in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise RuleConfigError(f"{path} must contain a mapping at the top level")

        config = cls.from_dict(data)
        logger.debug(f"Loaded rule config from {path}")
        return config

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "RuleConfig":
        """Build a configuration from flat host setting keys.

        Recognised keys: enableFlanking, flankingBehaviour,
        flankingRequiresActive, enableSurrounded, surroundedBehaviour,
        enableHighGround, highGroundBehaviour, enableLowGround,
        lowGroundBehaviour, enableConditionAdvantage. Missing keys keep
        their defaults; unknown keys are ignored.
        """
        nested: dict[str, dict[str, Any]] = {}
        for key, (section, field) in _FLAT_KEYS.items():
            if key in settings:
                nested.setdefault(section, {})[field] = settings[key]
        return cls.from_dict(nested)

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping in the same shape ``from_dict`` accepts."""
        data = self.model_dump(mode="json")
        for section in ("flanking", "surrounded", "high_ground", "low_ground"):
            behavior = getattr(self, section).behavior
            data[section]["behavior"] = (
                behavior.effect.value if behavior.is_effect else behavior.modifier
            )
        return data

    def to_yaml(self, path: Path | str) -> None:
        """Write the configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        logger.info(f"Saved rule config to {path}")


_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "enableFlanking": ("flanking", "enabled"),
    "flankingBehaviour": ("flanking", "behavior"),
    "flankingRequiresActive": ("flanking", "requires_active"),
    "enableSurrounded": ("surrounded", "enabled"),
    "surroundedBehaviour": ("surrounded", "behavior"),
    "enableHighGround": ("high_ground", "enabled"),
    "highGroundBehaviour": ("high_ground", "behavior"),
    "enableLowGround": ("low_ground", "enabled"),
    "lowGroundBehaviour": ("low_ground", "behavior"),
    "enableConditionAdvantage": ("conditions", "enabled"),
}
