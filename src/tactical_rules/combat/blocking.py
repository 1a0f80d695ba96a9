"""
Wall-blocking capability supplied by the host.

The engine never inspects walls itself. Hosts adapt whatever collision
backend they have to the single ``is_blocked`` query below; the engine wraps
it in a GuardedOracle so a failing backend degrades to "not blocked".
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger("tactical-rules.combat.blocking")

Point = tuple[float, float]


class BlockingOracle(Protocol):
    """Protocol for static-geometry collision queries, in pixel space."""

    def is_blocked(self, origin: Point, destination: Point) -> bool:
        """Report whether movement from *origin* to *destination* is obstructed.

        Args:
            origin: Start point (pixels).
            destination: End point (pixels).

        Returns:
            True if a wall lies across the segment.
        """
        ...


class OpenField:
    """Oracle for scenes without walls."""

    def is_blocked(self, origin: Point, destination: Point) -> bool:
        return False

    def __repr__(self) -> str:
        return "OpenField()"


class GuardedOracle:
    """Fail-open wrapper that counts backend failures.

    One instance is created per evaluation, so the failure count belongs to
    that evaluation only.
    """

    def __init__(self, inner: BlockingOracle) -> None:
        self.inner = inner
        self.failures = 0

    def is_blocked(self, origin: Point, destination: Point) -> bool:
        try:
            return bool(self.inner.is_blocked(origin, destination))
        except Exception as e:
            self.failures += 1
            logger.warning(
                f"Blocking query {origin} -> {destination} failed, treating as open: {e!r}"
            )
            return False
