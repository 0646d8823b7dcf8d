"""Reactive local obstacle avoidance.

Checks proposed rover positions against static circular obstacles and the
drivable area, and computes the evasive heading used when a position is
blocked. There is no lookahead: after an evasion the normal waypoint seeking
takes over again on the next frame.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from rover.exceptions import BoundaryBlockedError, ObstacleBlockedError
from rover.geometry import distance, normalize_angle
from rover.obstacle_avoidance.models import ObstacleProximity, default_obstacle_field

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rover.config import RoverSettings
    from rover.obstacle_avoidance.models import Obstacle, Viewport

logger = logging.getLogger(__name__)


class ObstacleAvoidance:
    """Collision checks against obstacles and the viewport boundary."""

    def __init__(
        self,
        settings: RoverSettings,
        obstacles: Iterable[Obstacle] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize obstacle avoidance.

        Args:
            settings: Simulation configuration with vehicle radius and margins.
            obstacles: Static obstacles. Defaults to the standard field.
            rng: Random source for the evasion direction.
        """
        self._vehicle_radius = settings.vehicle_radius
        self._boundary_margin = settings.boundary_margin
        self._evasion_angle = settings.evasion_angle
        self._obstacles = tuple(obstacles) if obstacles is not None else default_obstacle_field()
        self._rng = rng or random.Random(settings.random_seed)

    @property
    def obstacles(self) -> tuple[Obstacle, ...]:
        """Return the static obstacles."""
        return self._obstacles

    def is_path_clear(self, x: float, y: float) -> bool:
        """Return whether (x, y) keeps the rover clear of every obstacle.

        A point is clear of an obstacle when its distance to the obstacle
        centre exceeds the obstacle radius plus the vehicle radius.
        """
        return all(
            distance(x, y, obstacle.x, obstacle.y) > obstacle.radius + self._vehicle_radius
            for obstacle in self._obstacles
        )

    def is_within_boundary(self, x: float, y: float, viewport: Viewport) -> bool:
        """Return whether (x, y) lies inside the viewport minus the margin."""
        margin = self._boundary_margin
        return (
            margin <= x <= viewport.width - margin
            and margin <= y <= viewport.height - margin
        )

    def nearest_obstacle(self, x: float, y: float) -> ObstacleProximity | None:
        """Return the obstacle whose buffered edge is closest to (x, y).

        Clearance is negative when the point lies inside the buffer.
        """
        nearest: ObstacleProximity | None = None
        for obstacle in self._obstacles:
            clearance = (
                distance(x, y, obstacle.x, obstacle.y) - obstacle.radius - self._vehicle_radius
            )
            if nearest is None or clearance < nearest.clearance:
                nearest = ObstacleProximity(obstacle=obstacle, clearance=clearance)
        return nearest

    def ensure_clear(self, x: float, y: float, viewport: Viewport) -> None:
        """Check a proposed position.

        Args:
            x: Proposed x coordinate.
            y: Proposed y coordinate.
            viewport: Drawable area the rover must stay inside.

        Raises:
            BoundaryBlockedError: If the position is outside the drivable area.
            ObstacleBlockedError: If the position collides with an obstacle.
        """
        if not self.is_within_boundary(x, y, viewport):
            raise BoundaryBlockedError(
                "Rover hit boundary, adjusting course",
                context={"x": round(x, 2), "y": round(y, 2)},
            )

        if not self.is_path_clear(x, y):
            proximity = self.nearest_obstacle(x, y)
            raise ObstacleBlockedError(
                "Obstacle detected, evading",
                category=proximity.obstacle.category if proximity else None,
                clearance=proximity.clearance if proximity else None,
            )

    def evade(self, heading: float) -> float:
        """Return the heading after an evasive turn in a random direction.

        Args:
            heading: Current heading in radians.

        Returns:
            Heading rotated by the evasion angle, wrapped into (-pi, pi].
        """
        direction = 1.0 if self._rng.random() > 0.5 else -1.0
        new_heading = normalize_angle(heading + direction * self._evasion_angle)
        logger.debug(
            "Evasive turn %+.2f rad -> heading %.3f",
            direction * self._evasion_angle,
            new_heading,
        )
        return new_heading
