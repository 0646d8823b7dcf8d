"""Greedy nearest-neighbour reordering of mission waypoints."""

import logging
import math

from rover.geometry import distance
from rover.mission.models import Waypoint

logger = logging.getLogger(__name__)

MINIMUM_OPTIMIZABLE_WAYPOINTS = 3


def optimize_path(waypoints: list[Waypoint]) -> list[Waypoint]:
    """Reorder waypoints by repeatedly visiting the nearest unvisited one.

    The first waypoint is the start position and keeps its place. Ties are
    broken in favour of the waypoint that appears first in the input.

    Args:
        waypoints: Waypoints in their current order.

    Returns:
        A new list holding the same waypoint objects in visiting order.
        Lists shorter than three waypoints are returned unchanged.
    """
    if len(waypoints) < MINIMUM_OPTIMIZABLE_WAYPOINTS:
        return list(waypoints)

    current = waypoints[0]
    unvisited = list(waypoints[1:])
    optimized = [current]

    while unvisited:
        nearest_index = 0
        nearest_distance = math.inf
        for index, candidate in enumerate(unvisited):
            candidate_distance = distance(current.x, current.y, candidate.x, candidate.y)
            if candidate_distance < nearest_distance:
                nearest_distance = candidate_distance
                nearest_index = index

        current = unvisited.pop(nearest_index)
        optimized.append(current)

    logger.debug(
        "Optimized path length %.1f -> %.1f",
        path_length(waypoints),
        path_length(optimized),
    )
    return optimized


def path_length(waypoints: list[Waypoint]) -> float:
    """Return the total polyline length through the waypoints in order."""
    return sum(
        distance(start.x, start.y, end.x, end.y)
        for start, end in zip(waypoints, waypoints[1:], strict=False)
    )
