"""Planar geometry and kinematics helpers.

Headings are in radians measured counter-clockwise from the +x axis and are
always kept in the half-open interval (-pi, pi].
"""

import math

_FULL_TURN: float = 2.0 * math.pi


def normalize_angle(angle: float) -> float:
    """Wrap an angle into (-pi, pi].

    Args:
        angle: Angle in radians, any magnitude.

    Returns:
        Equivalent angle in (-pi, pi]. Both pi and -pi map to pi.
    """
    wrapped = math.fmod(angle + math.pi, _FULL_TURN)
    if wrapped <= 0.0:
        wrapped += _FULL_TURN
    return wrapped - math.pi


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Return the Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def heading_to(x1: float, y1: float, x2: float, y2: float) -> float:
    """Return the heading from the first point towards the second."""
    return math.atan2(y2 - y1, x2 - x1)


def shortest_turn(current: float, target: float) -> float:
    """Return the signed rotation that takes ``current`` onto ``target``.

    The result lies in (-pi, pi], so an exactly antiparallel target always
    turns counter-clockwise by pi.
    """
    return normalize_angle(target - current)


def clamp_turn(delta: float, max_turn: float) -> float:
    """Limit a signed turn to ``max_turn`` radians without changing its sign."""
    return math.copysign(min(abs(delta), max_turn), delta)


def step_towards(value: float, target: float, rise_rate: float, fall_rate: float) -> float:
    """Move ``value`` towards ``target`` by at most one rate step.

    Args:
        value: Current value.
        target: Value to approach.
        rise_rate: Largest increase allowed in this step.
        fall_rate: Largest decrease allowed in this step.

    Returns:
        The new value; never overshoots ``target``.
    """
    difference = target - value
    if difference > 0.0:
        return value + min(difference, rise_rate)
    return value - min(-difference, fall_rate)


def advance(x: float, y: float, heading: float, travel: float) -> tuple[float, float]:
    """Return the point ``travel`` units ahead of (x, y) along ``heading``."""
    return x + math.cos(heading) * travel, y + math.sin(heading) * travel
