"""Obstacle avoidance data models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ObstacleCategory(StrEnum):
    """Kind of terrain hazard."""

    BOULDER = "boulder"
    PIT = "pit"
    ROCK_FORMATION = "rock_formation"


class Obstacle(BaseModel):
    """A static circular obstacle."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    radius: float = Field(gt=0.0)
    category: ObstacleCategory


class Viewport(BaseModel):
    """Drawable area supplied by the presentation layer."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(gt=0.0)
    height: float = Field(gt=0.0)


class ObstacleProximity(BaseModel):
    """Nearest obstacle to a point and the clearance left to it."""

    model_config = ConfigDict(frozen=True)

    obstacle: Obstacle
    clearance: float


def default_obstacle_field() -> tuple[Obstacle, ...]:
    """Return the standard obstacle field of the simulation area."""
    return (
        Obstacle(x=200.0, y=150.0, radius=20.0, category=ObstacleCategory.BOULDER),
        Obstacle(x=300.0, y=120.0, radius=15.0, category=ObstacleCategory.PIT),
        Obstacle(x=180.0, y=250.0, radius=18.0, category=ObstacleCategory.ROCK_FORMATION),
    )
