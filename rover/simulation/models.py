"""Simulation snapshot data model."""

from pydantic import BaseModel, ConfigDict, Field

from rover.mission.models import MissionPhase, MissionState, MissionSummary
from rover.obstacle_avoidance.models import Obstacle
from rover.telemetry.models import EnvironmentConditions, SystemHealth
from rover.vehicle.models import VehicleState


class SimulationSnapshot(BaseModel):
    """Read-only view of the simulation after a frame.

    Vehicle and mission state are deep copies, so renderers can hold on to a
    snapshot while the simulation keeps running.
    """

    model_config = ConfigDict(frozen=True)

    time: float = Field(ge=0.0)
    phase: MissionPhase
    vehicle: VehicleState
    mission: MissionState
    obstacles: tuple[Obstacle, ...]
    progress_percent: float = Field(ge=0.0, le=100.0)
    eta_seconds: float | None = Field(default=None)
    current_task: str | None = Field(default=None)
    health: SystemHealth
    environment: EnvironmentConditions
    summary: MissionSummary | None = Field(default=None)
