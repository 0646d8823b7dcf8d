"""Mission data models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class MissionPhase(StrEnum):
    """Phase of the mission state machine."""

    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    DWELLING = "dwelling"
    COMPLETED = "completed"


class WaypointTemplate(BaseModel):
    """Catalog definition of a waypoint."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    task: str = Field(min_length=1)
    dwell_seconds: float = Field(default=0.0, ge=0.0)


class Waypoint(BaseModel):
    """A waypoint of the loaded mission, with its progress."""

    x: float
    y: float
    task: str
    dwell_seconds: float = Field(default=0.0, ge=0.0)
    completed: bool = Field(default=False)
    task_start_time: float | None = Field(default=None)

    @classmethod
    def from_template(cls, template: WaypointTemplate) -> "Waypoint":
        """Create a fresh, uncompleted waypoint from a catalog entry."""
        return cls(
            x=template.x,
            y=template.y,
            task=template.task,
            dwell_seconds=template.dwell_seconds,
        )


class MissionProfile(BaseModel):
    """A named, ordered mission template."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    name: str = Field(min_length=1)
    expected_duration_hours: float = Field(gt=0.0)
    expected_distance_meters: float = Field(ge=0.0)
    waypoints: tuple[WaypointTemplate, ...] = Field(min_length=1)

    @property
    def expected_duration_seconds(self) -> float:
        """Return the expected mission duration in seconds."""
        return self.expected_duration_hours * 3600.0


class MissionState(BaseModel):
    """Mutable progress of the current mission."""

    profile_key: str | None = Field(default=None)
    waypoints: list[Waypoint] = Field(default_factory=list)
    current_waypoint_index: int = Field(default=0, ge=0)
    phase: MissionPhase = Field(default=MissionPhase.IDLE)
    start_time: float | None = Field(default=None)
    end_time: float | None = Field(default=None)
    total_distance: float = Field(default=0.0, ge=0.0)
    efficiency: int = Field(default=100, ge=0, le=100)
    completed_tasks: int = Field(default=0, ge=0)
    errors: float = Field(default=0.0, ge=0.0)
    status_message: str = Field(default="Rover is idle.")
    expected_duration_seconds: float = Field(default=0.0, ge=0.0)
    task_end_time: float | None = Field(default=None)
    resume_phase: MissionPhase | None = Field(default=None)
    paused_at: float | None = Field(default=None)

    @property
    def is_active(self) -> bool:
        """Return whether a mission is running, paused or not."""
        return self.phase in (MissionPhase.ACTIVE, MissionPhase.PAUSED, MissionPhase.DWELLING)

    @property
    def is_paused(self) -> bool:
        """Return whether the running mission is paused."""
        return self.phase == MissionPhase.PAUSED


class MissionSummary(BaseModel):
    """Final figures of a completed mission."""

    profile_key: str | None
    waypoint_count: int = Field(ge=0)
    completed_tasks: int = Field(ge=0)
    total_distance: float = Field(ge=0.0)
    elapsed_seconds: float = Field(ge=0.0)
    expected_seconds: float = Field(ge=0.0)
    errors: float = Field(ge=0.0)
    efficiency: int = Field(ge=0, le=100)


class AlertLevel(StrEnum):
    """Severity of an operator alert."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class Alert(BaseModel):
    """Operator-facing notification raised by the simulation."""

    model_config = ConfigDict(frozen=True)

    level: AlertLevel
    message: str
    reason: str | None = Field(default=None)
    timestamp: float = Field(ge=0.0)
    blocking: bool = Field(default=True)
