"""Vehicle state data models."""

from pydantic import BaseModel, ConfigDict, Field


class TrackPoint(BaseModel):
    """A past rover position kept for trail rendering."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    timestamp: float = Field(ge=0.0)


class TaskAnimation(BaseModel):
    """Task being performed at a waypoint."""

    model_config = ConfigDict(frozen=True)

    task_name: str
    start_time: float = Field(ge=0.0)
    duration_seconds: float = Field(ge=0.0)

    def progress(self, now: float) -> float:
        """Return task completion in [0, 1] at simulation time ``now``."""
        if self.duration_seconds <= 0.0:
            return 1.0
        return min(1.0, max(0.0, (now - self.start_time) / self.duration_seconds))


class Sensor(BaseModel):
    """An onboard sensor and its power draw."""

    name: str = Field(min_length=1)
    power_watts: float = Field(ge=0.0)
    active: bool = Field(default=True)


def default_sensor_suite() -> list[Sensor]:
    """Return the standard rover sensor suite, all sensors active."""
    return [
        Sensor(name="nav_cameras", power_watts=8.0),
        Sensor(name="hazard_cameras", power_watts=12.0),
        Sensor(name="lidar", power_watts=85.0),
        Sensor(name="radar", power_watts=35.0),
        Sensor(name="imu", power_watts=3.0),
        Sensor(name="gps", power_watts=6.0),
    ]


class VehicleState(BaseModel):
    """Kinematic and power state of the rover."""

    x: float = Field(default=100.0)
    y: float = Field(default=100.0)
    heading: float = Field(default=0.0)
    speed: float = Field(default=0.0, ge=0.0)
    target_speed: float = Field(default=0.0, ge=0.0)
    battery: float = Field(default=100.0, ge=0.0, le=100.0)
    power_consumption_watts: float = Field(default=110.0, ge=0.0)
    is_moving: bool = Field(default=False)
    task_animation: TaskAnimation | None = Field(default=None)
    track_history: list[TrackPoint] = Field(default_factory=list)

    def record_track(self, timestamp: float, limit: int) -> None:
        """Append the current position to the trail, dropping the oldest points.

        Args:
            timestamp: Simulation time of the sample.
            limit: Maximum number of points to keep.
        """
        self.track_history.append(TrackPoint(x=self.x, y=self.y, timestamp=timestamp))
        overflow = len(self.track_history) - limit
        if overflow > 0:
            del self.track_history[:overflow]

    def place_at(self, x: float, y: float) -> None:
        """Put the rover at rest at a position, facing +x."""
        self.x = x
        self.y = y
        self.heading = 0.0
        self.speed = 0.0
        self.target_speed = 0.0
        self.is_moving = False
        self.task_animation = None

    def halt(self) -> None:
        """Stop all motion immediately."""
        self.speed = 0.0
        self.target_speed = 0.0
        self.is_moving = False
