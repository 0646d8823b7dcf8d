"""Telemetry and system health data models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# Average health thresholds
_DEGRADED_BELOW: float = 70.0
_CRITICAL_BELOW: float = 50.0


class ChartType(StrEnum):
    """Telemetry chart shown on the dashboard."""

    MISSION_PROGRESS = "mission_progress"
    SYSTEM_HEALTH = "system_health"
    POWER_CONSUMPTION = "power_consumption"
    ENVIRONMENTAL = "environmental"


class HealthStatus(StrEnum):
    """Overall onboard computer health."""

    OPTIMAL = "optimal"
    DEGRADED = "degraded"
    CRITICAL = "critical"


class SystemHealth(BaseModel):
    """Onboard computer health readings."""

    cpu_percent: float = Field(default=25.0, ge=0.0, le=100.0)
    memory_percent: float = Field(default=45.0, ge=0.0, le=100.0)
    temperature_celsius: float = Field(default=35.0)
    communication_percent: float = Field(default=98.0, ge=0.0, le=100.0)
    navigation_percent: float = Field(default=100.0, ge=0.0, le=100.0)
    power_system_percent: float = Field(default=100.0, ge=0.0, le=100.0)

    @property
    def average(self) -> float:
        """Return the mean of CPU, memory and communication readings."""
        return (self.cpu_percent + self.memory_percent + self.communication_percent) / 3.0

    @property
    def status(self) -> HealthStatus:
        """Classify the average reading."""
        average = self.average
        if average < _CRITICAL_BELOW:
            return HealthStatus.CRITICAL
        if average < _DEGRADED_BELOW:
            return HealthStatus.DEGRADED
        return HealthStatus.OPTIMAL


class EnvironmentConditions(BaseModel):
    """Ambient conditions around the rover."""

    model_config = ConfigDict(frozen=True)

    terrain: str = Field(default="surface")
    temperature_celsius: float = Field(default=20.0)
    solar_irradiance: float = Field(default=590.0, ge=0.0)


class TelemetrySample(BaseModel):
    """One dashboard sample across all charts."""

    model_config = ConfigDict(frozen=True)

    label: str
    distance: float = Field(ge=0.0)
    speed: float = Field(ge=0.0)
    cpu_percent: float
    memory_percent: float
    temperature_celsius: float
    communication_percent: float
    battery: float = Field(ge=0.0, le=100.0)
    power_watts: float = Field(ge=0.0)
    environment_temperature: float
    solar_irradiance: float = Field(ge=0.0)
