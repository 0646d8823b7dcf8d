"""Battery depletion and power draw model.

Drain is expressed in battery percent per second and combines a constant
idle draw, a share proportional to speed and the load of every active
sensor. The displayed wattage is derived from speed only and does not feed
back into the drain.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rover.vehicle.models import Sensor, default_sensor_suite

if TYPE_CHECKING:
    from rover.config import RoverSettings
    from rover.vehicle.models import VehicleState

logger = logging.getLogger(__name__)


class PowerModel:
    """Computes battery drain and power draw of the rover."""

    def __init__(
        self,
        settings: RoverSettings,
        sensors: list[Sensor] | None = None,
    ) -> None:
        """Initialize the power model.

        Args:
            settings: Simulation configuration with drain rates.
            sensors: Onboard sensors. Defaults to the standard suite.
        """
        self._max_speed = settings.max_speed
        self._idle_drain_rate = settings.idle_drain_rate
        self._movement_drain_rate = settings.movement_drain_rate
        self._sensor_drain_factor = settings.sensor_drain_factor
        self._base_power_watts = settings.base_power_watts
        self._power_range_watts = settings.power_range_watts
        self._sensors = sensors if sensors is not None else default_sensor_suite()

    @property
    def sensors(self) -> list[Sensor]:
        """Return the onboard sensors."""
        return self._sensors

    def sensor_load_watts(self) -> float:
        """Return the combined power draw of all active sensors."""
        return sum(sensor.power_watts for sensor in self._sensors if sensor.active)

    def set_sensor_active(self, name: str, *, active: bool) -> None:
        """Switch a sensor on or off.

        Args:
            name: Sensor name, e.g. ``"lidar"``.
            active: Whether the sensor draws power.

        Raises:
            KeyError: If no sensor has that name.
        """
        for sensor in self._sensors:
            if sensor.name == name:
                sensor.active = active
                logger.info("Sensor %s %s", name, "enabled" if active else "disabled")
                return
        raise KeyError(name)

    def drain_rate(self, speed: float) -> float:
        """Return the battery drain in percent per second at ``speed``."""
        return (
            self._idle_drain_rate
            + self._speed_ratio(speed) * self._movement_drain_rate
            + self.sensor_load_watts() * self._sensor_drain_factor
        )

    def consumption_watts(self, speed: float) -> float:
        """Return the displayed power draw at ``speed``."""
        return self._base_power_watts + self._speed_ratio(speed) * self._power_range_watts

    def apply(self, vehicle: VehicleState, delta_seconds: float) -> float:
        """Drain the battery for one frame and refresh the displayed draw.

        Args:
            vehicle: Vehicle whose battery is drained.
            delta_seconds: Frame duration.

        Returns:
            The remaining battery percentage, floored at zero.
        """
        drained = self.drain_rate(vehicle.speed) * delta_seconds
        vehicle.battery = max(0.0, vehicle.battery - drained)
        vehicle.power_consumption_watts = self.consumption_watts(vehicle.speed)
        return vehicle.battery

    def _speed_ratio(self, speed: float) -> float:
        return min(1.0, max(0.0, speed / self._max_speed))
