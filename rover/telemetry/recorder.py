"""Rolling telemetry buffers and simulated system health.

Each chart keeps a fixed-length window of samples; appending beyond the
window drops the oldest sample. Nothing is persisted.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from rover.exceptions import UnknownChartError
from rover.telemetry.models import ChartType, SystemHealth, TelemetrySample

if TYPE_CHECKING:
    from rover.config import RoverSettings

logger = logging.getLogger(__name__)

SampleField = Callable[[TelemetrySample], float]

_CHART_DATASETS: MappingProxyType[ChartType, tuple[tuple[str, SampleField], ...]] = (
    MappingProxyType(
        {
            ChartType.MISSION_PROGRESS: (
                ("Distance (m)", lambda sample: round(sample.distance)),
                ("Speed (m/s)", lambda sample: round(sample.speed, 1)),
            ),
            ChartType.SYSTEM_HEALTH: (
                ("CPU (%)", lambda sample: round(sample.cpu_percent)),
                ("Memory (%)", lambda sample: round(sample.memory_percent)),
                ("Temperature (C)", lambda sample: round(sample.temperature_celsius)),
            ),
            ChartType.POWER_CONSUMPTION: (
                ("Power (W)", lambda sample: round(sample.power_watts)),
                ("Battery (%)", lambda sample: round(sample.battery)),
            ),
            ChartType.ENVIRONMENTAL: (
                ("Temperature (C)", lambda sample: round(sample.environment_temperature)),
                ("Solar Irradiance", lambda sample: round(sample.solar_irradiance / 10.0)),
            ),
        }
    )
)

# Random walk parameters: (step amplitude, bias, lower bound, upper bound)
_CPU_WALK = (5.0, 0.5, 15.0, 95.0)
_MEMORY_WALK = (3.0, 0.5, 25.0, 85.0)
_TEMPERATURE_WALK = (2.0, 0.5, 25.0, 45.0)
_COMMUNICATION_WALK = (4.0, 0.4, 75.0, 100.0)


@dataclass
class ChartSeries:
    """Rolling window of labelled datasets for one chart."""

    chart_type: ChartType
    window: int
    labels: deque[str] = field(init=False)
    datasets: dict[str, deque[float]] = field(init=False)

    def __post_init__(self) -> None:
        self.labels = deque(maxlen=self.window)
        self.datasets = {
            name: deque(maxlen=self.window) for name, _ in _CHART_DATASETS[self.chart_type]
        }

    def append(self, sample: TelemetrySample) -> None:
        """Append one sample, dropping the oldest beyond the window."""
        self.labels.append(sample.label)
        for name, extract in _CHART_DATASETS[self.chart_type]:
            self.datasets[name].append(extract(sample))

    def to_dict(self) -> dict[str, object]:
        """Return the series as plain lists for a chart widget."""
        return {
            "chart_type": self.chart_type.value,
            "labels": list(self.labels),
            "datasets": {name: list(values) for name, values in self.datasets.items()},
        }

    def __len__(self) -> int:
        return len(self.labels)


class TelemetryRecorder:
    """Keeps the rolling dashboard history for every chart type."""

    def __init__(self, settings: RoverSettings) -> None:
        """Initialize empty chart buffers.

        Args:
            settings: Simulation configuration with the telemetry window.
        """
        self._series = {
            chart_type: ChartSeries(chart_type=chart_type, window=settings.telemetry_window)
            for chart_type in ChartType
        }
        self._selected_chart = ChartType.MISSION_PROGRESS

    @property
    def selected_chart(self) -> ChartType:
        """Return the chart currently shown."""
        return self._selected_chart

    def record(self, sample: TelemetrySample) -> None:
        """Append a sample to every chart."""
        for series in self._series.values():
            series.append(sample)

    def select_chart(self, chart_type: str) -> ChartType:
        """Switch the chart shown on the dashboard.

        Args:
            chart_type: Chart type value, e.g. ``"power_consumption"``.

        Returns:
            The selected chart type.

        Raises:
            UnknownChartError: If the value is not a known chart type.
        """
        try:
            selected = ChartType(chart_type)
        except ValueError:
            raise UnknownChartError(
                f"Unknown chart type '{chart_type}'",
                context={"allowed": [member.value for member in ChartType]},
            ) from None

        self._selected_chart = selected
        logger.debug("Selected chart %s", selected)
        return selected

    def series(self, chart_type: ChartType) -> ChartSeries:
        """Return the buffer of one chart."""
        return self._series[chart_type]

    def selected_series(self) -> ChartSeries:
        """Return the buffer of the chart currently shown."""
        return self._series[self._selected_chart]


class SystemHealthMonitor:
    """Simulates slow drift of the onboard computer health readings."""

    def __init__(
        self,
        health: SystemHealth | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            health: Starting readings. Defaults to nominal values.
            rng: Random source for the drift.
        """
        self._health = health or SystemHealth()
        self._rng = rng or random.Random()

    @property
    def health(self) -> SystemHealth:
        """Return the current readings."""
        return self._health

    def update(self) -> SystemHealth:
        """Apply one random-walk step to every reading.

        Returns:
            The updated readings.
        """
        health = self._health
        previous_status = health.status

        health.cpu_percent = self._walk(health.cpu_percent, _CPU_WALK)
        health.memory_percent = self._walk(health.memory_percent, _MEMORY_WALK)
        health.temperature_celsius = self._walk(health.temperature_celsius, _TEMPERATURE_WALK)
        health.communication_percent = self._walk(
            health.communication_percent, _COMMUNICATION_WALK
        )

        if health.status != previous_status:
            logger.warning("System health changed: %s -> %s", previous_status, health.status)
        return health

    def _walk(self, value: float, walk: tuple[float, float, float, float]) -> float:
        amplitude, bias, lower, upper = walk
        value += (self._rng.random() - bias) * amplitude
        return max(lower, min(upper, value))
