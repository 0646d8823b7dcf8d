"""Headless simulation entry point.

Drives the simulation core from an asyncio event loop: one frame update at
the configured frame rate, periodic telemetry sampling and system health
drift, and signal handling that halts the rover before exiting.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable
from typing import TYPE_CHECKING

from rover.config import get_rover_settings
from rover.logging import LoggingConfig, LogLevel, setup_logging
from rover.mission.models import AlertLevel, MissionPhase
from rover.simulation.clock import FrameClock
from rover.simulation.core import SimulationCore

if TYPE_CHECKING:
    from rover.config import RoverSettings
    from rover.mission.models import Alert
    from rover.simulation.models import SimulationSnapshot

logger = logging.getLogger(__name__)

FrameObserver = Callable[["SimulationSnapshot"], None]

_ALERT_LOG_LEVELS: dict[AlertLevel, int] = {
    AlertLevel.INFO: logging.INFO,
    AlertLevel.WARNING: logging.WARNING,
    AlertLevel.CRITICAL: logging.ERROR,
}


class SimulationApplication:
    """Runs the simulation core in real time.

    Owns the frame clock and the background telemetry and health tasks.
    Frame observers receive a snapshot after every frame.
    """

    def __init__(
        self,
        settings: RoverSettings,
        core: SimulationCore | None = None,
    ) -> None:
        """Initialize the application.

        Args:
            settings: Simulation configuration.
            core: Simulation to drive. Created from settings if not given.
        """
        self._settings = settings
        self._core = core or SimulationCore(settings=settings)
        self._clock = FrameClock(max_delta=settings.max_frame_delta)
        self._observers: list[FrameObserver] = []
        self._background_tasks: list[asyncio.Task[None]] = []
        self._running = False
        self._started_at: float | None = None

    @property
    def core(self) -> SimulationCore:
        """Return the simulation being driven."""
        return self._core

    @property
    def is_running(self) -> bool:
        """Return whether the frame loop is running."""
        return self._running

    def add_observer(self, observer: FrameObserver) -> None:
        """Register a callback that receives a snapshot after every frame."""
        self._observers.append(observer)

    async def run(self) -> None:
        """Run the frame loop until stopped, cancelled or out of time.

        1. Auto-loads and starts the configured profile, if any.
        2. Starts the telemetry and health background tasks.
        3. Steps the simulation once per frame interval.
        """
        loop = asyncio.get_running_loop()
        self._running = True
        self._started_at = loop.time()
        self._clock.reset()
        logger.info("Starting simulation at %.0f fps", self._settings.frame_rate)

        self._auto_start()
        self._background_tasks = [
            asyncio.create_task(
                self._every(self._settings.telemetry_interval_seconds, self._sample_telemetry),
                name="telemetry",
            ),
            asyncio.create_task(
                self._every(self._settings.health_interval_seconds, self._update_health),
                name="system-health",
            ),
        ]

        try:
            while self._running:
                self.run_frame(loop.time())
                await asyncio.sleep(self._settings.frame_interval_seconds)
        except asyncio.CancelledError:
            logger.info("Simulation cancelled")
        finally:
            await self._shutdown()

    def stop(self) -> None:
        """Signal the frame loop to stop."""
        logger.info("Stop signal received")
        self._running = False

    def emergency_halt(self) -> None:
        """Emergency stop the rover, then stop the frame loop."""
        result = self._core.emergency_stop()
        if not result.success:
            logger.error("Emergency stop failed: %s", result.message)
        self._publish_alerts()
        self.stop()

    def run_frame(self, now: float) -> None:
        """Execute one frame at monotonic time ``now``."""
        delta = self._clock.tick(now)
        self._core.step(delta)
        self._publish_alerts()

        if self._observers:
            snapshot = self._core.snapshot()
            for observer in self._observers:
                observer(snapshot)

        if self._time_is_up(now):
            logger.info("Run duration of %.1fs reached", self._settings.run_duration_seconds)
            self.stop()

    def _auto_start(self) -> None:
        """Load and start the configured profile."""
        profile_key = self._settings.auto_start_profile
        if profile_key is None:
            return

        for result in (self._core.load_profile(profile_key), self._core.start()):
            if not result.success:
                logger.error(
                    "Auto-start failed: %s",
                    result.message,
                    extra={"reason": result.reason},
                )
                return
            logger.info(result.message)

    async def _every(self, interval_seconds: float, callback: Callable[[], None]) -> None:
        """Call ``callback`` every ``interval_seconds`` until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            callback()

    def _sample_telemetry(self) -> None:
        sample = self._core.sample_telemetry()
        logger.debug(
            "Telemetry %s: distance=%.0f speed=%.1f battery=%.1f",
            sample.label,
            sample.distance,
            sample.speed,
            sample.battery,
        )

    def _update_health(self) -> None:
        self._core.update_health()

    def _publish_alerts(self) -> None:
        """Log every pending operator alert."""
        for alert in self._core.drain_alerts():
            _log_alert(alert)

    def _time_is_up(self, now: float) -> bool:
        limit = self._settings.run_duration_seconds
        if limit is None or self._started_at is None:
            return False
        return now - self._started_at >= limit

    async def _shutdown(self) -> None:
        """Cancel background tasks and bring the rover to rest."""
        logger.info("Shutting down simulation")
        self._running = False

        for task in self._background_tasks:
            task.cancel()
        await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks = []

        self._core.stop()
        self._publish_alerts()

        snapshot = self._core.snapshot()
        if snapshot.phase == MissionPhase.COMPLETED and snapshot.summary is not None:
            logger.info(
                "Final mission efficiency %d%% over %.0fm",
                snapshot.summary.efficiency,
                snapshot.summary.total_distance,
            )
        logger.info("Simulation shut down at t=%.1fs", snapshot.time)


def _log_alert(alert: Alert) -> None:
    logger.log(
        _ALERT_LOG_LEVELS[alert.level],
        "Operator alert: %s",
        alert.message,
        extra={"reason": alert.reason, "blocking": alert.blocking},
    )


async def run_simulation(
    settings: RoverSettings,
    observers: list[FrameObserver] | None = None,
) -> SimulationApplication:
    """Run the simulation with signal handling for an emergency halt.

    Args:
        settings: Simulation configuration.
        observers: Frame observers to register before the loop starts.

    Returns:
        The application after its frame loop has finished.
    """
    application = SimulationApplication(settings=settings)
    for observer in observers or []:
        application.add_observer(observer)

    loop = asyncio.get_running_loop()

    def signal_handler() -> None:
        logger.warning("Received shutdown signal, halting rover")
        application.emergency_halt()

    for signal_name in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signal_name, signal_handler)

    try:
        await application.run()
    finally:
        for signal_name in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signal_name)

    return application


def main() -> None:
    """CLI entry point: load settings, set up logging at their level and run."""
    settings = get_rover_settings()
    setup_logging(LoggingConfig(log_level=LogLevel(settings.log_level)))

    logger.info(
        "Starting rover simulation (profile=%s, duration=%s, seed=%s)",
        settings.auto_start_profile,
        settings.run_duration_seconds,
        settings.random_seed,
    )

    asyncio.run(run_simulation(settings=settings))


if __name__ == "__main__":
    main()
