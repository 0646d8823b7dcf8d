"""Frame timing for the simulation driver."""


class FrameClock:
    """Turns wall-clock timestamps into bounded frame deltas.

    The first tick yields zero. Later ticks yield the elapsed time clamped to
    ``[0, max_delta]`` so a stalled frame never produces a large jump.
    """

    def __init__(self, max_delta: float = 1.0 / 30.0) -> None:
        if max_delta <= 0.0:
            raise ValueError(f"max_delta must be positive, got {max_delta}")
        self._max_delta = max_delta
        self._last_time: float | None = None

    @property
    def max_delta(self) -> float:
        """Return the largest delta a tick can yield."""
        return self._max_delta

    def tick(self, now: float) -> float:
        """Return the clamped time since the previous tick.

        Args:
            now: Current monotonic time in seconds.

        Returns:
            Frame delta in seconds.
        """
        last_time = self._last_time
        self._last_time = now
        if last_time is None:
            return 0.0
        return min(self._max_delta, max(0.0, now - last_time))

    def reset(self) -> None:
        """Forget the previous tick so the next one yields zero."""
        self._last_time = None
