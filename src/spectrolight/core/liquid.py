"""
Animated hue generator for liquid color mode.

The hue walks around the color wheel while the generator is running.
Elapsed time only accumulates between start() and stop(), so pausing the
visualizer freezes the color instead of letting it jump on resume.
"""

import colorsys
import logging
import time
from typing import Callable

from spectrolight.constants import MAX_HUE_RATE, MAX_LIQUID_SPEED

logger = logging.getLogger(__name__)


class LiquidGenerator:
    """Time-driven hue cycle with an adjustable speed."""

    def __init__(
        self,
        speed: int = 50,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the generator.

        Args:
            speed: Cycle speed in [0, MAX_LIQUID_SPEED].
            clock: Monotonic time source in seconds.
        """
        self._clock = clock
        self._phase = 0.0  # Hue in turns, accumulated up to _started_at
        self._started_at: float | None = None
        self.speed = 0
        self.set_speed(speed)

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    @property
    def hue_rate(self) -> float:
        """Hue turns per second at the current speed."""
        return self.speed / MAX_LIQUID_SPEED * MAX_HUE_RATE

    def _fold(self):
        """Bank the hue travelled since the last anchor."""
        if self._started_at is not None:
            now = self._clock()
            self._phase = (self._phase + (now - self._started_at) * self.hue_rate) % 1.0
            self._started_at = now

    def set_speed(self, speed: int):
        self._fold()
        self.speed = max(0, min(MAX_LIQUID_SPEED, int(speed)))
        logger.debug("liquid speed set to %d", self.speed)

    def start(self):
        if self._started_at is None:
            self._started_at = self._clock()

    def stop(self):
        self._fold()
        self._started_at = None

    def reset(self):
        """Return to the start of the cycle, keeping the running state."""
        self._phase = 0.0
        if self._started_at is not None:
            self._started_at = self._clock()

    def hue(self) -> float:
        """Current hue in [0, 1)."""
        phase = self._phase
        if self._started_at is not None:
            phase += (self._clock() - self._started_at) * self.hue_rate
        return phase % 1.0

    def current(self) -> tuple[int, int, int]:
        """Current color as an (r, g, b) tuple. Does not advance state."""
        r, g, b = colorsys.hsv_to_rgb(self.hue(), 1.0, 1.0)
        return (int(r * 255), int(g * 255), int(b * 255))
