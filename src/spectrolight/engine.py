"""
Visualization engine.

Orchestrates the per-tick flow from capture backend to output sink:
bucketing, peak tracking, color mapping and change detection.
"""

import dataclasses
import enum
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from spectrolight.backends.base import CaptureBackend, DeviceInfo
from spectrolight.config import VisualizerConfig
from spectrolight.constants import N_BINS
from spectrolight.core.bucketizer import SpectrumBucketizer
from spectrolight.core.colormap import RGB, ColorMapper, ColorMode, GradientMode, LiquidMode
from spectrolight.core.liquid import LiquidGenerator
from spectrolight.core.peaks import PeakTracker
from spectrolight.io.sinks import OutputSink

logger = logging.getLogger(__name__)


class EngineState(enum.Enum):
    DISABLED = "disabled"
    INITIALIZING = "initializing"
    RUNNING = "running"


@dataclass
class DeviceList:
    """Result of a device query."""

    devices: list[DeviceInfo]
    recommended: Optional[int] = None


class VisualizationEngine:
    """
    Turns magnitude spectra into per-channel colors.

    Driven by an external periodic tick calling update(). Not thread-safe:
    backends that capture on another thread hand spectra over through a
    SpectrumMailbox and the engine only ever reads on the tick thread.
    """

    def __init__(
        self,
        backend: CaptureBackend,
        sink: OutputSink | None = None,
        config: VisualizerConfig | None = None,
        generator: LiquidGenerator | None = None,
    ):
        """
        Initialize the engine.

        Args:
            backend: Capture backend supplying spectra.
            sink: Receives emitted color frames.
            config: Settings snapshot (default: VisualizerConfig()).
            generator: Liquid mode color source.
        """
        self.backend = backend
        self.sink = sink
        self.config = VisualizerConfig()
        self.generator = generator or LiquidGenerator()

        self.state = EngineState.DISABLED
        self.initialized = False
        self.frames = 0  # Tick counter
        self.emitted = 0

        # Owned spectrum buffer, refilled in place every tick
        self.spectrum = np.zeros(N_BINS, dtype=np.float32)
        self.bucketizer = SpectrumBucketizer(N_BINS)
        self.tracker = PeakTracker()
        self.mapper = ColorMapper()

        self.mode: ColorMode = self.config.gradient()
        self.colors: list[int] = []
        self._enabled: list[bool] = []

        self.apply_config(config or VisualizerConfig())

    @property
    def is_running(self) -> bool:
        return self.state is EngineState.RUNNING

    @property
    def is_liquid(self) -> bool:
        return isinstance(self.mode, LiquidMode)

    @property
    def channel_count(self) -> int:
        return len(self.colors)

    @property
    def peaks(self) -> np.ndarray:
        return self.tracker.peaks

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _ensure_initialized(self) -> bool:
        """Acquire the backend once. Failures leave the engine disabled."""
        if self.initialized:
            return True

        previous = self.state
        self.state = EngineState.INITIALIZING
        try:
            ok = bool(self.backend.init())
        except Exception:
            logger.exception("backend initialization raised")
            ok = False

        if not ok:
            logger.warning("backend initialization failed, visualizer disabled")
            self.state = EngineState.DISABLED
            return False

        self.initialized = True
        self.state = previous
        return True

    def start(self, enabled: bool = True) -> bool:
        """
        Enable or disable the visualizer.

        Args:
            enabled: True to start capturing, False to stop.

        Returns:
            True if the engine ended up in the requested state.
        """
        if not enabled:
            if self.state is EngineState.DISABLED:
                return True
            try:
                self.backend.stop_capture()
            except Exception:
                logger.exception("backend failed to stop capture")
            self.generator.stop()
            self.state = EngineState.DISABLED
            logger.info("visualizer stopped")
            return True

        if self.is_running:
            return True
        if not self._ensure_initialized():
            return False

        try:
            self.backend.select_device(self.config.device)
            self.backend.start_capture()
        except Exception:
            logger.exception("backend failed to start capture")
            self.state = EngineState.DISABLED
            return False

        self.state = EngineState.RUNNING
        if self.is_liquid:
            self.generator.start()
        logger.info("visualizer running with %d channels", self.channel_count)
        return True

    def stop(self) -> bool:
        return self.start(False)

    def close(self):
        """Stop and release the backend."""
        self.start(False)
        if self.initialized:
            try:
                self.backend.shutdown()
            except Exception:
                logger.exception("backend shutdown raised")
            self.initialized = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def query_devices(self) -> DeviceList:
        """List capture devices, initializing the backend first if needed."""
        if not self._ensure_initialized():
            return DeviceList([], None)
        try:
            devices, recommended = self.backend.enumerate_devices()
        except Exception:
            logger.exception("device enumeration failed")
            return DeviceList([], None)
        if recommended is not None and not 0 <= recommended < len(devices):
            recommended = None
        return DeviceList(list(devices), recommended)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def apply_config(self, config: VisualizerConfig):
        """Reload every setting from a new snapshot."""
        logger.debug("applying config %s", config)
        config = dataclasses.replace(config, channel_enabled=list(config.channel_enabled))

        if config.device != self.config.device:
            self.set_device(config.device)
        self.config = config
        self._init_colors(config.channel_count)
        self.generator.set_speed(config.liquid_speed)
        self.set_mode(LiquidMode() if config.liquid_mode else config.gradient())

    def set_device(self, device_id: Optional[int]):
        """Select a capture device, restarting capture if running."""
        logger.debug("set_device %s", device_id)
        running = self.is_running
        if running:
            self.start(False)
        self.config.device = device_id
        if running:
            self.start(True)

    def set_min_color(self, color: RGB):
        logger.debug("set_min_color %s", color)
        self.config.min_color = tuple(color)
        if not self.is_liquid:
            self.mode = self.config.gradient()

    def set_max_color(self, color: RGB):
        logger.debug("set_max_color %s", color)
        self.config.max_color = tuple(color)
        if not self.is_liquid:
            self.mode = self.config.gradient()

    def set_mode(self, mode: ColorMode):
        """
        Switch color mode without touching peak state.

        Leaving liquid mode while running forces one emission so the last
        animated color does not linger on the outputs.
        """
        logger.debug("set_mode %s", mode)
        was_liquid = self.is_liquid
        self.mode = mode

        if isinstance(mode, LiquidMode):
            self.config.liquid_mode = True
            if self.is_running:
                self.generator.start()
            return

        self.config.liquid_mode = False
        self.config.min_color = mode.min_color
        self.config.max_color = mode.max_color
        self.generator.stop()
        if was_liquid and self.is_running:
            self.update(force=True)

    def set_liquid_mode(self, state: bool):
        if state:
            self.set_mode(LiquidMode())
        else:
            self.set_mode(GradientMode(self.config.min_color, self.config.max_color))

    def set_liquid_speed(self, value: int):
        logger.debug("set_liquid_speed %s", value)
        self.generator.set_speed(value)
        self.config.liquid_speed = self.generator.speed

    def set_send_only_on_change(self, state: bool):
        logger.debug("set_send_only_on_change %s", state)
        self.config.send_only_on_change = bool(state)

    def set_channel_count(self, n_channels: int):
        logger.debug("set_channel_count %s", n_channels)
        self.config.channel_count = max(0, int(n_channels))
        self._init_colors(self.config.channel_count)

    def set_channel_enabled(self, index: int, enabled: bool):
        flags = self.config.channel_enabled
        if index >= len(flags):
            flags.extend([True] * (index + 1 - len(flags)))
        flags[index] = bool(enabled)
        self._enabled = self.config.enabled_flags(self.channel_count)

    def reset(self):
        """Zero colors and peaks and restart the liquid cycle."""
        self._init_colors(self.channel_count)
        self.generator.reset()

    def _init_colors(self, n_channels: int):
        n_channels = max(0, n_channels)
        self.colors = [0] * n_channels
        self.tracker.reset(n_channels)
        self.bucketizer.resize(n_channels)
        self._enabled = self.config.enabled_flags(n_channels)

    # ------------------------------------------------------------------
    # Per-tick processing
    # ------------------------------------------------------------------

    def compute_colors(self) -> list[int]:
        """Run bucketing, peak tracking and color mapping on the current spectrum."""
        raw = self.bucketizer.bucketize(self.spectrum)
        values = self.tracker.track(raw, self.frames)
        liquid_color = self.generator.current() if self.is_liquid else None
        return self.mapper.map_colors(values, self._enabled, self.mode, liquid_color)

    def update(self, force: bool = False) -> bool:
        """
        Process one tick.

        Args:
            force: Emit even if nothing changed.

        Returns:
            True if a frame was emitted.
        """
        if not self.is_running or not self.colors:
            return False

        try:
            self.backend.current_spectrum(self.spectrum)
        except Exception:
            logger.exception("failed to read spectrum, skipping tick")
            return False
        self.frames += 1

        colors = self.compute_colors()
        changed = colors != self.colors
        self.colors = colors

        if changed or force or not self.config.send_only_on_change:
            self.emitted += 1
            if self.sink is not None:
                self.sink.emit(list(colors))
            return True
        return False
