"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from spectrolight.backends.base import CaptureBackend, DeviceInfo
from spectrolight.config import VisualizerConfig
from spectrolight.constants import N_BINS
from spectrolight.core.liquid import LiquidGenerator
from spectrolight.engine import VisualizationEngine
from spectrolight.io.sinks import RecordingSink

# Default sample rate for test audio
TEST_SR = 22050


class FakeBackend(CaptureBackend):
    """In-memory backend serving whatever spectrum the test sets."""

    def __init__(self, init_ok=True, devices=None, recommended=0):
        self.init_ok = init_ok
        self.init_error = None
        self.read_error = None
        self.devices = devices if devices is not None else [
            DeviceInfo(id=0, name="Line In"),
            DeviceInfo(id=3, name="Loopback"),
        ]
        self.recommended = recommended

        self.spectrum = np.zeros(N_BINS, dtype=np.float32)
        self.device = None
        self.capturing = False
        self.init_calls = 0
        self.start_calls = 0
        self.stop_calls = 0
        self.shutdown_calls = 0

    def init(self):
        self.init_calls += 1
        if self.init_error is not None:
            raise self.init_error
        return self.init_ok

    def enumerate_devices(self):
        return list(self.devices), self.recommended

    def select_device(self, device_id):
        self.device = device_id

    def start_capture(self):
        self.start_calls += 1
        self.capturing = True

    def stop_capture(self):
        self.stop_calls += 1
        self.capturing = False

    def current_spectrum(self, out):
        if self.read_error is not None:
            raise self.read_error
        out[:] = self.spectrum
        return out

    def shutdown(self):
        self.shutdown_calls += 1

    def set_flat(self, value: float):
        self.spectrum[:] = value


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_engine(backend, sink, clock):
    """
    Build an engine around the shared fake backend and recording sink.

    Keyword arguments are forwarded to VisualizerConfig.
    """

    def _make(**config_kwargs) -> VisualizationEngine:
        config_kwargs.setdefault("channel_count", 3)
        config = VisualizerConfig(**config_kwargs)
        generator = LiquidGenerator(speed=config.liquid_speed, clock=clock)
        return VisualizationEngine(backend, sink=sink, config=config, generator=generator)

    return _make


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a 440Hz sine wave (A4 note) at half scale.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 2.0
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    y = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def temp_audio_file(tmp_path, pure_sine):
    """Create a temporary audio file for testing file playback."""
    import soundfile as sf

    y, sr = pure_sine
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path
