"""
Replay backend that reads spectra from an audio file.

Useful for testing light setups without a live input: every call to
current_spectrum() advances the playhead by one host tick.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import librosa
import numpy as np

from spectrolight.backends.base import CaptureBackend, DeviceInfo
from spectrolight.backends.spectrum import hann_window, magnitude_spectrum
from spectrolight.constants import DEFAULT_FPS, FFT_SIZE

logger = logging.getLogger(__name__)


class FileBackend(CaptureBackend):
    """
    Plays an audio file back one analysis frame per tick.

    The playhead only moves while capture is started, so a stopped engine
    resumes where it left off.
    """

    def __init__(
        self,
        audio_path: Union[str, Path],
        fps: int = DEFAULT_FPS,
        sr: int | None = None,
        loop: bool = False,
    ):
        """
        Args:
            audio_path: Path to audio file (wav, mp3, flac).
            fps: Host tick rate; the playhead advances sr / fps samples per tick.
            sr: Target sample rate. None preserves the original.
            loop: Restart from the beginning at end of file.
        """
        self.audio_path = Path(audio_path)
        self.fps = max(1, int(fps))
        self.sr = sr
        self.loop = loop

        self.y: np.ndarray | None = None
        self.sample_rate: int = 0
        self.position = 0.0
        self.capturing = False
        self._window = hann_window(FFT_SIZE)

    @property
    def duration(self) -> float:
        if self.y is None or not self.sample_rate:
            return 0.0
        return len(self.y) / self.sample_rate

    @property
    def finished(self) -> bool:
        return self.y is not None and not self.loop and self.position >= len(self.y)

    def init(self) -> bool:
        if self.y is not None:
            return True
        try:
            y, sr_out = librosa.load(self.audio_path, sr=self.sr, mono=True)
        except Exception as e:
            logger.warning("could not load %s: %s", self.audio_path, e)
            return False
        self.y = y.astype(np.float32, copy=False)
        self.sample_rate = int(sr_out)
        logger.info("loaded %s (%.1fs @ %d Hz)", self.audio_path.name, self.duration, self.sample_rate)
        return True

    def enumerate_devices(self) -> tuple[list[DeviceInfo], Optional[int]]:
        return [DeviceInfo(id=0, name=self.audio_path.name)], 0

    def select_device(self, device_id: Optional[int]):
        if device_id not in (None, 0):
            logger.warning("file backend has a single device, ignoring id %s", device_id)

    def start_capture(self):
        self.capturing = True

    def stop_capture(self):
        self.capturing = False

    def rewind(self):
        self.position = 0.0

    def current_spectrum(self, out: np.ndarray) -> np.ndarray:
        if self.y is None or not self.capturing or self.finished:
            out[:] = 0.0
            return out

        start = int(self.position)
        frame = self.y[start:start + FFT_SIZE]
        magnitude_spectrum(frame, self._window, out=out)

        self.position += self.sample_rate / self.fps
        if self.loop and self.position >= len(self.y):
            self.rewind()
        return out

    def shutdown(self):
        self.capturing = False
        self.y = None
        self.rewind()
