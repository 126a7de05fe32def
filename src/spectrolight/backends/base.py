"""
Capture backend interface.

A backend owns the audio device and the time-to-frequency transform and
hands the engine a magnitude spectrum on request. One implementation per
platform or source; the host picks one at startup.
"""

import abc
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class DeviceInfo:
    """A capture device as reported by a backend."""

    id: int
    name: str


class CaptureBackend(abc.ABC):
    """
    Abstract base class for all capture backends.

    ``init`` may be slow (device open) and is only called from
    ``VisualizationEngine.start`` and ``query_devices``, never per tick.
    """

    @abc.abstractmethod
    def init(self) -> bool:
        """Acquire the audio subsystem. Returns False on failure."""

    @abc.abstractmethod
    def enumerate_devices(self) -> tuple[list[DeviceInfo], Optional[int]]:
        """Return available devices and the recommended index, if any."""

    @abc.abstractmethod
    def select_device(self, device_id: Optional[int]):
        """Choose the device used by the next start_capture()."""

    def start_capture(self):
        """Begin delivering spectra."""

    def stop_capture(self):
        """Stop delivering spectra, keeping the subsystem acquired."""

    @abc.abstractmethod
    def current_spectrum(self, out: np.ndarray) -> np.ndarray:
        """
        Fill ``out`` with the latest magnitude spectrum.

        Args:
            out: Preallocated float32 buffer owned by the caller.

        Returns:
            ``out``, for convenience.
        """

    @abc.abstractmethod
    def shutdown(self):
        """Release every resource acquired by init()."""
