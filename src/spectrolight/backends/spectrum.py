"""
Magnitude spectrum helpers shared by the reference backends.
"""

import threading

import numpy as np
from scipy import signal as scipy_signal

from spectrolight.constants import FFT_SIZE, N_BINS


def hann_window(size: int = FFT_SIZE) -> np.ndarray:
    """Periodic Hann window as float32."""
    return scipy_signal.get_window("hann", size).astype(np.float32)


def magnitude_spectrum(
    frame: np.ndarray,
    window: np.ndarray,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """
    Compute a normalized magnitude spectrum for one audio frame.

    Scaled so a full-scale sine lands close to 1.0 in its peak bin, which
    is the range the peak tracker's sqrt scaling expects.

    Args:
        frame: 1-D audio samples. Shorter frames are zero padded, longer
            ones truncated to the window length.
        window: Analysis window, length FFT_SIZE.
        out: Optional destination of length FFT_SIZE // 2 + 1.

    Returns:
        float32 magnitudes, length FFT_SIZE // 2 + 1.
    """
    size = len(window)
    samples = np.zeros(size, dtype=np.float32)
    n = min(size, len(frame))
    samples[:n] = frame[:n]

    mags = np.abs(np.fft.rfft(samples * window)) * (2.0 / window.sum())
    if out is None:
        return mags.astype(np.float32)
    out[:] = mags
    return out


class SpectrumMailbox:
    """
    Latest-value handoff between a capture thread and the tick thread.

    The writer overwrites the single slot; the reader copies whatever is
    newest. Stale spectra are dropped rather than queued.
    """

    def __init__(self, n_bins: int = N_BINS):
        self._lock = threading.Lock()
        self._slot = np.zeros(n_bins, dtype=np.float32)
        self._sequence = 0

    @property
    def sequence(self) -> int:
        """Number of spectra posted so far."""
        return self._sequence

    def post(self, spectrum: np.ndarray):
        with self._lock:
            self._slot[:] = spectrum
            self._sequence += 1

    def read_into(self, out: np.ndarray) -> np.ndarray:
        with self._lock:
            out[:] = self._slot
        return out

    def clear(self):
        with self._lock:
            self._slot[:] = 0.0
