"""
Decaying peak tracker.

Converts raw bucket magnitudes to a perceptual display scale and applies
an automatic gain against a slowly decaying per-channel peak, so quiet
passages stay visible next to loud transients without flickering.
"""

import numpy as np

from spectrolight.constants import (
    DECAY_INTERVAL,
    DISPLAY_OFFSET,
    PEAK_HEADROOM,
    SPEC_HEIGHT,
)


class PeakTracker:
    """
    Maintains one decaying maximum per output channel.

    Peaks jump up instantly to any new maximum (no attack smoothing) and
    fall by one display unit every ``DECAY_INTERVAL`` ticks.
    """

    def __init__(self, n_channels: int = 0, spec_height: int = SPEC_HEIGHT):
        self.spec_height = spec_height
        self.peaks = np.zeros(max(0, n_channels), dtype=np.int64)

    def __len__(self) -> int:
        return len(self.peaks)

    def reset(self, n_channels: int | None = None):
        """Zero all peaks, optionally changing the channel count."""
        if n_channels is None:
            n_channels = len(self.peaks)
        self.peaks = np.zeros(max(0, n_channels), dtype=np.int64)

    def to_display(self, raw: np.ndarray) -> np.ndarray:
        """
        Scale raw magnitudes to integer display units.

        sqrt makes low values more visible. Negative or NaN input counts
        as silence.

        Args:
            raw: Raw per-channel magnitudes.

        Returns:
            int64 array in [0, spec_height].
        """
        raw = np.nan_to_num(np.asarray(raw, dtype=np.float64), nan=0.0)
        raw = np.maximum(raw, 0.0)
        scaled = np.sqrt(raw) * self.spec_height - DISPLAY_OFFSET
        # Truncate toward zero before clamping
        val = np.clip(scaled, -1, self.spec_height).astype(np.int64)
        return np.clip(val, 0, self.spec_height)

    def track(self, raw: np.ndarray, tick: int) -> np.ndarray:
        """
        Update peaks for one tick and return normalized intensities.

        Args:
            raw: (n_channels,) raw magnitudes from the bucketizer.
            tick: Monotone global tick counter.

        Returns:
            (n_channels,) int64 intensities in [0, spec_height].
        """
        val = self.to_display(raw)
        peaks = self.peaks

        if tick % DECAY_INTERVAL == 0:
            peaks -= 1
        np.maximum(peaks, 0, out=peaks)
        np.maximum(peaks, val, out=peaks)

        # Rescale values trailing the peak; a zero peak is never divided by
        trailing = (val < peaks - PEAK_HEADROOM) & (peaks > 0)
        if trailing.any():
            val[trailing] = val[trailing] * self.spec_height // peaks[trailing]
        return val
