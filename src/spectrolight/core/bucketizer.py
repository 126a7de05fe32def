"""
Spectrum bucketing module.

Reduces a magnitude spectrum to one raw value per output channel using
a power-law frequency allocation, so low channels get a few narrow
bass bins and high channels get progressively wider bands.
"""

import numpy as np

from spectrolight.constants import BUCKET_EXPONENT


def bucket_ranges(n_bins: int, n_channels: int) -> list[tuple[int, int]]:
    """
    Compute the bin range feeding each channel.

    Bin 0 (DC) is skipped, so ranges start at bin 1. Ranges are contiguous,
    non-overlapping and at least one bin wide.

    Args:
        n_bins: Length of the magnitude spectrum.
        n_channels: Number of output channels.

    Returns:
        One (start, stop) bin range per channel, stop exclusive.
    """
    if n_channels <= 0:
        return []

    last = max(n_bins - 1, 1)
    ranges = []
    b0 = 0
    for i in range(n_channels):
        if n_channels == 1:
            b1 = last
        else:
            b1 = int(2 ** (i * BUCKET_EXPONENT / (n_channels - 1)))
            b1 = min(b1, last)
        if b1 <= b0:
            b1 = b0 + 1  # make sure it uses at least one bin
        ranges.append((b0 + 1, b1 + 1))
        b0 = b1
    return ranges


class SpectrumBucketizer:
    """
    Maps a fixed-size magnitude spectrum onto N channel peaks.

    Ranges depend only on the spectrum length and channel count, so they
    are computed once and reused until either changes.
    """

    def __init__(self, n_bins: int, n_channels: int = 0):
        """
        Initialize the bucketizer.

        Args:
            n_bins: Length of the magnitude spectrum.
            n_channels: Number of output channels.
        """
        self.n_bins = n_bins
        self._values = np.zeros(0, dtype=np.float32)
        self.ranges: list[tuple[int, int]] = []
        self.resize(n_channels)

    @property
    def n_channels(self) -> int:
        return len(self.ranges)

    def resize(self, n_channels: int):
        """Recompute bucket ranges for a new channel count."""
        n_channels = max(0, n_channels)
        self.ranges = bucket_ranges(self.n_bins, n_channels)
        self._values = np.zeros(n_channels, dtype=np.float32)

    def bucketize(self, spectrum: np.ndarray) -> np.ndarray:
        """
        Reduce a spectrum to the peak magnitude of each channel's range.

        Bins past the end of the spectrum read as zero, which only happens
        when there are more channels than usable bins.

        Args:
            spectrum: 1-D magnitude array of length n_bins.

        Returns:
            (n_channels,) float32 array of raw per-channel magnitudes. The
            array is reused between calls.
        """
        size = len(spectrum)
        for i, (start, stop) in enumerate(self.ranges):
            stop = min(stop, size)
            if start < stop:
                self._values[i] = spectrum[start:stop].max()
            else:
                self._values[i] = 0.0
        return self._values
