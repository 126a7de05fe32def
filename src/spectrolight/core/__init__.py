"""Core spectrum-to-color modules."""

from spectrolight.core.bucketizer import SpectrumBucketizer
from spectrolight.core.colormap import ColorMapper, GradientMode, LiquidMode
from spectrolight.core.liquid import LiquidGenerator
from spectrolight.core.peaks import PeakTracker

__all__ = [
    "SpectrumBucketizer",
    "PeakTracker",
    "ColorMapper",
    "GradientMode",
    "LiquidMode",
    "LiquidGenerator",
]
