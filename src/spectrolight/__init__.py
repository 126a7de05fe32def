"""Audio-reactive color driver for multi-channel light outputs."""

from spectrolight.config import VisualizerConfig
from spectrolight.core.bucketizer import SpectrumBucketizer
from spectrolight.core.colormap import ColorMapper, GradientMode, LiquidMode
from spectrolight.core.liquid import LiquidGenerator
from spectrolight.core.peaks import PeakTracker
from spectrolight.engine import DeviceList, EngineState, VisualizationEngine

__version__ = "0.1.0"
__all__ = [
    "VisualizerConfig",
    "SpectrumBucketizer",
    "PeakTracker",
    "ColorMapper",
    "GradientMode",
    "LiquidMode",
    "LiquidGenerator",
    "VisualizationEngine",
    "EngineState",
    "DeviceList",
]
