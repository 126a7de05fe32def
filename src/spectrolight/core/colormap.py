"""
Intensity to color mapping.

Interpolates between two endpoint colors by channel intensity. In
gradient mode both endpoints are configured colors; in liquid mode the
gradient runs from black to the animated generator color, so intensity
still drives brightness while the generator drives hue.
"""

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from spectrolight.constants import SPEC_HEIGHT

RGB = tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)


def pack_rgb(r: int, g: int, b: int) -> int:
    """Pack 8-bit components into a 0xRRGGBB integer."""
    return (int(r) & 0xFF) << 16 | (int(g) & 0xFF) << 8 | (int(b) & 0xFF)


def unpack_rgb(color: int) -> RGB:
    """Split a 0xRRGGBB integer into (r, g, b)."""
    return ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF)


def to_hex(color: int) -> str:
    return f"#{color & 0xFFFFFF:06x}"


def parse_color(value: Union[str, Sequence[int]]) -> RGB:
    """
    Parse a color from "#rrggbb" / "rrggbb" or an [r, g, b] sequence.

    Raises:
        ValueError: If the value is not a recognizable color.
    """
    if isinstance(value, str):
        text = value.strip().lstrip("#")
        if len(text) != 6:
            raise ValueError(f"Expected a #rrggbb color, got {value!r}")
        try:
            return unpack_rgb(int(text, 16))
        except ValueError:
            raise ValueError(f"Expected a #rrggbb color, got {value!r}") from None

    components = list(value)
    if len(components) != 3:
        raise ValueError(f"Expected three color components, got {value!r}")
    r, g, b = (int(c) for c in components)
    for c in (r, g, b):
        if not 0 <= c <= 255:
            raise ValueError(f"Color component out of range 0-255: {value!r}")
    return (r, g, b)


@dataclass(frozen=True)
class GradientMode:
    """Static two-color gradient from min_color (silent) to max_color (loud)."""

    min_color: RGB = BLACK
    max_color: RGB = WHITE


@dataclass(frozen=True)
class LiquidMode:
    """Black to the liquid generator's current color."""


ColorMode = Union[GradientMode, LiquidMode]


class ColorMapper:
    """
    Converts per-channel intensities into packed RGB colors.

    Interpolated components are truncated toward zero and clamped to
    0-255 before packing.
    """

    def __init__(self, spec_height: int = SPEC_HEIGHT):
        self.spec_height = spec_height

    def endpoints(self, mode: ColorMode, liquid_color: RGB | None = None) -> tuple[RGB, RGB]:
        """Return the (from, to) colors for a mode."""
        if isinstance(mode, LiquidMode):
            return BLACK, liquid_color if liquid_color is not None else BLACK
        return mode.min_color, mode.max_color

    def map_colors(
        self,
        values: np.ndarray,
        enabled: Sequence[bool],
        mode: ColorMode,
        liquid_color: RGB | None = None,
    ) -> list[int]:
        """
        Map intensities to packed colors.

        Args:
            values: (n_channels,) intensities in [0, spec_height].
            enabled: Per-channel enabled flags; disabled channels are black.
            mode: Active color mode.
            liquid_color: Generator color for this tick (liquid mode only).

        Returns:
            List of n_channels packed 0xRRGGBB colors.
        """
        start, end = self.endpoints(mode, liquid_color)
        from_rgb = np.array(start, dtype=np.float64)
        to_rgb = np.array(end, dtype=np.float64)

        t = np.asarray(values, dtype=np.float64) / self.spec_height
        rgb = from_rgb + (to_rgb - from_rgb) * t[:, np.newaxis]
        rgb = np.clip(np.trunc(rgb), 0, 255).astype(np.int64)

        packed = (rgb[:, 0] << 16) | (rgb[:, 1] << 8) | rgb[:, 2]
        mask = np.asarray(enabled, dtype=bool)
        packed[~mask] = 0
        return packed.tolist()

    def map_value(
        self,
        value: int,
        mode: ColorMode,
        liquid_color: RGB | None = None,
        enabled: bool = True,
    ) -> int:
        """Map a single intensity to a packed color."""
        return self.map_colors(np.array([value]), [enabled], mode, liquid_color)[0]
