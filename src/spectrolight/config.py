"""
Visualizer configuration snapshot.

The engine never reads process-wide settings; hosts build a
VisualizerConfig (in code or from a JSON file) and hand it over at
construction and whenever settings change.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

from spectrolight.constants import DEFAULT_CHANNELS, DEFAULT_FPS, MAX_LIQUID_SPEED
from spectrolight.core.colormap import (
    BLACK,
    RGB,
    WHITE,
    GradientMode,
    pack_rgb,
    parse_color,
    to_hex,
)


class ConfigError(ValueError):
    """Raised when a configuration file or dict cannot be interpreted."""


@dataclass
class VisualizerConfig:
    """Settings consumed by the visualization engine."""

    device: Optional[int] = None  # Capture device id, None = backend default
    min_color: RGB = BLACK
    max_color: RGB = WHITE
    liquid_mode: bool = False
    liquid_speed: int = 50  # 0-100
    send_only_on_change: bool = True
    channel_count: int = DEFAULT_CHANNELS
    channel_enabled: list[bool] = field(default_factory=list)  # Missing entries are enabled
    fps: int = DEFAULT_FPS  # Host tick rate

    def __post_init__(self):
        self.channel_count = max(0, int(self.channel_count))
        self.liquid_speed = max(0, min(MAX_LIQUID_SPEED, int(self.liquid_speed)))
        self.fps = max(1, int(self.fps))

    def is_channel_enabled(self, index: int) -> bool:
        if index < len(self.channel_enabled):
            return bool(self.channel_enabled[index])
        return True

    def enabled_flags(self, n_channels: int | None = None) -> list[bool]:
        """Per-channel enabled flags padded to the channel count."""
        if n_channels is None:
            n_channels = self.channel_count
        return [self.is_channel_enabled(i) for i in range(n_channels)]

    def gradient(self) -> GradientMode:
        return GradientMode(self.min_color, self.max_color)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VisualizerConfig":
        """
        Build a config from a plain dict, e.g. parsed JSON.

        Unknown keys are rejected so typos do not silently fall back to
        defaults.

        Raises:
            ConfigError: On unknown keys or malformed values.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        values = dict(data)
        try:
            for key in ("min_color", "max_color"):
                if key in values:
                    values[key] = parse_color(values[key])
            if "channel_enabled" in values:
                values["channel_enabled"] = [bool(v) for v in values["channel_enabled"]]
            if values.get("device") is not None:
                values["device"] = int(values["device"])
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config: {e}") from e

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "VisualizerConfig":
        """Load a config from a JSON file."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Could not parse {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["min_color"] = to_hex(pack_rgb(*self.min_color))
        data["max_color"] = to_hex(pack_rgb(*self.max_color))
        return data

    def to_json(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        return path
