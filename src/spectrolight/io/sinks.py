"""
Output sinks for emitted color frames.

A sink receives the full per-channel color sequence whenever the engine
decides something visibly changed (or on every tick with change gating
disabled). Delivery to real hardware lives outside this package; these
sinks cover callbacks, recording and offline inspection.
"""

import abc
import json
import time
from pathlib import Path
from typing import Any, Callable, Union

from spectrolight.core.colormap import to_hex


class OutputSink(abc.ABC):
    """Receives color frames from the engine."""

    @abc.abstractmethod
    def emit(self, colors: list[int]):
        """Handle one frame of packed 0xRRGGBB colors."""

    def close(self):
        """Release any resources held by the sink."""


class CallbackSink(OutputSink):
    """Forwards every frame to a plain callable."""

    def __init__(self, callback: Callable[[list[int]], Any]):
        self.callback = callback

    def emit(self, colors: list[int]):
        self.callback(colors)


class RecordingSink(OutputSink):
    """Keeps every emitted frame in memory."""

    def __init__(self):
        self.frames: list[list[int]] = []

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def last(self) -> list[int] | None:
        return self.frames[-1] if self.frames else None

    def emit(self, colors: list[int]):
        self.frames.append(list(colors))

    def clear(self):
        self.frames.clear()


class JsonLinesSink(OutputSink):
    """
    Writes one JSON object per emitted frame.

    Each line holds the emission index, seconds since the sink was opened
    and the colors as "#rrggbb" strings.
    """

    def __init__(self, output_path: Union[str, Path], precision: int = 4):
        """
        Args:
            output_path: Destination file, truncated on open.
            precision: Decimal places for the time field.
        """
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.precision = precision
        self.count = 0
        self._t0 = time.monotonic()
        self._file = open(self.output_path, "w", encoding="utf-8")

    def emit(self, colors: list[int]):
        record = {
            "index": self.count,
            "time": round(time.monotonic() - self._t0, self.precision),
            "colors": [to_hex(c) for c in colors],
        }
        self._file.write(json.dumps(record) + "\n")
        self.count += 1

    def close(self):
        if not self._file.closed:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
