"""
CLI entry point for the spectrum-to-color driver.

Usage:
    spectrolight devices [--backend sounddevice|file] [--file AUDIO]
    spectrolight run [options]
    python -m spectrolight run --backend file --file song.wav --preview
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from spectrolight.backends import BACKENDS, create_backend
from spectrolight.config import ConfigError, VisualizerConfig
from spectrolight.constants import MAX_LIQUID_SPEED
from spectrolight.core.colormap import parse_color
from spectrolight.engine import VisualizationEngine
from spectrolight.io.sinks import JsonLinesSink, OutputSink


class _FanOutSink(OutputSink):
    """Forwards each frame to several sinks."""

    def __init__(self, sinks: list[OutputSink]):
        self.sinks = sinks

    def emit(self, colors: list[int]):
        for sink in self.sinks:
            sink.emit(colors)

    def close(self):
        for sink in self.sinks:
            sink.close()


def _status_line(ticks: int, emitted: int, max_ticks: int | None):
    """Print a one-line tick counter to stdout."""
    total = f"/{max_ticks}" if max_ticks else ""
    text = f"tick {ticks}{total}  emitted {emitted}"
    if sys.stdout.isatty():
        sys.stdout.write(f"\r{text}")
        sys.stdout.flush()
    elif ticks % 100 == 0:
        print(text, flush=True)


def _make_backend(args: argparse.Namespace, fps: int):
    if args.backend == "file":
        if args.file is None:
            raise SystemExit("Error: --file is required with the file backend")
        if not args.file.exists():
            raise SystemExit(f"Error: Audio file not found: {args.file}")
        return create_backend("file", audio_path=args.file, fps=fps, loop=args.loop)
    return create_backend(args.backend)


def _load_config(args: argparse.Namespace) -> VisualizerConfig:
    try:
        config = VisualizerConfig.from_json(args.config) if args.config else VisualizerConfig()
    except (OSError, ConfigError) as e:
        raise SystemExit(f"Error: {e}") from None

    if args.channels is not None:
        config.channel_count = max(0, args.channels)
    if args.fps is not None:
        config.fps = max(1, args.fps)
    if args.device is not None:
        config.device = args.device
    if args.liquid:
        config.liquid_mode = True
    if args.speed is not None:
        config.liquid_speed = max(0, min(MAX_LIQUID_SPEED, args.speed))
    if args.min_color is not None:
        config.min_color = args.min_color
    if args.max_color is not None:
        config.max_color = args.max_color
    if args.always_send:
        config.send_only_on_change = False
    return config


def cmd_devices(args: argparse.Namespace) -> int:
    backend = _make_backend(args, fps=args.fps or 30)
    engine = VisualizationEngine(backend)
    try:
        result = engine.query_devices()
    finally:
        engine.close()

    if not result.devices:
        print("No capture devices available.", file=sys.stderr)
        return 1

    for index, device in enumerate(result.devices):
        marker = "*" if index == result.recommended else " "
        print(f"{marker} [{device.id}] {device.name}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    config = _load_config(args)
    backend = _make_backend(args, fps=config.fps)

    sinks: list[OutputSink] = []
    if args.record:
        sinks.append(JsonLinesSink(args.record))
    preview = None
    if args.preview:
        from spectrolight.io.preview import PygamePreviewSink

        preview = PygamePreviewSink()
        sinks.append(preview)
    sink = _FanOutSink(sinks)

    engine = VisualizationEngine(backend, sink=sink, config=config)
    print(f"Starting {args.backend} backend: {config.channel_count} channels @ {config.fps} fps")
    if not engine.start(True):
        print("Error: could not initialize the capture backend", file=sys.stderr)
        sink.close()
        return 1

    frame_time = 1.0 / max(1, config.fps)
    ticks = 0
    try:
        while args.max_ticks is None or ticks < args.max_ticks:
            t0 = time.perf_counter()
            engine.update()
            ticks += 1
            _status_line(ticks, engine.emitted, args.max_ticks)

            if preview is not None and not preview.pump():
                break
            if getattr(backend, "finished", False):
                break

            elapsed = time.perf_counter() - t0
            if elapsed < frame_time:
                time.sleep(frame_time - elapsed)
    except KeyboardInterrupt:
        pass
    finally:
        engine.close()
        sink.close()

    print(f"\nDone! {ticks} ticks, {engine.emitted} frames emitted")
    if args.record:
        print(f"  Output: {args.record}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spectrolight",
        description="Audio-reactive color driver for multi-channel lights",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-b", "--backend", type=str, default="sounddevice",
        choices=sorted(BACKENDS),
        help="Capture backend (default: sounddevice)",
    )
    common.add_argument("--file", type=Path, default=None, help="Audio file for the file backend")
    common.add_argument("--loop", action="store_true", help="Loop the audio file")
    common.add_argument("-f", "--fps", type=int, default=None, help="Ticks per second")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("devices", parents=[common], help="List capture devices")

    run = sub.add_parser("run", parents=[common], help="Drive the visualizer")
    run.add_argument("-c", "--config", type=Path, default=None, help="JSON config file")
    run.add_argument("-n", "--channels", type=int, default=None, help="Number of output channels")
    run.add_argument("-d", "--device", type=int, default=None, help="Capture device id")
    run.add_argument("--liquid", action="store_true", help="Use liquid color mode")
    run.add_argument("--speed", type=int, default=None, help="Liquid mode speed [0-100]")
    run.add_argument("--min-color", type=parse_color, default=None, help="Gradient color at silence (#rrggbb)")
    run.add_argument("--max-color", type=parse_color, default=None, help="Gradient color at full level (#rrggbb)")
    run.add_argument("--always-send", action="store_true", help="Emit every tick, even without changes")
    run.add_argument("--record", type=Path, default=None, help="Write emitted frames to a JSON lines file")
    run.add_argument("--preview", action="store_true", help="Show a pygame preview window")
    run.add_argument("--max-ticks", type=int, default=None, help="Stop after N ticks")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "devices":
        return cmd_devices(args)
    return cmd_run(args)


if __name__ == "__main__":
    sys.exit(main())
