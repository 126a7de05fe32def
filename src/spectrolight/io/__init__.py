"""Output sinks for color frames."""

from spectrolight.io.sinks import CallbackSink, JsonLinesSink, OutputSink, RecordingSink

__all__ = ["OutputSink", "CallbackSink", "RecordingSink", "JsonLinesSink"]
