"""Tests for the reference capture backends and spectrum helpers."""

import threading

import numpy as np
import pytest

from spectrolight.backends import (
    FileBackend,
    SoundDeviceBackend,
    SpectrumMailbox,
    create_backend,
    magnitude_spectrum,
)
from spectrolight.backends.base import DeviceInfo
from spectrolight.backends.spectrum import hann_window
from spectrolight.constants import FFT_SIZE, N_BINS
from spectrolight.engine import VisualizationEngine
from spectrolight.config import VisualizerConfig
from spectrolight.io.sinks import RecordingSink


class TestMagnitudeSpectrum:
    def test_full_scale_sine_reads_one(self):
        """A bin-centred full-scale sine peaks at ~1.0 in its bin."""
        n = np.arange(FFT_SIZE)
        frame = np.sin(2 * np.pi * 64 * n / FFT_SIZE).astype(np.float32)

        mags = magnitude_spectrum(frame, hann_window())

        assert mags.shape == (N_BINS,)
        assert mags.dtype == np.float32
        assert int(np.argmax(mags)) == 64
        assert mags[64] == pytest.approx(1.0, abs=1e-3)

    def test_silence(self):
        mags = magnitude_spectrum(np.zeros(FFT_SIZE), hann_window())
        np.testing.assert_array_equal(mags, 0.0)

    def test_short_frame_is_padded(self):
        mags = magnitude_spectrum(np.ones(10, dtype=np.float32), hann_window())
        assert mags.shape == (N_BINS,)

    def test_writes_into_buffer(self):
        out = np.zeros(N_BINS, dtype=np.float32)
        frame = np.random.default_rng(0).standard_normal(FFT_SIZE).astype(np.float32)

        result = magnitude_spectrum(frame, hann_window(), out=out)

        assert result is out
        assert out.max() > 0


class TestSpectrumMailbox:
    def test_latest_value_wins(self):
        mailbox = SpectrumMailbox(4)
        mailbox.post(np.full(4, 0.1, dtype=np.float32))
        mailbox.post(np.full(4, 0.7, dtype=np.float32))

        out = np.zeros(4, dtype=np.float32)
        mailbox.read_into(out)

        np.testing.assert_allclose(out, 0.7)
        assert mailbox.sequence == 2

    def test_clear(self):
        mailbox = SpectrumMailbox(4)
        mailbox.post(np.ones(4))
        mailbox.clear()

        out = np.ones(4, dtype=np.float32)
        np.testing.assert_array_equal(mailbox.read_into(out), 0.0)

    def test_reads_are_never_torn(self):
        """A reader on another thread only ever sees whole spectra."""
        mailbox = SpectrumMailbox(N_BINS)
        done = threading.Event()

        def writer():
            for i in range(2000):
                mailbox.post(np.full(N_BINS, float(i), dtype=np.float32))
            done.set()

        thread = threading.Thread(target=writer)
        thread.start()
        out = np.zeros(N_BINS, dtype=np.float32)
        while not done.is_set():
            mailbox.read_into(out)
            assert np.all(out == out[0])
        thread.join()

        mailbox.read_into(out)
        np.testing.assert_array_equal(out, 1999.0)


class TestFileBackend:
    def test_init_loads_audio(self, temp_audio_file, sample_rate):
        backend = FileBackend(temp_audio_file, fps=30)

        assert backend.init()
        assert backend.sample_rate == sample_rate
        assert backend.duration == pytest.approx(2.0, abs=0.01)

    def test_missing_file_fails_init(self, tmp_path):
        backend = FileBackend(tmp_path / "nope.wav")
        assert backend.init() is False

    def test_single_device(self, temp_audio_file):
        backend = FileBackend(temp_audio_file)
        devices, recommended = backend.enumerate_devices()

        assert devices == [DeviceInfo(id=0, name="test_audio.wav")]
        assert recommended == 0

    def test_silent_until_capture_starts(self, temp_audio_file):
        backend = FileBackend(temp_audio_file)
        backend.init()
        out = np.ones(N_BINS, dtype=np.float32)

        backend.current_spectrum(out)
        np.testing.assert_array_equal(out, 0.0)
        assert backend.position == 0.0

    def test_playhead_advances_per_tick(self, temp_audio_file, sample_rate):
        backend = FileBackend(temp_audio_file, fps=30)
        backend.init()
        backend.start_capture()
        out = np.zeros(N_BINS, dtype=np.float32)

        backend.current_spectrum(out)

        assert backend.position == pytest.approx(sample_rate / 30)
        # 440 Hz at 22050 Hz lands in bin 20
        assert int(np.argmax(out)) == 20

    def test_zero_fps_still_advances(self, temp_audio_file):
        backend = FileBackend(temp_audio_file, fps=0)
        backend.init()
        backend.start_capture()
        out = np.zeros(N_BINS, dtype=np.float32)

        backend.current_spectrum(out)
        backend.current_spectrum(out)

        assert backend.fps == 1
        assert backend.finished

    def test_rewind_restarts_finished_file(self, temp_audio_file):
        backend = FileBackend(temp_audio_file, fps=1)
        backend.init()
        backend.start_capture()
        out = np.zeros(N_BINS, dtype=np.float32)
        for _ in range(2):
            backend.current_spectrum(out)
        assert backend.finished

        backend.rewind()

        assert not backend.finished
        backend.current_spectrum(out)
        assert out.max() > 0

    def test_stops_at_end_without_loop(self, temp_audio_file):
        backend = FileBackend(temp_audio_file, fps=1)
        backend.init()
        backend.start_capture()
        out = np.zeros(N_BINS, dtype=np.float32)

        for _ in range(3):
            backend.current_spectrum(out)

        assert backend.finished
        np.testing.assert_array_equal(out, 0.0)

    def test_loop_wraps(self, temp_audio_file):
        backend = FileBackend(temp_audio_file, fps=1, loop=True)
        backend.init()
        backend.start_capture()
        out = np.zeros(N_BINS, dtype=np.float32)

        for _ in range(5):
            backend.current_spectrum(out)

        assert not backend.finished
        assert out.max() > 0

    def test_drives_engine(self, temp_audio_file):
        """A sine file should light up at least one channel."""
        sink = RecordingSink()
        backend = FileBackend(temp_audio_file, fps=30)
        engine = VisualizationEngine(
            backend,
            sink=sink,
            config=VisualizerConfig(channel_count=10, send_only_on_change=False),
        )

        assert engine.start(True)
        for _ in range(10):
            engine.update()
        engine.close()

        assert len(sink) == 10
        assert any(color != 0 for frame in sink.frames for color in frame)
        assert backend.y is None


class TestSoundDeviceBackend:
    """Checks that do not need audio hardware."""

    def test_no_devices_before_init(self):
        backend = SoundDeviceBackend()
        assert backend.enumerate_devices() == ([], None)

    def test_callback_posts_spectrum(self):
        backend = SoundDeviceBackend()
        n = np.arange(FFT_SIZE)
        tone = np.sin(2 * np.pi * 32 * n / FFT_SIZE).astype(np.float32)
        indata = np.stack([tone, tone], axis=1)

        backend._callback(indata, FFT_SIZE, None, None)

        out = np.zeros(N_BINS, dtype=np.float32)
        backend.current_spectrum(out)
        assert int(np.argmax(out)) == 32
        assert backend.mailbox.sequence == 1

    def test_select_device(self):
        backend = SoundDeviceBackend()
        backend.select_device(4)
        assert backend.device == 4

    def test_failed_stream_start_is_not_kept(self):
        """A stream that fails to start is closed and the next start retries."""
        fake_sd = FakeSoundDevice(fail_start=True)
        backend = SoundDeviceBackend()
        backend._sd = fake_sd
        engine = VisualizationEngine(backend, config=VisualizerConfig(channel_count=2))
        engine.initialized = True

        assert engine.start(True) is False
        assert engine.start(True) is False
        assert len(fake_sd.streams) == 2
        assert all(s.closed for s in fake_sd.streams)
        assert not engine.is_running

        fake_sd.fail_start = False
        assert engine.start(True)
        assert fake_sd.streams[-1].started

    def test_stop_capture_closes_stream(self):
        fake_sd = FakeSoundDevice()
        backend = SoundDeviceBackend()
        backend._sd = fake_sd

        backend.start_capture()
        backend.stop_capture()

        assert fake_sd.streams[0].closed
        assert backend._stream is None

    def test_enumerate_recommends_default_input(self):
        backend = SoundDeviceBackend()
        backend._sd = FakeSoundDevice()

        devices, recommended = backend.enumerate_devices()

        assert devices == [DeviceInfo(id=1, name="Mic"), DeviceInfo(id=2, name="Line")]
        assert recommended == 1


class FakeStream:
    def __init__(self, fail_start):
        self.fail_start = fail_start
        self.started = False
        self.closed = False

    def start(self):
        if self.fail_start:
            raise RuntimeError("device busy")
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True


class FakeSoundDevice:
    """Stands in for the sounddevice module."""

    class default:
        device = (2, 0)

    def __init__(self, fail_start=False):
        self.fail_start = fail_start
        self.streams = []

    def query_devices(self, device=None, kind=None):
        devices = [
            {"name": "Speakers", "max_input_channels": 0, "default_samplerate": 48000.0},
            {"name": "Mic", "max_input_channels": 1, "default_samplerate": 44100.0},
            {"name": "Line", "max_input_channels": 2, "default_samplerate": 48000.0},
        ]
        if kind == "input":
            return devices[2 if device is None else device]
        return devices

    def InputStream(self, **kwargs):
        stream = FakeStream(self.fail_start)
        self.streams.append(stream)
        return stream


class TestCreateBackend:
    def test_by_name(self, temp_audio_file):
        backend = create_backend("file", audio_path=temp_audio_file)
        assert isinstance(backend, FileBackend)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            create_backend("alsa-raw")
