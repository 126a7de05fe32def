"""
Live capture backend built on sounddevice (PortAudio).

Audio arrives on PortAudio's callback thread; each block is transformed
and posted to a SpectrumMailbox, from which the engine reads on its own
tick.
"""

import logging
from typing import Optional

import numpy as np

from spectrolight.backends.base import CaptureBackend, DeviceInfo
from spectrolight.backends.spectrum import SpectrumMailbox, hann_window, magnitude_spectrum
from spectrolight.constants import FFT_SIZE, N_BINS

logger = logging.getLogger(__name__)


class SoundDeviceBackend(CaptureBackend):
    """Captures from a PortAudio input device."""

    def __init__(self, sample_rate: int | None = None, blocksize: int = FFT_SIZE):
        """
        Args:
            sample_rate: Capture rate in Hz. None uses the device default.
            blocksize: Frames per callback; FFT_SIZE gives one spectrum per block.
        """
        self.sample_rate = sample_rate
        self.blocksize = blocksize
        self.device: Optional[int] = None

        self._sd = None
        self._stream = None
        self._window = hann_window(FFT_SIZE)
        self._scratch = np.zeros(N_BINS, dtype=np.float32)
        self.mailbox = SpectrumMailbox(N_BINS)

    def init(self) -> bool:
        try:
            import sounddevice as sd
        except OSError as e:
            # PortAudio shared library not found
            logger.warning("sounddevice unavailable: %s", e)
            return False

        try:
            sd.query_devices()
        except sd.PortAudioError as e:
            logger.warning("no audio host api: %s", e)
            return False
        self._sd = sd
        return True

    def _input_devices(self) -> list[tuple[int, dict]]:
        return [
            (index, dev)
            for index, dev in enumerate(self._sd.query_devices())
            if dev.get("max_input_channels", 0) > 0
        ]

    def enumerate_devices(self) -> tuple[list[DeviceInfo], Optional[int]]:
        if self._sd is None:
            return [], None

        devices = []
        recommended = None
        default_input = self._sd.default.device[0]
        for index, dev in self._input_devices():
            if index == default_input:
                recommended = len(devices)
            devices.append(DeviceInfo(id=index, name=dev["name"]))
        if recommended is None and devices:
            recommended = 0
        return devices, recommended

    def select_device(self, device_id: Optional[int]):
        self.device = device_id

    def _callback(self, indata, frames, time_info, status):
        if status:
            logger.debug("input status: %s", status)
        mono = indata.mean(axis=1) if indata.ndim > 1 else indata
        magnitude_spectrum(mono, self._window, out=self._scratch)
        self.mailbox.post(self._scratch)

    def start_capture(self):
        if self._sd is None or self._stream is not None:
            return

        info = self._sd.query_devices(self.device, kind="input")
        channels = max(1, min(2, int(info["max_input_channels"])))
        rate = self.sample_rate or int(info["default_samplerate"])

        stream = self._sd.InputStream(
            device=self.device,
            channels=channels,
            samplerate=rate,
            blocksize=self.blocksize,
            dtype="float32",
            callback=self._callback,
        )
        try:
            stream.start()
        except Exception:
            stream.close()
            raise
        self._stream = stream
        logger.info("capturing from %s at %d Hz", info["name"], rate)

    def stop_capture(self):
        if self._stream is None:
            return
        self._stream.stop()
        self._stream.close()
        self._stream = None
        self.mailbox.clear()

    def current_spectrum(self, out: np.ndarray) -> np.ndarray:
        return self.mailbox.read_into(out)

    def shutdown(self):
        self.stop_capture()
        self._sd = None
