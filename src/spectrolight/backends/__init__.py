"""Capture backends supplying magnitude spectra to the engine."""

from spectrolight.backends.base import CaptureBackend, DeviceInfo
from spectrolight.backends.file_backend import FileBackend
from spectrolight.backends.sounddevice_backend import SoundDeviceBackend
from spectrolight.backends.spectrum import SpectrumMailbox, magnitude_spectrum

BACKENDS = {
    "sounddevice": SoundDeviceBackend,
    "file": FileBackend,
}


def create_backend(name: str, **kwargs) -> CaptureBackend:
    """
    Instantiate a capture backend by name.

    Raises:
        ValueError: If the name is not a known backend.
    """
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown backend {name!r}, choose from: {', '.join(sorted(BACKENDS))}"
        ) from None
    return backend_cls(**kwargs)


__all__ = [
    "CaptureBackend",
    "DeviceInfo",
    "FileBackend",
    "SoundDeviceBackend",
    "SpectrumMailbox",
    "magnitude_spectrum",
    "create_backend",
]
