"""Shared constants for the spectrum-to-color pipeline."""

# --- Spectrum ---
FFT_SIZE = 1024  # Samples per analysis frame, must be a power of two
N_BINS = FFT_SIZE // 2 + 1  # Magnitude bins produced per frame (513)

if FFT_SIZE <= 0 or FFT_SIZE & (FFT_SIZE - 1):
    raise ValueError(f"FFT_SIZE has to be a power of 2, got {FFT_SIZE}")

# --- Bucketing ---
# Top bucket boundary is 2**9 = 512, the last usable bin
BUCKET_EXPONENT = 9.0

# --- Peak tracking ---
SPEC_HEIGHT = 1000  # Display scale shared by all channels
DISPLAY_OFFSET = 4  # Subtracted after the sqrt scaling
DECAY_INTERVAL = 5  # Peaks drop by one every N ticks
PEAK_HEADROOM = 5  # Values this far below the peak get rescaled

# --- Liquid mode ---
MAX_LIQUID_SPEED = 100
MAX_HUE_RATE = 0.25  # Hue turns per second at full speed

# --- Host ---
DEFAULT_FPS = 30
DEFAULT_CHANNELS = 10
