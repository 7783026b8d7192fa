"""WaveChain engine configuration.

Fixed engine constants and the user-adjustable ``GlobalSettings``
dataclass.  Every DSP function takes a ``sample_rate`` keyword that
defaults to ``SAMPLE_RATE`` below; the display constants (frame length,
FFT size, cache bounds) are not configurable per call.

BUILD ID: config_v1.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict

# ============================================================================
# ENGINE CONSTANTS
# ============================================================================

SAMPLE_RATE: int = 44_100
BUFFER_SIZE: int = 2048
DISPLAY_SAMPLES: int = 512
WATERFALL_HEIGHT: int = 200
FFT_SIZE: int = 256
ANIMATION_FPS: int = 60
MAX_FREQUENCY: float = 10_000_000_000.0  # 10 GHz

# Cache bounds (entries)
WAVEFORM_CACHE_SIZE = 100
SPECTRAL_CACHE_SIZE = 50

# Time quantisation for cache keys (seconds)
WAVEFORM_TIME_STEP = 0.05
WAVEFORM_TIME_TOLERANCE = 0.025
SPECTRAL_TIME_STEP = 0.1

# Spectral estimator input limits
MAX_SPECTRAL_LINES = 100
MAX_POINTS_PER_LINE = 10_000

# Waterfall history depth (frames)
WATERFALL_HISTORY = 50

# Waterfall window limits
MIN_WATERFALL_BANDWIDTH = 1.0
MAX_WATERFALL_BANDWIDTH = 2_000_000_000.0

OUTPUT_FORMATS = ('wav', 'json')


# ============================================================================
# GLOBAL SETTINGS
# ============================================================================

@dataclass
class GlobalSettings:
    """User-adjustable engine settings.

    Attributes:
        sample_rate: Sample rate in Hz used for synthesis and filtering.
        duration: Length of the synthesized audio buffer in seconds.
        resolution: Saved display resolution hint; frames are always
            DISPLAY_SAMPLES points.
        output_format: Export format, 'wav' or 'json'.
        waterfall_center_freq: Centre of the spectral window in Hz.
        waterfall_bandwidth: Width of the spectral window in Hz.
    """
    sample_rate: int = SAMPLE_RATE
    duration: float = 2.0
    resolution: int = DISPLAY_SAMPLES
    output_format: str = 'wav'
    waterfall_center_freq: float = 1_000_000.0
    waterfall_bandwidth: float = 1_000_000.0

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if not math.isfinite(self.duration) or self.duration < 0:
            raise ValueError(f"duration must be a finite non-negative number, got {self.duration}")
        if self.resolution <= 0:
            raise ValueError(f"resolution must be positive, got {self.resolution}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got '{self.output_format}'"
            )

    def set_waterfall_window(self, center_freq: float, bandwidth: float) -> None:
        """Set the spectral window, clamped to the supported range.

        Bandwidth is limited to 1 Hz .. 2 GHz and the centre is kept far
        enough from 0 Hz and ``MAX_FREQUENCY`` that the whole window fits.
        """
        bandwidth = max(MIN_WATERFALL_BANDWIDTH, min(MAX_WATERFALL_BANDWIDTH, bandwidth))
        center_freq = max(bandwidth / 2, min(MAX_FREQUENCY - bandwidth / 2, center_freq))
        self.waterfall_center_freq = center_freq
        self.waterfall_bandwidth = bandwidth

    def to_dict(self) -> dict:
        """Return the settings using the camelCase keys of the saved format."""
        return {
            'sampleRate': self.sample_rate,
            'duration': self.duration,
            'resolution': self.resolution,
            'outputFormat': self.output_format,
            'waterfallCenterFreq': self.waterfall_center_freq,
            'waterfallBandwidth': self.waterfall_bandwidth,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GlobalSettings":
        """Build settings from a dict; missing keys keep their defaults."""
        defaults = asdict(cls())
        return cls(
            sample_rate=int(data.get('sampleRate', defaults['sample_rate'])),
            duration=float(data.get('duration', defaults['duration'])),
            resolution=int(data.get('resolution', defaults['resolution'])),
            output_format=str(data.get('outputFormat', defaults['output_format'])),
            waterfall_center_freq=float(
                data.get('waterfallCenterFreq', defaults['waterfall_center_freq'])),
            waterfall_bandwidth=float(
                data.get('waterfallBandwidth', defaults['waterfall_bandwidth'])),
        )
