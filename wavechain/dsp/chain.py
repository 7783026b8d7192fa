"""Signal chain evaluation for WaveChain.

Runs a line's blocks over one display frame and maps the result to
normalised display points, plus the memoising ``WaveformCache`` that
sits in front of it on the render loop.

Display mapping
---------------
The frame is scaled so its peak (floored at 0.001, capped at 100 for
the purposes of scaling) fills at most 0.4 of the unit height either
side of the centre line::

    scale = min(0.4, 0.4 / min(peak, 100))
    y     = 0.5 - sample * scale

BUILD ID: chain_v1.0
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional

import numpy as np

from ..core.config import (
    SAMPLE_RATE,
    DISPLAY_SAMPLES,
    WAVEFORM_CACHE_SIZE,
    WAVEFORM_TIME_STEP,
    WAVEFORM_TIME_TOLERANCE,
)
from ..core.objects import SignalPoint, WaveformLine
from .cache import FIFOCache
from .noise import NoiseBank
from .processor import process_chain

logger = logging.getLogger(__name__)

DISPLAY_HALF_RANGE = 0.4
DISPLAY_PEAK_CAP = 100.0
MIN_PEAK = 0.001


# ============================================================================
# DISPLAY MAPPING
# ============================================================================

def flat_points(n: int = DISPLAY_SAMPLES) -> List[SignalPoint]:
    """A silent frame: ``n`` points on the centre line."""
    return [SignalPoint(i / n, 0.5) for i in range(n)]


def to_display_points(signal: np.ndarray, n: Optional[int] = None) -> List[SignalPoint]:
    """Normalise ``signal`` into display points (see module docstring)."""
    n = len(signal) if n is None else n
    signal = np.nan_to_num(np.asarray(signal, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
    peak = max(MIN_PEAK, float(np.max(np.abs(signal)))) if len(signal) else MIN_PEAK
    scale = min(DISPLAY_HALF_RANGE, DISPLAY_HALF_RANGE / min(peak, DISPLAY_PEAK_CAP))
    ys = 0.5 - signal * scale
    return [SignalPoint(i / n, float(y)) for i, y in enumerate(ys)]


# ============================================================================
# EVALUATOR
# ============================================================================

def render_line(
    line: WaveformLine,
    time: float,
    sample_rate: float = SAMPLE_RATE,
    noise: Optional[NoiseBank] = None,
    n: int = DISPLAY_SAMPLES,
) -> np.ndarray:
    """Raw samples of one display frame of ``line`` (ignores ``muted``)."""
    return np.asarray(
        process_chain(line.blocks, np.zeros(n), time, sample_rate, noise),
        dtype=np.float64,
    )


def evaluate_line(
    line: WaveformLine,
    time: float,
    sample_rate: float = SAMPLE_RATE,
    noise: Optional[NoiseBank] = None,
    n: int = DISPLAY_SAMPLES,
) -> List[SignalPoint]:
    """Evaluate ``line`` at playback ``time`` into ``n`` display points.

    A muted line, or a non-finite time, gives a flat frame at ``y = 0.5``.
    """
    if line.muted:
        return flat_points(n)
    if not math.isfinite(time):
        logger.warning("Non-finite time %r for line %s; returning silence", time, line.id)
        return flat_points(n)
    return to_display_points(render_line(line, time, sample_rate, noise, n), n)


# ============================================================================
# WAVEFORM CACHE
# ============================================================================

def quantize_time(time: float, step: float) -> float:
    """Round ``time`` down to a multiple of ``step``.

    Times too large to scale are returned unchanged.
    """
    per_second = round(1.0 / step)
    scaled = time * per_second
    if not math.isfinite(scaled):
        return time
    return math.floor(scaled) / per_second


class WaveformCache:
    """Memoises ``evaluate_line`` by chain configuration and time bucket.

    The key is ``(line id, block fingerprint, time floored to 50 ms)``.
    A lookup only hits when the cached frame was computed within 25 ms of
    the requested time; otherwise the frame is recomputed and stored
    under the same key.  At most 100 frames are held, evicted FIFO.
    """

    def __init__(
        self,
        sample_rate: float = SAMPLE_RATE,
        noise: Optional[NoiseBank] = None,
        maxsize: int = WAVEFORM_CACHE_SIZE,
        n: int = DISPLAY_SAMPLES,
    ) -> None:
        self.sample_rate = sample_rate
        self.noise = noise if noise is not None else NoiseBank()
        self.n = n
        self._cache = FIFOCache(maxsize, name="waveform cache")

    @staticmethod
    def make_key(line: WaveformLine, time: float) -> tuple:
        return (line.id, line.fingerprint(), quantize_time(time, WAVEFORM_TIME_STEP))

    def get_or_compute(self, line: WaveformLine, time: float) -> List[SignalPoint]:
        """Return cached points for ``line`` at ``time`` or compute them."""
        if line.muted or not math.isfinite(time):
            return evaluate_line(line, time, self.sample_rate, self.noise, self.n)

        key = self.make_key(line, time)
        cached = self._cache.get(key)
        if cached is not None and abs(cached['time'] - time) < WAVEFORM_TIME_TOLERANCE:
            self._cache.record(True)
            return cached['points']

        self._cache.record(False)
        points = evaluate_line(line, time, self.sample_rate, self.noise, self.n)
        self._cache.put(key, {'time': time, 'points': points})
        return points

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> dict:
        return self._cache.stats()

    def __contains__(self, key: tuple) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)
