"""Spectral estimation for the WaveChain waterfall.

Two independent pieces live here:

* ``fft``: a radix-2 Cooley-Tukey transform (bit-reversal permutation
  followed by iterative butterfly stages) for power-of-two buffers.
* ``estimate_spectrum``: the waterfall estimator.  It does NOT
  transform the rendered waveform.  Each enabled block contributes an
  analytic peak at a representative frequency (oscillator frequency,
  chirp midpoint, filter cutoff/centre) with an amplitude proxy; noise
  blocks raise every bin slightly; bins nobody touched fall back to a
  tiny value taken from the display frame.  It is cheap and stable but
  does not show interference between blocks.

The estimator never raises on bad input: invalid windows, oversized
batches and malformed lines give an empty result or are filtered out.

BUILD ID: spectrum_v1.0
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import replace
from typing import Deque, List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import (
    FFT_SIZE,
    MAX_POINTS_PER_LINE,
    MAX_SPECTRAL_LINES,
    SPECTRAL_CACHE_SIZE,
    SPECTRAL_TIME_STEP,
    WATERFALL_HISTORY,
)
from ..core.objects import Block, ProcessedLine, WaterfallData
from .aliasing import db_to_gain
from .cache import FIFOCache

logger = logging.getLogger(__name__)


# ============================================================================
# FFT PRIMITIVE
# ============================================================================

def _bit_reverse_indices(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.int64)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return rev


def fft(signal: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """Radix-2 decimation-in-time FFT of a real signal.

    Parameters
    ----------
    signal : sequence of float
        Time-domain samples; the length must be a power of two.

    Returns
    -------
    tuple of np.ndarray
        ``(real, imag)`` parts of the spectrum, each of the input length.
    """
    x = np.asarray(signal, dtype=np.float64)
    n = len(x)
    if n == 0 or n & (n - 1):
        raise ValueError(f"FFT length must be a power of two, got {n}")

    real = x[_bit_reverse_indices(n)]
    imag = np.zeros(n, dtype=np.float64)

    size = 2
    while size <= n:
        half = size // 2
        angle = -2.0 * np.pi * np.arange(half) / size
        w_re, w_im = np.cos(angle), np.sin(angle)

        re = real.reshape(-1, size)
        im = imag.reshape(-1, size)
        u_re, u_im = re[:, :half].copy(), im[:, :half].copy()
        v_re = re[:, half:] * w_re - im[:, half:] * w_im
        v_im = re[:, half:] * w_im + im[:, half:] * w_re

        re[:, :half] = u_re + v_re
        im[:, :half] = u_im + v_im
        re[:, half:] = u_re - v_re
        im[:, half:] = u_im - v_im
        size *= 2

    return real, imag


def magnitude_spectrum(signal: Sequence[float]) -> np.ndarray:
    """Magnitudes of the first ``N/2`` FFT bins of ``signal``."""
    real, imag = fft(signal)
    half = len(real) // 2
    return np.hypot(real[:half], imag[:half])


# ============================================================================
# BLOCK PROXIES
# ============================================================================

OSCILLATOR_AMP_SCALE = 5.0
PEAK_SCALE = 10.0
NOISE_AMP_SCALE = 0.05
NOISE_FLOOR_SCALE = 0.1
FALLBACK_SCALE = 0.01

# per-type (amplitude, gain dB) used when the block lacks the parameter
_PROXY_DEFAULTS = {
    'sine': (0.5, 0.0),
    'square': (0.5, 0.0),
    'sawtooth': (0.5, 0.0),
    'triangle': (0.5, 0.0),
    'pulse': (0.8, -6.0),
    'chirp': (0.5, -4.0),
}


def spectral_proxy(block: Block) -> Tuple[float, float]:
    """Representative ``(frequency, amplitude)`` of a block for the waterfall.

    Noise reports frequency 0; its amplitude is spread over all bins.
    Types without a spectral footprint (interpolate) give ``(0, 0)``.
    """
    kind = block.type
    if kind in _PROXY_DEFAULTS:
        amp_default, gain_default = _PROXY_DEFAULTS[kind]
        if kind == 'chirp':
            freq = (block.value('startFreq', 100.0) + block.value('endFreq', 2000.0)) / 2
        else:
            freq = block.value('frequency', 0.0)
        gain = db_to_gain(block.value('gain', gain_default))
        return freq, block.value('amplitude', amp_default) * gain * OSCILLATOR_AMP_SCALE
    if kind in ('bandpass', 'notch'):
        return block.value('centerFreq', 0.0), 1.5
    if kind in ('lowpass', 'highpass'):
        return block.value('cutoff', 0.0), 1.0
    if kind == 'noise':
        return 0.0, block.value('intensity', 0.2) * NOISE_AMP_SCALE
    return 0.0, 0.0


# ============================================================================
# ESTIMATOR
# ============================================================================

def frequency_bins(center_freq: float, bandwidth: float,
                   num_bins: int = FFT_SIZE // 2) -> Tuple[np.ndarray, float]:
    """Bin frequencies for a window and the spacing between them.

    The window starts at ``max(0, center - bandwidth/2)`` and steps by
    ``bandwidth / num_bins``.
    """
    min_freq = max(0.0, center_freq - bandwidth / 2)
    step = bandwidth / num_bins
    return min_freq + np.arange(num_bins) * step, step


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_line_spectrum(
    line: ProcessedLine,
    time: float,
    center_freq: float,
    bandwidth: float,
    fft_size: int = FFT_SIZE,
) -> WaterfallData:
    """Estimate one waterfall frame for a single processed line."""
    num_bins = fft_size // 2
    freqs, step = frequency_bins(center_freq, bandwidth, num_bins)
    mags = np.zeros(num_bins, dtype=np.float64)

    for block in line.blocks or []:
        if not block.enabled:
            continue
        block_freq, block_amp = spectral_proxy(block)
        if block_freq > 0:
            in_bin = (block_freq >= freqs - step / 2) & (block_freq < freqs + step / 2)
            response = np.exp(-np.abs(freqs - block_freq) / (step * 0.5))
            mags += np.where(in_bin, block_amp * response * PEAK_SCALE, 0.0)
        if block.type == 'noise':
            mags += block_amp * NOISE_FLOOR_SCALE

    points = line.points or []
    if len(points) > 0:
        untouched = mags == 0
        if np.any(untouched):
            ys = np.fromiter((p.y for p in points), dtype=np.float64, count=len(points))
            index = np.floor(np.arange(num_bins) / num_bins * len(ys)).astype(np.int64)
            fallback = np.abs((ys[index] - 0.5) * 2) * FALLBACK_SCALE
            mags = np.where(untouched, fallback, mags)

    return WaterfallData(frequencies=freqs.tolist(), magnitudes=mags.tolist(), time=time)


def _valid_window(center_freq, bandwidth) -> bool:
    try:
        center_freq = float(center_freq)
        bandwidth = float(bandwidth)
    except (TypeError, ValueError):
        return False
    return (math.isfinite(center_freq) and math.isfinite(bandwidth)
            and center_freq > 0 and bandwidth > 0)


def _usable(line) -> bool:
    points = getattr(line, 'points', None)
    return (
        line is not None
        and points is not None
        and len(points) <= MAX_POINTS_PER_LINE
        and getattr(line, 'visible', False)
        and not getattr(line, 'muted', True)
    )


def estimate_spectrum(
    lines: Sequence[ProcessedLine],
    time: float,
    center_freq: float,
    bandwidth: float,
    cache: Optional["SpectralCache"] = None,
    fft_size: int = FFT_SIZE,
) -> List[WaterfallData]:
    """One waterfall frame per visible, unmuted line.

    Returns ``[]`` for an empty batch, more than 100 lines, or an invalid
    window (non-finite or non-positive centre/bandwidth).  Lines without
    points or with more than 10000 points are skipped.
    """
    if not lines:
        return []
    if len(lines) > MAX_SPECTRAL_LINES:
        logger.warning("Spectral batch of %d lines exceeds limit of %d",
                       len(lines), MAX_SPECTRAL_LINES)
        return []
    if not _valid_window(center_freq, bandwidth):
        logger.warning("Invalid frequency window: center=%r bandwidth=%r",
                       center_freq, bandwidth)
        return []
    center_freq, bandwidth = float(center_freq), float(bandwidth)

    try:
        frames = []
        for index, line in enumerate(l for l in lines if _usable(l)):
            if cache is not None:
                frame = cache.get_or_compute(index, line, time, center_freq, bandwidth, fft_size)
            else:
                frame = estimate_line_spectrum(line, time, center_freq, bandwidth, fft_size)
            frames.append(frame)
        return frames
    except Exception:
        logger.exception("Spectral estimation failed; returning empty frame set")
        return []


# ============================================================================
# SPECTRAL CACHE
# ============================================================================

def _copy_frame(frame: WaterfallData, time: float) -> WaterfallData:
    return replace(frame, frequencies=list(frame.frequencies),
                   magnitudes=list(frame.magnitudes), time=time)


class SpectralCache:
    """Memoises per-line waterfall frames, bound 50, FIFO eviction.

    The key is a coarse fingerprint: the line's position in the batch,
    the first ten display amplitudes rounded to hundredths, the time
    floored to 100 ms and the frequency window.  A hit returns the
    cached frame re-stamped with the requested time.
    """

    def __init__(self, maxsize: int = SPECTRAL_CACHE_SIZE) -> None:
        self._cache = FIFOCache(maxsize, name="spectral cache")

    @staticmethod
    def make_key(index: int, line: ProcessedLine, time: float,
                 center_freq: float, bandwidth: float) -> tuple:
        fingerprint = tuple(_round_half_up(p.y * 100) for p in list(line.points)[:10])
        scaled = time / SPECTRAL_TIME_STEP + 1e-9
        bucket = math.floor(scaled) if math.isfinite(scaled) else None
        return (index, fingerprint, bucket, center_freq, bandwidth)

    def get_or_compute(self, index: int, line: ProcessedLine, time: float,
                       center_freq: float, bandwidth: float,
                       fft_size: int = FFT_SIZE) -> WaterfallData:
        key = self.make_key(index, line, time, center_freq, bandwidth)
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.record(True)
            return _copy_frame(cached, time)
        self._cache.record(False)
        frame = estimate_line_spectrum(line, time, center_freq, bandwidth, fft_size)
        self._cache.put(key, frame)
        return _copy_frame(frame, time)

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> dict:
        return self._cache.stats()

    def __len__(self) -> int:
        return len(self._cache)


# ============================================================================
# WATERFALL HISTORY
# ============================================================================

class WaterfallHistory:
    """Rolling history of estimator results, newest last (max 50 updates)."""

    def __init__(self, maxlen: int = WATERFALL_HISTORY) -> None:
        self._frames: Deque[List[WaterfallData]] = deque(maxlen=maxlen)

    def push(self, frames: List[WaterfallData]) -> None:
        self._frames.append(frames)

    @property
    def frames(self) -> List[List[WaterfallData]]:
        return list(self._frames)

    def latest(self) -> Optional[List[WaterfallData]]:
        return self._frames[-1] if self._frames else None

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)
