"""Block processor for WaveChain.

Applies one configured block to a buffer of samples.  Generators add
their output onto the incoming signal, filters replace it with the
filtered version and the interpolate block resamples it onto itself.

Processing is dispatched through ``_BLOCK_PROCESSORS`` (block type ->
function).  Every processor has the signature::

    fn(block, buffer, t, sample_rate, noise) -> np.ndarray

where ``t`` holds the absolute time of each sample.

This is the display path: sine and square run at their nominal
frequency with no aliasing, while sawtooth, triangle, pulse and chirp go
through the aliasing model.  The audio synthesizer keeps its own
formulas (see synth.py).

BUILD ID: processor_v1.0
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

import numpy as np

from ..core.config import SAMPLE_RATE
from ..core.objects import Block
from ..core.templates import template_value
from .aliasing import alias, db_to_gain
from .noise import NoiseBank, NoiseGenerator
from .oscillators import (
    sine_wave,
    square_wave,
    sawtooth_wave,
    triangle_wave,
    pulse_wave,
    chirp_wave,
    sample_times,
)
from . import filters

logger = logging.getLogger(__name__)


def _param(block: Block, name: str) -> float:
    return block.value(name, template_value(block.type, name))


def _gain(block: Block) -> float:
    return db_to_gain(_param(block, 'gain'))


# ============================================================================
# GENERATORS
# ============================================================================

def _process_sine(block, buffer, t, sample_rate, noise):
    wave = sine_wave(t, _param(block, 'frequency'), _param(block, 'amplitude'),
                     _param(block, 'phase'))
    return buffer + wave * _gain(block)


def _process_square(block, buffer, t, sample_rate, noise):
    wave = square_wave(t, _param(block, 'frequency'), _gain(block), _param(block, 'dutyCycle'))
    return buffer + wave


def _process_sawtooth(block, buffer, t, sample_rate, noise):
    freq, loss = alias(_param(block, 'frequency'), sample_rate)
    wave = sawtooth_wave(t, freq, _param(block, 'amplitude'), _param(block, 'phase'))
    return buffer + wave * _gain(block) * loss


def _process_triangle(block, buffer, t, sample_rate, noise):
    freq, loss = alias(_param(block, 'frequency'), sample_rate)
    wave = triangle_wave(t, freq, _param(block, 'amplitude'), _param(block, 'phase'))
    return buffer + wave * _gain(block) * loss


def _process_pulse(block, buffer, t, sample_rate, noise):
    freq, loss = alias(_param(block, 'frequency'), sample_rate)
    wave = pulse_wave(t, freq, _param(block, 'amplitude') * _gain(block), _param(block, 'width'))
    return buffer + wave * loss


def _process_chirp(block, buffer, t, sample_rate, noise):
    wave = chirp_wave(t, _param(block, 'startFreq'), _param(block, 'endFreq'),
                      _param(block, 'duration'), _param(block, 'amplitude'), sample_rate)
    return buffer + wave * _gain(block)


def _process_noise(block, buffer, t, sample_rate, noise):
    gen = noise.get(block.id) if noise is not None else NoiseGenerator()
    pink = _param(block, 'type') != 0
    return buffer + gen.block(len(buffer), pink) * _param(block, 'intensity')


# ============================================================================
# FILTERS
# ============================================================================

def _process_lowpass(block, buffer, t, sample_rate, noise):
    return filters.lowpass(buffer, _param(block, 'cutoff'), _param(block, 'resonance'),
                           sample_rate)


def _process_highpass(block, buffer, t, sample_rate, noise):
    return filters.highpass(buffer, _param(block, 'cutoff'), _param(block, 'resonance'),
                            sample_rate)


def _process_bandpass(block, buffer, t, sample_rate, noise):
    # resonance is carried on the block but the constant-bandwidth form ignores it
    return filters.bandpass(buffer, _param(block, 'centerFreq'), _param(block, 'bandwidth'),
                            sample_rate)


def _process_notch(block, buffer, t, sample_rate, noise):
    return filters.notch(buffer, _param(block, 'centerFreq'), _param(block, 'bandwidth'),
                         _param(block, 'depth'), sample_rate)


# ============================================================================
# INTERPOLATION
# ============================================================================

INTERP_LINEAR = 0
INTERP_SPLINE = 1
INTERP_POLYNOMIAL = 2


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def interpolate(buffer: np.ndarray, method: int, resolution: int, smoothing: float) -> np.ndarray:
    """Resample ``buffer`` onto itself.

    Methods:
        0 = linear read at ``i * resolution / N``
        1 = sine-windowed blend ``t*s + (1-s)*sin(pi*t)/pi``
        2 = power-curve warp ``t ** (1 + s)``

    Reads past the end of the buffer produce 0.
    """
    n = len(buffer)
    if n == 0:
        return buffer.copy()
    i = np.arange(n, dtype=np.float64)

    if method == INTERP_LINEAR:
        scaled = i * resolution / n
        base = np.floor(scaled).astype(np.int64)
        frac = scaled - base
        lo = buffer[np.clip(base, 0, n - 1)]
        hi = buffer[np.clip(base + 1, 0, n - 1)]
        blended = lo * (1 - frac) + hi * frac
        single = np.where(base < n, lo, 0.0)
        return np.where(base + 1 < n, blended, single)

    t = i / (n - 1) if n > 1 else np.zeros(n)
    if method == INTERP_SPLINE:
        warped = t * smoothing + (1 - smoothing) * np.sin(t * np.pi) / np.pi
    else:
        warped = np.power(t, 1 + smoothing)
    index = np.floor(warped * (n - 1)).astype(np.int64)
    index = np.clip(index, 0, n - 1)
    return buffer[index]


def _process_interpolate(block, buffer, t, sample_rate, noise):
    return interpolate(
        buffer,
        _round_half_up(_param(block, 'method')),
        _round_half_up(_param(block, 'resolution')),
        _param(block, 'smoothing'),
    )


# ============================================================================
# DISPATCH
# ============================================================================

BlockProcessor = Callable[..., np.ndarray]

_BLOCK_PROCESSORS: Dict[str, BlockProcessor] = {
    'sine': _process_sine,
    'square': _process_square,
    'sawtooth': _process_sawtooth,
    'triangle': _process_triangle,
    'pulse': _process_pulse,
    'chirp': _process_chirp,
    'noise': _process_noise,
    'lowpass': _process_lowpass,
    'highpass': _process_highpass,
    'bandpass': _process_bandpass,
    'notch': _process_notch,
    'interpolate': _process_interpolate,
}


def process_block(
    block: Block,
    buffer,
    time: float,
    sample_rate: float = SAMPLE_RATE,
    noise: Optional[NoiseBank] = None,
):
    """Run ``block`` over ``buffer`` starting at playback ``time``.

    A disabled block, or one of unknown type, returns ``buffer`` itself
    (not a copy).  Otherwise a new float64 array of the same length is
    returned.

    Parameters
    ----------
    block : Block
        Configured block.
    buffer : array-like
        Input samples.
    time : float
        Playback time of the first sample in seconds.
    sample_rate : float
        Sample rate used for sample timing, aliasing and filter design.
    noise : NoiseBank, optional
        Source of per-block noise generators.  Without one each call
        gets a fresh generator and pink noise restarts from zero state.
    """
    if not block.enabled:
        return buffer
    fn = _BLOCK_PROCESSORS.get(block.type)
    if fn is None:
        logger.warning("Unknown block type '%s' passed through unchanged", block.type)
        return buffer
    samples = np.asarray(buffer, dtype=np.float64)
    t = sample_times(len(samples), time, sample_rate)
    return fn(block, samples, t, sample_rate, noise)


def process_chain(blocks, buffer, time: float, sample_rate: float = SAMPLE_RATE,
                  noise: Optional[NoiseBank] = None):
    """Fold ``buffer`` through ``blocks`` in order."""
    for block in blocks:
        buffer = process_block(block, buffer, time, sample_rate, noise)
    return buffer
