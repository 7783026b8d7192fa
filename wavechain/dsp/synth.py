"""Audio buffer synthesis for WaveChain.

Renders a fixed-duration buffer straight from block parameters.  This is
a separate path from the display evaluator in processor.py, with its own
formulas:

* every oscillator, sine and square included, runs through the
  aliasing model;
* filter and interpolate blocks are skipped;
* lines without blocks are rendered by stretching their display points
  over the buffer.

Lines are summed, divided by the number of active lines and soft
limited with ``tanh(0.8 * x)``.  Samples always stay strictly inside
(-1, 1).

BUILD ID: synth_v1.0
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Optional, Sequence

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

logger = logging.getLogger(__name__)

SOFT_LIMIT_DRIVE = 0.8
SOFT_LIMIT_CEILING = float(np.nextafter(1.0, 0.0))


def _param(block: Block, name: str) -> float:
    return block.value(name, template_value(block.type, name))


def _gain(block: Block) -> float:
    return db_to_gain(_param(block, 'gain'))


def soft_limit(signal: np.ndarray) -> np.ndarray:
    """``tanh(0.8 * x)`` held strictly inside (-1, 1)."""
    driven = np.tanh(np.nan_to_num(signal, nan=0.0) * SOFT_LIMIT_DRIVE)
    return np.clip(driven, -SOFT_LIMIT_CEILING, SOFT_LIMIT_CEILING)


# ============================================================================
# AUDIO VOICES
# ============================================================================

def _voice_sine(block, t, sample_rate, noise):
    freq, loss = alias(_param(block, 'frequency'), sample_rate)
    wave = sine_wave(t, freq, _param(block, 'amplitude'), _param(block, 'phase'))
    return wave * _gain(block) * loss


def _voice_square(block, t, sample_rate, noise):
    freq, loss = alias(_param(block, 'frequency'), sample_rate)
    return square_wave(t, freq, _gain(block), _param(block, 'dutyCycle')) * loss


def _voice_sawtooth(block, t, sample_rate, noise):
    freq, loss = alias(_param(block, 'frequency'), sample_rate)
    wave = sawtooth_wave(t, freq, _param(block, 'amplitude'), _param(block, 'phase'))
    return wave * _gain(block) * loss


def _voice_triangle(block, t, sample_rate, noise):
    freq, loss = alias(_param(block, 'frequency'), sample_rate)
    wave = triangle_wave(t, freq, _param(block, 'amplitude'), _param(block, 'phase'))
    return wave * _gain(block) * loss


def _voice_pulse(block, t, sample_rate, noise):
    freq, loss = alias(_param(block, 'frequency'), sample_rate)
    return pulse_wave(t, freq, _param(block, 'amplitude') * _gain(block),
                      _param(block, 'width')) * loss


def _voice_chirp(block, t, sample_rate, noise):
    wave = chirp_wave(t, _param(block, 'startFreq'), _param(block, 'endFreq'),
                      _param(block, 'duration'), _param(block, 'amplitude'), sample_rate)
    return wave * _gain(block)


def _voice_noise(block, t, sample_rate, noise):
    # audio noise state is kept apart from the display generator of the same block
    gen = noise.get('audio:' + block.id) if noise is not None else NoiseGenerator()
    pink = _param(block, 'type') != 0
    return gen.block(len(t), pink) * _param(block, 'intensity')


_AUDIO_VOICES: Dict[str, Callable[..., np.ndarray]] = {
    'sine': _voice_sine,
    'square': _voice_square,
    'sawtooth': _voice_sawtooth,
    'triangle': _voice_triangle,
    'pulse': _voice_pulse,
    'chirp': _voice_chirp,
    'noise': _voice_noise,
}


# ============================================================================
# LINE RENDERING
# ============================================================================

def _render_blocks(blocks: Sequence[Block], t: np.ndarray, sample_rate: float,
                   noise: Optional[NoiseBank]) -> np.ndarray:
    out = np.zeros(len(t), dtype=np.float64)
    for block in blocks:
        if not block.enabled:
            continue
        voice = _AUDIO_VOICES.get(block.type)
        if voice is not None:
            out += voice(block, t, sample_rate, noise)
    return out


def _render_points(points, n: int) -> np.ndarray:
    """Stretch display points linearly over ``n`` samples."""
    out = np.zeros(n, dtype=np.float64)
    if not points or n == 0:
        return out
    ys = (np.fromiter((p.y for p in points), dtype=np.float64, count=len(points)) - 0.5) * 2
    m = len(ys)
    pos = np.arange(n, dtype=np.float64) / n * m
    base = np.floor(pos).astype(np.int64)
    frac = pos - base
    inner = base < m - 1
    out[inner] = ys[base[inner]] * (1 - frac[inner]) + ys[base[inner] + 1] * frac[inner]
    last = base == m - 1
    out[last] = ys[m - 1]
    return out


def synthesize_audio(
    lines: Sequence,
    duration: float = 2.0,
    sample_rate: float = SAMPLE_RATE,
    noise: Optional[NoiseBank] = None,
) -> np.ndarray:
    """Render ``duration`` seconds of audio for the visible, unmuted lines.

    Parameters
    ----------
    lines : sequence
        ``WaveformLine`` or ``ProcessedLine`` objects.  Lines without
        blocks need ``points``.
    duration : float
        Length in seconds; the buffer holds ``floor(sample_rate * duration)``
        samples.  A negative or non-finite duration gives an empty buffer.
    sample_rate : float
        Output sample rate.
    noise : NoiseBank, optional
        Noise generator source for noise blocks.

    Returns
    -------
    np.ndarray
        float64 samples, all strictly inside (-1, 1).
    """
    if not math.isfinite(duration) or duration < 0:
        logger.warning("Invalid audio duration %r; returning empty buffer", duration)
        return np.zeros(0, dtype=np.float64)

    n = int(math.floor(sample_rate * duration))
    active = [line for line in lines if line.visible and not line.muted]
    if not active or n == 0:
        return np.zeros(n, dtype=np.float64)

    t = sample_times(n, 0.0, sample_rate)
    mix = np.zeros(n, dtype=np.float64)
    for line in active:
        if line.blocks:
            mix += _render_blocks(line.blocks, t, sample_rate, noise)
        else:
            mix += _render_points(getattr(line, 'points', None), n)

    mix /= max(1, len(active))
    logger.debug("Synthesized %d samples from %d line(s)", n, len(active))
    return soft_limit(mix)
