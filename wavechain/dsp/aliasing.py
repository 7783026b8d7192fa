"""Nyquist aliasing model.

Maps a requested oscillator frequency to the frequency actually heard
at a given sample rate, plus a power-loss factor that falls 6 dB per
octave above Nyquist (clamped to -80 dB .. 0 dB).

Works on scalars and on numpy arrays of frequencies.

BUILD ID: aliasing_v1.0
"""

from __future__ import annotations

from typing import Tuple, Union

import numpy as np

from ..core.config import SAMPLE_RATE

MIN_POWER_LOSS = 1e-4
DB_PER_OCTAVE = -6.0

ArrayLike = Union[float, np.ndarray]


def alias(frequency: ArrayLike, sample_rate: float = SAMPLE_RATE) -> Tuple[ArrayLike, ArrayLike]:
    """Fold ``frequency`` into [0, Nyquist] and return ``(freq, power_loss)``.

    Frequencies at or below Nyquist pass through with a loss of 1.0.
    Above Nyquist the frequency is reflected about Nyquist boundaries
    (triangle folding over a period of ``sample_rate``) and attenuated
    by 6 dB per octave above Nyquist.

    >>> alias(1000.0, 44100)
    (1000.0, 1.0)
    >>> alias(24050.0, 44100)[0]
    20050.0
    """
    freq = np.asarray(frequency, dtype=np.float64)
    nyquist = sample_rate / 2.0

    folded = np.mod(freq, 2.0 * nyquist)
    folded = np.where(folded > nyquist, 2.0 * nyquist - folded, folded)

    with np.errstate(divide='ignore', invalid='ignore'):
        octaves = np.log2(freq / nyquist)
    loss = np.clip(10.0 ** (DB_PER_OCTAVE * octaves / 20.0), MIN_POWER_LOSS, 1.0)

    below = freq <= nyquist
    effective = np.where(below, freq, folded)
    loss = np.where(below, 1.0, loss)

    if effective.ndim == 0:
        return float(effective), float(loss)
    return effective, loss


def db_to_gain(gain_db: ArrayLike) -> ArrayLike:
    """Convert a dB gain to a linear factor."""
    return 10.0 ** (gain_db / 20.0)
