"""Oscillator waveforms for WaveChain.

Vectorised wave shapes evaluated over an array of absolute times.  Each
function takes the frequency it should actually run at; callers decide
whether that frequency goes through the aliasing model first (the
display path skips it for sine and square, the audio path never does).
The chirp is the exception: its frequency changes per sample, so it
aliases internally.

Phases are in degrees to match the block parameters.

BUILD ID: oscillators_v1.0
"""

from __future__ import annotations

import numpy as np

from ..core.config import SAMPLE_RATE
from .aliasing import alias


# ============================================================================
# WAVE SHAPES
# ============================================================================

def sine_wave(t: np.ndarray, freq: float, amp: float, phase_deg: float = 0.0) -> np.ndarray:
    """``amp * sin(2*pi*freq*t + phase)``."""
    phase = np.deg2rad(phase_deg)
    return amp * np.sin(2 * np.pi * freq * t + phase)


def square_wave(t: np.ndarray, freq: float, level: float, duty: float = 0.5) -> np.ndarray:
    """``+level`` for the first ``duty`` of each cycle, ``-level`` after."""
    cycle = np.mod(freq * t, 1.0)
    return np.where(cycle < duty, level, -level)


def sawtooth_wave(t: np.ndarray, freq: float, amp: float, phase_deg: float = 0.0) -> np.ndarray:
    """Rising ramp from ``-amp`` to ``amp``."""
    cycle = np.mod(freq * t + np.deg2rad(phase_deg) / (2 * np.pi), 1.0)
    return amp * (2 * cycle - 1)


def triangle_wave(t: np.ndarray, freq: float, amp: float, phase_deg: float = 0.0) -> np.ndarray:
    """Triangle starting at ``-amp``, peaking at mid-cycle."""
    cycle = np.mod(freq * t + np.deg2rad(phase_deg) / (2 * np.pi), 1.0)
    return amp * np.where(cycle < 0.5, 4 * cycle - 1, 3 - 4 * cycle)


def pulse_wave(t: np.ndarray, freq: float, amp: float, width: float = 0.1) -> np.ndarray:
    """Unipolar pulse: ``amp`` for the first ``width`` of each cycle, else 0."""
    cycle = np.mod(freq * t, 1.0)
    return np.where(cycle < width, amp, 0.0)


def chirp_wave(t: np.ndarray, start_freq: float, end_freq: float, sweep_time: float,
               amp: float, sample_rate: float = SAMPLE_RATE) -> np.ndarray:
    """Linear sweep from ``start_freq`` to ``end_freq`` repeating every ``sweep_time``.

    The instantaneous frequency is aliased per sample and the matching
    power loss applied, so sweeps that cross Nyquist fold back down and
    fade.  Note the phase is ``2*pi*f(t)*t`` rather than an integrated
    phase.
    """
    if sweep_time <= 0:
        return np.zeros_like(t, dtype=np.float64)
    progress = np.mod(t, sweep_time) / sweep_time
    current = start_freq + (end_freq - start_freq) * progress
    freq, loss = alias(current, sample_rate)
    return amp * np.sin(2 * np.pi * freq * t) * loss


def sample_times(n: int, start: float = 0.0, sample_rate: float = SAMPLE_RATE) -> np.ndarray:
    """Absolute times of ``n`` consecutive samples starting at ``start``."""
    return start + np.arange(n, dtype=np.float64) / sample_rate
