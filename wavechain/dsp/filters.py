"""Biquad filter family for WaveChain.

RBJ cookbook lowpass, highpass, bandpass and notch sections run in
Direct Form I.  Coefficients are recomputed on every call and the
filter state starts at zero each time, so every buffer begins with the
filter's start-up transient rather than continuing the previous one.

The cutoff/centre frequency is clamped to ``sample_rate / 2.1`` before
the coefficients are computed; at Nyquist the sections go unstable.

Bandpass and notch use the constant-bandwidth ``sinh`` alpha with the
block's ``bandwidth`` value (Hz) fed straight into the formula.  The
notch ``depth`` scales alpha in the denominator only.

BUILD ID: filters_v1.0
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np
import scipy.signal

from ..core.config import SAMPLE_RATE

NYQUIST_GUARD = 2.1
MAX_SINH_ARG = 700.0
MAX_ALPHA = 1e12
MIN_Q = 1e-3

Coefficients = Tuple[np.ndarray, np.ndarray]


# ============================================================================
# COEFFICIENTS
# ============================================================================

def clamp_frequency(freq: float, sample_rate: float = SAMPLE_RATE) -> float:
    """Keep ``freq`` safely below Nyquist."""
    return min(freq, sample_rate / NYQUIST_GUARD)


def _omega(freq: float, sample_rate: float) -> Tuple[float, float, float]:
    w = 2.0 * math.pi * clamp_frequency(freq, sample_rate) / sample_rate
    return w, math.sin(w), math.cos(w)


def _bandwidth_alpha(w: float, sin_w: float, bandwidth: float) -> float:
    if sin_w == 0.0:
        return 0.0
    arg = (math.log(2.0) / 2.0) * bandwidth * w / sin_w
    # math.sinh overflows past ~710
    if arg > MAX_SINH_ARG:
        return MAX_ALPHA
    return min(sin_w * math.sinh(arg), MAX_ALPHA)


def lowpass_coefficients(cutoff: float, q: float,
                         sample_rate: float = SAMPLE_RATE) -> Coefficients:
    """Return ``(b, a)`` for a resonant lowpass."""
    w, sin_w, cos_w = _omega(cutoff, sample_rate)
    alpha = sin_w / (2.0 * max(q, MIN_Q))
    b = np.array([(1 - cos_w) / 2, 1 - cos_w, (1 - cos_w) / 2])
    a = np.array([1 + alpha, -2 * cos_w, 1 - alpha])
    return b, a


def highpass_coefficients(cutoff: float, q: float,
                          sample_rate: float = SAMPLE_RATE) -> Coefficients:
    """Return ``(b, a)`` for a resonant highpass."""
    w, sin_w, cos_w = _omega(cutoff, sample_rate)
    alpha = sin_w / (2.0 * max(q, MIN_Q))
    b = np.array([(1 + cos_w) / 2, -(1 + cos_w), (1 + cos_w) / 2])
    a = np.array([1 + alpha, -2 * cos_w, 1 - alpha])
    return b, a


def bandpass_coefficients(center: float, bandwidth: float,
                          sample_rate: float = SAMPLE_RATE) -> Coefficients:
    """Return ``(b, a)`` for a constant 0 dB peak gain bandpass."""
    w, sin_w, cos_w = _omega(center, sample_rate)
    alpha = _bandwidth_alpha(w, sin_w, bandwidth)
    b = np.array([alpha, 0.0, -alpha])
    a = np.array([1 + alpha, -2 * cos_w, 1 - alpha])
    return b, a


def notch_coefficients(center: float, bandwidth: float, depth: float,
                       sample_rate: float = SAMPLE_RATE) -> Coefficients:
    """Return ``(b, a)`` for a notch whose denominator alpha is scaled by ``depth``."""
    w, sin_w, cos_w = _omega(center, sample_rate)
    alpha = _bandwidth_alpha(w, sin_w, bandwidth)
    b = np.array([1.0, -2 * cos_w, 1.0])
    a = np.array([1 + alpha * depth, -2 * cos_w, 1 - alpha * depth])
    return b, a


# ============================================================================
# FILTERING
# ============================================================================

def biquad(buffer: np.ndarray, b: np.ndarray, a: np.ndarray) -> np.ndarray:
    """Run one biquad section over ``buffer`` from a zero state.

    ``lfilter`` normalises by ``a[0]``, which matches dividing every
    Direct Form I output by ``a0``.
    """
    return scipy.signal.lfilter(b, a, np.asarray(buffer, dtype=np.float64))


def lowpass(buffer: np.ndarray, cutoff: float, q: float = 1.0,
            sample_rate: float = SAMPLE_RATE) -> np.ndarray:
    return biquad(buffer, *lowpass_coefficients(cutoff, q, sample_rate))


def highpass(buffer: np.ndarray, cutoff: float, q: float = 1.0,
             sample_rate: float = SAMPLE_RATE) -> np.ndarray:
    return biquad(buffer, *highpass_coefficients(cutoff, q, sample_rate))


def bandpass(buffer: np.ndarray, center: float, bandwidth: float,
             sample_rate: float = SAMPLE_RATE) -> np.ndarray:
    return biquad(buffer, *bandpass_coefficients(center, bandwidth, sample_rate))


def notch(buffer: np.ndarray, center: float, bandwidth: float, depth: float = 0.9,
          sample_rate: float = SAMPLE_RATE) -> np.ndarray:
    return biquad(buffer, *notch_coefficients(center, bandwidth, depth, sample_rate))
