#!/usr/bin/env python
"""
Spectral tests - FFT primitive, waterfall estimator, spectral cache and history.
"""

import os
import sys

import numpy as np
import pytest

# Setup path
HERE = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, HERE)

from wavechain.core.objects import ProcessedLine, SignalPoint, WaterfallData, WaveformLine
from wavechain.core.templates import create_block
from wavechain.dsp.chain import evaluate_line, flat_points
from wavechain.dsp.spectrum import (
    SpectralCache,
    WaterfallHistory,
    estimate_spectrum,
    fft,
    frequency_bins,
    magnitude_spectrum,
    spectral_proxy,
)


def processed(*blocks, time=0.0):
    line = WaveformLine(name='Line 1', blocks=list(blocks))
    return ProcessedLine.from_line(line, evaluate_line(line, time))


# === FFT ===

def test_fft_matches_numpy():
    x = np.random.default_rng(0).standard_normal(64)
    real, imag = fft(x)
    ref = np.fft.fft(x)
    assert np.allclose(real, ref.real)
    assert np.allclose(imag, ref.imag)


def test_fft_single_sample():
    real, imag = fft([3.0])
    assert list(real) == [3.0] and list(imag) == [0.0]


def test_fft_rejects_non_power_of_two():
    with pytest.raises(ValueError):
        fft(np.zeros(6))
    with pytest.raises(ValueError):
        fft([])


def test_magnitude_spectrum_peak():
    n = 64
    x = np.sin(2 * np.pi * 8 * np.arange(n) / n)
    mags = magnitude_spectrum(x)
    assert len(mags) == 32
    assert int(np.argmax(mags)) == 8
    assert mags[8] == pytest.approx(32.0)


# === Estimator ===

def test_frequency_bins():
    freqs, step = frequency_bins(1000.0, 1000.0, 128)
    assert freqs[0] == 500.0
    assert step == pytest.approx(1000.0 / 128)
    assert len(freqs) == 128


def test_frequency_bins_floor_at_zero():
    freqs, _ = frequency_bins(100.0, 1000.0, 128)
    assert freqs[0] == 0.0


def test_spectral_proxies():
    assert spectral_proxy(create_block('sine', frequency=1000.0)) == pytest.approx((1000.0, 2.5))
    chirp_freq, _ = spectral_proxy(create_block('chirp'))
    assert chirp_freq == pytest.approx(1050.0)
    assert spectral_proxy(create_block('notch')) == (1000.0, 1.5)
    assert spectral_proxy(create_block('lowpass')) == (1000.0, 1.0)
    assert spectral_proxy(create_block('noise')) == pytest.approx((0.0, 0.01))
    assert spectral_proxy(create_block('interpolate')) == (0.0, 0.0)


def test_sine_peak_lands_in_its_bin():
    frames = estimate_spectrum([processed(create_block('sine', frequency=1000.0))],
                               0.0, 1000.0, 1000.0)
    assert len(frames) == 1
    frame = frames[0]
    assert len(frame.frequencies) == 128 and len(frame.magnitudes) == 128
    peak = int(np.argmax(frame.magnitudes))
    assert frame.frequencies[peak] == pytest.approx(1000.0)
    assert frame.magnitudes[peak] == pytest.approx(25.0)


def test_noise_raises_every_bin():
    frame = estimate_spectrum([processed(create_block('noise'))], 0.0, 1e6, 1e6)[0]
    assert all(m == pytest.approx(0.001) for m in frame.magnitudes)


def test_untouched_bins_fall_back_to_display_frame():
    line = ProcessedLine(id='x', points=flat_points(512))
    frame = estimate_spectrum([line], 0.0, 1e6, 1e6)[0]
    assert all(m == 0.0 for m in frame.magnitudes)

    points = [SignalPoint(i / 4, 0.0) for i in range(4)]
    frame = estimate_spectrum([ProcessedLine(id='y', points=points)], 0.0, 1e6, 1e6)[0]
    assert all(m == pytest.approx(0.01) for m in frame.magnitudes)


def test_disabled_blocks_are_ignored():
    block = create_block('sine', frequency=1000.0)
    block.enabled = False
    frame = estimate_spectrum([processed(block)], 0.0, 1000.0, 1000.0)[0]
    assert max(frame.magnitudes) < 1.0


def test_invalid_inputs_give_empty_result():
    line = processed(create_block('sine'))
    assert estimate_spectrum([], 0.0, 1e6, 1e6) == []
    assert estimate_spectrum([line] * 101, 0.0, 1e6, 1e6) == []
    assert estimate_spectrum([line], 0.0, 0.0, 1e6) == []
    assert estimate_spectrum([line], 0.0, 1e6, -5.0) == []
    assert estimate_spectrum([line], 0.0, float('nan'), 1e6) == []
    assert estimate_spectrum([line], 0.0, 1e6, float('inf')) == []


def test_unusable_lines_are_filtered():
    good = processed(create_block('sine'))
    muted = processed(create_block('sine'))
    muted.muted = True
    hidden = processed(create_block('sine'))
    hidden.visible = False
    no_points = ProcessedLine(id='n', points=None)
    too_many = ProcessedLine(id='t', points=flat_points(10001))
    frames = estimate_spectrum([good, muted, hidden, no_points, too_many, None], 0.0, 1e6, 1e6)
    assert len(frames) == 1


# === Spectral cache ===

def test_spectral_cache_hit_restamps_time():
    cache = SpectralCache()
    line = processed(create_block('sine', frequency=1000.0))
    first = estimate_spectrum([line], 0.11, 1000.0, 1000.0, cache=cache)[0]
    second = estimate_spectrum([line], 0.15, 1000.0, 1000.0, cache=cache)[0]
    assert cache.stats()['hits'] == 1
    assert second.time == 0.15 and first.time == 0.11
    assert second.magnitudes == first.magnitudes


def test_spectral_cache_window_is_part_of_key():
    cache = SpectralCache()
    line = processed(create_block('sine', frequency=1000.0))
    estimate_spectrum([line], 0.0, 1000.0, 1000.0, cache=cache)
    frame = estimate_spectrum([line], 0.0, 5000.0, 1000.0, cache=cache)[0]
    assert cache.stats()['hits'] == 0
    assert frame.frequencies[0] == 4500.0


def test_spectral_cache_miss_returns_copy():
    cache = SpectralCache()
    line = processed(create_block('sine', frequency=1000.0))
    first = estimate_spectrum([line], 0.0, 1000.0, 1000.0, cache=cache)[0]
    first.magnitudes[64] = -1.0
    second = estimate_spectrum([line], 0.0, 1000.0, 1000.0, cache=cache)[0]
    assert cache.stats()['hits'] == 1
    assert second.magnitudes[64] == pytest.approx(25.0)


def test_spectral_cache_huge_time():
    cache = SpectralCache()
    line = processed(create_block('sine'))
    assert len(estimate_spectrum([line], 1e308, 1e6, 1e6, cache=cache)) == 1


def test_spectral_cache_bound():
    cache = SpectralCache()
    line = processed(create_block('sine'))
    for i in range(60):
        estimate_spectrum([line], i * 0.1 + 0.01, 1e6, 1e6, cache=cache)
    assert len(cache) == 50


# === History ===

def test_waterfall_history_keeps_last_fifty():
    history = WaterfallHistory()
    for i in range(60):
        history.push([WaterfallData(time=float(i))])
    assert len(history) == 50
    assert history.frames[0][0].time == 10.0
    assert history.latest()[0].time == 59.0
    history.clear()
    assert history.latest() is None


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
