#!/usr/bin/env python
"""
Signal chain tests - line evaluation, display mapping and the caches.
"""

import os
import sys

import numpy as np
import pytest

# Setup path
HERE = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, HERE)

from wavechain.core.objects import WaveformLine
from wavechain.core.templates import create_block
from wavechain.dsp.cache import FIFOCache
from wavechain.dsp.chain import (
    WaveformCache,
    evaluate_line,
    quantize_time,
    to_display_points,
)


def sine_line(**overrides):
    return WaveformLine(name='Line 1', blocks=[create_block('sine', **overrides)])


# === Evaluator ===

def test_sine_line_at_time_zero():
    points = evaluate_line(sine_line(), 0.0)
    assert len(points) == 512
    assert points[0].y == 0.5
    assert points[0].x == 0.0
    assert points[1].x == pytest.approx(1 / 512)
    assert all(0.1 <= p.y <= 0.9 for p in points)


def test_muted_line_is_flat():
    line = sine_line()
    line.muted = True
    points = evaluate_line(line, 1.234)
    assert len(points) == 512
    assert all(p.y == 0.5 for p in points)


def test_empty_line_is_flat():
    assert all(p.y == 0.5 for p in evaluate_line(WaveformLine(), 0.3))


def test_non_finite_time_is_flat():
    assert all(p.y == 0.5 for p in evaluate_line(sine_line(), float('nan')))


def test_display_scale_caps_small_signals():
    # peak 0.5 -> scale 0.4, so the sample maps 0.4 units from centre per unit amplitude
    points = to_display_points(np.array([0.0, 0.5, -0.5]))
    assert [p.y for p in points] == pytest.approx([0.5, 0.3, 0.7])


def test_display_scale_normalises_large_signals():
    points = to_display_points(np.array([0.0, 20.0, -20.0]))
    assert [p.y for p in points] == pytest.approx([0.5, 0.1, 0.9])


def test_display_scale_caps_peak_at_100():
    points = to_display_points(np.array([1000.0]))
    assert points[0].y == pytest.approx(0.5 - 1000.0 * 0.004)


# === FIFO cache ===

def test_fifo_cache_evicts_oldest_inserted():
    cache = FIFOCache(2)
    cache.put('a', 1)
    cache.put('b', 2)
    cache.get('a')
    cache.put('a', 10)
    cache.put('c', 3)
    assert cache.keys() == ['b', 'c']
    assert cache.evictions == 1


def test_fifo_cache_rejects_zero_size():
    with pytest.raises(ValueError):
        FIFOCache(0)


# === Waveform cache ===

def test_quantize_time():
    assert quantize_time(0.049, 0.05) == 0.0
    assert quantize_time(0.05, 0.05) == 0.05
    assert quantize_time(1.26, 0.1) == pytest.approx(1.2)


def test_cache_hit_returns_same_points():
    cache = WaveformCache()
    line = sine_line()
    first = cache.get_or_compute(line, 0.01)
    assert cache.get_or_compute(line, 0.01) is first
    assert cache.get_or_compute(line, 0.02) is first
    assert cache.stats()['hits'] == 2


def test_cache_miss_beyond_tolerance_in_same_bucket():
    cache = WaveformCache()
    line = sine_line()
    first = cache.get_or_compute(line, 0.0)
    assert WaveformCache.make_key(line, 0.0) == WaveformCache.make_key(line, 0.049)
    second = cache.get_or_compute(line, 0.049)
    assert second is not first
    assert cache.stats()['misses'] == 2
    assert len(cache) == 1


def test_huge_time_does_not_raise():
    cache = WaveformCache()
    points = cache.get_or_compute(sine_line(), 1e308)
    assert len(points) == 512
    assert all(np.isfinite(p.y) for p in points)
    assert quantize_time(1e308, 0.05) == 1e308


def test_cache_miss_on_new_time_bucket():
    cache = WaveformCache()
    line = sine_line()
    first = cache.get_or_compute(line, 0.01)
    assert cache.get_or_compute(line, 0.06) is not first
    assert len(cache) == 2


def test_cache_miss_on_parameter_change():
    cache = WaveformCache()
    line = sine_line()
    first = cache.get_or_compute(line, 0.0)
    line.blocks[0].parameters['frequency'] = line.blocks[0].parameters['frequency'].with_value(880)
    second = cache.get_or_compute(line, 0.0)
    assert second is not first
    assert second[10].y != first[10].y


def test_cache_matches_uncached_evaluation():
    line = sine_line(frequency=1234.0)
    cached = WaveformCache().get_or_compute(line, 0.5)
    assert [p.y for p in cached] == [p.y for p in evaluate_line(line, 0.5)]


def test_cache_bound_evicts_first_entry():
    cache = WaveformCache()
    lines = [WaveformLine(name=f'Line {i}') for i in range(101)]
    for line in lines:
        cache.get_or_compute(line, 0.0)
    assert len(cache) == 100
    assert WaveformCache.make_key(lines[0], 0.0) not in cache
    assert WaveformCache.make_key(lines[100], 0.0) in cache
    assert cache.stats()['evictions'] == 1


def test_muted_lines_are_not_cached():
    cache = WaveformCache()
    line = sine_line()
    line.muted = True
    cache.get_or_compute(line, 0.0)
    assert len(cache) == 0


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
