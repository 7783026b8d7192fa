#!/usr/bin/env python
"""
DSP primitive tests - aliasing, filters, noise and the block processor.
"""

import os
import sys

import numpy as np
import pytest

# Setup path
HERE = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, HERE)

from wavechain.core.objects import Block
from wavechain.core.templates import create_block
from wavechain.dsp import filters
from wavechain.dsp.aliasing import alias, db_to_gain
from wavechain.dsp.noise import NoiseBank, NoiseGenerator
from wavechain.dsp.processor import interpolate, process_block, process_chain
from wavechain.dsp.oscillators import sample_times

SR = 44100


def impulse(n=512):
    x = np.zeros(n)
    x[0] = 1.0
    return x


# === Aliasing ===

def test_alias_below_nyquist_is_identity():
    assert alias(1000.0, SR) == (1000.0, 1.0)
    assert alias(SR / 2, SR) == (SR / 2, 1.0)


def test_alias_above_nyquist_folds_and_attenuates():
    freq, loss = alias(30000.0, SR)
    assert freq == pytest.approx(14100.0)
    assert 0.0 <= freq <= SR / 2
    assert 1e-4 <= loss < 1.0


def test_alias_loss_decreases_across_first_octave():
    _, loss = alias(np.linspace(22050.01, 44100.0, 1000), SR)
    assert np.all(np.diff(loss) < 0)
    assert loss[-1] == pytest.approx(0.5, rel=1e-3)


def test_alias_loss_floor():
    _, loss = alias(1e10, SR)
    assert loss == pytest.approx(1e-4)


def test_alias_vectorised():
    freqs, losses = alias(np.array([100.0, 50000.0]), SR)
    assert freqs[0] == 100.0 and losses[0] == 1.0
    assert freqs[1] == pytest.approx(5900.0)
    assert losses[1] < 1.0


def test_db_to_gain():
    assert db_to_gain(0.0) == 1.0
    assert db_to_gain(-20.0) == pytest.approx(0.1)


# === Filters ===

def test_lowpass_impulse_response_stable():
    out = filters.lowpass(impulse(), SR / 4, 1.0, SR)
    assert np.all(np.isfinite(out))
    assert np.max(np.abs(out)) < 10.0
    assert np.max(np.abs(out[-100:])) < 1e-6


def test_lowpass_passes_dc():
    out = filters.lowpass(np.ones(4096), 1000.0, 1.0, SR)
    assert out[-1] == pytest.approx(1.0, abs=1e-6)


def test_highpass_blocks_dc():
    out = filters.highpass(np.ones(4096), 1000.0, 1.0, SR)
    assert abs(out[-1]) < 1e-6


def test_cutoff_above_nyquist_is_clamped():
    out = filters.lowpass(impulse(), 1e9, 1.0, SR)
    assert np.all(np.isfinite(out))


def test_huge_bandwidth_stays_finite():
    assert np.all(np.isfinite(filters.bandpass(impulse(), 1000.0, 1e9, SR)))
    assert np.all(np.isfinite(filters.notch(impulse(), 1000.0, 1e9, 0.9, SR)))


# === Noise ===

def test_white_noise_range():
    x = NoiseGenerator(42).white_block(2000)
    assert len(x) == 2000
    assert np.all(np.abs(x) <= 0.01)


def test_seeded_generators_match():
    a, b = NoiseGenerator(3), NoiseGenerator(3)
    assert np.array_equal(a.white_block(64), b.white_block(64))


def test_pink_block_continues_state():
    whole = NoiseGenerator(7).pink_block(200)
    gen = NoiseGenerator(7)
    parts = np.concatenate([gen.pink_block(100), gen.pink_block(100)])
    assert np.allclose(whole, parts)


def test_pink_block_matches_scalar():
    block = NoiseGenerator(11).pink_block(50)
    gen = NoiseGenerator(11)
    scalar = np.array([gen.pink() for _ in range(50)])
    assert np.allclose(block, scalar)


def test_noise_bank_one_generator_per_source():
    bank = NoiseBank(seed=5)
    assert bank.get('a') is bank.get('a')
    assert bank.get('a') is not bank.get('b')
    assert len(bank) == 2
    other = NoiseBank(seed=5)
    assert np.array_equal(NoiseBank(seed=5).get('a').white_block(8),
                          other.get('a').white_block(8))
    bank.discard('a')
    assert len(bank) == 1


# === Block processor ===

def test_disabled_block_returns_input():
    buf = np.arange(8.0)
    block = create_block('lowpass')
    block.enabled = False
    assert process_block(block, buf, 0.0) is buf


def test_unknown_block_returns_input():
    buf = np.arange(8.0)
    assert process_block(Block(type='warp'), buf, 0.0) is buf


def test_display_sine_is_not_aliased():
    block = create_block('sine', frequency=30000.0)
    out = process_block(block, np.zeros(64), 0.0, SR)
    t = sample_times(64, 0.0, SR)
    assert np.allclose(out, 0.5 * np.sin(2 * np.pi * 30000.0 * t))


def test_display_sawtooth_is_aliased():
    high = process_block(create_block('sawtooth', frequency=30000.0), np.zeros(64), 0.0, SR)
    folded = process_block(create_block('sawtooth', frequency=14100.0), np.zeros(64), 0.0, SR)
    _, loss = alias(30000.0, SR)
    assert np.allclose(high, folded * loss)


def test_generators_add_onto_signal():
    buf = np.full(16, 0.25)
    out = process_block(create_block('sine'), buf, 0.0, SR)
    assert out[0] == pytest.approx(0.25)


def test_chain_order_matters():
    sine = create_block('sine', frequency=10000.0)
    lp = create_block('lowpass', cutoff=100.0)
    filtered = process_chain([sine, lp], np.zeros(512), 0.0, SR)
    unfiltered = process_chain([lp, sine], np.zeros(512), 0.0, SR)
    assert np.max(np.abs(filtered)) < np.max(np.abs(unfiltered))


def test_noise_block_uses_bank():
    block = create_block('noise', intensity=1.0)
    a = process_block(block, np.zeros(32), 0.0, SR, NoiseBank(seed=1))
    b = process_block(block, np.zeros(32), 0.0, SR, NoiseBank(seed=1))
    assert np.array_equal(a, b)
    assert np.all(np.abs(a) <= 0.01)


# === Interpolation ===

def test_interpolate_linear():
    out = interpolate(np.array([0.0, 1.0, 2.0, 3.0]), 0, 1, 0.5)
    assert np.allclose(out, [0.0, 0.25, 0.5, 0.75])


def test_interpolate_linear_reads_past_end_as_zero():
    out = interpolate(np.array([1.0, 1.0, 1.0, 1.0]), 0, 8, 0.5)
    assert out[-1] == 0.0


def test_interpolate_polynomial_warp_keeps_endpoints():
    buf = np.arange(10.0)
    out = interpolate(buf, 2, 2, 1.0)
    assert out[0] == buf[0] and out[-1] == buf[-1]
    assert np.all(np.diff(out) >= 0)
    assert out[5] < buf[5]


def test_interpolate_single_sample():
    assert np.array_equal(interpolate(np.array([4.0]), 1, 2, 0.5), [4.0])


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
