"""Block templates for WaveChain.

Default parameter sets for every block type, a factory that stamps out
fresh blocks from them, and the frequency formatter used for labels.

Frequencies and cutoffs span 0.001 Hz .. 10 GHz; gains are in dB.

BUILD ID: templates_v1.0
"""

from __future__ import annotations

import copy

from .config import MAX_FREQUENCY
from .objects import Block, BlockParameter, BLOCK_TYPES


# ============================================================================
# PARAMETER HELPERS
# ============================================================================

def _freq(name: str, value: float) -> BlockParameter:
    return BlockParameter(name, value, 0.001, MAX_FREQUENCY, 0.001, 'Hz')


def _bandwidth(value: float) -> BlockParameter:
    return BlockParameter('Bandwidth', value, 0.001, 1_000_000_000.0, 0.001, 'Hz')


def _amplitude(value: float) -> BlockParameter:
    return BlockParameter('Amplitude', value, 0.0, 10_000.0, 0.01)


def _phase() -> BlockParameter:
    return BlockParameter('Phase', 0.0, 0.0, 360.0, 1.0, '°')


def _gain(value: float) -> BlockParameter:
    return BlockParameter('Gain', value, -60.0, 20.0, 0.1, 'dB')


def _q() -> BlockParameter:
    return BlockParameter('Q', 1.0, 0.5, 10.0, 0.1)


# ============================================================================
# TEMPLATES
# ============================================================================

BLOCK_TEMPLATES: dict[str, dict[str, BlockParameter]] = {
    'sine': {
        'frequency': _freq('Frequency', 440.0),
        'amplitude': _amplitude(0.5),
        'phase': _phase(),
        'gain': _gain(0.0),
    },
    'square': {
        'frequency': _freq('Frequency', 220.0),
        'dutyCycle': BlockParameter('Duty Cycle', 0.5, 0.1, 0.9, 0.01),
        'gain': _gain(-10.0),
    },
    'sawtooth': {
        'frequency': _freq('Frequency', 330.0),
        'amplitude': _amplitude(0.4),
        'phase': _phase(),
        'gain': _gain(-2.0),
    },
    'triangle': {
        'frequency': _freq('Frequency', 550.0),
        'amplitude': _amplitude(0.6),
        'phase': _phase(),
        'gain': _gain(-3.0),
    },
    'pulse': {
        'frequency': _freq('Frequency', 1000.0),
        'width': BlockParameter('Pulse Width', 0.1, 0.01, 0.5, 0.01),
        'amplitude': _amplitude(0.8),
        'gain': _gain(-6.0),
    },
    'chirp': {
        'startFreq': _freq('Start Freq', 100.0),
        'endFreq': _freq('End Freq', 2000.0),
        'duration': BlockParameter('Sweep Time', 1.0, 0.1, 10.0, 0.1, 's'),
        'amplitude': _amplitude(0.5),
        'gain': _gain(-4.0),
    },
    'noise': {
        'intensity': BlockParameter('Intensity', 0.2, 0.0, 10_000.0, 0.01),
        'type': BlockParameter('Type', 0.0, 0.0, 1.0, 1.0),  # 0 white, 1 pink
    },
    'lowpass': {
        'cutoff': _freq('Cutoff', 1000.0),
        'resonance': _q(),
    },
    'highpass': {
        'cutoff': _freq('Cutoff', 500.0),
        'resonance': _q(),
    },
    'bandpass': {
        'centerFreq': _freq('Center Freq', 1000.0),
        'bandwidth': _bandwidth(200.0),
        'resonance': _q(),
    },
    'notch': {
        'centerFreq': _freq('Center Freq', 1000.0),
        'bandwidth': _bandwidth(100.0),
        'depth': BlockParameter('Depth', 0.9, 0.1, 1.0, 0.01),
    },
    'interpolate': {
        'method': BlockParameter('Method', 0.0, 0.0, 2.0, 1.0),  # linear, spline, polynomial
        'resolution': BlockParameter('Resolution', 2.0, 1.0, 8.0, 1.0),
        'smoothing': BlockParameter('Smoothing', 0.5, 0.0, 1.0, 0.01),
    },
}


def template_value(block_type: str, name: str, default: float = 0.0) -> float:
    """Default value of parameter ``name`` for ``block_type``."""
    param = BLOCK_TEMPLATES.get(block_type, {}).get(name)
    return default if param is None else param.value


def create_block(block_type: str, **overrides: float) -> Block:
    """Create a new enabled block from its template.

    Keyword arguments override parameter values (clamped to range).

    >>> create_block('sine', frequency=1000).value('frequency')
    1000.0
    """
    if block_type not in BLOCK_TYPES:
        raise ValueError(
            f"Unknown block type '{block_type}'. Use: {', '.join(BLOCK_TYPES)}"
        )
    params = copy.deepcopy(BLOCK_TEMPLATES[block_type])
    for name, value in overrides.items():
        if name not in params:
            raise ValueError(f"Block type '{block_type}' has no parameter '{name}'")
        params[name] = params[name].with_value(value)
    return Block(type=block_type, parameters=params)


# ============================================================================
# FORMATTING
# ============================================================================

def format_frequency(freq: float) -> str:
    """Format a frequency for display.

    >>> format_frequency(2_450_000_000)
    '2.45 GHz'
    >>> format_frequency(440)
    '440.00 Hz'
    """
    if freq >= 1e9:
        return f"{freq / 1e9:.2f} GHz"
    if freq >= 1e6:
        return f"{freq / 1e6:.2f} MHz"
    if freq >= 1e3:
        return f"{freq / 1e3:.2f} kHz"
    return f"{freq:.2f} Hz"
