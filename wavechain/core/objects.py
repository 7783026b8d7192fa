"""WaveChain Object Model.

Defines the data classes handed to the engine by its editing
collaborators: block parameters, blocks, waveform lines, display points
and waterfall frames.  Blocks and lines carry a stable string identity;
parameters are replaced wholesale when they change.

The ``to_dict``/``from_dict`` helpers use the camelCase layout of the
saved line list so a stored configuration can be handed straight to the
engine.

BUILD ID: objects_v1.0
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Optional


# ============================================================================
# BLOCK TYPES
# ============================================================================

OSCILLATOR_TYPES = ('sine', 'square', 'sawtooth', 'triangle', 'pulse', 'chirp')
FILTER_TYPES = ('lowpass', 'highpass', 'bandpass', 'notch')
GENERATOR_TYPES = OSCILLATOR_TYPES + ('noise',)
BLOCK_TYPES = GENERATOR_TYPES + FILTER_TYPES + ('interpolate',)


# ============================================================================
# HELPER
# ============================================================================

def _new_id() -> str:
    """Generate a new UUID string for object identity."""
    return str(uuid.uuid4())


# ============================================================================
# SUPPORTING DATA TYPES
# ============================================================================

@dataclass
class BlockParameter:
    """A single editable block parameter.

    Attributes:
        name: Display name (e.g. 'Frequency').
        value: Current value, kept inside ``[min, max]``.
        min: Lower bound.
        max: Upper bound.
        step: Display/quantisation granularity (not enforced).
        unit: Optional unit label ('Hz', 'dB', ...).
    """
    name: str
    value: float
    min: float
    max: float
    step: float = 1.0
    unit: Optional[str] = None

    def __post_init__(self) -> None:
        self.value = self.clamp(self.value)

    def clamp(self, value: float) -> float:
        """Clamp ``value`` to this parameter's range."""
        return max(self.min, min(self.max, float(value)))

    def with_value(self, value: float) -> "BlockParameter":
        """Return a copy holding ``value`` clamped to the range."""
        return replace(self, value=self.clamp(value))

    def to_dict(self) -> dict:
        d = {
            'name': self.name,
            'value': self.value,
            'min': self.min,
            'max': self.max,
            'step': self.step,
        }
        if self.unit is not None:
            d['unit'] = self.unit
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "BlockParameter":
        return cls(
            name=str(data.get('name', '')),
            value=float(data['value']),
            min=float(data['min']),
            max=float(data['max']),
            step=float(data.get('step', 1.0)),
            unit=data.get('unit'),
        )


@dataclass
class SignalPoint:
    """One display point: ``x`` in [0, 1], ``y`` centred at 0.5."""
    x: float
    y: float


@dataclass
class WaterfallData:
    """One spectral frame.

    Attributes:
        frequencies: Bin frequencies in Hz.
        magnitudes: Linear magnitude estimate per bin.
        time: Playback time the frame was produced for.
    """
    frequencies: list[float] = field(default_factory=list)
    magnitudes: list[float] = field(default_factory=list)
    time: float = 0.0


# ============================================================================
# BLOCKS AND LINES
# ============================================================================

@dataclass
class Block:
    """One stage in a signal chain (generator, filter or interpolator)."""

    type: str = 'sine'
    parameters: dict[str, BlockParameter] = field(default_factory=dict)
    enabled: bool = True
    id: str = field(default_factory=_new_id)

    def value(self, name: str, default: float = 0.0) -> float:
        """Return the value of parameter ``name`` or ``default`` if absent."""
        param = self.parameters.get(name)
        if param is None:
            return default
        return param.value

    def fingerprint(self) -> tuple:
        """Structural identity of the block's configuration.

        Covers type, enabled flag and every parameter (sorted by key) so
        two blocks configured alike produce equal, hashable tuples.
        """
        params = tuple(
            (key, p.value, p.min, p.max, p.step)
            for key, p in sorted(self.parameters.items())
        )
        return (self.type, self.enabled, params)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'type': self.type,
            'parameters': {k: p.to_dict() for k, p in self.parameters.items()},
            'enabled': self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Block":
        return cls(
            id=str(data.get('id') or _new_id()),
            type=str(data['type']),
            parameters={
                k: BlockParameter.from_dict(p)
                for k, p in (data.get('parameters') or {}).items()
            },
            enabled=bool(data.get('enabled', True)),
        )


@dataclass
class WaveformLine:
    """An ordered chain of blocks plus display metadata.

    Blocks compose left to right: generators add onto whatever signal
    is already present, filters replace it with the filtered version.
    """

    name: str = ''
    blocks: list[Block] = field(default_factory=list)
    color: str = '#00FFE0'
    muted: bool = False
    visible: bool = True
    id: str = field(default_factory=_new_id)

    def fingerprint(self) -> tuple:
        """Structural identity of the chain (order-sensitive)."""
        return tuple(b.fingerprint() for b in self.blocks)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'blocks': [b.to_dict() for b in self.blocks],
            'color': self.color,
            'muted': self.muted,
            'visible': self.visible,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WaveformLine":
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            blocks=[Block.from_dict(b) for b in data.get('blocks', [])],
            color=str(data['color']),
            muted=bool(data.get('muted', False)),
            visible=bool(data.get('visible', True)),
        )


@dataclass
class ProcessedLine:
    """A line together with its current display points.

    Input to the spectral estimator and the audio synthesizer.  ``points``
    may be ``None`` for lines whose display frame was never computed;
    such lines are dropped by the estimator.
    """

    id: str = ''
    points: Optional[list[SignalPoint]] = None
    blocks: list[Block] = field(default_factory=list)
    color: str = ''
    muted: bool = False
    visible: bool = True

    @classmethod
    def from_line(cls, line: WaveformLine, points: Any) -> "ProcessedLine":
        return cls(
            id=line.id,
            points=points,
            blocks=line.blocks,
            color=line.color,
            muted=line.muted,
            visible=line.visible,
        )
