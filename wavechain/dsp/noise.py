"""Noise sources for WaveChain.

``NoiseGenerator`` produces white noise and pink noise from one internal
three-stage smoothing filter (Paul Kellet's economy pink filter).  The
filter state persists between calls, so each independent noise source
needs its own generator; ``NoiseBank`` hands out one generator per
noise block.

Both outputs are scaled by 0.01 so a noise block at intensity 1.0 sits
well below a unit oscillator.

BUILD ID: noise_v1.0
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Union

import numpy as np
import scipy.signal

# ============================================================================
# FILTER CONSTANTS
# ============================================================================

NOISE_SCALE = 0.01
PINK_POLES = (0.99886, 0.99332, 0.96900)
PINK_WEIGHTS = (0.0555179, 0.0750759, 0.1538520)
PINK_DIRECT = 0.5362


# ============================================================================
# NOISE GENERATOR
# ============================================================================

class NoiseGenerator:
    """Stateful white/pink noise source.

    Parameters
    ----------
    seed : int or sequence of int, optional
        Seed for the random generator.  Two generators built with the
        same seed produce identical sequences.
    """

    def __init__(self, seed: Union[int, Sequence[int], None] = None) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)
        self.b0 = 0.0
        self.b1 = 0.0
        self.b2 = 0.0

    def reset(self) -> None:
        """Clear the pink filter state and restart the random stream."""
        self._rng = np.random.default_rng(self.seed)
        self.b0 = self.b1 = self.b2 = 0.0

    # ---- Scalar interface ---------------------------------------------------

    def white(self) -> float:
        """One white noise sample, uniform in [-0.01, 0.01]."""
        return (self._rng.random() * 2.0 - 1.0) * NOISE_SCALE

    def pink(self) -> float:
        """One pink noise sample; consumes one white sample."""
        white = self.white()
        self.b0 = PINK_POLES[0] * self.b0 + white * PINK_WEIGHTS[0]
        self.b1 = PINK_POLES[1] * self.b1 + white * PINK_WEIGHTS[1]
        self.b2 = PINK_POLES[2] * self.b2 + white * PINK_WEIGHTS[2]
        return (self.b0 + self.b1 + self.b2 + white * PINK_DIRECT) * NOISE_SCALE

    # ---- Block interface ----------------------------------------------------

    def white_block(self, n: int) -> np.ndarray:
        """``n`` white noise samples."""
        return (self._rng.random(n) * 2.0 - 1.0) * NOISE_SCALE

    def pink_block(self, n: int) -> np.ndarray:
        """``n`` pink noise samples, continuing the filter state.

        Runs the same recursion as ``pink()`` with each smoothing stage
        as a one-pole ``lfilter`` seeded from the stored state.
        """
        white = self.white_block(n)
        if n == 0:
            return white
        total = white * PINK_DIRECT
        states = []
        for pole, weight, prev in zip(PINK_POLES, PINK_WEIGHTS, (self.b0, self.b1, self.b2)):
            stage, _ = scipy.signal.lfilter([weight], [1.0, -pole], white, zi=[pole * prev])
            total = total + stage
            states.append(float(stage[-1]))
        self.b0, self.b1, self.b2 = states
        return total * NOISE_SCALE

    def block(self, n: int, pink: bool) -> np.ndarray:
        """``n`` samples of pink noise if ``pink`` else white."""
        return self.pink_block(n) if pink else self.white_block(n)


# ============================================================================
# NOISE BANK
# ============================================================================

class NoiseBank:
    """One ``NoiseGenerator`` per noise source, created on first use.

    Generators are keyed by block id, so unrelated lines never share
    filter state.  With a ``seed`` every generator is seeded from it and
    the source key, making evaluation reproducible.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed
        self._generators: Dict[str, NoiseGenerator] = {}

    def get(self, source_id: str) -> NoiseGenerator:
        gen = self._generators.get(source_id)
        if gen is None:
            gen = NoiseGenerator(self._seed_for(source_id))
            self._generators[source_id] = gen
        return gen

    def discard(self, source_id: str) -> None:
        self._generators.pop(source_id, None)

    def clear(self) -> None:
        self._generators.clear()

    def __len__(self) -> int:
        return len(self._generators)

    def _seed_for(self, source_id: str) -> Optional[list[int]]:
        if self.seed is None:
            return None
        return [self.seed] + [ord(c) for c in source_id]
