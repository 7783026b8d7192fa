"""WaveChain package.

Signal-chain DSP engine: compose generator and filter blocks into lines,
then render display frames, waterfall spectra and audio buffers.

VERSION: 1.0
BUILD ID: wavechain_v1.0

FEATURES:
- Twelve block types (oscillators, noise, biquad filters, interpolation)
- Nyquist folding with -6 dB/octave loss above Nyquist
- Memoised display frames and spectral frames (bounded FIFO caches)
- Analytic waterfall estimator plus a radix-2 FFT primitive
- Soft-limited audio synthesis with JSON/WAV export
"""

__version__ = "1.0.0"

from .core.config import GlobalSettings  # noqa: F401
from .core.objects import Block, BlockParameter, WaveformLine, ProcessedLine  # noqa: F401
from .core.objects import SignalPoint, WaterfallData  # noqa: F401
from .core.registry import LineRegistry  # noqa: F401
from .core.templates import create_block  # noqa: F401
from .dsp.chain import evaluate_line  # noqa: F401
from .dsp.spectrum import estimate_spectrum  # noqa: F401
from .dsp.synth import synthesize_audio  # noqa: F401
from .engine import DSPEngine  # noqa: F401
