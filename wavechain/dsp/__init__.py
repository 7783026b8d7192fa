"""DSP primitives for WaveChain.

Modules:
- aliasing: Nyquist folding and power-loss model
- noise: Seeded white/pink noise generators and the per-block bank
- oscillators: Vectorised wave shapes
- filters: RBJ biquad filter family
- processor: Block processor (display path)
- cache: Bounded FIFO cache
- chain: Signal chain evaluator and waveform cache
- spectrum: FFT, waterfall estimator, spectral cache, history
- synth: Audio buffer synthesizer

BUILD ID: dsp_v1.0
"""

__all__ = [
    "aliasing",
    "noise",
    "oscillators",
    "filters",
    "processor",
    "cache",
    "chain",
    "spectrum",
    "synth",
]
