"""WaveChain DSP engine.

``DSPEngine`` ties the pieces together for one session: it owns the
waveform and spectral caches, the per-block noise generators and the
waterfall history, and reads its sample rate, spectral window and audio
duration from ``GlobalSettings``.  Display frames are always
``DISPLAY_SAMPLES`` points.

Typical render loop::

    engine = DSPEngine()
    registry = LineRegistry()
    engine.watch(registry)
    ...
    processed = engine.process_lines(registry.lines, t)
    frames = engine.update_waterfall(registry.lines, t)
    audio = engine.synthesize_audio(registry.lines)

BUILD ID: engine_v1.0
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from .core.config import GlobalSettings
from .core.export import export as export_payload
from .core.objects import ProcessedLine, SignalPoint, WaterfallData, WaveformLine
from .core.registry import LineEvent, LineEventType, LineRegistry
from .dsp.chain import WaveformCache
from .dsp.noise import NoiseBank
from .dsp.spectrum import SpectralCache, WaterfallHistory, estimate_spectrum
from .dsp.synth import synthesize_audio

logger = logging.getLogger(__name__)


class DSPEngine:
    """Cached evaluation, spectral estimation and synthesis for a set of lines.

    Not thread-safe: caches and noise state are plain mutable objects.
    """

    def __init__(self, settings: Optional[GlobalSettings] = None,
                 seed: Optional[int] = None) -> None:
        self.settings = settings if settings is not None else GlobalSettings()
        self.noise = NoiseBank(seed)
        self.waveform_cache = WaveformCache(
            sample_rate=self.settings.sample_rate,
            noise=self.noise,
        )
        self.spectral_cache = SpectralCache()
        self.waterfall = WaterfallHistory()

    # ---- Display ------------------------------------------------------------

    def evaluate_line(self, line: WaveformLine, time: float) -> List[SignalPoint]:
        return self.waveform_cache.get_or_compute(line, time)

    def process_lines(self, lines: Sequence[WaveformLine], time: float) -> List[ProcessedLine]:
        """Evaluate every line and pair it with its display points."""
        return [ProcessedLine.from_line(line, self.evaluate_line(line, time)) for line in lines]

    # ---- Spectrum -----------------------------------------------------------

    def estimate_spectrum(
        self,
        lines: Sequence[ProcessedLine],
        time: float,
        center_freq: Optional[float] = None,
        bandwidth: Optional[float] = None,
    ) -> List[WaterfallData]:
        """Waterfall frames for ``lines``; the window defaults to the settings."""
        if center_freq is None:
            center_freq = self.settings.waterfall_center_freq
        if bandwidth is None:
            bandwidth = self.settings.waterfall_bandwidth
        return estimate_spectrum(lines, time, center_freq, bandwidth, cache=self.spectral_cache)

    def update_waterfall(self, lines: Sequence[WaveformLine], time: float) -> List[WaterfallData]:
        """Evaluate, estimate and append the result to the waterfall history."""
        frames = self.estimate_spectrum(self.process_lines(lines, time), time)
        self.waterfall.push(frames)
        return frames

    # ---- Audio --------------------------------------------------------------

    def synthesize_audio(self, lines: Sequence, duration: Optional[float] = None) -> np.ndarray:
        if duration is None:
            duration = self.settings.duration
        return synthesize_audio(lines, duration, self.settings.sample_rate, self.noise)

    def export(self, path: str, lines: Sequence[WaveformLine], time: float = 0.0) -> str:
        """Synthesize audio for ``lines`` and write it per ``settings.output_format``."""
        audio = self.synthesize_audio(self.process_lines(lines, time))
        return export_payload(path, lines, self.settings, audio)

    # ---- State --------------------------------------------------------------

    def clear_caches(self) -> None:
        """Drop cached frames, noise state and waterfall history."""
        self.waveform_cache.clear()
        self.spectral_cache.clear()
        self.noise.clear()
        self.waterfall.clear()
        logger.info("Cleared engine caches")

    def watch(self, registry: LineRegistry) -> None:
        """Keep engine state in step with ``registry`` edits."""
        registry.subscribe(self._on_line_event)

    def _on_line_event(self, event: LineEvent) -> None:
        if event.event_type == LineEventType.LINE_REMOVED:
            self.waterfall.clear()
        elif event.event_type == LineEventType.BLOCK_REMOVED:
            self.noise.discard(event.block_id)
            self.noise.discard('audio:' + event.block_id)
        elif event.event_type == LineEventType.CLEARED:
            self.clear_caches()
