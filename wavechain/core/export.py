"""WaveChain export.

Bundles the current lines, settings and a synthesized audio buffer into
one JSON-compatible payload, and writes it either as JSON or as a WAV
file (audio only) depending on ``GlobalSettings.output_format``.

BUILD ID: export_v1.0
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Sequence

import numpy as np
import soundfile as sf

from .config import GlobalSettings
from .objects import WaveformLine

logger = logging.getLogger(__name__)


def _flatten_line(line: WaveformLine) -> dict:
    data = line.to_dict()
    for block in data['blocks']:
        block['parameters'] = {k: p['value'] for k, p in block['parameters'].items()}
    return data


def build_export_payload(
    lines: Sequence[WaveformLine],
    settings: GlobalSettings,
    audio,
) -> dict:
    """Build the export document.

    Block parameters are reduced to their plain values, the audio buffer
    becomes a list of floats and the document is stamped with the
    current UTC time in ISO 8601.
    """
    return {
        'settings': settings.to_dict(),
        'waveforms': [_flatten_line(line) for line in lines],
        'audioBuffer': np.asarray(audio, dtype=np.float64).tolist(),
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }


def write_json(path: str, payload: dict) -> str:
    with open(path, 'w') as f:
        json.dump(payload, f, indent=2)
    logger.info("Exported JSON to %s", path)
    return path


def write_wav(path: str, audio, sample_rate: int) -> str:
    """Write mono float audio to ``path`` as 32-bit float WAV."""
    data = np.asarray(audio, dtype=np.float32)
    sf.write(path, data, int(sample_rate), subtype='FLOAT')
    logger.info("Exported audio to %s (%d samples @ %d Hz)", path, len(data), sample_rate)
    return path


def export(path: str, lines: Sequence[WaveformLine], settings: GlobalSettings, audio) -> str:
    """Write ``audio`` (wav) or the full payload (json) per ``settings.output_format``."""
    if settings.output_format == 'wav':
        return write_wav(path, audio, settings.sample_rate)
    return write_json(path, build_export_payload(lines, settings, audio))
