"""Core data model for WaveChain.

Configuration constants and settings (config.py), the block/line object
model (objects.py), block templates (templates.py), the line registry
(registry.py) and export (export.py).
"""

from .config import GlobalSettings  # noqa: F401
from .objects import Block, BlockParameter, WaveformLine, ProcessedLine  # noqa: F401
from .objects import SignalPoint, WaterfallData  # noqa: F401
from .registry import LineRegistry, LineEvent, LineEventType  # noqa: F401
from .templates import BLOCK_TEMPLATES, create_block, format_frequency  # noqa: F401
