"""WaveChain line registry.

The single store for the lines being edited.  Every edit goes through
the registry so that subscribers (the engine, a front end) hear about it
through ``LineEvent``s.

The registry provides:
- Line creation with sequential names and palette colours (max 5 lines)
- Block add/remove/toggle and clamped parameter edits
- Mute, visibility and solo toggles
- Event subscriptions
- Plain-dict and JSON-file persistence

BUILD ID: registry_v1.0
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Optional

from .objects import Block, WaveformLine
from .templates import create_block

logger = logging.getLogger(__name__)

MAX_LINES = 5

LINE_COLORS = (
    '#00FFE0',
    '#FF00FF',
    '#FFE500',
    '#00FF88',
    '#FF6B6B',
    '#00BFFF',
    '#FF8C00',
    '#9370DB',
)


# ============================================================================
# REGISTRY EVENTS
# ============================================================================

class LineEventType:
    """Event type constants for registry subscriptions."""
    LINE_ADDED = "line_added"
    LINE_REMOVED = "line_removed"
    LINE_UPDATED = "line_updated"
    BLOCK_ADDED = "block_added"
    BLOCK_REMOVED = "block_removed"
    BLOCK_UPDATED = "block_updated"
    CLEARED = "cleared"


class LineEvent:
    """Payload for a registry change event.

    Attributes:
        event_type: One of the LineEventType constants.
        line_id: ID of the affected line ('' for CLEARED).
        block_id: ID of the affected block, if any.
        data: Optional extra data (e.g. the parameter that changed).
    """

    __slots__ = ("event_type", "line_id", "block_id", "data")

    def __init__(
        self,
        event_type: str,
        line_id: str = "",
        block_id: str = "",
        data: Optional[dict] = None,
    ) -> None:
        self.event_type = event_type
        self.line_id = line_id
        self.block_id = block_id
        self.data = data or {}

    def __repr__(self) -> str:
        return f"LineEvent({self.event_type!r}, line={self.line_id!r}, block={self.block_id!r})"


# ============================================================================
# LINE REGISTRY
# ============================================================================

class LineRegistry:
    """Ordered store of ``WaveformLine`` objects."""

    def __init__(self) -> None:
        self._lines: list[WaveformLine] = []
        self._subscribers: dict[str, list[Callable[[LineEvent], None]]] = {}

    # ---- Lookup -------------------------------------------------------------

    @property
    def lines(self) -> list[WaveformLine]:
        return list(self._lines)

    def get(self, line_id: str) -> Optional[WaveformLine]:
        for line in self._lines:
            if line.id == line_id:
                return line
        return None

    def _block(self, line_id: str, block_id: str) -> Optional[Block]:
        line = self.get(line_id)
        if line is None:
            return None
        for block in line.blocks:
            if block.id == block_id:
                return block
        return None

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(list(self._lines))

    # ---- Lines --------------------------------------------------------------

    def add_line(self) -> Optional[WaveformLine]:
        """Append an empty line.  Returns None once MAX_LINES exist."""
        if len(self._lines) >= MAX_LINES:
            logger.warning("Line limit of %d reached; not adding another", MAX_LINES)
            return None
        count = len(self._lines)
        line = WaveformLine(
            name=f"Line {count + 1}",
            color=LINE_COLORS[count % len(LINE_COLORS)],
        )
        self._lines.append(line)
        logger.info("Added %s (%s)", line.name, line.id)
        self._fire(LineEvent(LineEventType.LINE_ADDED, line.id))
        return line

    def remove_line(self, line_id: str) -> bool:
        line = self.get(line_id)
        if line is None:
            return False
        self._lines.remove(line)
        logger.info("Removed %s (%s)", line.name, line_id)
        self._fire(LineEvent(LineEventType.LINE_REMOVED, line_id))
        return True

    def clear(self) -> None:
        """Remove every line."""
        self._lines.clear()
        logger.info("Cleared all lines")
        self._fire(LineEvent(LineEventType.CLEARED))

    # ---- Blocks -------------------------------------------------------------

    def add_block(self, line_id: str, block_type: str) -> Optional[Block]:
        """Append a block built from its template.

        Raises ValueError for an unknown block type.
        """
        line = self.get(line_id)
        if line is None:
            return None
        block = create_block(block_type)
        line.blocks.append(block)
        self._fire(LineEvent(LineEventType.BLOCK_ADDED, line_id, block.id,
                             {'type': block_type}))
        return block

    def remove_block(self, line_id: str, block_id: str) -> bool:
        line = self.get(line_id)
        block = self._block(line_id, block_id)
        if block is None:
            return False
        line.blocks.remove(block)
        self._fire(LineEvent(LineEventType.BLOCK_REMOVED, line_id, block_id))
        return True

    def update_block_parameter(self, line_id: str, block_id: str,
                               name: str, value: float) -> bool:
        """Set a parameter, clamped to its range.

        Unknown lines, blocks or parameter names leave everything
        unchanged and return False.
        """
        block = self._block(line_id, block_id)
        if block is None or name not in block.parameters:
            return False
        param = block.parameters[name].with_value(value)
        block.parameters[name] = param
        self._fire(LineEvent(LineEventType.BLOCK_UPDATED, line_id, block_id,
                             {'parameter': name, 'value': param.value}))
        return True

    def toggle_block(self, line_id: str, block_id: str) -> bool:
        block = self._block(line_id, block_id)
        if block is None:
            return False
        block.enabled = not block.enabled
        self._fire(LineEvent(LineEventType.BLOCK_UPDATED, line_id, block_id,
                             {'enabled': block.enabled}))
        return True

    # ---- Mute / visibility / solo ------------------------------------------

    def toggle_mute(self, line_id: str) -> bool:
        line = self.get(line_id)
        if line is None:
            return False
        line.muted = not line.muted
        self._fire(LineEvent(LineEventType.LINE_UPDATED, line_id, data={'muted': line.muted}))
        return True

    def toggle_visible(self, line_id: str) -> bool:
        line = self.get(line_id)
        if line is None:
            return False
        line.visible = not line.visible
        self._fire(LineEvent(LineEventType.LINE_UPDATED, line_id,
                             data={'visible': line.visible}))
        return True

    def is_solo(self, line_id: str) -> bool:
        """True when ``line_id`` is the only unmuted line."""
        line = self.get(line_id)
        if line is None or line.muted:
            return False
        return all(other.muted for other in self._lines if other.id != line_id)

    def toggle_solo(self, line_id: str) -> bool:
        """Solo a line, or unmute everything if it is already solo."""
        if self.get(line_id) is None:
            return False
        if self.is_solo(line_id):
            for line in self._lines:
                line.muted = False
        else:
            for line in self._lines:
                line.muted = line.id != line_id
        self._fire(LineEvent(LineEventType.LINE_UPDATED, line_id, data={'solo': True}))
        return True

    # ---- Events -------------------------------------------------------------

    def subscribe(
        self,
        callback: Callable[[LineEvent], None],
        event_type: Optional[str] = None,
    ) -> None:
        """Subscribe to registry events.

        If ``event_type`` is None, the callback receives all events.
        """
        key = event_type or "__all__"
        self._subscribers.setdefault(key, []).append(callback)

    def unsubscribe(
        self,
        callback: Callable[[LineEvent], None],
        event_type: Optional[str] = None,
    ) -> None:
        key = event_type or "__all__"
        listeners = self._subscribers.get(key, [])
        if callback in listeners:
            listeners.remove(callback)

    def _fire(self, event: LineEvent) -> None:
        for cb in self._subscribers.get(event.event_type, []) + self._subscribers.get("__all__", []):
            try:
                cb(event)
            except Exception:
                logger.exception("Error in line registry subscriber for %s", event.event_type)

    # ---- Persistence --------------------------------------------------------

    def to_list(self) -> list[dict]:
        return [line.to_dict() for line in self._lines]

    def from_list(self, data: list) -> int:
        """Replace the registry contents with lines from ``data``.

        Entries that are not dicts, lack string ``id``/``name``/``color``
        or whose ``blocks`` is not a list are skipped.  At most MAX_LINES
        lines are loaded.  Returns the number loaded.
        """
        lines: list[WaveformLine] = []
        for i, entry in enumerate(data or []):
            if not _valid_line_entry(entry):
                logger.warning("Skipping malformed line entry %d", i)
                continue
            try:
                lines.append(WaveformLine.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping line entry %d: %s", i, e)
        if len(lines) > MAX_LINES:
            logger.warning("Dropping %d lines beyond the limit of %d",
                           len(lines) - MAX_LINES, MAX_LINES)
            lines = lines[:MAX_LINES]
        self._lines = lines
        logger.info("Loaded %d line(s)", len(lines))
        self._fire(LineEvent(LineEventType.CLEARED))
        return len(lines)

    def save(self, path: str) -> None:
        """Write the lines to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_list(), f, indent=2)
        logger.info("Saved %d line(s) to %s", len(self._lines), path)

    def load(self, path: str) -> int:
        """Load lines from a JSON file written by ``save``.

        A file that is not valid JSON or does not hold a list leaves the
        registry empty and returns 0.
        """
        try:
            with open(path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Corrupt line file %s: %s", path, e)
            data = []
        if not isinstance(data, list):
            logger.error("Line file %s does not contain a list", path)
            data = []
        return self.from_list(data)


def _valid_line_entry(entry) -> bool:
    return (
        isinstance(entry, dict)
        and isinstance(entry.get('id'), str)
        and isinstance(entry.get('name'), str)
        and isinstance(entry.get('color'), str)
        and isinstance(entry.get('blocks'), list)
    )
