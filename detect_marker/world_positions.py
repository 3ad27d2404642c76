"""
World positions for markers, supplied independently of the frame loop.

Positions come from config or from a background reader on stdin. The frame
loop only ever calls ``WorldPositionRegistry.get`` and never waits for input.
"""

from __future__ import annotations

import logging
import re
import sys
import threading
from typing import Optional, TextIO

import numpy as np

LOGGER = logging.getLogger(__name__)

_SEP = re.compile(r"[\s,]+")


def parse_position(text: str) -> np.ndarray:
    """Parse ``"x y z"`` (whitespace or comma separated) into a (3,) float array."""
    parts = [p for p in _SEP.split((text or "").strip()) if p]
    if len(parts) != 3:
        raise ValueError(f"expected three numbers 'x y z', got {text!r}")
    try:
        pos = np.array([float(p) for p in parts], dtype=np.float64)
    except ValueError as exc:
        raise ValueError(f"invalid world position {text!r}") from exc
    if not np.all(np.isfinite(pos)):
        raise ValueError(f"world position must be finite, got {text!r}")
    return pos


def parse_entry(text: str) -> tuple[Optional[int], np.ndarray]:
    """
    Parse one line of position input.

    ``"x y z"`` is a default position (marker id None). ``"id: x y z"`` or
    ``"id x y z"`` targets a single marker.
    """
    line = (text or "").strip()
    if ":" in line:
        head, _, rest = line.partition(":")
        try:
            marker_id = int(head.strip())
        except ValueError as exc:
            raise ValueError(f"invalid marker id in {text!r}") from exc
        return marker_id, parse_position(rest)

    parts = [p for p in _SEP.split(line) if p]
    if len(parts) == 4:
        try:
            marker_id = int(parts[0])
        except ValueError as exc:
            raise ValueError(f"invalid marker id in {text!r}") from exc
        return marker_id, parse_position(" ".join(parts[1:]))
    return None, parse_position(line)


class WorldPositionRegistry:
    """Thread-safe marker id -> world position map with an optional default."""

    def __init__(self, positions: Optional[dict] = None, default=None):
        self._lock = threading.Lock()
        self._positions: dict[int, np.ndarray] = {}
        self._default: Optional[np.ndarray] = None
        for marker_id, pos in (positions or {}).items():
            self.set(marker_id, pos)
        if default is not None:
            self.set_default(default)

    @staticmethod
    def _as_vec3(position) -> np.ndarray:
        if isinstance(position, str):
            return parse_position(position)
        vec = np.asarray(position, dtype=np.float64).reshape(-1)
        if vec.shape != (3,):
            raise ValueError(f"world position must have 3 components, got {vec.shape[0]}")
        return vec

    def set(self, marker_id: int, position) -> None:
        vec = self._as_vec3(position)
        with self._lock:
            self._positions[int(marker_id)] = vec

    def set_default(self, position) -> None:
        vec = self._as_vec3(position)
        with self._lock:
            self._default = vec

    def get(self, marker_id: int) -> Optional[np.ndarray]:
        with self._lock:
            pos = self._positions.get(int(marker_id), self._default)
            return None if pos is None else pos.copy()

    def clear(self) -> None:
        with self._lock:
            self._positions.clear()
            self._default = None

    def __contains__(self, marker_id) -> bool:
        with self._lock:
            return int(marker_id) in self._positions or self._default is not None


class StdinPositionReader:
    """Daemon thread feeding a registry from a line-oriented text stream."""

    def __init__(self, registry: WorldPositionRegistry, stream: Optional[TextIO] = None):
        self.registry = registry
        self.stream = stream if stream is not None else sys.stdin
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="world-position-reader", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def handle_line(self, line: str) -> bool:
        """Apply one input line. Returns False if the line was rejected."""
        if not line.strip():
            return False
        try:
            marker_id, pos = parse_entry(line)
        except ValueError as e:
            LOGGER.warning("Ignoring world position input: %s", e)
            return False
        if marker_id is None:
            self.registry.set_default(pos)
            LOGGER.info("default world position set to %s", pos.tolist())
        else:
            self.registry.set(marker_id, pos)
            LOGGER.info("world position for marker %d set to %s", marker_id, pos.tolist())
        return True

    def _run(self) -> None:
        for line in self.stream:
            if self._stop_event.is_set():
                break
            self.handle_line(line)
        LOGGER.debug("world position input closed")
