from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import Optional, TextIO

import numpy as np


class TransformSink(ABC):
    @abstractmethod
    def write_transform(self, label: str, marker_id: int, matrix: np.ndarray) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class ConsoleOutput(TransformSink):
    """Print every transform for a human to read."""

    def __init__(self, stream: Optional[TextIO] = None, precision: int = 6):
        self.stream = stream
        self.precision = precision

    def _out(self) -> TextIO:
        # resolve lazily so pytest's capsys sees the output
        return self.stream if self.stream is not None else sys.stdout

    @staticmethod
    def format_matrix(matrix: np.ndarray, precision: int = 6) -> str:
        return np.array2string(
            np.asarray(matrix),
            precision=precision,
            suppress_small=True,
            max_line_width=120,
        )

    def write_transform(self, label: str, marker_id: int, matrix: np.ndarray) -> None:
        out = self._out()
        out.write(f"{label} (marker {marker_id})\n")
        out.write(self.format_matrix(matrix, self.precision) + "\n")
        out.flush()

    def close(self) -> None:
        return None


class NullOutput(TransformSink):
    def write_transform(self, label: str, marker_id: int, matrix: np.ndarray) -> None:
        return None

    def close(self) -> None:
        return None
