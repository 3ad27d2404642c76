import re
import time
from typing import Any

import cv2

from ..dm_types import Frame


def parse_source(source: int | str) -> int | str:
    """Device indices may arrive as strings from the command line."""
    if isinstance(source, str):
        s = source.strip()
        if s.isdigit():
            return int(s)
        match = re.match(r"^/dev/video(\d+)$", s)
        if match:
            return int(match.group(1))
        return s
    return int(source)


class VideoCapture:
    def __init__(self, source: int | str = 0):
        self.source = parse_source(source)
        self.cap: Any = None
        self.idx = 0

    @property
    def name(self) -> str:
        if isinstance(self.source, int):
            return f"cam{self.source}"
        return str(self.source).rsplit("/", 1)[-1] or str(self.source)

    def start(self) -> None:
        self.cap = cv2.VideoCapture(self.source)
        if not self.cap.isOpened():
            raise RuntimeError(f"failed to open video input: {self.source}")

    def next_frame(self) -> Frame | None:
        ok, img = self.cap.read()
        if not ok:
            return None
        self.idx += 1
        ts = time.strftime("%Y-%m-%dT%H:%M:%S")
        return Frame(self.idx, ts, img)

    def stop(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None
