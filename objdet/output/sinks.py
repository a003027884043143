"""
Basic output sinks: log lines, JSON lines and fan-out.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Sequence, Union

from loguru import logger

from objdet.core.contracts import FrameData, FrameResult
from .base import BaseOutputSink


class LoggingSink(BaseOutputSink):
    """Writes one summary line per frame to the log."""

    def __init__(self, level: str = "INFO"):
        self.level = level

    def emit(self, result: FrameResult, frame: Optional[FrameData] = None) -> None:
        objects = ", ".join(
            f"{d.identity}:{d.class_id}" for d in result.detections
        ) or "none"
        logger.log(
            self.level,
            f"Frame {result.frame_id}: {len(result.detections)} objects [{objects}] "
            f"new={result.new_identities} latency={result.latency_ms:.1f}ms",
        )


class JsonLinesSink(BaseOutputSink):
    """Appends one JSON record per frame to a file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a", encoding="utf-8")
        logger.info(f"Writing detections to {self.path}")

    def emit(self, result: FrameResult, frame: Optional[FrameData] = None) -> None:
        self._file.write(json.dumps(result.to_dict(), default=str) + "\n")
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()


class CompositeSink(BaseOutputSink):
    """Forwards every result to several sinks in order."""

    def __init__(self, sinks: Sequence[BaseOutputSink]):
        self.sinks = list(sinks)

    def emit(self, result: FrameResult, frame: Optional[FrameData] = None) -> None:
        for sink in self.sinks:
            sink.emit(result, frame)

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()
