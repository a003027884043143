"""
Base class for output sinks.

A sink receives the fully identified detections of every processed frame,
together with the frame itself for sinks that draw on it.
"""
from abc import ABC, abstractmethod
from typing import Optional

from objdet.core.contracts import FrameData, FrameResult


class BaseOutputSink(ABC):
    """Abstract base class for output sinks."""

    @abstractmethod
    def emit(self, result: FrameResult, frame: Optional[FrameData] = None) -> None:
        """Consume the result of one frame cycle.

        Args:
            result: Identified detections plus frame metadata
            frame: The originating frame, if the sink needs the image
        """
        pass

    def close(self) -> None:
        """Flush and release resources."""
