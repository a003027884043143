"""
Video Capture from a camera or a video file.

Handles:
- Webcam / video file acquisition
- Frame numbering and timestamps
- Format conversion to RGB
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional, Tuple, Union
import cv2
from loguru import logger

from objdet.core.contracts import FrameData
from objdet.core.errors import FrameDecodeError
from .base import BaseFrameSource, validate_frame


class VideoCapture(BaseFrameSource):
    """
    OpenCV video capture.

    A failed read on a video file is the end of the stream. On a camera it
    is reported as a FrameDecodeError until `max_consecutive_failures`
    reads in a row have failed, then the stream ends.
    """

    def __init__(
        self,
        source: Union[int, str] = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
        fps: Optional[int] = None,
        max_consecutive_failures: int = 30,
    ):
        """
        Initialize video capture.

        Args:
            source: Camera device index or video file path
            width: Requested capture width (camera only)
            height: Requested capture height (camera only)
            fps: Requested frames per second (camera only)
            max_consecutive_failures: Camera read failures tolerated in a row
        """
        self.source = source
        self.width = width
        self.height = height
        self.fps = fps
        self.max_consecutive_failures = max_consecutive_failures

        self._capture: Optional[cv2.VideoCapture] = None
        self._is_running = False
        self._frame_count: int = 0
        self._consecutive_failures: int = 0

    @property
    def is_file(self) -> bool:
        return isinstance(self.source, str) and not self.source.isdigit()

    def start(self) -> bool:
        """
        Start video capture.

        Returns:
            True if started successfully
        """
        if self._is_running:
            return True

        if self.is_file and not Path(self.source).exists():
            logger.error(f"Video file not found: {self.source}")
            return False

        source = int(self.source) if isinstance(self.source, str) and self.source.isdigit() else self.source
        self._capture = cv2.VideoCapture(source)

        if not self._capture.isOpened():
            logger.error(f"Failed to open video source {self.source}")
            self._capture = None
            return False

        if not self.is_file:
            if self.width:
                self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            if self.height:
                self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
            if self.fps:
                self._capture.set(cv2.CAP_PROP_FPS, self.fps)

        actual_width, actual_height = self.frame_size
        logger.info(
            f"Video capture started: {self.source} {actual_width}x{actual_height} "
            f"@ {self._capture.get(cv2.CAP_PROP_FPS)}fps"
        )

        self._is_running = True
        return True

    def stop(self):
        """Stop video capture."""
        self._is_running = False

        if self._capture is not None:
            self._capture.release()
            self._capture = None

        logger.info("Video capture stopped")

    def read_frame(self) -> Optional[FrameData]:
        """
        Read a frame from the capture.

        Returns:
            RGB FrameData, or None at end of stream
        """
        if not self._is_running or self._capture is None:
            return None

        ret, frame = self._capture.read()
        self._frame_count += 1

        if not ret or frame is None:
            if self.is_file:
                logger.info(f"End of video after {self._frame_count - 1} frames")
                return None

            self._consecutive_failures += 1
            if self._consecutive_failures >= self.max_consecutive_failures:
                logger.error(
                    f"Camera returned no frame {self._consecutive_failures} times in a row"
                )
                return None
            raise FrameDecodeError("Camera returned no frame", self._frame_count)

        self._consecutive_failures = 0
        validate_frame(frame, self._frame_count)

        return FrameData(
            frame_id=self._frame_count,
            timestamp_ms=time.time() * 1000,
            image=cv2.cvtColor(frame, cv2.COLOR_BGR2RGB),
        )

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def frame_size(self) -> Tuple[int, int]:
        """Get actual frame size (width, height)."""
        if self._capture is not None:
            return (
                int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
                int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            )
        return (self.width or 0, self.height or 0)
