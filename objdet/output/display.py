"""
OpenCV window sink.

Draws every detection box with its identity on a copy of the frame.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from objdet.core.contracts import FrameData, FrameResult
from .base import BaseOutputSink

# BGR
INHERITED_COLOR = (0, 255, 0)
NEW_COLOR = (0, 200, 255)


def draw_detections(image: np.ndarray, result: FrameResult) -> np.ndarray:
    """Return a BGR copy of an RGB image with boxes and identities drawn."""
    canvas = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)

    for index, detection in enumerate(result.detections):
        x_min, y_min, x_max, y_max = (int(v) for v in detection.bbox.to_xyxy())
        color = INHERITED_COLOR if result.is_inherited(index) else NEW_COLOR
        cv2.rectangle(canvas, (x_min, y_min), (x_max, y_max), color, 2)
        cv2.putText(
            canvas, f"#{detection.identity} c{detection.class_id}", (x_min, max(12, y_min - 5)),
            cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1
        )

    if not result.predictions_available:
        cv2.putText(
            canvas, "NO PREDICTIONS", (10, 20),
            cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 255), 2
        )

    return canvas


class OpenCVDisplaySink(BaseOutputSink):
    """Shows identified detections in an OpenCV window."""

    def __init__(self, window_name: str = "Detection identities"):
        self.window_name = window_name
        self._window_created = False

    def emit(self, result: FrameResult, frame: Optional[FrameData] = None) -> None:
        if frame is None:
            return

        if not self._window_created:
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
            self._window_created = True

        cv2.imshow(self.window_name, draw_detections(frame.image, result))
        # Process window events
        cv2.waitKey(1)

    def close(self) -> None:
        if self._window_created:
            cv2.destroyWindow(self.window_name)
            self._window_created = False
