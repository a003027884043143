"""
Contour-based detector.

Finds object candidates with edge detection and external contours. Every
blob above `min_area` becomes one detection of a fixed class.
"""

from __future__ import annotations

from typing import List, Optional, Sequence
import cv2
import numpy as np
from numpy.typing import NDArray
from loguru import logger

from objdet.core.contracts import Detection, Prediction, Rectangle
from .base import BaseDetector


class ContourDetector(BaseDetector):
    """
    Edge + contour detector.

    Predictions are accepted as a hint but not used.
    """

    def __init__(
        self,
        min_area: float = 400.0,
        max_objects: int = 20,
        class_id: int = 1,
        canny_low: int = 50,
        canny_high: int = 150,
    ):
        """
        Initialize contour detector.

        Args:
            min_area: Minimum contour area in pixels
            max_objects: Maximum detections per frame (largest first)
            class_id: Class assigned to every detection
            canny_low: Lower Canny hysteresis threshold
            canny_high: Upper Canny hysteresis threshold
        """
        self.min_area = min_area
        self.max_objects = max_objects
        self.class_id = class_id
        self.canny_low = canny_low
        self.canny_high = canny_high

    def detect(
        self,
        image: NDArray[np.uint8],
        roi: Optional[Rectangle] = None,
        predictions: Sequence[Prediction] = (),
    ) -> List[Detection]:
        h, w = image.shape[:2]

        # Restrict the search to the region of interest
        x_off, y_off = 0, 0
        region = image
        if roi is not None:
            x_off = int(max(0, roi.x))
            y_off = int(max(0, roi.y))
            x_end = int(min(w, roi.x + roi.width))
            y_end = int(min(h, roi.y + roi.height))
            if x_end <= x_off or y_end <= y_off:
                return []
            region = image[y_off:y_end, x_off:x_end]

        gray = cv2.cvtColor(region, cv2.COLOR_RGB2GRAY)
        edges = cv2.Canny(gray, self.canny_low, self.canny_high)

        # Dilate to connect edges
        kernel = np.ones((5, 5), np.uint8)
        edges = cv2.dilate(edges, kernel, iterations=2)

        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        candidates = []
        for contour in contours:
            area = cv2.contourArea(contour)
            if area < self.min_area:
                continue
            candidates.append((area, cv2.boundingRect(contour)))

        candidates.sort(key=lambda c: c[0], reverse=True)

        detections = []
        for area, (x, y, bw, bh) in candidates[:self.max_objects]:
            detections.append(Detection(
                class_id=self.class_id,
                bbox=Rectangle(x=x + x_off, y=y + y_off, width=bw, height=bh),
                confidence=0.6,
                payload={"detector": "contour", "contour_area": float(area)},
            ))

        if len(candidates) > self.max_objects:
            logger.debug(f"Dropped {len(candidates) - self.max_objects} small contours")

        return detections
