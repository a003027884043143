"""
Sample detector.

Always reports exactly one fake detection. Useful to check that the frame
cycle, identity assignment and output wiring work end to end.
"""
from typing import List, Optional, Sequence

import numpy as np
from loguru import logger

from objdet.core.contracts import Detection, Prediction, Rectangle
from .base import BaseDetector


class SampleDetector(BaseDetector):
    """Fake detector returning one fixed box per frame."""

    def __init__(
        self,
        bbox: Optional[Rectangle] = None,
        class_id: int = 1,
        confidence: float = 1.0,
    ):
        self.bbox = bbox or Rectangle(x=50, y=50, width=100, height=100)
        self.class_id = class_id
        self.confidence = confidence

    def detect(
        self,
        image: np.ndarray,
        roi: Optional[Rectangle] = None,
        predictions: Sequence[Prediction] = (),
    ) -> List[Detection]:
        h, w = image.shape[:2]
        x_max = min(self.bbox.x + self.bbox.width, w)
        y_max = min(self.bbox.y + self.bbox.height, h)
        x_min = min(self.bbox.x, x_max)
        y_min = min(self.bbox.y, y_max)

        bbox = Rectangle.from_xyxy(x_min, y_min, x_max, y_max)
        if bbox.area == 0:
            logger.warning(f"Sample box {self.bbox} lies outside the {w}x{h} frame")

        return [Detection(
            class_id=self.class_id,
            bbox=bbox,
            confidence=self.confidence,
            payload={"detector": "sample"},
        )]
