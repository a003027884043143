"""
Last-seen prediction provider.

Zero-motion forecaster: predicts that every object is where it was last
emitted. It is also an output sink, so wiring it as both provider and sink
closes the detection -> prediction feedback loop without a separate tracker.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from loguru import logger

from objdet.core.contracts import FrameData, FrameResult, Prediction
from objdet.output.base import BaseOutputSink
from .base import BasePredictionProvider, ANY, filter_predictions


class LastSeenPredictionProvider(BasePredictionProvider, BaseOutputSink):
    """
    Predicts last emitted positions.

    Objects absent for more than `max_age_frames` emitted frames are
    forgotten.
    """

    name = "last_seen"

    def __init__(self, max_age_frames: int = 1):
        """
        Initialize provider.

        Args:
            max_age_frames: Frames an object is still predicted after it was
                last emitted (1 = only the previous frame)
        """
        if max_age_frames < 1:
            raise ValueError(f"max_age_frames must be at least 1, got {max_age_frames}")
        self.max_age_frames = max_age_frames

        # identity -> last emitted position / frames since emitted
        self._objects: Dict[int, Prediction] = {}
        self._ages: Dict[int, int] = {}

    def emit(self, result: FrameResult, frame: Optional[FrameData] = None) -> None:
        """Remember copies of the emitted detections."""
        for identity in list(self._ages):
            self._ages[identity] += 1

        for detection in result.detections:
            if not detection.has_identity:
                continue
            self._objects[detection.identity] = Prediction.from_detection(detection)
            self._ages[detection.identity] = 0

        expired = [i for i, age in self._ages.items() if age >= self.max_age_frames]
        for identity in expired:
            del self._objects[identity]
            del self._ages[identity]

        if expired:
            logger.debug(f"Forgot objects: {expired}")

    def predict(
        self,
        timestamp_ms: float,
        object_id: int = ANY,
        class_id: int = ANY,
    ) -> List[Prediction]:
        # Copies, so callers never alias the stored state
        predictions = [
            Prediction.from_detection(p) for p in self._objects.values()
        ]
        return filter_predictions(predictions, object_id, class_id)

    def reset(self):
        self._objects.clear()
        self._ages.clear()

    @property
    def known_identities(self) -> List[int]:
        return sorted(self._objects)
