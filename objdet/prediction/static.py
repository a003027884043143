"""
Static prediction provider.

Serves a fixed prediction set, e.g. for replays and tests.
"""
from typing import List, Sequence

from objdet.core.contracts import Prediction
from .base import BasePredictionProvider, ANY, filter_predictions


class StaticPredictionProvider(BasePredictionProvider):
    """Returns the same predictions for every timestamp."""

    name = "static"

    def __init__(self, predictions: Sequence[Prediction] = ()):
        self._predictions = list(predictions)

    def set_predictions(self, predictions: Sequence[Prediction]):
        self._predictions = list(predictions)

    def predict(
        self,
        timestamp_ms: float,
        object_id: int = ANY,
        class_id: int = ANY,
    ) -> List[Prediction]:
        return filter_predictions(self._predictions, object_id, class_id)
