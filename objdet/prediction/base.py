"""
Base class for prediction providers.

A prediction provider forecasts where previously seen objects will be in
the current frame. Calls are blocking: the frame cycle waits for the answer.

Filters follow the request convention of the tracker service: -1 means
"any object" / "any class".
"""
from abc import ABC, abstractmethod
from typing import Iterable, List

from objdet.core.contracts import Prediction

ANY = -1


class BasePredictionProvider(ABC):
    """Abstract base class for prediction providers."""

    name = "prediction"

    @abstractmethod
    def predict(
        self,
        timestamp_ms: float,
        object_id: int = ANY,
        class_id: int = ANY,
    ) -> List[Prediction]:
        """Predict object positions for a timestamp.

        Args:
            timestamp_ms: Timestamp of the frame being processed
            object_id: Restrict to one object identity, or -1 for all
            class_id: Restrict to one class, or -1 for all

        Returns:
            Predictions, each with a valid identity

        Raises:
            ServiceUnavailable: If the round-trip cannot complete
        """
        pass

    def close(self) -> None:
        """Release connections held by the provider."""


def filter_predictions(
    predictions: Iterable[Prediction],
    object_id: int = ANY,
    class_id: int = ANY,
) -> List[Prediction]:
    """Apply object/class filters to a prediction set."""
    return [
        p for p in predictions
        if (object_id == ANY or p.identity == object_id)
        and (class_id == ANY or p.class_id == class_id)
    ]
