"""
HTTP prediction provider.

Asks a remote tracker for predictions with one blocking POST per frame.

Request body:
    {"timestamp_ms": float, "object_id": int, "class_id": int}

Response body:
    {"predictions": [<detection record>, ...]}

The call is bounded by `timeout_s`; a stalled tracker costs at most that
long per frame and then the frame proceeds without predictions.
"""

from __future__ import annotations

from typing import List, Optional

import requests
from loguru import logger

from objdet.core.contracts import Prediction
from objdet.core.errors import ServiceUnavailable
from .base import BasePredictionProvider, ANY


class HttpPredictionProvider(BasePredictionProvider):
    """Remote prediction service client."""

    name = "http"

    def __init__(
        self,
        url: str,
        timeout_s: float = 0.5,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize client.

        Args:
            url: Prediction endpoint
            timeout_s: Connect/read timeout for one round-trip
            session: Optional pre-configured session
        """
        if timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {timeout_s}")

        self.url = url
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    def predict(
        self,
        timestamp_ms: float,
        object_id: int = ANY,
        class_id: int = ANY,
    ) -> List[Prediction]:
        request = {
            "timestamp_ms": timestamp_ms,
            "object_id": object_id,
            "class_id": class_id,
        }

        try:
            response = self._session.post(self.url, json=request, timeout=self.timeout_s)
            response.raise_for_status()
            body = response.json()
        except requests.Timeout as e:
            raise ServiceUnavailable(self.url, f"timed out after {self.timeout_s}s") from e
        except requests.RequestException as e:
            raise ServiceUnavailable(self.url, str(e)) from e
        except ValueError as e:
            raise ServiceUnavailable(self.url, f"invalid JSON response: {e}") from e

        try:
            predictions = [Prediction.from_dict(record) for record in body["predictions"]]
        except (KeyError, TypeError, ValueError) as e:
            raise ServiceUnavailable(self.url, f"malformed predictions: {e}") from e

        logger.debug(f"Received {len(predictions)} predictions from {self.url}")
        return predictions

    def close(self) -> None:
        self._session.close()
