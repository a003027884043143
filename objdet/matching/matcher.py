"""
Overlap Matcher.

To each detection is assigned the most similar prediction or none, when no
prediction of the same class overlaps at least `min_overlap_percent` of both
the detection box and the prediction box.

Strategies:
- greedy: every detection picks its best prediction independently. A
  prediction may be claimed by several detections in the same frame.
- hungarian: one-to-one assignment maximizing total overlap over the
  qualifying pairs (scipy.optimize.linear_sum_assignment).
"""

from __future__ import annotations

from typing import List, Sequence
import numpy as np
from loguru import logger
from scipy.optimize import linear_sum_assignment

from objdet.core.contracts import Detection, Prediction, Match
from .overlap import overlap_ratio, meets_threshold


MATCH_STRATEGIES = ("greedy", "hungarian")

# Cost given to pairs that fail the class or threshold test
_FORBIDDEN_COST = 2.0


class Matcher:
    """
    Associates current detections with predicted positions.

    Guarantees:
    - One Match per detection, in detection order
    - Only same-class pairs above the threshold are ever matched
    - Deterministic: equal scores resolve to the lowest prediction index
    """

    def __init__(
        self,
        min_overlap_percent: int = 50,
        strategy: str = "greedy",
    ):
        """
        Initialize matcher.

        Args:
            min_overlap_percent: Minimum overlap (0-100) relative to both boxes
            strategy: "greedy" or "hungarian"
        """
        if strategy not in MATCH_STRATEGIES:
            available = ", ".join(MATCH_STRATEGIES)
            raise ValueError(f"Unknown match strategy '{strategy}'. Available: {available}")

        self.strategy = strategy
        self.min_overlap_percent = 0
        self.set_min_overlap(min_overlap_percent)

    def set_min_overlap(self, min_overlap_percent: int):
        """Set the minimum overlap percentage (0-100)."""
        if not 0 <= min_overlap_percent <= 100:
            raise ValueError(
                f"min_overlap_percent must be within [0, 100], got {min_overlap_percent}"
            )
        self.min_overlap_percent = min_overlap_percent

    def match(
        self,
        detections: Sequence[Detection],
        predictions: Sequence[Prediction],
    ) -> List[Match]:
        """
        Match detections against predictions.

        Args:
            detections: Detections of the current frame
            predictions: Predicted positions of known objects

        Returns:
            List of Match, same length and order as `detections`
        """
        if not detections:
            return []

        if not predictions:
            return [Match(detection_index=i) for i in range(len(detections))]

        if self.strategy == "hungarian":
            matches = self._match_hungarian(detections, predictions)
        else:
            matches = self._match_greedy(detections, predictions)

        matched_count = sum(1 for m in matches if m.is_matched)
        logger.debug(
            f"Matched {matched_count}/{len(detections)} detections "
            f"against {len(predictions)} predictions ({self.strategy})"
        )
        return matches

    def _qualifies(self, detection: Detection, prediction: Prediction) -> bool:
        return (
            prediction.class_id == detection.class_id
            and meets_threshold(detection.bbox, prediction.bbox, self.min_overlap_percent)
        )

    def _match_greedy(
        self,
        detections: Sequence[Detection],
        predictions: Sequence[Prediction],
    ) -> List[Match]:
        """Independent best prediction per detection."""
        matches = []

        for d_idx, detection in enumerate(detections):
            best_idx = None
            best_score = -1.0

            for p_idx, prediction in enumerate(predictions):
                if not self._qualifies(detection, prediction):
                    continue

                score = overlap_ratio(detection.bbox, prediction.bbox)
                # Strictly greater: first seen wins on ties
                if score > best_score:
                    best_score = score
                    best_idx = p_idx

            if best_idx is None:
                matches.append(Match(detection_index=d_idx))
            else:
                matches.append(Match(
                    detection_index=d_idx,
                    prediction_index=best_idx,
                    overlap_score=best_score,
                ))

        return matches

    def _match_hungarian(
        self,
        detections: Sequence[Detection],
        predictions: Sequence[Prediction],
    ) -> List[Match]:
        """Globally optimal one-to-one assignment."""
        scores = np.zeros((len(detections), len(predictions)))
        allowed = np.zeros((len(detections), len(predictions)), dtype=bool)

        for d_idx, detection in enumerate(detections):
            for p_idx, prediction in enumerate(predictions):
                if self._qualifies(detection, prediction):
                    allowed[d_idx, p_idx] = True
                    scores[d_idx, p_idx] = overlap_ratio(detection.bbox, prediction.bbox)

        cost_matrix = np.where(allowed, 1.0 - scores, _FORBIDDEN_COST)
        row_ind, col_ind = linear_sum_assignment(cost_matrix)

        matches = [Match(detection_index=i) for i in range(len(detections))]
        for d_idx, p_idx in zip(row_ind, col_ind):
            if not allowed[d_idx, p_idx]:
                continue
            matches[d_idx] = Match(
                detection_index=int(d_idx),
                prediction_index=int(p_idx),
                overlap_score=float(scores[d_idx, p_idx]),
            )

        return matches
