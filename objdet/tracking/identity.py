"""
Identity assignment with a persistent wrap-around counter.

Guarantees:
- Every detection leaving the assigner carries a non-negative identity
- Unmatched detections of the same batch never share a fresh identity
- The counter wraps to 1 after reaching its maximum
"""

from __future__ import annotations

import threading
from typing import Sequence

from loguru import logger

from objdet.core.contracts import Detection, Prediction, Match, AssignmentResult


DEFAULT_MAX_IDENTITY = 100000


class IdentityCounter:
    """
    Monotonic identity source over the range [1, max_value].

    Increment and wrap-around happen under one lock, so a counter can be
    shared by several pipelines that need a common identity space.
    """

    def __init__(self, max_value: int = DEFAULT_MAX_IDENTITY, start: int = 0):
        """
        Initialize counter.

        Args:
            max_value: Largest identity handed out before wrapping to 1
            start: Last identity considered already used (0 = none)
        """
        if max_value < 1:
            raise ValueError(f"max_value must be at least 1, got {max_value}")
        if not 0 <= start <= max_value:
            raise ValueError(f"start must be within [0, {max_value}], got {start}")

        self.max_value = max_value
        self._start = start
        self._value = start
        self._lock = threading.Lock()

    def next_identity(self) -> int:
        """Advance the counter and return the new identity."""
        with self._lock:
            if self._value >= self.max_value:
                logger.info(f"Identity counter wrapped after {self.max_value}")
                self._value = 0
            self._value += 1
            return self._value

    def reset(self):
        """Return to the initial value."""
        with self._lock:
            self._value = self._start

    @property
    def value(self) -> int:
        """Last identity handed out (0 before the first one)."""
        return self._value


class IdentityAssigner:
    """
    Sets the identity of each detection from its match.

    A matched detection continues the identity of its prediction; an
    unmatched detection is considered a new object and gets a fresh one.
    """

    def __init__(self, counter: IdentityCounter):
        self.counter = counter

    def assign(
        self,
        detections: Sequence[Detection],
        matches: Sequence[Match],
        predictions: Sequence[Prediction],
    ) -> AssignmentResult:
        """
        Assign identities in place.

        Args:
            detections: Detections of the current frame (mutated)
            matches: Matcher output, one per detection
            predictions: Predictions the matches refer to

        Returns:
            AssignmentResult listing minted and inherited identities
        """
        if len(matches) != len(detections):
            raise ValueError(
                f"Expected one match per detection, got {len(matches)} "
                f"matches for {len(detections)} detections"
            )

        result = AssignmentResult()

        for detection, match in zip(detections, matches):
            if match.is_matched:
                identity = predictions[match.prediction_index].identity
                detection.identity = identity
                result.inherited_identities.append(identity)
                result.inherited.append(True)
            else:
                identity = self.counter.next_identity()
                detection.identity = identity
                result.new_identities.append(identity)
                result.inherited.append(False)
                logger.debug(f"New object identity: {identity} (class {detection.class_id})")

        return result
