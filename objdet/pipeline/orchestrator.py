"""
Frame Cycle Orchestrator.

Executes the identity pipeline once per arriving frame, in strict order:

1. Fetch predictions for the frame timestamp
2. Run the detector (predictions passed as a hint)
3. Match detections against predictions
4. Assign identities (inherit or mint)
5. Emit the identified detections

A frame is fully processed before the next one is read. The detection and
prediction lists live for exactly one cycle.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, List, Dict, Any, Tuple
from loguru import logger

from objdet.core.contracts import (
    FrameData,
    FrameResult,
    PipelineState,
    Prediction,
    Rectangle,
)
from objdet.core.errors import ConfigError, FrameDecodeError, ServiceUnavailable
from objdet.capture.base import BaseFrameSource
from objdet.detection.base import BaseDetector
from objdet.prediction.base import BasePredictionProvider, ANY
from objdet.output.base import BaseOutputSink
from objdet.matching.matcher import Matcher, MATCH_STRATEGIES
from objdet.tracking.identity import IdentityCounter, IdentityAssigner, DEFAULT_MAX_IDENTITY


@dataclass
class PipelineConfig:
    """Configuration for the frame cycle."""
    # Matching
    min_overlap_percent: int = 50
    match_strategy: str = "greedy"

    # Identity counter wrap-around
    max_identity_value: int = DEFAULT_MAX_IDENTITY

    # Prediction request filters (-1 = any)
    prediction_object_id: int = ANY
    prediction_class_id: int = ANY

    # Detector search region (None = whole frame)
    roi: Optional[Rectangle] = None

    # Warn when a frame takes longer than this
    latency_budget_ms: float = 100.0

    def __post_init__(self):
        if not 0 <= self.min_overlap_percent <= 100:
            raise ConfigError(
                f"min_overlap_percent must be within [0, 100], got {self.min_overlap_percent}"
            )
        if self.match_strategy not in MATCH_STRATEGIES:
            raise ConfigError(f"Unknown match strategy '{self.match_strategy}'")
        if self.max_identity_value < 1:
            raise ConfigError(
                f"max_identity_value must be at least 1, got {self.max_identity_value}"
            )
        if self.latency_budget_ms <= 0:
            raise ConfigError(f"latency_budget_ms must be positive, got {self.latency_budget_ms}")

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> PipelineConfig:
        """Build from the nested settings dict loaded from YAML."""
        matching = settings.get('matching') or {}
        identity = settings.get('identity') or {}
        prediction = settings.get('prediction') or {}
        detector = settings.get('detector') or {}
        pipeline = settings.get('pipeline') or {}

        roi = detector.get('roi')
        if roi is not None:
            try:
                roi = Rectangle(*roi) if isinstance(roi, (list, tuple)) else Rectangle.from_dict(roi)
            except (TypeError, KeyError, ValueError) as e:
                raise ConfigError(f"Invalid detector roi {roi!r}: {e}") from e

        try:
            return cls(
                min_overlap_percent=int(matching.get('min_overlap_percent', 50)),
                match_strategy=str(matching.get('strategy', 'greedy')),
                max_identity_value=int(identity.get('max_identity_value', DEFAULT_MAX_IDENTITY)),
                prediction_object_id=int(prediction.get('object_id', ANY)),
                prediction_class_id=int(prediction.get('class_id', ANY)),
                roi=roi,
                latency_budget_ms=float(pipeline.get('latency_budget_ms', 100.0)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid pipeline settings: {e}") from e


class FrameCycleOrchestrator:
    """
    Main frame cycle orchestrator.

    Coordinates detector, prediction provider, matcher, identity assigner
    and output sink.

    Guarantees:
    - Cycle order is NEVER reordered
    - One frame at a time, identities assigned in frame order
    - Malformed frames are skipped, provider outages degrade to "all new"
    """

    def __init__(
        self,
        detector: BaseDetector,
        prediction_provider: BasePredictionProvider,
        sink: BaseOutputSink,
        config: Optional[PipelineConfig] = None,
        counter: Optional[IdentityCounter] = None,
        matcher: Optional[Matcher] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            detector: Object detector
            prediction_provider: Source of predicted object positions
            sink: Receiver of identified detections
            config: Pipeline configuration
            counter: Identity counter; a fresh one per orchestrator if omitted
            matcher: Matcher; built from config if omitted
        """
        self.config = config or PipelineConfig()

        self._detector = detector
        self._provider = prediction_provider
        self._sink = sink

        self._counter = counter or IdentityCounter(max_value=self.config.max_identity_value)
        self._matcher = matcher or Matcher(
            min_overlap_percent=self.config.min_overlap_percent,
            strategy=self.config.match_strategy,
        )
        self._assigner = IdentityAssigner(self._counter)

        self._state = PipelineState()
        self._end_of_stream = False

        # Performance tracking
        self._frame_latencies: List[float] = []

        logger.info(
            f"Frame cycle initialized (min overlap {self._matcher.min_overlap_percent}%, "
            f"{self._matcher.strategy} matching, identities up to {self._counter.max_value})"
        )

    def process_frame(self, frame: FrameData) -> FrameResult:
        """
        Process a single decoded frame.

        Cycle order (NEVER REORDER):
        1. Fetch predictions
        2. Detect
        3. Match
        4. Assign identities
        5. Emit

        Returns:
            FrameResult with every detection identified
        """
        cycle_start = time.perf_counter()

        # ============================================================
        # STEP 1: Fetch predictions
        # ============================================================
        predictions, predictions_available = self._fetch_predictions(frame)

        # ============================================================
        # STEP 2: Detect (predictions as hint)
        # ============================================================
        detections = list(self._detector.detect(frame.image, self.config.roi, predictions))

        # ============================================================
        # STEP 3: Match detections and predictions
        # ============================================================
        matches = self._matcher.match(detections, predictions)

        # ============================================================
        # STEP 4: Assign identities
        # ============================================================
        assignment = self._assigner.assign(detections, matches, predictions)

        latency = (time.perf_counter() - cycle_start) * 1000

        result = FrameResult(
            frame_id=frame.frame_id,
            timestamp_ms=frame.timestamp_ms,
            detections=detections,
            predictions_available=predictions_available,
            new_identities=assignment.new_identities,
            inherited_identities=assignment.inherited_identities,
            inherited=assignment.inherited,
            latency_ms=latency,
        )

        # ============================================================
        # STEP 5: Emit
        # ============================================================
        self._sink.emit(result, frame)

        self._track_latency(latency)
        self._state.current_frame_id = frame.frame_id
        self._state.current_timestamp_ms = frame.timestamp_ms
        self._state.frames_processed += 1

        return result

    def step(self, source: BaseFrameSource) -> Optional[FrameResult]:
        """
        Read one frame from a source and process it.

        Returns:
            FrameResult, or None if the frame was skipped or the stream ended
            (see `end_of_stream`)
        """
        try:
            frame = source.read_frame()
        except FrameDecodeError as e:
            self._state.frames_skipped += 1
            self._state.last_failure_reason = str(e)
            logger.warning(f"Skipping frame {e.frame_id}: {e}")
            return None

        if frame is None:
            self._end_of_stream = True
            return None

        return self.process_frame(frame)

    def run(self, source: BaseFrameSource, max_frames: Optional[int] = None) -> PipelineState:
        """
        Process frames until the source ends or `max_frames` were read.

        Returns:
            Final pipeline state
        """
        frames_read = 0
        self._end_of_stream = False

        # Provider and sink are released on every exit path
        try:
            if not source.start():
                logger.error("Failed to start frame source")
                return self._state

            if not self._detector.initialize():
                logger.error("Failed to initialize detector")
                return self._state

            logger.info("Frame cycle started")
            while max_frames is None or frames_read < max_frames:
                self.step(source)
                if self._end_of_stream:
                    break
                frames_read += 1
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            source.stop()
            self.shutdown()

        logger.info(
            f"Frame cycle stopped: {self._state.frames_processed} processed, "
            f"{self._state.frames_skipped} skipped, "
            f"{self._state.prediction_failures} prediction failures"
        )
        return self._state

    def shutdown(self):
        """Release detector, provider and sink."""
        self._detector.shutdown()
        self._provider.close()
        self._sink.close()

    def _fetch_predictions(self, frame: FrameData) -> Tuple[List[Prediction], bool]:
        """Ask the provider for predictions; an outage yields an empty set."""
        try:
            predictions = self._provider.predict(
                frame.timestamp_ms,
                self.config.prediction_object_id,
                self.config.prediction_class_id,
            )
        except ServiceUnavailable as e:
            self._state.prediction_failures += 1
            self._state.last_failure_reason = str(e)
            logger.warning(f"No predictions for frame {frame.frame_id}: {e}")
            return [], False

        return list(predictions), True

    def _track_latency(self, latency_ms: float):
        self._frame_latencies.append(latency_ms)
        if len(self._frame_latencies) > 100:
            self._frame_latencies.pop(0)

        self._state.last_frame_latency_ms = latency_ms

        if latency_ms > self.config.latency_budget_ms:
            logger.warning(
                f"Latency budget exceeded: {latency_ms:.1f}ms > "
                f"{self.config.latency_budget_ms}ms"
            )

    @property
    def state(self) -> PipelineState:
        """Get current pipeline state."""
        return self._state

    @property
    def counter(self) -> IdentityCounter:
        return self._counter

    @property
    def end_of_stream(self) -> bool:
        return self._end_of_stream

    @property
    def average_latency_ms(self) -> float:
        """Average frame latency over the last 100 frames."""
        if not self._frame_latencies:
            return 0.0
        return sum(self._frame_latencies) / len(self._frame_latencies)
