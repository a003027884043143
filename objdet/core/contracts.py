"""
Core data contracts for the Detection Identity Engine.

All components exchange these records:
- Rectangle: axis-aligned box in image pixel units
- Detection / Prediction: class-labelled boxes with an identity slot
- Match: outcome of associating one detection with the predictions
- FrameResult: what an output sink receives once per frame
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple, Union
import numpy as np
from numpy.typing import NDArray


Number = Union[int, float]


# ============================================================
# GEOMETRY
# ============================================================

@dataclass
class Rectangle:
    """Axis-aligned bounding box given by its top-left corner and size."""
    x: Number
    y: Number
    width: Number
    height: Number

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Rectangle size must be non-negative, got {self.width}x{self.height}"
            )

    @property
    def area(self) -> Number:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def intersection(self, other: Rectangle) -> Number:
        """Area shared with another rectangle (0 when disjoint)."""
        x_left = max(self.x, other.x)
        y_top = max(self.y, other.y)
        x_right = min(self.x + self.width, other.x + other.width)
        y_bottom = min(self.y + self.height, other.y + other.height)

        if x_right <= x_left or y_bottom <= y_top:
            return 0

        return (x_right - x_left) * (y_bottom - y_top)

    def to_xyxy(self) -> Tuple[Number, Number, Number, Number]:
        """Convert to (x_min, y_min, x_max, y_max)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @classmethod
    def from_xyxy(cls, x_min: Number, y_min: Number, x_max: Number, y_max: Number) -> Rectangle:
        return cls(x=x_min, y=y_min, width=x_max - x_min, height=y_max - y_min)

    def to_dict(self) -> Dict[str, Number]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Rectangle:
        return cls(
            x=data["x"],
            y=data["y"],
            width=data["width"],
            height=data["height"],
        )


# ============================================================
# DETECTIONS
# ============================================================

@dataclass
class Detection:
    """
    An object found by the detector in the current frame.

    `identity` is None until the identity assigner has processed the
    detection. `payload` carries detector-specific data untouched.
    """
    class_id: int
    bbox: Rectangle
    identity: Optional[int] = None
    confidence: float = 1.0
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_identity(self) -> bool:
        return self.identity is not None and self.identity >= 0

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-compatible record."""
        return {
            "identity": self.identity,
            "class_id": self.class_id,
            "bbox": self.bbox.to_dict(),
            "confidence": float(self.confidence),
            "payload": {
                key: value.item() if isinstance(value, np.generic) else value
                for key, value in self.payload.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Detection:
        return cls(
            class_id=int(data["class_id"]),
            bbox=Rectangle.from_dict(data["bbox"]),
            identity=data.get("identity"),
            confidence=float(data.get("confidence", 1.0)),
            payload=dict(data.get("payload") or {}),
        )


@dataclass
class Prediction(Detection):
    """
    Forecast position of a previously seen object.

    Structurally a Detection, but always carries a valid identity.
    """

    def __post_init__(self):
        if self.identity is None or self.identity < 0:
            raise ValueError(f"Prediction requires a non-negative identity, got {self.identity}")

    @classmethod
    def from_detection(cls, detection: Detection) -> Prediction:
        return cls(
            class_id=detection.class_id,
            bbox=Rectangle(**detection.bbox.to_dict()),
            identity=detection.identity,
            confidence=detection.confidence,
            payload=dict(detection.payload),
        )


@dataclass
class Match:
    """
    Association outcome for one detection.

    `prediction_index` is None when no prediction qualified; one Match
    exists per detection, in detection order.
    """
    detection_index: int
    prediction_index: Optional[int] = None
    overlap_score: float = 0.0

    @property
    def is_matched(self) -> bool:
        return self.prediction_index is not None


# ============================================================
# FRAME RECORDS
# ============================================================

@dataclass
class FrameData:
    """A decoded input frame."""
    frame_id: int
    timestamp_ms: float
    image: NDArray[np.uint8]  # H x W x 3

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) of the image."""
        return (int(self.image.shape[1]), int(self.image.shape[0]))


@dataclass
class AssignmentResult:
    """Result from the identity assigner."""
    new_identities: List[int] = field(default_factory=list)
    inherited_identities: List[int] = field(default_factory=list)
    # One flag per detection, in detection order
    inherited: List[bool] = field(default_factory=list)


@dataclass
class FrameResult:
    """
    Final output of a single frame cycle, handed to the output sink.
    """
    frame_id: int
    timestamp_ms: float
    detections: List[Detection]

    # Whether the prediction provider answered this frame
    predictions_available: bool = True

    new_identities: List[int] = field(default_factory=list)
    inherited_identities: List[int] = field(default_factory=list)
    inherited: List[bool] = field(default_factory=list)

    # Performance
    latency_ms: float = 0.0

    def is_inherited(self, index: int) -> bool:
        """Whether detection `index` continued a predicted identity."""
        return index < len(self.inherited) and self.inherited[index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_id": self.frame_id,
            "timestamp_ms": self.timestamp_ms,
            "predictions_available": self.predictions_available,
            "detections": [d.to_dict() for d in self.detections],
        }


@dataclass
class PipelineState:
    """
    Running counters of the frame cycle.

    Used for:
    - Observability of recovered errors
    - Debugging
    """
    current_frame_id: int = 0
    current_timestamp_ms: float = 0.0

    frames_processed: int = 0
    frames_skipped: int = 0
    prediction_failures: int = 0

    last_frame_latency_ms: float = 0.0
    last_failure_reason: Optional[str] = None
