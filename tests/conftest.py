"""Pytest configuration and shared fixtures for the detection identity engine.

Provides fake collaborators (detector, provider, sink, frame source) so the
frame cycle can be exercised without a camera or a remote tracker.
"""
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import cv2
import numpy as np
import pytest

# Add the project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from objdet.core.contracts import Detection, FrameData, FrameResult, Prediction, Rectangle
from objdet.core.errors import FrameDecodeError, ServiceUnavailable
from objdet.capture.base import BaseFrameSource
from objdet.detection.base import BaseDetector
from objdet.output.base import BaseOutputSink
from objdet.prediction.base import BasePredictionProvider, ANY


def det(class_id, x, y, w, h, **kwargs) -> Detection:
    return Detection(class_id=class_id, bbox=Rectangle(x, y, w, h), **kwargs)


def pred(class_id, x, y, w, h, identity) -> Prediction:
    return Prediction(class_id=class_id, bbox=Rectangle(x, y, w, h), identity=identity)


class ScriptedDetector(BaseDetector):
    """Returns fresh copies of a scripted detection list per frame."""

    def __init__(self, frames: Sequence[Sequence[Detection]] = ()):
        self.frames = [list(f) for f in frames]
        self.calls = 0
        self.hints: List[List[Prediction]] = []
        self.rois = []

    def detect(self, image, roi=None, predictions=()):
        self.hints.append(list(predictions))
        self.rois.append(roi)
        script = self.frames[self.calls % len(self.frames)] if self.frames else []
        self.calls += 1
        return [
            Detection(class_id=d.class_id, bbox=Rectangle(**d.bbox.to_dict()))
            for d in script
        ]


class FailingProvider(BasePredictionProvider):
    """Provider that is never reachable."""

    name = "failing"

    def __init__(self):
        self.calls = 0
        self.closed = False

    def predict(self, timestamp_ms, object_id=ANY, class_id=ANY):
        self.calls += 1
        raise ServiceUnavailable("tracker", "connection refused")

    def close(self):
        self.closed = True


class ListSink(BaseOutputSink):
    """Collects every emitted result."""

    def __init__(self):
        self.results: List[FrameResult] = []
        self.frames: List[Optional[FrameData]] = []
        self.closed = False

    def emit(self, result, frame=None):
        self.results.append(result)
        self.frames.append(frame)

    def close(self):
        self.closed = True


class ListFrameSource(BaseFrameSource):
    """Yields scripted frames; an exception instance in the script is raised."""

    def __init__(self, items):
        self.items = list(items)
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True
        return True

    def stop(self):
        self.stopped = True

    def read_frame(self):
        if not self.items:
            return None
        item = self.items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def make_frame(frame_id: int = 1, width: int = 64, height: int = 48) -> FrameData:
    return FrameData(
        frame_id=frame_id,
        timestamp_ms=1000.0 + frame_id,
        image=np.zeros((height, width, 3), dtype=np.uint8),
    )


def encode_png(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", cv2.cvtColor(image, cv2.COLOR_RGB2BGR))
    assert ok
    return buffer.tobytes()


@pytest.fixture
def frame():
    return make_frame()


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def failing_provider():
    return FailingProvider()


@pytest.fixture
def decode_error():
    return FrameDecodeError("corrupt frame", frame_id=2)
