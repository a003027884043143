"""
Core data contracts and error types shared by every stage of the frame cycle.
"""

from .contracts import (
    Rectangle,
    Detection,
    Prediction,
    Match,
    FrameData,
    FrameResult,
    AssignmentResult,
    PipelineState,
)
from .errors import (
    ObjDetError,
    FrameDecodeError,
    ServiceUnavailable,
    ConfigError,
)
