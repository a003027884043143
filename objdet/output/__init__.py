"""
Output Module.

Responsibilities:
- Hand identified detections to downstream consumers
- Optional visualization of the identities
"""

from .base import BaseOutputSink
from .sinks import LoggingSink, JsonLinesSink, CompositeSink
from .display import OpenCVDisplaySink, draw_detections
