"""
Detection/Prediction Matching Module.

Responsibilities:
- Symmetric overlap ratio between bounding boxes
- Per-frame association of detections with predictions
"""

from .overlap import overlap_ratio, meets_threshold, boxes_touch
from .matcher import Matcher, MATCH_STRATEGIES
