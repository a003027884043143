"""
Base class for object detectors.

To add a new detector:
1. Create a new file in the detection/ directory
2. Inherit from BaseDetector
3. Implement detect()
4. Register in detection/__init__.py DETECTORS dict

The detector is a black box to the frame cycle: it only has to return
detections with `class_id` and `bbox` populated. Any identity it sets is
overwritten by the identity assigner.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import numpy as np

from objdet.core.contracts import Detection, Prediction, Rectangle


class BaseDetector(ABC):
    """Abstract base class for object detectors."""

    def initialize(self) -> bool:
        """Load models or other resources.

        Returns:
            True if the detector is ready
        """
        return True

    def shutdown(self) -> None:
        """Release resources held by the detector."""

    @abstractmethod
    def detect(
        self,
        image: np.ndarray,
        roi: Optional[Rectangle] = None,
        predictions: Sequence[Prediction] = (),
    ) -> List[Detection]:
        """Detect objects in a frame.

        Args:
            image: RGB numpy array of shape (H, W, 3)
            roi: Region of interest to search, or None for the whole frame
            predictions: Predicted object positions; may be used to bias the
                detection, may be ignored

        Returns:
            Detections of the frame, identity unset
        """
        pass
