"""
Object detectors.

Provides the detector interface and the available implementations.

To add a new detector:
1. Create a new file in this directory
2. Implement a class inheriting from BaseDetector
3. Register it in DETECTORS dict below
"""
from .base import BaseDetector
from .sample_detector import SampleDetector
from .contour_detector import ContourDetector

# Registry of available detectors
DETECTORS = {
    "sample": SampleDetector,
    "contour": ContourDetector,
}


def get_detector(name: str, **kwargs) -> BaseDetector:
    """Get a detector instance by name.

    Args:
        name: Detector type name (e.g., "contour", "sample")
        **kwargs: Constructor arguments for the detector

    Returns:
        Detector instance

    Raises:
        ValueError: If detector name is not registered
    """
    if name not in DETECTORS:
        available = ", ".join(DETECTORS.keys())
        raise ValueError(f"Unknown detector '{name}'. Available: {available}")

    return DETECTORS[name](**kwargs)


__all__ = ['BaseDetector', 'SampleDetector', 'ContourDetector', 'get_detector']
