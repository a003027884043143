"""
Base class for frame sources, plus frame decoding helpers.

Sources return decoded RGB frames one at a time. A malformed frame raises
FrameDecodeError; the caller skips it and asks for the next one. End of
stream is signalled by returning None.
"""
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np

from objdet.core.contracts import FrameData
from objdet.core.errors import FrameDecodeError


class BaseFrameSource(ABC):
    """Abstract base class for frame sources."""

    def start(self) -> bool:
        """Open the source.

        Returns:
            True if the source is ready
        """
        return True

    def stop(self) -> None:
        """Release the source."""

    @abstractmethod
    def read_frame(self) -> Optional[FrameData]:
        """Read the next frame.

        Returns:
            Decoded frame, or None at end of stream

        Raises:
            FrameDecodeError: If the next frame is malformed
        """
        pass


def validate_frame(image, frame_id: int = -1) -> np.ndarray:
    """Check that an image is a non-empty H x W x 3 uint8 array."""
    if image is None or not isinstance(image, np.ndarray):
        raise FrameDecodeError("Frame is not an image array", frame_id)
    if image.ndim != 3 or image.shape[2] != 3 or image.size == 0:
        raise FrameDecodeError(f"Unexpected frame shape {image.shape}", frame_id)
    if image.dtype != np.uint8:
        raise FrameDecodeError(f"Unexpected frame dtype {image.dtype}", frame_id)
    return image


def decode_frame(buffer: bytes, frame_id: int = -1) -> np.ndarray:
    """
    Decode an encoded image (JPEG, PNG, ...) into an RGB array.

    Raises:
        FrameDecodeError: If the buffer is empty or cannot be decoded
    """
    if not buffer:
        raise FrameDecodeError("Empty frame buffer", frame_id)

    data = np.frombuffer(buffer, dtype=np.uint8)
    image = cv2.imdecode(data, cv2.IMREAD_COLOR)
    if image is None:
        raise FrameDecodeError(f"Cannot decode {len(buffer)} byte frame", frame_id)

    return validate_frame(cv2.cvtColor(image, cv2.COLOR_BGR2RGB), frame_id)
