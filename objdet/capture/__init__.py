"""
Frame Capture Module.

Responsibilities:
- Frame acquisition from cameras, video files and encoded buffers
- Decoding and validation of input frames
"""

from .base import BaseFrameSource, decode_frame, validate_frame
from .video_capture import VideoCapture
from .encoded_source import EncodedFrameSource
