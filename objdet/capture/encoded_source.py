"""
Encoded frame source.

Decodes a stream of encoded image buffers, e.g. frames received over a
transport or read from disk.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from objdet.core.contracts import FrameData
from objdet.core.errors import FrameDecodeError
from .base import BaseFrameSource, decode_frame

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".bmp")


class EncodedFrameSource(BaseFrameSource):
    """
    Frame source over an iterable of encoded image buffers.

    Items may also be file paths; each file is read when its frame is due.
    An unreadable file is reported like an undecodable buffer.
    """

    def __init__(self, buffers: Iterable[Union[bytes, Path]]):
        self._buffers: Iterator[Union[bytes, Path]] = iter(buffers)
        self._frame_count = 0

    @classmethod
    def from_files(cls, paths: Iterable[Union[str, Path]]) -> EncodedFrameSource:
        """Source reading each image file lazily, in order."""
        return cls([Path(p) for p in paths])

    @classmethod
    def from_directory(cls, directory: Union[str, Path]) -> EncodedFrameSource:
        """Source over the image files of a directory, sorted by name."""
        paths = sorted(
            p for p in Path(directory).iterdir()
            if p.suffix.lower() in IMAGE_SUFFIXES
        )
        return cls.from_files(paths)

    def read_frame(self) -> Optional[FrameData]:
        buffer = next(self._buffers, None)
        if buffer is None:
            return None

        self._frame_count += 1
        if isinstance(buffer, Path):
            try:
                buffer = buffer.read_bytes()
            except OSError as e:
                raise FrameDecodeError(f"Cannot read {buffer}: {e}", self._frame_count) from e

        image = decode_frame(buffer, self._frame_count)

        return FrameData(
            frame_id=self._frame_count,
            timestamp_ms=time.time() * 1000,
            image=image,
        )
