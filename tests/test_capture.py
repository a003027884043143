# tests/test_capture.py
import numpy as np
import pytest

from objdet.core.errors import FrameDecodeError
from objdet.capture import EncodedFrameSource, VideoCapture, decode_frame, validate_frame
from objdet.detection import SampleDetector
from objdet.pipeline import FrameCycleOrchestrator
from objdet.prediction import StaticPredictionProvider
from tests.conftest import encode_png


def test_decode_frame_returns_rgb():
    image = np.zeros((20, 30, 3), dtype=np.uint8)
    image[:, :, 0] = 255  # red in RGB

    decoded = decode_frame(encode_png(image))

    assert decoded.shape == (20, 30, 3)
    assert decoded.dtype == np.uint8
    assert np.array_equal(decoded, image)


@pytest.mark.parametrize("buffer", [b"", b"\x00\x01garbage", b"\x89PNG\r\n\x1a\n"])
def test_decode_frame_rejects_malformed_buffers(buffer):
    with pytest.raises(FrameDecodeError):
        decode_frame(buffer, frame_id=5)


@pytest.mark.parametrize("image", [
    None,
    np.zeros((10, 10), dtype=np.uint8),
    np.zeros((10, 10, 4), dtype=np.uint8),
    np.zeros((0, 10, 3), dtype=np.uint8),
    np.zeros((10, 10, 3), dtype=np.float32),
])
def test_validate_frame_rejects_bad_images(image):
    with pytest.raises(FrameDecodeError):
        validate_frame(image)


def test_encoded_source_numbers_frames_and_reports_bad_ones():
    good = encode_png(np.zeros((8, 8, 3), dtype=np.uint8))
    source = EncodedFrameSource([good, b"broken", good])

    first = source.read_frame()
    assert first.frame_id == 1
    assert first.size == (8, 8)

    with pytest.raises(FrameDecodeError) as exc_info:
        source.read_frame()
    assert exc_info.value.frame_id == 2

    assert source.read_frame().frame_id == 3
    assert source.read_frame() is None


def test_encoded_source_from_files(tmp_path):
    path = tmp_path / "frame.png"
    path.write_bytes(encode_png(np.zeros((4, 6, 3), dtype=np.uint8)))

    source = EncodedFrameSource.from_files([path])

    assert source.read_frame().size == (6, 4)
    assert source.read_frame() is None


def test_encoded_source_skips_unreadable_file(tmp_path):
    good = tmp_path / "frame.png"
    good.write_bytes(encode_png(np.zeros((4, 6, 3), dtype=np.uint8)))

    source = EncodedFrameSource.from_files([good, tmp_path / "missing.png", good])

    assert source.read_frame().frame_id == 1
    with pytest.raises(FrameDecodeError) as exc_info:
        source.read_frame()
    assert exc_info.value.frame_id == 2
    assert source.read_frame().frame_id == 3
    assert source.read_frame() is None


def test_run_continues_past_unreadable_file(tmp_path, sink):
    good = tmp_path / "frame.png"
    good.write_bytes(encode_png(np.zeros((120, 160, 3), dtype=np.uint8)))
    orchestrator = FrameCycleOrchestrator(SampleDetector(), StaticPredictionProvider(), sink)

    state = orchestrator.run(
        EncodedFrameSource.from_files([good, tmp_path / "missing.png", good])
    )

    assert state.frames_processed == 2
    assert state.frames_skipped == 1
    assert [r.frame_id for r in sink.results] == [1, 3]


def test_encoded_source_from_directory_sorts_images(tmp_path):
    (tmp_path / "b.png").write_bytes(encode_png(np.zeros((4, 8, 3), dtype=np.uint8)))
    (tmp_path / "a.png").write_bytes(encode_png(np.zeros((4, 6, 3), dtype=np.uint8)))
    (tmp_path / "notes.txt").write_text("not a frame")

    source = EncodedFrameSource.from_directory(tmp_path)

    assert source.read_frame().size == (6, 4)
    assert source.read_frame().size == (8, 4)
    assert source.read_frame() is None


def test_video_capture_missing_file(tmp_path):
    capture = VideoCapture(str(tmp_path / "missing.mp4"))

    assert capture.is_file
    assert not capture.start()
    assert capture.read_frame() is None


def test_video_capture_digit_string_is_camera():
    assert not VideoCapture("0").is_file
    assert not VideoCapture(1).is_file
