# tests/test_orchestrator.py
import numpy as np
import pytest

from objdet.core.contracts import Rectangle
from objdet.core.errors import FrameDecodeError
from objdet.capture import EncodedFrameSource
from objdet.detection import SampleDetector
from objdet.pipeline.orchestrator import FrameCycleOrchestrator, PipelineConfig
from objdet.prediction import StaticPredictionProvider, LastSeenPredictionProvider
from objdet.output import CompositeSink
from objdet.tracking.identity import IdentityCounter
from tests.conftest import (
    ScriptedDetector,
    ListSink,
    ListFrameSource,
    det,
    pred,
    make_frame,
    encode_png,
)


def build(detections, predictions=(), provider=None, sink=None, **kwargs):
    sink = sink or ListSink()
    provider = provider or StaticPredictionProvider(predictions)
    orchestrator = FrameCycleOrchestrator(
        ScriptedDetector([detections]), provider, sink, **kwargs
    )
    return orchestrator, sink


def test_matching_detection_continues_prediction_identity(frame):
    orchestrator, sink = build(
        [det(1, 10, 10, 20, 20)],
        [pred(1, 10, 10, 20, 20, identity=7)],
        config=PipelineConfig(min_overlap_percent=50),
    )

    result = orchestrator.process_frame(frame)

    assert [d.identity for d in result.detections] == [7]
    assert result.inherited_identities == [7]
    assert orchestrator.counter.value == 0
    assert sink.results == [result]
    assert sink.frames == [frame]


def test_class_mismatch_mints_new_identity(frame):
    orchestrator, _ = build([det(1, 0, 0, 10, 10)], [pred(2, 0, 0, 10, 10, identity=7)])

    result = orchestrator.process_frame(frame)

    assert result.detections[0].identity == 1
    assert orchestrator.counter.value == 1


def test_unmatched_detections_numbered_in_order(frame):
    orchestrator, _ = build([det(1, 0, 0, 10, 10), det(1, 30, 30, 10, 10)])

    result = orchestrator.process_frame(frame)

    assert [d.identity for d in result.detections] == [1, 2]
    assert result.new_identities == [1, 2]


def test_provider_outage_treats_every_detection_as_new(frame, failing_provider):
    orchestrator, sink = build([det(1, 0, 0, 10, 10)], provider=failing_provider)

    result = orchestrator.process_frame(frame)

    assert not result.predictions_available
    assert result.detections[0].identity == 1
    assert orchestrator.state.prediction_failures == 1
    assert "tracker" in orchestrator.state.last_failure_reason
    assert len(sink.results) == 1


def test_predictions_are_passed_to_detector_as_hint(frame):
    predictions = [pred(1, 0, 0, 10, 10, identity=3)]
    roi = Rectangle(0, 0, 32, 32)
    orchestrator, _ = build([], predictions, config=PipelineConfig(roi=roi))

    orchestrator.process_frame(frame)

    assert orchestrator._detector.hints == [predictions]
    assert orchestrator._detector.rois == [roi]


def test_prediction_filters_are_forwarded(frame):
    provider = StaticPredictionProvider([
        pred(1, 0, 0, 10, 10, identity=3),
        pred(2, 0, 0, 10, 10, identity=4),
    ])
    orchestrator, _ = build(
        [det(2, 0, 0, 10, 10)],
        provider=provider,
        config=PipelineConfig(prediction_class_id=1),
    )

    result = orchestrator.process_frame(frame)

    # Class 2 prediction filtered out, so the detection is new
    assert result.detections[0].identity == 1


def test_each_frame_gets_fresh_detection_buffers():
    orchestrator, sink = build([det(1, 0, 0, 10, 10)])

    first = orchestrator.process_frame(make_frame(1))
    second = orchestrator.process_frame(make_frame(2))

    assert first.detections[0] is not second.detections[0]
    assert [r.frame_id for r in sink.results] == [1, 2]
    assert first.detections[0].identity == 1
    assert second.detections[0].identity == 2


def test_last_seen_feedback_keeps_identity_across_frames(sink):
    provider = LastSeenPredictionProvider()
    detector = ScriptedDetector([
        [det(1, 10, 10, 20, 20)],
        [det(1, 12, 10, 20, 20), det(1, 40, 5, 8, 8)],
        [det(1, 14, 11, 20, 20)],
    ])
    orchestrator = FrameCycleOrchestrator(
        detector, provider, CompositeSink([sink, provider])
    )

    identities = [
        [d.identity for d in orchestrator.process_frame(make_frame(i)).detections]
        for i in range(1, 4)
    ]

    assert identities == [[1], [1, 2], [1]]


def test_counter_is_injected(frame):
    shared = IdentityCounter(max_value=2)
    first, _ = build([det(1, 0, 0, 10, 10)], counter=shared)
    second, _ = build([det(1, 0, 0, 10, 10)], counter=shared)

    ids = [
        first.process_frame(frame).detections[0].identity,
        second.process_frame(frame).detections[0].identity,
        first.process_frame(frame).detections[0].identity,
    ]

    assert ids == [1, 2, 1]


def test_pipelines_have_independent_counters_by_default(frame):
    first, _ = build([det(1, 0, 0, 10, 10)])
    second, _ = build([det(1, 0, 0, 10, 10)])

    first.process_frame(frame)
    first.process_frame(frame)

    assert second.process_frame(frame).detections[0].identity == 1


def test_counter_wraps_with_configured_maximum(frame):
    orchestrator, _ = build(
        [det(1, 0, 0, 10, 10)], config=PipelineConfig(max_identity_value=2)
    )

    ids = [orchestrator.process_frame(frame).detections[0].identity for _ in range(3)]

    assert ids == [1, 2, 1]


def test_step_skips_malformed_frame(sink, decode_error):
    detector = ScriptedDetector([[det(1, 0, 0, 10, 10)]])
    orchestrator = FrameCycleOrchestrator(detector, StaticPredictionProvider(), sink)
    source = ListFrameSource([decode_error, make_frame(3)])

    assert orchestrator.step(source) is None
    assert not orchestrator.end_of_stream
    assert detector.calls == 0
    assert orchestrator.counter.value == 0
    assert orchestrator.state.frames_skipped == 1

    result = orchestrator.step(source)
    assert result.frame_id == 3
    assert result.detections[0].identity == 1

    assert orchestrator.step(source) is None
    assert orchestrator.end_of_stream


def test_run_processes_until_end_of_stream(sink, failing_provider):
    detector = ScriptedDetector([[det(1, 0, 0, 10, 10)]])
    orchestrator = FrameCycleOrchestrator(detector, failing_provider, sink)
    source = ListFrameSource([
        make_frame(1),
        FrameDecodeError("bad", frame_id=2),
        make_frame(3),
    ])

    state = orchestrator.run(source)

    assert source.started and source.stopped
    assert state.frames_processed == 2
    assert state.frames_skipped == 1
    assert state.prediction_failures == 2
    assert failing_provider.closed
    assert sink.closed


class DeadSource(ListFrameSource):
    """Source that cannot be opened."""

    def start(self):
        self.started = True
        return False


class BrokenDetector(ScriptedDetector):
    def initialize(self):
        return False


def test_run_releases_collaborators_when_source_fails_to_start(sink, failing_provider):
    detector = ScriptedDetector([[det(1, 0, 0, 10, 10)]])
    orchestrator = FrameCycleOrchestrator(detector, failing_provider, sink)
    source = DeadSource([make_frame(1)])

    state = orchestrator.run(source)

    assert state.frames_processed == 0
    assert detector.calls == 0
    assert source.stopped
    assert sink.closed
    assert failing_provider.closed


def test_run_releases_collaborators_when_detector_fails_to_initialize(sink, failing_provider):
    detector = BrokenDetector([[det(1, 0, 0, 10, 10)]])
    orchestrator = FrameCycleOrchestrator(detector, failing_provider, sink)
    source = ListFrameSource([make_frame(1)])

    state = orchestrator.run(source)

    assert state.frames_processed == 0
    assert detector.calls == 0
    assert source.stopped
    assert sink.closed
    assert failing_provider.closed


def test_inherited_flags_follow_detections_not_identities(frame):
    # Counter wraps so the minted identity equals the inherited one
    orchestrator, _ = build(
        [det(1, 0, 0, 10, 10), det(1, 30, 30, 10, 10)],
        [pred(1, 0, 0, 10, 10, identity=1)],
        counter=IdentityCounter(max_value=1),
    )

    result = orchestrator.process_frame(frame)

    assert [d.identity for d in result.detections] == [1, 1]
    assert result.inherited == [True, False]
    assert result.is_inherited(0)
    assert not result.is_inherited(1)


def test_run_honours_max_frames(sink):
    orchestrator = FrameCycleOrchestrator(
        ScriptedDetector([[]]), StaticPredictionProvider(), sink
    )
    source = ListFrameSource([make_frame(i) for i in range(1, 6)])

    state = orchestrator.run(source, max_frames=2)

    assert state.frames_processed == 2
    assert len(source.items) == 3


def test_run_with_encoded_frames_and_sample_detector(sink):
    image = np.full((120, 160, 3), 80, dtype=np.uint8)
    source = EncodedFrameSource([encode_png(image), b"not an image", encode_png(image)])
    provider = LastSeenPredictionProvider()
    orchestrator = FrameCycleOrchestrator(
        SampleDetector(), provider, CompositeSink([sink, provider])
    )

    state = orchestrator.run(source)

    assert state.frames_processed == 2
    assert state.frames_skipped == 1
    assert [r.frame_id for r in sink.results] == [1, 3]
    assert [r.detections[0].identity for r in sink.results] == [1, 1]
    assert sink.results[1].inherited_identities == [1]


def test_invalid_config_rejected():
    from objdet.core.errors import ConfigError

    with pytest.raises(ConfigError):
        PipelineConfig(min_overlap_percent=120)
    with pytest.raises(ConfigError):
        PipelineConfig(max_identity_value=0)
    with pytest.raises(ConfigError):
        PipelineConfig(match_strategy="closest")
