"""
Configuration loading.

Settings come from a YAML file (default: config/settings.yaml next to
main.py) and are merged over DEFAULT_SETTINGS section by section. Builders
turn the settings into the collaborators of the frame cycle.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger

from objdet.core.errors import ConfigError
from objdet.capture import BaseFrameSource, EncodedFrameSource, VideoCapture
from objdet.detection import BaseDetector, get_detector
from objdet.output import BaseOutputSink, CompositeSink, JsonLinesSink, LoggingSink, OpenCVDisplaySink
from objdet.prediction import BasePredictionProvider, LastSeenPredictionProvider, get_provider


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    "matching": {
        "min_overlap_percent": 50,
        "strategy": "greedy",
    },
    "identity": {
        "max_identity_value": 100000,
    },
    "prediction": {
        "provider": "last_seen",
        "url": None,
        "timeout_s": 0.5,
        "max_age_frames": 1,
        "object_id": -1,
        "class_id": -1,
    },
    "detector": {
        "type": "contour",
        "class_id": 1,
        "min_area": 400,
        "roi": None,
    },
    "capture": {
        "source": 0,
        "width": None,
        "height": None,
        "fps": None,
    },
    "output": {
        "log": True,
        "jsonl_path": None,
        "display": False,
    },
    "pipeline": {
        "latency_budget_ms": 100.0,
    },
}


def load_settings(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load settings from YAML merged over the defaults.

    Args:
        config_path: Settings file; DEFAULT_CONFIG_PATH when None

    Returns:
        Settings dict with every section present

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping
    """
    settings = copy.deepcopy(DEFAULT_SETTINGS)

    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        logger.warning(f"Config file {path} not found, using defaults")
        return settings

    try:
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    for section, values in loaded.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")
        settings.setdefault(section, {}).update(values)

    logger.info(f"Loaded config from {path}")
    return settings


def build_detector(settings: Dict[str, Dict[str, Any]]) -> BaseDetector:
    detector = settings["detector"]
    kind = detector.get("type", "contour")

    try:
        if kind == "contour":
            return get_detector(
                kind,
                min_area=float(detector.get("min_area", 400)),
                class_id=int(detector.get("class_id", 1)),
            )
        return get_detector(kind, class_id=int(detector.get("class_id", 1)))
    except ValueError as e:
        raise ConfigError(str(e)) from e


def build_prediction_provider(
    settings: Dict[str, Dict[str, Any]],
) -> BasePredictionProvider:
    prediction = settings["prediction"]
    kind = prediction.get("provider", "last_seen")

    try:
        if kind == "http":
            if not prediction.get("url"):
                raise ConfigError("prediction.url is required for the http provider")
            return get_provider(
                kind,
                url=prediction["url"],
                timeout_s=float(prediction.get("timeout_s", 0.5)),
            )
        if kind == "last_seen":
            return get_provider(kind, max_age_frames=int(prediction.get("max_age_frames", 1)))
        return get_provider(kind)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def build_sink(
    settings: Dict[str, Dict[str, Any]],
    provider: Optional[BasePredictionProvider] = None,
) -> BaseOutputSink:
    """
    Build the output sink.

    A last-seen provider is added as a sink too, so it learns the emitted
    detections.
    """
    output = settings["output"]
    sinks = []

    if output.get("log", True):
        sinks.append(LoggingSink())
    if output.get("jsonl_path"):
        sinks.append(JsonLinesSink(output["jsonl_path"]))
    if output.get("display"):
        sinks.append(OpenCVDisplaySink())
    if isinstance(provider, LastSeenPredictionProvider):
        sinks.append(provider)

    return CompositeSink(sinks)


def build_source(settings: Dict[str, Dict[str, Any]]) -> BaseFrameSource:
    """Camera index, video file, or a directory of image files."""
    capture = settings["capture"]
    source = capture.get("source", 0)

    if isinstance(source, str) and Path(source).is_dir():
        return EncodedFrameSource.from_directory(source)

    return VideoCapture(
        source=source,
        width=capture.get("width"),
        height=capture.get("height"),
        fps=capture.get("fps"),
    )
