#!/usr/bin/env python3
"""
Detection Identity Engine

Main entry point: reads frames from a camera or video file, detects objects,
matches them with predicted positions and assigns stable identities.

Usage:
    python main.py [--config CONFIG_PATH] [--source SOURCE] [--max-frames N]

Examples:
    python main.py --source 0 --display
    python main.py --source video.mp4 --jsonl out/detections.jsonl
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from objdet.config import (
    load_settings,
    build_detector,
    build_prediction_provider,
    build_sink,
    build_source,
)
from objdet.core.errors import ConfigError
from objdet.pipeline.orchestrator import FrameCycleOrchestrator, PipelineConfig


# ============================================================
# LOGGING CONFIGURATION
# ============================================================

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure logging."""
    logger.remove()  # Remove default handler

    # Console output with colors
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        colorize=True,
    )

    # File output
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module}:{line} | {message}",
            rotation="10 MB",
            retention="7 days",
        )


# ============================================================
# ENTRY POINT
# ============================================================

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Detection Identity Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--source", "-s",
        type=str,
        default=None,
        help="Camera index or video file (overrides capture.source)",
    )

    parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Stop after this many frames",
    )

    parser.add_argument(
        "--display",
        action="store_true",
        help="Show identified detections in a window",
    )

    parser.add_argument(
        "--jsonl",
        type=str,
        default=None,
        help="Write one JSON record per frame to this file",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    try:
        settings = load_settings(args.config)

        if args.source is not None:
            settings["capture"]["source"] = args.source
        if args.display:
            settings["output"]["display"] = True
        if args.jsonl:
            settings["output"]["jsonl_path"] = args.jsonl

        config = PipelineConfig.from_settings(settings)
        detector = build_detector(settings)
        provider = build_prediction_provider(settings)
        sink = build_sink(settings, provider)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    orchestrator = FrameCycleOrchestrator(detector, provider, sink, config)
    state = orchestrator.run(build_source(settings), max_frames=args.max_frames)

    logger.info(f"Average latency: {orchestrator.average_latency_ms:.1f}ms")
    return 0 if state.frames_processed > 0 else 1


if __name__ == "__main__":
    sys.exit(main())
