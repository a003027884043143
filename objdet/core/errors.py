"""
Error taxonomy.

Only two conditions are expected during normal operation and both are
recovered per frame by the orchestrator:
- FrameDecodeError: the frame is skipped
- ServiceUnavailable: the frame proceeds with no predictions
"""


class ObjDetError(Exception):
    """Base class for all project errors."""


class FrameDecodeError(ObjDetError):
    """Input frame could not be decoded into an image."""

    def __init__(self, message: str, frame_id: int = -1):
        super().__init__(message)
        self.frame_id = frame_id


class ServiceUnavailable(ObjDetError):
    """Prediction provider could not complete the round-trip."""

    def __init__(self, service: str, reason: str = ""):
        message = f"Service '{service}' unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.service = service
        self.reason = reason


class ConfigError(ObjDetError):
    """Invalid configuration value."""
