"""Record web-rendered battle replays into video files."""

from .config import CaptureConfig
from .errors import CaptureError, EncodeFailure, ProbeFailure, SnapshotFailure, SurfaceUnready
from .scheduler import CaptureScheduler, CaptureSession, Frame, SessionState, StopReason, run_capture

__all__ = [
    "CaptureConfig",
    "CaptureError",
    "CaptureScheduler",
    "CaptureSession",
    "EncodeFailure",
    "Frame",
    "ProbeFailure",
    "SessionState",
    "SnapshotFailure",
    "StopReason",
    "SurfaceUnready",
    "run_capture",
]
