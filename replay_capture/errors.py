"""Failure taxonomy for a replay conversion.

Every error carries the pipeline stage it belongs to so the CLI can report
where a conversion died.
"""

from __future__ import annotations


class CaptureError(RuntimeError):
    stage = "capture"


class SurfaceUnready(CaptureError):
    """The replay page never reached an interactive, playable state."""

    stage = "load"


class ProbeFailure(CaptureError):
    stage = "capture"


class SnapshotFailure(CaptureError):
    stage = "capture"


class EncodeFailure(CaptureError):
    stage = "encode"

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
