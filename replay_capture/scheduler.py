"""Frame-capture loop.

The scheduler drives a replay that is already playing. Each iteration probes
for the end of the battle, takes one snapshot, stages it, and then yields to
the browser for zero time. It never sleeps to match the nominal frame rate,
so the capture runs faster than real time. The encoder later replays the
frames at `frame_rate`.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol

from .config import CaptureConfig
from .errors import CaptureError, SnapshotFailure
from .progress import ProgressReporter, ProgressSnapshot, compute_progress
from .termination import EndDetector
from .workspace import Workspace


class Surface(Protocol):
    def probe_terminal(self) -> bool: ...

    def capture_snapshot(self, quality: int) -> bytes: ...

    def yield_control(self) -> None: ...


class SessionState(enum.Enum):
    NOT_STARTED = "not_started"
    CAPTURING = "capturing"
    COMPLETED = "completed"
    FAILED = "failed"


class StopReason(enum.Enum):
    END_OF_REPLAY = "end_of_replay"
    CEILING_REACHED = "ceiling_reached"


@dataclass(frozen=True)
class Frame:
    index: int
    path: Path
    captured_at: float


@dataclass
class CaptureSession:
    frame_rate: int
    max_frames: int
    min_grace_frames: int
    frame_index: int = 0
    started_at: float | None = None
    state: SessionState = SessionState.NOT_STARTED
    stop_reason: StopReason | None = None
    last_progress: ProgressSnapshot | None = field(default=None, repr=False)

    @property
    def finished(self) -> bool:
        return self.state in (SessionState.COMPLETED, SessionState.FAILED)

    def start(self, now: float) -> None:
        if self.state is not SessionState.NOT_STARTED:
            raise CaptureError(f"cannot start a session that is {self.state.value}")
        self.started_at = now
        self.state = SessionState.CAPTURING

    def advance(self) -> int:
        if self.state is not SessionState.CAPTURING:
            raise CaptureError(f"cannot record a frame while {self.state.value}")
        if self.frame_index >= self.max_frames:
            raise CaptureError(f"frame ceiling of {self.max_frames} already reached")
        index = self.frame_index
        self.frame_index += 1
        return index

    def complete(self, reason: StopReason) -> None:
        if self.finished:
            raise CaptureError(f"session already {self.state.value}")
        self.state = SessionState.COMPLETED
        self.stop_reason = reason

    def fail(self) -> None:
        if not self.finished:
            self.state = SessionState.FAILED


class CaptureScheduler:
    def __init__(
        self,
        surface: Surface,
        config: CaptureConfig,
        workspace: Workspace,
        *,
        clock: Callable[[], float] = time.monotonic,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self.surface = surface
        self.config = config
        self.workspace = workspace
        self.clock = clock
        self.reporter = reporter
        self.session = CaptureSession(
            frame_rate=config.frame_rate,
            max_frames=config.max_frames,
            min_grace_frames=config.min_grace_frames,
        )
        self.detector = EndDetector(config.min_grace_frames)
        self.frames: list[Frame] = []

    def step(self) -> bool:
        """Run one capture iteration. Returns False once the session has ended."""
        session = self.session
        if session.finished:
            raise CaptureError(f"session already {session.state.value}")
        if session.state is SessionState.NOT_STARTED:
            session.start(self.clock())

        try:
            if self.detector.observe(self.surface.probe_terminal(), session.frame_index):
                session.complete(StopReason.END_OF_REPLAY)
                return False
            self._capture_frame()
            self._report_progress()
            if session.frame_index >= session.max_frames:
                session.complete(StopReason.CEILING_REACHED)
                return False
            self.surface.yield_control()
        except BaseException:
            session.fail()
            raise
        return True

    def _report_progress(self) -> None:
        session = self.session
        elapsed = self.clock() - session.started_at
        session.last_progress = compute_progress(session.frame_index, session.max_frames, elapsed)
        if self.reporter is not None:
            self.reporter.update(session.last_progress)

    def _capture_frame(self) -> None:
        index = self.session.frame_index
        payload = self.surface.capture_snapshot(self.config.image_quality)
        captured_at = self.clock()
        try:
            path = self.workspace.write_frame(index, payload)
        except OSError as exc:
            raise SnapshotFailure(f"could not stage frame {index}: {exc}") from exc
        self.frames.append(Frame(index=self.session.advance(), path=path, captured_at=captured_at))

    def run(self) -> list[Frame]:
        try:
            while self.step():
                pass
        finally:
            if self.reporter is not None:
                self.reporter.finish()
        return list(self.frames)


def run_capture(
    surface: Surface,
    config: CaptureConfig,
    workspace: Workspace,
    *,
    clock: Callable[[], float] = time.monotonic,
    reporter: ProgressReporter | None = None,
) -> list[Frame]:
    return CaptureScheduler(surface, config, workspace, clock=clock, reporter=reporter).run()
