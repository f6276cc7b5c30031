"""Progress and ETA accounting for the capture loop."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import TextIO

MIN_FRACTION = 0.01


@dataclass(frozen=True)
class ProgressSnapshot:
    frame_index: int
    max_frames: int
    elapsed: float
    fraction_complete: float
    remaining: float

    @property
    def percent(self) -> int:
        return round(self.fraction_complete * 100)


def compute_progress(frame_index: int, max_frames: int, elapsed: float) -> ProgressSnapshot:
    fraction = min(max(frame_index / max_frames, 0.0), 1.0) if max_frames > 0 else 1.0
    estimated_total = elapsed / max(fraction, MIN_FRACTION)
    return ProgressSnapshot(
        frame_index=frame_index,
        max_frames=max_frames,
        elapsed=elapsed,
        fraction_complete=fraction,
        remaining=max(0.0, estimated_total - elapsed),
    )


def format_clock(seconds: float) -> str:
    seconds = max(0.0, seconds)
    return f"{int(seconds // 60):02d}:{int(seconds % 60):02d}"


class ProgressReporter:
    """Writes one in-place status line, at most once per elapsed second."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.last_second = -1
        self.emitted = 0

    def update(self, snapshot: ProgressSnapshot) -> bool:
        second = math.floor(snapshot.elapsed)
        if second == self.last_second:
            return False
        self.last_second = second
        self.emitted += 1
        self.stream.write(
            f"\r[capture] {snapshot.percent}% | elapsed {format_clock(snapshot.elapsed)}"
            f" | remaining ~{format_clock(snapshot.remaining)}   "
        )
        self.stream.flush()
        return True

    def finish(self) -> None:
        if self.emitted:
            self.stream.write("\n")
            self.stream.flush()
