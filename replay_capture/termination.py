"""End-of-replay detection.

The replay viewer re-enables its play button once the battle is over, but the
same button can also read as enabled for a moment while the page starts up.
`EndDetector` therefore ignores the signal until more than `min_grace_frames`
frames exist.
"""

from __future__ import annotations

import enum


class DetectorState(enum.Enum):
    PRIMING = "priming"
    ARMED = "armed"
    TERMINAL = "terminal"


class EndDetector:
    def __init__(self, min_grace_frames: int) -> None:
        if min_grace_frames < 0:
            raise ValueError("min_grace_frames must not be negative")
        self.min_grace_frames = min_grace_frames
        self.state = DetectorState.PRIMING

    @property
    def terminal(self) -> bool:
        return self.state is DetectorState.TERMINAL

    def observe(self, signal: bool, frames_captured: int) -> bool:
        """Feed one probe result; returns True once the replay is over."""
        if self.state is DetectorState.TERMINAL:
            return True
        if self.state is DetectorState.PRIMING and frames_captured > self.min_grace_frames:
            self.state = DetectorState.ARMED
        if self.state is DetectorState.ARMED and signal:
            self.state = DetectorState.TERMINAL
        return self.terminal
