from __future__ import annotations

import io
from contextlib import contextmanager
from typing import Callable

import pytest
from PIL import Image

from replay_capture.errors import SnapshotFailure, SurfaceUnready


def jpeg_bytes(color: tuple[int, int, int] = (40, 90, 160)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (16, 9), color).save(buffer, format="JPEG")
    return buffer.getvalue()


class FakeSurface:
    """In-memory stand-in for the replay page.

    `ended(i)` answers the i-th probe call; `fail_on` makes that snapshot call raise.
    """

    def __init__(
        self,
        ended: Callable[[int], bool] = lambda i: False,
        *,
        fail_on: int | None = None,
        unready: bool = False,
    ) -> None:
        self.ended = ended
        self.fail_on = fail_on
        self.unready = unready
        self.probes = 0
        self.snapshots = 0
        self.yields = 0
        self.qualities: list[int] = []
        self.calls: list[str] = []
        self.payload = jpeg_bytes()

    def ready(self, url: str, timeout_ms: int) -> None:
        self.calls.append(f"ready:{url}")
        if self.unready:
            raise SurfaceUnready(f"battle view did not appear within {timeout_ms} ms at {url}")

    def accelerate(self, clicks: int) -> int:
        self.calls.append(f"accelerate:{clicks}")
        return clicks

    def play(self) -> None:
        self.calls.append("play")

    def probe_terminal(self) -> bool:
        result = self.ended(self.probes)
        self.probes += 1
        return result

    def capture_snapshot(self, quality: int) -> bytes:
        index = self.snapshots
        self.snapshots += 1
        self.qualities.append(quality)
        if index == self.fail_on:
            raise SnapshotFailure(f"screenshot failed on frame {index}")
        return self.payload

    def yield_control(self) -> None:
        self.yields += 1


class StepClock:
    def __init__(self, step: float = 0.1) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


def factory_for(surface: FakeSurface):
    opened = []

    @contextmanager
    def factory(config):
        opened.append(config)
        yield surface

    factory.opened = opened
    return factory


@pytest.fixture
def clock() -> StepClock:
    return StepClock()
