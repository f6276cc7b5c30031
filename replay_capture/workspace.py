"""Scoped staging directory for captured frames."""

from __future__ import annotations

import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

FRAME_PATTERN = "frame_%05d.jpg"
FRAME_GLOB = "frame_*.jpg"


def frame_name(index: int) -> str:
    return FRAME_PATTERN % index


class Workspace:
    def __init__(self, path: Path) -> None:
        self.path = path

    def write_frame(self, index: int, payload: bytes) -> Path:
        target = self.path / frame_name(index)
        target.write_bytes(payload)
        return target

    def frame_paths(self) -> list[Path]:
        return sorted(self.path.glob(FRAME_GLOB))


@contextmanager
def staging_area(root: Path | None = None) -> Iterator[Workspace]:
    """Provision a fresh frame directory and remove it however the block exits."""
    if root is not None:
        root.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix="replay-frames-", dir=root))
    try:
        yield Workspace(path)
    finally:
        shutil.rmtree(path, ignore_errors=True)
