"""Turn a staged frame sequence into a video (ffmpeg) or an animated GIF (Pillow)."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

try:
    from PIL import Image
except ImportError as exc:  # pragma: no cover
    raise SystemExit(
        "Pillow is required. Install with: pip install pillow"
    ) from exc

from .errors import EncodeFailure
from .workspace import FRAME_PATTERN, Workspace

STDERR_TAIL_LINES = 20


def encode_video(staging_dir: Path, frame_rate: int, output_path: Path) -> Path:
    ffmpeg = shutil.which("ffmpeg")
    if not ffmpeg:
        raise EncodeFailure("ffmpeg not found in PATH")
    cmd = [
        ffmpeg,
        "-y",
        "-framerate",
        str(frame_rate),
        "-i",
        str(staging_dir / FRAME_PATTERN),
        "-c:v",
        "libx264",
        "-pix_fmt",
        "yuv420p",
        str(output_path),
    ]
    try:
        completed = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        output_path.unlink(missing_ok=True)
        raise EncodeFailure(f"could not run {ffmpeg}: {exc}") from exc
    if completed.returncode != 0:
        output_path.unlink(missing_ok=True)
        tail = "\n".join((completed.stderr or "").strip().splitlines()[-STDERR_TAIL_LINES:])
        raise EncodeFailure(
            f"ffmpeg exited with status {completed.returncode}"
            + (f":\n{tail}" if tail else ""),
            returncode=completed.returncode,
            stderr=completed.stderr or "",
        )
    return output_path


def write_gif(frame_paths: list[Path], output_path: Path, frame_ms: int) -> Path:
    frames: list[Image.Image] = []
    written = False
    try:
        for path in frame_paths:
            with Image.open(path) as img:
                frames.append(img.convert("RGB"))
        first, rest = frames[0], frames[1:]
        first.save(
            output_path,
            save_all=True,
            append_images=rest,
            optimize=True,
            duration=frame_ms,
            loop=0,
        )
        written = True
    except (OSError, ValueError) as exc:
        raise EncodeFailure(f"could not write GIF {output_path}: {exc}") from exc
    finally:
        for frame in frames:
            frame.close()
        if not written:
            output_path.unlink(missing_ok=True)
    return output_path


def encode(staging_dir: Path, frame_rate: int, output_path: Path) -> Path:
    frame_paths = Workspace(staging_dir).frame_paths()
    if not frame_paths:
        raise EncodeFailure("no frames captured")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise EncodeFailure(f"cannot create output directory {output_path.parent}: {exc}") from exc
    if output_path.suffix.lower() == ".gif":
        return write_gif(frame_paths, output_path, frame_ms=max(1, round(1000 / frame_rate)))
    return encode_video(staging_dir, frame_rate, output_path)
