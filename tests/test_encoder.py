from __future__ import annotations

import subprocess
from pathlib import Path

import pytest
from PIL import Image

from replay_capture import encoder
from replay_capture.encoder import encode
from replay_capture.errors import EncodeFailure
from replay_capture.workspace import Workspace

from conftest import jpeg_bytes


def _stage(tmp_path: Path, colors) -> Path:
    staging = tmp_path / "frames"
    staging.mkdir()
    workspace = Workspace(staging)
    for index, color in enumerate(colors):
        workspace.write_frame(index, jpeg_bytes(color))
    return staging


def test_video_runs_ffmpeg_on_frame_pattern(tmp_path: Path, monkeypatch) -> None:
    staging = _stage(tmp_path, [(255, 0, 0), (0, 255, 0)])
    output = tmp_path / "out" / "battle.mp4"
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        Path(cmd[-1]).write_bytes(b"mp4")
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.setattr(encoder.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(encoder.subprocess, "run", fake_run)

    assert encode(staging, 15, output) == output

    cmd, kwargs = calls[0]
    assert cmd == [
        "/usr/bin/ffmpeg",
        "-y",
        "-framerate",
        "15",
        "-i",
        str(staging / "frame_%05d.jpg"),
        "-c:v",
        "libx264",
        "-pix_fmt",
        "yuv420p",
        str(output),
    ]
    assert kwargs["check"] is False
    assert output.read_bytes() == b"mp4"


def test_ffmpeg_failure_removes_partial_output(tmp_path: Path, monkeypatch) -> None:
    staging = _stage(tmp_path, [(255, 0, 0)])
    output = tmp_path / "battle.mp4"

    def fake_run(cmd, **kwargs):
        Path(cmd[-1]).write_bytes(b"half")
        return subprocess.CompletedProcess(cmd, 1, "", "frame_00000.jpg: Invalid data\n")

    monkeypatch.setattr(encoder.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(encoder.subprocess, "run", fake_run)

    with pytest.raises(EncodeFailure) as excinfo:
        encode(staging, 15, output)

    assert excinfo.value.returncode == 1
    assert "Invalid data" in str(excinfo.value)
    assert excinfo.value.stage == "encode"
    assert not output.exists()


def test_missing_ffmpeg(tmp_path: Path, monkeypatch) -> None:
    staging = _stage(tmp_path, [(255, 0, 0)])
    monkeypatch.setattr(encoder.shutil, "which", lambda name: None)

    with pytest.raises(EncodeFailure, match="ffmpeg not found"):
        encode(staging, 15, tmp_path / "battle.mp4")


def test_no_frames_is_an_encode_failure(tmp_path: Path) -> None:
    staging = tmp_path / "frames"
    staging.mkdir()
    with pytest.raises(EncodeFailure, match="no frames"):
        encode(staging, 15, tmp_path / "battle.mp4")


def test_gif_written_with_pillow(tmp_path: Path) -> None:
    staging = _stage(tmp_path, [(255, 0, 0), (0, 255, 0), (0, 0, 255)])
    output = tmp_path / "battle.gif"

    encode(staging, 10, output)

    with Image.open(output) as gif:
        assert gif.n_frames == 3
        assert gif.info["duration"] == 100
        assert gif.info["loop"] == 0


def test_ffmpeg_launch_error_is_encode_failure(tmp_path: Path, monkeypatch) -> None:
    staging = _stage(tmp_path, [(255, 0, 0)])
    output = tmp_path / "battle.mp4"
    output.write_bytes(b"stale")

    def fake_run(cmd, **kwargs):
        raise PermissionError(13, "Permission denied", cmd[0])

    monkeypatch.setattr(encoder.shutil, "which", lambda name: "/opt/ffmpeg")
    monkeypatch.setattr(encoder.subprocess, "run", fake_run)

    with pytest.raises(EncodeFailure, match="could not run /opt/ffmpeg") as excinfo:
        encode(staging, 15, output)

    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert not output.exists()


def test_gif_error_removes_partial_output(tmp_path: Path, monkeypatch) -> None:
    staging = _stage(tmp_path, [(255, 0, 0), (0, 255, 0)])
    output = tmp_path / "battle.gif"

    def broken_save(self, fp, *args, **kwargs):
        Path(fp).write_bytes(b"GIF89a")
        raise ValueError("unsupported palette")

    monkeypatch.setattr(Image.Image, "save", broken_save)

    with pytest.raises(EncodeFailure, match="unsupported palette"):
        encode(staging, 10, output)
    assert not output.exists()


def test_only_staged_frames_are_encoded(tmp_path: Path) -> None:
    staging = _stage(tmp_path, [(255, 0, 0), (0, 0, 255)])
    (staging / "notes.txt").write_text("not a frame")
    output = tmp_path / "battle.gif"

    encode(staging, 10, output)

    with Image.open(output) as gif:
        assert gif.n_frames == 2
