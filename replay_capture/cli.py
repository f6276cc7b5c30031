"""Convert a Pokémon Showdown replay into a video, faster than real time.

Usage:
    replay-capture <replay-url | replay-id> [output.mp4]
"""

from __future__ import annotations

import argparse
import re
import sys
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Callable, Sequence

from .config import CaptureConfig
from .encoder import encode
from .errors import CaptureError
from .progress import ProgressReporter
from .scheduler import CaptureScheduler
from .surface import ReplaySurface, open_replay_surface
from .workspace import staging_area

REPLAY_HOST = "https://replay.pokemonshowdown.com"
_HOST_PREFIX = re.compile(r"^https?://replay\.pokemonshowdown\.com/")

SurfaceFactory = Callable[[CaptureConfig], AbstractContextManager[ReplaySurface]]


def normalize_replay_id(source: str) -> str:
    replay_id = _HOST_PREFIX.sub("", source.strip())
    return replay_id.split("?", 1)[0].split("#", 1)[0].strip("/")


def replay_url(replay_id: str) -> str:
    if not replay_id:
        raise ValueError("empty replay id")
    return f"{REPLAY_HOST}/{replay_id}"


def convert(
    source: str,
    destination: Path,
    config: CaptureConfig,
    *,
    surface_factory: SurfaceFactory = open_replay_surface,
    staging_root: Path | None = None,
    reporter: ProgressReporter | None = None,
) -> Path:
    url = replay_url(normalize_replay_id(source))
    with staging_area(staging_root) as workspace:
        print(f"[capture] loading replay {url}")
        with surface_factory(config) as surface:
            surface.ready(url, config.ready_timeout_ms)
            print(f"[capture] speeding up playback ({config.speed_clicks} clicks) and pressing play")
            surface.accelerate(config.speed_clicks)
            surface.play()
            print(f"[capture] recording up to {config.max_frames} frames")
            scheduler = CaptureScheduler(
                surface,
                config,
                workspace,
                reporter=reporter if reporter is not None else ProgressReporter(),
            )
            frames = scheduler.run()
        reason = scheduler.session.stop_reason
        print(f"[capture] captured {len(frames)} frames ({reason.value if reason else 'unknown'})")
        print(f"[capture] encoding {destination}")
        encode(workspace.path, config.frame_rate, destination)
    print(f"[capture] wrote {destination}")
    return destination


def build_parser() -> argparse.ArgumentParser:
    defaults = CaptureConfig()
    parser = argparse.ArgumentParser(
        prog="replay-capture",
        description="Record a Pokémon Showdown replay into an MP4 (or GIF) faster than real time.",
    )
    parser.add_argument("source", help="Replay URL or replay id.")
    parser.add_argument(
        "destination",
        nargs="?",
        default="output.mp4",
        help="Output file; a .gif suffix writes an animated GIF.",
    )
    parser.add_argument("--fps", type=int, default=defaults.frame_rate, help="Output frame rate.")
    parser.add_argument(
        "--max-seconds",
        type=int,
        default=defaults.max_duration_seconds,
        help="Hard cap on output length in seconds.",
    )
    parser.add_argument(
        "--quality",
        type=int,
        default=defaults.image_quality,
        help="JPEG quality of captured frames (0-100).",
    )
    parser.add_argument(
        "--grace-frames",
        type=int,
        default=None,
        help="Frames to capture before trusting the end-of-replay signal (default: 2 x fps).",
    )
    parser.add_argument("--width", type=int, default=defaults.width, help="Viewport width.")
    parser.add_argument("--height", type=int, default=defaults.height, help="Viewport height.")
    parser.add_argument(
        "--timeout",
        type=int,
        default=defaults.ready_timeout_ms,
        help="Milliseconds to wait for the replay page to become ready.",
    )
    parser.add_argument(
        "--speed-clicks",
        type=int,
        default=defaults.speed_clicks,
        help="Times to press the replay speed control before playing.",
    )
    parser.add_argument("--headed", action="store_true", help="Show the browser window.")
    return parser


def config_from_args(args: argparse.Namespace) -> CaptureConfig:
    return CaptureConfig(
        frame_rate=args.fps,
        max_duration_seconds=args.max_seconds,
        image_quality=args.quality,
        min_grace_frames=args.grace_frames,
        width=args.width,
        height=args.height,
        ready_timeout_ms=args.timeout,
        speed_clicks=args.speed_clicks,
        headless=not args.headed,
    )


def main(argv: Sequence[str] | None = None, *, surface_factory: SurfaceFactory = open_replay_surface) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
        if not normalize_replay_id(args.source):
            raise ValueError(f"no replay id in {args.source!r}")
    except ValueError as exc:
        parser.error(str(exc))

    try:
        convert(args.source, Path(args.destination), config, surface_factory=surface_factory)
    except CaptureError as exc:
        print(f"[capture] failed during {exc.stage}: {exc}", file=sys.stderr)
        return 1
    return 0
