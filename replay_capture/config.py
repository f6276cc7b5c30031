"""Static conversion parameters."""

from __future__ import annotations

from dataclasses import dataclass

FRAME_INDEX_LIMIT = 100_000  # five-digit frame names


@dataclass
class CaptureConfig:
    frame_rate: int = 15
    max_duration_seconds: int = 300
    image_quality: int = 80
    min_grace_frames: int | None = None
    width: int = 1280
    height: int = 720
    ready_timeout_ms: int = 60_000
    speed_clicks: int = 6
    headless: bool = True

    def __post_init__(self) -> None:
        if self.frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {self.frame_rate}")
        if self.max_duration_seconds <= 0:
            raise ValueError(
                f"max_duration_seconds must be positive, got {self.max_duration_seconds}"
            )
        if not 0 <= self.image_quality <= 100:
            raise ValueError(f"image_quality must be within 0-100, got {self.image_quality}")
        if self.min_grace_frames is None:
            self.min_grace_frames = self.frame_rate * 2
        if self.min_grace_frames < 0:
            raise ValueError(f"min_grace_frames must not be negative, got {self.min_grace_frames}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"invalid output resolution {self.width}x{self.height}")
        if self.ready_timeout_ms <= 0:
            raise ValueError(f"ready_timeout_ms must be positive, got {self.ready_timeout_ms}")
        if self.speed_clicks < 0:
            raise ValueError(f"speed_clicks must not be negative, got {self.speed_clicks}")
        if self.max_frames > FRAME_INDEX_LIMIT:
            raise ValueError(
                f"{self.frame_rate} fps x {self.max_duration_seconds}s exceeds "
                f"{FRAME_INDEX_LIMIT} frames"
            )

    @property
    def max_frames(self) -> int:
        return self.frame_rate * self.max_duration_seconds

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}
