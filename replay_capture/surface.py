"""Playwright-driven replay viewer page."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

try:
    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
    from playwright.sync_api import Page, sync_playwright
except ImportError as exc:  # pragma: no cover
    raise SystemExit(
        "Playwright is required. Install with: pip install playwright && playwright install chromium"
    ) from exc

from .config import CaptureConfig
from .errors import ProbeFailure, SnapshotFailure, SurfaceUnready


@dataclass(frozen=True)
class ReplaySelectors:
    battle: str = ".battle"
    speed: str = 'button[name="speed"]'
    play: str = 'button[name="play"]'
    play_fallback: str = ".replay-controls button"


class ReplaySurface:
    def __init__(self, page: Page, selectors: ReplaySelectors | None = None) -> None:
        self.page = page
        self.selectors = selectors or ReplaySelectors()

    def ready(self, url: str, timeout_ms: int) -> None:
        try:
            self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            self.page.wait_for_selector(self.selectors.battle, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise SurfaceUnready(
                f"battle view did not appear within {timeout_ms} ms at {url}"
            ) from exc
        except PlaywrightError as exc:
            raise SurfaceUnready(f"could not load {url}: {exc}") from exc

    def accelerate(self, clicks: int) -> int:
        """Press the speed control `clicks` times; returns how many clicks landed."""
        if clicks <= 0:
            return 0
        try:
            return self.page.evaluate(
                """([selector, clicks]) => {
                    const button = document.querySelector(selector);
                    if (!button) return 0;
                    for (let i = 0; i < clicks; i++) button.click();
                    return clicks;
                }""",
                [self.selectors.speed, clicks],
            )
        except PlaywrightError as exc:
            raise SurfaceUnready(f"could not change replay speed: {exc}") from exc

    def play(self) -> None:
        try:
            started = self.page.evaluate(
                """([primary, fallback]) => {
                    const button = document.querySelector(primary) || document.querySelector(fallback);
                    if (!button) return false;
                    button.click();
                    return true;
                }""",
                [self.selectors.play, self.selectors.play_fallback],
            )
        except PlaywrightError as exc:
            raise SurfaceUnready(f"could not start playback: {exc}") from exc
        if not started:
            raise SurfaceUnready("play button not found")

    def probe_terminal(self) -> bool:
        # The viewer re-enables play once the battle has finished.
        try:
            return bool(
                self.page.evaluate(
                    """(selector) => {
                        const button = document.querySelector(selector);
                        return !!button && !button.disabled;
                    }""",
                    self.selectors.play,
                )
            )
        except PlaywrightError as exc:
            raise ProbeFailure(f"end-of-replay probe failed: {exc}") from exc

    def capture_snapshot(self, quality: int) -> bytes:
        try:
            return self.page.screenshot(type="jpeg", quality=quality)
        except PlaywrightError as exc:
            raise SnapshotFailure(f"screenshot failed: {exc}") from exc

    def yield_control(self) -> None:
        try:
            self.page.wait_for_timeout(0)
        except PlaywrightError as exc:
            raise ProbeFailure(f"page went away: {exc}") from exc


@contextmanager
def open_replay_surface(config: CaptureConfig) -> Iterator[ReplaySurface]:
    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=config.headless)
        try:
            context = browser.new_context(viewport=config.viewport)
            page = context.new_page()
            page.set_default_timeout(config.ready_timeout_ms)
            yield ReplaySurface(page)
        finally:
            browser.close()
