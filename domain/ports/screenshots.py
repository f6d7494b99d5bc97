from __future__ import annotations

from pathlib import Path
from typing import Protocol

from domain.models import CaptureResult


class ScreenshotSession(Protocol):
    async def capture(
        self, url: str, target: Path, timeout_ms: int, settle_ms: int
    ) -> CaptureResult: ...

    async def close(self) -> None: ...


class Screenshotter(Protocol):
    async def open(self) -> ScreenshotSession: ...
