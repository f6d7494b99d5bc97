from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import Browser, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from domain.link_previews import LinkPreviewConfig
from domain.models import CaptureResult
from domain.ports.screenshots import ScreenshotSession, Screenshotter

logger = logging.getLogger(__name__)


class PlaywrightScreenshotSession(ScreenshotSession):
    def __init__(self, playwright: Playwright, browser: Browser, config: LinkPreviewConfig) -> None:
        self._playwright = playwright
        self._browser = browser
        self._config = config

    async def capture(
        self, url: str, target: Path, timeout_ms: int, settle_ms: int
    ) -> CaptureResult:
        config = self._config
        context = await self._browser.new_context(
            viewport={"width": config.screenshot_width, "height": config.screenshot_height},
            user_agent=config.user_agent,
        )
        try:
            page = await context.new_page()
            blocked = set(config.blocked_resource_types)

            async def block_heavy_resources(route: Route) -> None:
                if route.request.resource_type in blocked:
                    await route.abort()
                else:
                    await route.continue_()

            await page.route("**/*", block_heavy_resources)

            try:
                await page.goto(
                    url, wait_until="networkidle", timeout=config.networkidle_timeout_ms
                )
            except PlaywrightError:
                logger.debug("networkidle timed out for %s, retrying with domcontentloaded", url)
                await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                await page.wait_for_timeout(config.load_settle_ms)

            await page.wait_for_timeout(settle_ms)

            target.parent.mkdir(parents=True, exist_ok=True)
            if config.image_format == "png":
                await page.screenshot(path=str(target), type="png")
            else:
                await page.screenshot(
                    path=str(target), type="jpeg", quality=config.image_quality
                )
            return CaptureResult(success=True)
        except PlaywrightError as exc:
            return CaptureResult(success=False, error=exc.message or str(exc))
        except OSError as exc:
            logger.warning("Could not write screenshot %s: %s", target, exc)
            return CaptureResult(success=False, error=str(exc))
        finally:
            await context.close()

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


class PlaywrightScreenshotter(Screenshotter):
    def __init__(self, config: LinkPreviewConfig) -> None:
        self._config = config

    async def open(self) -> PlaywrightScreenshotSession:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=True)
        except PlaywrightError:
            await playwright.stop()
            raise
        logger.info("Launched headless Chromium")
        return PlaywrightScreenshotSession(playwright, browser, self._config)
