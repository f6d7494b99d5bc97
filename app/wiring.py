from __future__ import annotations

from adapters.filesystem.link_preview_repository import FileSystemLinkPreviewRepository
from adapters.filesystem.site_data_repository import FileSystemPostRepository
from adapters.layout.radial import RadialLayoutEngine
from adapters.screenshots.playwright_screenshotter import PlaywrightScreenshotter
from app.config import AppSettings
from domain.ports.screenshots import Screenshotter
from domain.services.generate_link_previews import FixFailedPreviews, GenerateLinkPreviews


def build_layout_engine(settings: AppSettings) -> RadialLayoutEngine:
    return RadialLayoutEngine(settings.layout_config())


def build_screenshotter(settings: AppSettings) -> Screenshotter:
    return PlaywrightScreenshotter(settings.preview_config())


def build_preview_generator(
    settings: AppSettings, screenshotter: Screenshotter | None = None
) -> GenerateLinkPreviews:
    return GenerateLinkPreviews(
        FileSystemPostRepository(),
        FileSystemLinkPreviewRepository(),
        screenshotter or build_screenshotter(settings),
        settings.preview_config(),
    )


def build_preview_fixer(
    settings: AppSettings, screenshotter: Screenshotter | None = None
) -> FixFailedPreviews:
    return FixFailedPreviews(
        FileSystemPostRepository(),
        FileSystemLinkPreviewRepository(),
        screenshotter or build_screenshotter(settings),
        settings.preview_config(),
    )

