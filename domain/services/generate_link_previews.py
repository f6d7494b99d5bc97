from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from domain.link_previews import (
    LinkPreviewConfig,
    build_entry,
    collect_post_urls,
    content_hash,
    select_urls_to_fix,
    select_urls_to_generate,
)
from domain.models import (
    MANIFEST_SCHEMA_VERSION,
    CaptureResult,
    LinkPreviewEntry,
    LinkPreviewManifest,
    Post,
)
from domain.ports.repositories import LinkPreviewManifestRepository, PostRepository
from domain.ports.screenshots import ScreenshotSession, Screenshotter
from domain.services.seeded_random import hash_url

logger = logging.getLogger(__name__)

RunOutcome = Literal[
    "no_posts",
    "no_manifest",
    "unchanged",
    "no_urls",
    "up_to_date",
    "captured",
]


@dataclass(frozen=True)
class PreviewRunSummary:
    outcome: RunOutcome
    discovered: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    total_previews: int = 0


def _utc_now() -> datetime:
    return datetime.now(UTC)


class _PreviewServiceBase:
    def __init__(
        self,
        posts: PostRepository,
        manifests: LinkPreviewManifestRepository,
        screenshotter: Screenshotter,
        config: LinkPreviewConfig,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._posts = posts
        self._manifests = manifests
        self._screenshotter = screenshotter
        self._config = config
        self._clock = clock

    def _load_posts(self, posts_path: Path) -> Sequence[Post] | None:
        try:
            return self._posts.load_posts(posts_path)
        except FileNotFoundError:
            logger.warning("No compiled posts found at %s", posts_path)
            return None

    def _write_manifest(
        self, previews: dict[str, LinkPreviewEntry], version: str | None = None
    ) -> LinkPreviewManifest:
        manifest = LinkPreviewManifest(
            generated=self._clock(),
            version=version or MANIFEST_SCHEMA_VERSION,
            previews=dict(previews),
        )
        self._manifests.save(manifest, self._config.manifest_path)
        return manifest

    async def _capture_one(
        self,
        session: ScreenshotSession,
        url: str,
        timeout_ms: int,
        settle_ms: int,
    ) -> LinkPreviewEntry:
        logger.info("Capturing %s", url)
        try:
            result = await session.capture(
                url, self._config.screenshot_file(url), timeout_ms, settle_ms
            )
        except OSError as exc:
            # Write errors are recorded as failed captures.
            result = CaptureResult(success=False, error=str(exc))
        if result.success:
            logger.info("Captured %s", url)
        else:
            logger.warning("Capture failed for %s: %s", url, result.error)
        return build_entry(url, self._config, result.success, result.error, self._clock())


class GenerateLinkPreviews(_PreviewServiceBase):
    async def run(self, posts_path: Path) -> PreviewRunSummary:
        config = self._config
        config.output_dir.mkdir(parents=True, exist_ok=True)

        existing = self._manifests.load(config.manifest_path)
        previews = dict(existing.previews) if existing else {}

        posts = self._load_posts(posts_path)
        if posts is None:
            self._write_manifest(previews)
            return PreviewRunSummary(outcome="no_posts", total_previews=len(previews))

        current_hash = content_hash(posts)
        stored_hash = self._manifests.load_content_hash(config.content_hash_path)
        if existing is not None and stored_hash == current_hash:
            logger.info("No content changes detected, skipping preview generation")
            return PreviewRunSummary(outcome="unchanged", total_previews=len(previews))

        urls = collect_post_urls(posts, config)
        logger.info("Found %d unique external URLs", len(urls))
        if not urls:
            self._write_manifest(previews)
            self._manifests.save_content_hash(current_hash, config.content_hash_path)
            return PreviewRunSummary(outcome="no_urls", total_previews=len(previews))

        selection = select_urls_to_generate(urls, previews, self._clock(), config.max_age)
        if not selection.to_process:
            self._write_manifest(previews)
            self._manifests.save_content_hash(current_hash, config.content_hash_path)
            return PreviewRunSummary(
                outcome="up_to_date", discovered=len(urls), total_previews=len(previews)
            )

        logger.info("Processing %d new or stale URLs", len(selection.to_process))
        session = await self._screenshotter.open()
        try:
            previews = await self._capture_batches(session, selection.to_process, previews)
        finally:
            await session.close()

        manifest = self._write_manifest(previews)
        self._manifests.save_content_hash(current_hash, config.content_hash_path)
        return PreviewRunSummary(
            outcome="captured",
            discovered=len(urls),
            processed=len(selection.to_process),
            succeeded=manifest.count_by_status("success"),
            failed=manifest.count_by_status("failed"),
            total_previews=len(manifest.previews),
        )

    async def _capture_batches(
        self,
        session: ScreenshotSession,
        urls: Sequence[str],
        previews: dict[str, LinkPreviewEntry],
    ) -> dict[str, LinkPreviewEntry]:
        results = dict(previews)
        batch_size = max(1, self._config.concurrency)
        batch_count = (len(urls) + batch_size - 1) // batch_size
        for batch_number, start in enumerate(range(0, len(urls), batch_size), start=1):
            batch = urls[start : start + batch_size]
            logger.info("Processing batch %d/%d", batch_number, batch_count)
            entries = await asyncio.gather(
                *(
                    self._capture_one(
                        session, url, self._config.timeout_ms, self._config.settle_ms
                    )
                    for url in batch
                )
            )
            for entry in entries:
                results[hash_url(entry.url)] = entry
            # Manifest is rewritten after every batch.
            self._write_manifest(results)
        return results


class FixFailedPreviews(_PreviewServiceBase):
    async def run(self, posts_path: Path, retry_all: bool = False) -> PreviewRunSummary:
        config = self._config
        manifest = self._manifests.load(config.manifest_path)
        if manifest is None:
            logger.error("No manifest found at %s", config.manifest_path)
            return PreviewRunSummary(outcome="no_manifest")

        previews = dict(manifest.previews)
        posts = self._load_posts(posts_path)
        if posts is None:
            return PreviewRunSummary(outcome="no_posts", total_previews=len(previews))

        urls = collect_post_urls(posts, config)
        selection = select_urls_to_fix(urls, previews, retry_all)
        logger.info(
            "Found %d URLs: %d missing, %d failed to retry",
            len(urls),
            len(selection.missing),
            len(selection.failed),
        )
        if not selection.to_process:
            return PreviewRunSummary(
                outcome="up_to_date", discovered=len(urls), total_previews=len(previews)
            )

        config.output_dir.mkdir(parents=True, exist_ok=True)
        succeeded = 0
        failed = 0
        session = await self._screenshotter.open()
        try:
            for position, url in enumerate(selection.to_process, start=1):
                logger.info("[%d/%d] %s", position, len(selection.to_process), url)
                entry = await self._capture_one(
                    session, url, config.retry_timeout_ms, config.retry_settle_ms
                )
                previews[hash_url(url)] = entry
                if entry.status == "success":
                    succeeded += 1
                else:
                    failed += 1
        finally:
            await session.close()

        updated = self._write_manifest(previews, version=manifest.version)
        return PreviewRunSummary(
            outcome="captured",
            discovered=len(urls),
            processed=len(selection.to_process),
            succeeded=succeeded,
            failed=failed,
            total_previews=len(updated.previews),
        )
