from __future__ import annotations

import hashlib
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from domain.models import LinkPreviewEntry, Post
from domain.services.seeded_random import hash_url

ImageFormat = Literal["png", "jpeg"]

DEFAULT_EXCLUDED_DOMAINS: tuple[str, ...] = (
    "twitter.com",
    "x.com",
    "facebook.com",
    "instagram.com",
    "linkedin.com",
    "youtube.com",
    "youtu.be",
    "tiktok.com",
    "reddit.com",
    "discord.com",
    "slack.com",
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_HREF_PATTERNS = (
    re.compile(r'href[=:]\\?"([^"\\]+)\\?"'),
    re.compile(r"href:\s*[\"']([^\"']+)[\"']"),
    re.compile(r'href="([^"]+)"'),
)


@dataclass(frozen=True)
class LinkPreviewConfig:
    output_dir: Path = Path("public/previews")
    manifest_path: Path = Path("public/previews/manifest.json")
    content_hash_path: Path = Path("public/previews/.content-hash")
    public_prefix: str = "/previews"
    screenshot_width: int = 1200
    screenshot_height: int = 630
    timeout_ms: int = 30000
    retry_timeout_ms: int = 45000
    networkidle_timeout_ms: int = 20000
    load_settle_ms: int = 3000
    settle_ms: int = 1000
    retry_settle_ms: int = 1500
    image_format: ImageFormat = "jpeg"
    image_quality: int = 80
    concurrency: int = 3
    max_age: timedelta = timedelta(days=180)
    site_domain: str = "braydoncoyer.dev"
    excluded_domains: tuple[str, ...] = DEFAULT_EXCLUDED_DOMAINS
    blocked_resource_types: tuple[str, ...] = ("font", "media", "websocket")
    user_agent: str = DEFAULT_USER_AGENT

    def screenshot_filename(self, url: str) -> str:
        return f"{hash_url(url)}.{self.image_format}"

    def screenshot_file(self, url: str) -> Path:
        return self.output_dir / self.screenshot_filename(url)

    def public_path(self, url: str) -> str:
        return f"{self.public_prefix.rstrip('/')}/{self.screenshot_filename(url)}"


@dataclass(frozen=True)
class PreviewSelection:
    to_process: list[str]
    missing: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    stale: list[str] = field(default_factory=list)


def is_internal_url(url: str, site_domain: str) -> bool:
    if url.startswith("/") or url.startswith("#"):
        return True
    return bool(site_domain) and site_domain in url


def is_external_url(url: str, site_domain: str) -> bool:
    if not url or is_internal_url(url, site_domain):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def should_generate_preview(url: str, config: LinkPreviewConfig) -> bool:
    if not is_external_url(url, config.site_domain):
        return False
    hostname = urlparse(url).hostname or ""
    return not any(domain in hostname for domain in config.excluded_domains)


def extract_urls_from_code(code: str, config: LinkPreviewConfig) -> list[str]:
    seen: dict[str, None] = {}
    for pattern in _HREF_PATTERNS:
        for match in pattern.finditer(code):
            url = match.group(1)
            if url not in seen and should_generate_preview(url, config):
                seen[url] = None
    return list(seen)


def collect_post_urls(posts: Iterable[Post], config: LinkPreviewConfig) -> list[str]:
    seen: dict[str, None] = {}
    for post in posts:
        if post.draft:
            continue
        for url in extract_urls_from_code(post.code, config):
            seen.setdefault(url, None)
    return list(seen)


def content_hash(posts: Sequence[Post]) -> str:
    digest = hashlib.md5()
    for post in posts:
        digest.update(post.code.encode("utf-8"))
    return digest.hexdigest()


def select_urls_to_generate(
    urls: Iterable[str],
    previews: Mapping[str, LinkPreviewEntry],
    now: datetime,
    max_age: timedelta,
) -> PreviewSelection:
    to_process: list[str] = []
    missing: list[str] = []
    stale: list[str] = []
    for url in urls:
        existing = previews.get(hash_url(url))
        if existing is None:
            missing.append(url)
            to_process.append(url)
            continue
        # Failed captures are left for the repair run.
        if existing.status == "failed":
            continue
        if now - existing.generated_at > max_age:
            stale.append(url)
            to_process.append(url)
    return PreviewSelection(to_process=to_process, missing=missing, stale=stale)


def select_urls_to_fix(
    urls: Iterable[str],
    previews: Mapping[str, LinkPreviewEntry],
    retry_all: bool,
) -> PreviewSelection:
    to_process: list[str] = []
    missing: list[str] = []
    failed: list[str] = []
    for url in urls:
        existing = previews.get(hash_url(url))
        if existing is None:
            missing.append(url)
            to_process.append(url)
        elif existing.status == "failed" and retry_all:
            failed.append(url)
            to_process.append(url)
    return PreviewSelection(to_process=to_process, missing=missing, failed=failed)


def build_entry(
    url: str,
    config: LinkPreviewConfig,
    success: bool,
    error: str | None,
    now: datetime,
) -> LinkPreviewEntry:
    return LinkPreviewEntry(
        url=url,
        screenshot_path=config.public_path(url),
        width=config.screenshot_width,
        height=config.screenshot_height,
        generated_at=now,
        status="success" if success else "failed",
        error_message=error,
    )
