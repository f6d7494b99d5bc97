from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from domain.link_previews import (
    LinkPreviewConfig,
    build_entry,
    collect_post_urls,
    content_hash,
    extract_urls_from_code,
    is_external_url,
    select_urls_to_fix,
    select_urls_to_generate,
    should_generate_preview,
)
from domain.models import LinkPreviewEntry, Post
from domain.services.seeded_random import hash_url

CONFIG = LinkPreviewConfig()
NOW = datetime(2026, 10, 1, tzinfo=UTC)


def _entry(url: str, status: str = "success", age_days: int = 1) -> LinkPreviewEntry:
    return LinkPreviewEntry(
        url=url,
        screenshot_path=CONFIG.public_path(url),
        width=1200,
        height=630,
        generated_at=NOW - timedelta(days=age_days),
        status=status,
    )


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://example.com/post", True),
        ("http://example.com", True),
        ("/blog/other-post", False),
        ("#section", False),
        ("https://braydoncoyer.dev/blog", False),
        ("mailto:hello@example.com", False),
        ("ftp://example.com/file", False),
        ("", False),
    ],
)
def test_is_external_url(url: str, expected: bool) -> None:
    assert is_external_url(url, CONFIG.site_domain) is expected


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://github.com/vercel/next.js", True),
        ("https://twitter.com/someone", False),
        ("https://www.youtube.com/watch?v=1", False),
        ("https://old.reddit.com/r/python", False),
        # Host matching is substring based.
        ("https://box.com/file", False),
    ],
)
def test_should_generate_preview_excludes_social_domains(url: str, expected: bool) -> None:
    assert should_generate_preview(url, CONFIG) is expected


def test_extract_urls_from_compiled_code() -> None:
    code = (
        'const a = _jsx("a", { href: "https://react.dev/learn", children: "React" });'
        " const b = {href:'https://tailwindcss.com'};"
        ' <a href="https://developer.mozilla.org/en-US/">MDN</a>'
        ' <a href="/blog/local">local</a>'
        ' <a href="https://x.com/user">x</a>'
        ' const c = _jsx("a", { href: "https://react.dev/learn" });'
    )
    # Patterns run in turn, so plain href="..." attributes are found first.
    assert extract_urls_from_code(code, CONFIG) == [
        "https://developer.mozilla.org/en-US/",
        "https://react.dev/learn",
        "https://tailwindcss.com",
    ]


def test_extract_urls_from_escaped_code() -> None:
    code = r'"<a href=\"https://vitejs.dev/guide\">Vite</a>"'
    assert extract_urls_from_code(code, CONFIG) == ["https://vitejs.dev/guide"]


def test_collect_post_urls_skips_drafts() -> None:
    posts = [
        Post(slug="one", code='href="https://one.example.com"'),
        Post(slug="draft", code='href="https://draft.example.com"', draft=True),
        Post(slug="two", code='href="https://one.example.com" href="https://two.example.com"'),
    ]
    assert collect_post_urls(posts, CONFIG) == [
        "https://one.example.com",
        "https://two.example.com",
    ]


def test_content_hash_tracks_post_code() -> None:
    posts = [Post(slug="a", code="alpha"), Post(slug="b", code="beta")]
    assert content_hash(posts) == content_hash(list(posts))
    assert content_hash(posts) != content_hash([Post(slug="a", code="alpha")])
    assert len(content_hash([])) == 32


def test_select_urls_to_generate() -> None:
    fresh = "https://fresh.example.com"
    stale = "https://stale.example.com"
    failed = "https://failed.example.com"
    new = "https://new.example.com"
    previews = {
        hash_url(fresh): _entry(fresh, age_days=10),
        hash_url(stale): _entry(stale, age_days=200),
        hash_url(failed): _entry(failed, status="failed", age_days=400),
    }
    selection = select_urls_to_generate(
        [fresh, stale, failed, new], previews, NOW, timedelta(days=180)
    )
    assert selection.to_process == [stale, new]
    assert selection.missing == [new]
    assert selection.stale == [stale]


@pytest.mark.parametrize(
    ("retry_all", "expected"),
    [
        (False, ["https://new.example.com"]),
        (True, ["https://failed.example.com", "https://new.example.com"]),
    ],
)
def test_select_urls_to_fix(retry_all: bool, expected: list[str]) -> None:
    ok = "https://ok.example.com"
    failed = "https://failed.example.com"
    previews = {hash_url(ok): _entry(ok), hash_url(failed): _entry(failed, status="failed")}
    selection = select_urls_to_fix(
        [ok, failed, "https://new.example.com"], previews, retry_all=retry_all
    )
    assert selection.to_process == expected


def test_build_entry_uses_hashed_paths() -> None:
    config = LinkPreviewConfig(output_dir=Path("out"), image_format="png")
    url = "https://example.com"
    entry = build_entry(url, config, success=False, error="boom", now=NOW)
    assert entry.screenshot_path == f"/previews/{hash_url(url)}.png"
    assert config.screenshot_file(url) == Path("out") / f"{hash_url(url)}.png"
    assert entry.status == "failed"
    assert entry.to_dict()["errorMessage"] == "boom"
    assert entry.to_dict()["screenshotPath"] == entry.screenshot_path


def test_entry_parses_manifest_json_keys() -> None:
    entry = LinkPreviewEntry.model_validate(
        {
            "url": "https://example.com",
            "screenshotPath": "/previews/abc.jpeg",
            "width": 1200,
            "height": 630,
            "generatedAt": "2025-04-01T10:00:00.000Z",
            "status": "success",
        }
    )
    assert entry.generated_at == datetime(2025, 4, 1, 10, 0, tzinfo=UTC)
    assert "errorMessage" not in entry.to_dict()
