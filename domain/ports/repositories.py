from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from domain.models import (
    ArticleReactionRow,
    ArticleViewRow,
    ChangelogItem,
    LinkPreviewManifest,
    Message,
    Post,
)


class PostRepository(Protocol):
    def load_posts(self, path: Path) -> Sequence[Post]: ...

    def load_changelog(self, path: Path) -> Sequence[ChangelogItem]: ...


class SiteDataRepository(Protocol):
    def load_messages(self, path: Path) -> Sequence[Message]: ...

    def load_article_views(self, path: Path) -> Sequence[ArticleViewRow]: ...

    def load_article_reactions(self, path: Path) -> Sequence[ArticleReactionRow]: ...


class LinkPreviewManifestRepository(Protocol):
    def load(self, path: Path) -> LinkPreviewManifest | None: ...

    def save(self, manifest: LinkPreviewManifest, path: Path) -> None: ...

    def load_content_hash(self, path: Path) -> str | None: ...

    def save_content_hash(self, value: str, path: Path) -> None: ...
