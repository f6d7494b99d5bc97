from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import List

from adapters.filesystem.json_utils import load_json_list
from domain.models import (
    ArticleReactionRow,
    ArticleViewRow,
    ChangelogItem,
    Message,
    Post,
)
from domain.ports.repositories import PostRepository, SiteDataRepository

_EPOCH = datetime.min.replace(tzinfo=UTC)


def _created_at_key(message: Message) -> datetime:
    created_at = message.created_at
    if created_at is None:
        return _EPOCH
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=UTC)
    return created_at


class FileSystemSiteDataRepository(SiteDataRepository):
    """Reads JSON snapshots of the hosted database tables."""

    def load_messages(self, path: Path) -> List[Message]:
        messages = [Message.model_validate(row) for row in load_json_list(path, "messages")]
        # Newest first; the oldest message ends up last and anchors the canvas.
        return sorted(messages, key=_created_at_key, reverse=True)

    def load_article_views(self, path: Path) -> List[ArticleViewRow]:
        return [ArticleViewRow.model_validate(row) for row in load_json_list(path, "article_views")]

    def load_article_reactions(self, path: Path) -> List[ArticleReactionRow]:
        return [
            ArticleReactionRow.model_validate(row)
            for row in load_json_list(path, "article_reactions")
        ]


class FileSystemPostRepository(PostRepository):
    """Reads compiled content exported by the MDX build (``.velite/*.json``)."""

    def load_posts(self, path: Path) -> List[Post]:
        return [Post.model_validate(row) for row in load_json_list(path, "posts")]

    def load_changelog(self, path: Path) -> List[ChangelogItem]:
        if not path.exists():
            return []
        return [ChangelogItem.model_validate(row) for row in load_json_list(path, "changelog")]
