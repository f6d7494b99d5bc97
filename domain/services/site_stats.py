from __future__ import annotations

import logging
import math
import re
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, TypeVar

from domain.models import (
    REACTION_TYPES,
    ArticleMetric,
    ArticleReactionRow,
    ArticleViewRow,
    BuildTimeStats,
    CategoryCount,
    ChangelogItem,
    ComputedStats,
    EngagementStats,
    Post,
)
from domain.ports.repositories import PostRepository, SiteDataRepository

logger = logging.getLogger(__name__)

_Row = TypeVar("_Row")

WORDS_PER_MINUTE = 200
WORDS_PER_COFFEE_CUP = 500
TOP_ARTICLES_LIMIT = 5

_TAG_RE = re.compile(r"<[^>]*>")
_EXPRESSION_RE = re.compile(r"\{[^}]*\}")
_FENCED_CODE_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`[^`]*`")
_WHITESPACE_RE = re.compile(r"\s+")


def estimate_word_count(mdx_code: str) -> int:
    stripped = _TAG_RE.sub(" ", mdx_code)
    stripped = _EXPRESSION_RE.sub(" ", stripped)
    stripped = _FENCED_CODE_RE.sub(" ", stripped)
    stripped = _INLINE_CODE_RE.sub(" ", stripped)
    stripped = _WHITESPACE_RE.sub(" ", stripped).strip()
    return len([word for word in stripped.split(" ") if word])


def compute_build_time_stats(
    posts: Iterable[Post],
    changelog: Iterable[ChangelogItem],
    words_per_minute: int = WORDS_PER_MINUTE,
) -> BuildTimeStats:
    published = [post for post in posts if not post.draft]
    changelog_count = sum(1 for item in changelog if not item.draft)

    total_words = sum(estimate_word_count(post.code) for post in published)
    avg_words = math.floor(total_words / len(published) + 0.5) if published else 0

    categories: Counter[str] = Counter()
    for post in published:
        categories.update(post.categories)
    # Counter.most_common keeps first-seen order for ties.
    breakdown = [CategoryCount(name=name, count=count) for name, count in categories.most_common()]

    return BuildTimeStats(
        total_articles=len(published),
        total_words=total_words,
        combined_reading_minutes=math.ceil(total_words / words_per_minute),
        avg_words_per_article=avg_words,
        changelog_count=changelog_count,
        category_breakdown=breakdown,
    )


def _article_metric(slug: str, count: int, posts_by_slug: dict[str, Post]) -> ArticleMetric:
    post = posts_by_slug.get(slug)
    return ArticleMetric(
        slug=slug,
        title=(post.title if post and post.title else slug),
        count=count,
        image_name=post.image_name if post else None,
    )


def compute_engagement_stats(
    views: Sequence[ArticleViewRow],
    reactions: Sequence[ArticleReactionRow],
    posts: Sequence[Post],
    message_count: int,
) -> EngagementStats:
    posts_by_slug = {post.slug: post for post in posts}

    reactions_by_type = {reaction: 0 for reaction in REACTION_TYPES}
    reactions_per_article: dict[str, int] = {}
    for row in reactions:
        if row.reaction_type in reactions_by_type:
            reactions_by_type[row.reaction_type] += row.count
        reactions_per_article[row.article_slug] = (
            reactions_per_article.get(row.article_slug, 0) + row.count
        )

    top_viewed = sorted(views, key=lambda row: row.view_count, reverse=True)[:TOP_ARTICLES_LIMIT]
    top_reacted = sorted(
        reactions_per_article.items(), key=lambda item: item[1], reverse=True
    )[:TOP_ARTICLES_LIMIT]

    return EngagementStats(
        total_views=sum(row.view_count for row in views),
        total_reactions=sum(reactions_by_type.values()),
        reactions_by_type=reactions_by_type,
        top_viewed_articles=[
            _article_metric(row.slug, row.view_count, posts_by_slug) for row in top_viewed
        ],
        top_reacted_articles=[
            _article_metric(slug, count, posts_by_slug) for slug, count in top_reacted
        ],
        community_wall_messages=message_count,
    )


def format_reading_time(minutes: int) -> str:
    hours, remainder = divmod(minutes, 60)
    return f"{hours}h {remainder}m" if hours > 0 else f"{remainder}m"


def compute_derived_stats(
    build_stats: BuildTimeStats, revamp_date: date, today: date
) -> ComputedStats:
    return ComputedStats(
        days_since_revamp=max(0, (today - revamp_date).days),
        coffee_cups=build_stats.total_words // WORDS_PER_COFFEE_CUP,
        reading_time=format_reading_time(build_stats.combined_reading_minutes),
    )


@dataclass(frozen=True)
class StatsSources:
    posts_path: Path
    changelog_path: Path
    messages_path: Path
    article_views_path: Path
    article_reactions_path: Path


@dataclass(frozen=True)
class SiteStatsReport:
    build_time: BuildTimeStats
    engagement: EngagementStats
    computed: ComputedStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "build_time": self.build_time.to_dict(),
            "engagement": self.engagement.to_dict(),
            "computed": self.computed.to_dict(),
        }


class BuildSiteStats:
    def __init__(self, posts: PostRepository, site_data: SiteDataRepository) -> None:
        self._posts = posts
        self._site_data = site_data

    def build(
        self,
        sources: StatsSources,
        revamp_date: date,
        today: date,
        words_per_minute: int = WORDS_PER_MINUTE,
    ) -> SiteStatsReport:
        posts = self._posts.load_posts(sources.posts_path)
        changelog = self._posts.load_changelog(sources.changelog_path)
        build_time = compute_build_time_stats(posts, changelog, words_per_minute)

        views = self._load_optional(self._site_data.load_article_views, sources.article_views_path)
        reactions = self._load_optional(
            self._site_data.load_article_reactions, sources.article_reactions_path
        )
        messages = self._load_optional(self._site_data.load_messages, sources.messages_path)
        engagement = compute_engagement_stats(views, reactions, posts, len(messages))

        return SiteStatsReport(
            build_time=build_time,
            engagement=engagement,
            computed=compute_derived_stats(build_time, revamp_date, today),
        )

    def _load_optional(self, loader: Callable[[Path], Sequence[_Row]], path: Path) -> Sequence[_Row]:
        if not path.exists():
            logger.info("Snapshot %s not found, treating it as empty", path)
            return []
        return loader(path)
