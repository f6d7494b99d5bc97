from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MANIFEST_SCHEMA_VERSION = "1.0"

ReactionType = Literal["like", "heart", "celebrate", "insightful"]
REACTION_TYPES: tuple[ReactionType, ...] = ("like", "heart", "celebrate", "insightful")

PreviewStatus = Literal["success", "failed", "timeout"]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class CardPlacement:
    item_id: str
    index: int
    layer: int
    position: Point
    anchored: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.item_id,
            "index": self.index,
            "layer": self.layer,
            "anchored": self.anchored,
            "position": {"x": self.position.x, "y": self.position.y},
        }


@dataclass(frozen=True)
class CanvasLayout:
    placements: tuple[CardPlacement, ...]
    card_size: Size
    bounds: Optional[BoundingBox] = None

    def position_of(self, item_id: str) -> Point | None:
        for placement in self.placements:
            if placement.item_id == item_id:
                return placement.position
        return None

    def to_dict(self) -> dict[str, Any]:
        bounds = None
        if self.bounds is not None:
            bounds = {
                "x": self.bounds.x,
                "y": self.bounds.y,
                "width": self.bounds.width,
                "height": self.bounds.height,
            }
        return {
            "card_size": {"width": self.card_size.width, "height": self.card_size.height},
            "bounds": bounds,
            "placements": [placement.to_dict() for placement in self.placements],
        }


class CanvasItem(BaseModel):
    id: str = Field(..., min_length=1)


class Message(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    message: str = ""
    patternindex: int = 0
    rotation: float = 0.0
    creator_name: str = ""
    creator_avatar_url: str = ""
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: object) -> str:
        return str(value) if value is not None else ""


class Post(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    slug: str = Field(..., min_length=1)
    title: str = ""
    code: str = ""
    content: str = ""
    draft: bool = False
    categories: List[str] = Field(default_factory=list)
    image_name: Optional[str] = Field(default=None, alias="imageName")


class ChangelogItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = ""
    draft: bool = False


class ArticleViewRow(BaseModel):
    slug: str
    view_count: int = 0


class ArticleReactionRow(BaseModel):
    article_slug: str
    reaction_type: str
    count: int = 0


class LinkPreviewEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    screenshot_path: str = Field(..., alias="screenshotPath")
    width: int
    height: int
    generated_at: datetime = Field(..., alias="generatedAt")
    status: PreviewStatus
    error_message: Optional[str] = Field(default=None, alias="errorMessage")

    @field_validator("generated_at", mode="after")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LinkPreviewManifest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generated: datetime
    version: str = MANIFEST_SCHEMA_VERSION
    previews: Dict[str, LinkPreviewEntry] = Field(default_factory=dict)

    @field_validator("generated", mode="after")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def count_by_status(self, status: PreviewStatus) -> int:
        return sum(1 for entry in self.previews.values() if entry.status == status)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class CaptureResult:
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class CategoryCount:
    name: str
    count: int


@dataclass(frozen=True)
class ArticleMetric:
    slug: str
    title: str
    count: int
    image_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "count": self.count,
            "image_name": self.image_name,
        }


@dataclass(frozen=True)
class BuildTimeStats:
    total_articles: int
    total_words: int
    combined_reading_minutes: int
    avg_words_per_article: int
    changelog_count: int
    category_breakdown: List[CategoryCount] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_articles": self.total_articles,
            "total_words": self.total_words,
            "combined_reading_minutes": self.combined_reading_minutes,
            "avg_words_per_article": self.avg_words_per_article,
            "changelog_count": self.changelog_count,
            "category_breakdown": [
                {"name": item.name, "count": item.count} for item in self.category_breakdown
            ],
        }


@dataclass(frozen=True)
class EngagementStats:
    total_views: int
    total_reactions: int
    reactions_by_type: Dict[str, int]
    top_viewed_articles: List[ArticleMetric]
    top_reacted_articles: List[ArticleMetric]
    community_wall_messages: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_views": self.total_views,
            "total_reactions": self.total_reactions,
            "reactions_by_type": dict(self.reactions_by_type),
            "top_viewed_articles": [item.to_dict() for item in self.top_viewed_articles],
            "top_reacted_articles": [item.to_dict() for item in self.top_reacted_articles],
            "community_wall_messages": self.community_wall_messages,
        }


@dataclass(frozen=True)
class ComputedStats:
    days_since_revamp: int
    coffee_cups: int
    reading_time: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "days_since_revamp": self.days_since_revamp,
            "coffee_cups": self.coffee_cups,
            "reading_time": self.reading_time,
        }


@dataclass(frozen=True)
class TocHeading:
    level: int
    text: str
    slug: str
