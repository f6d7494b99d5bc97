from __future__ import annotations

import os
from datetime import date, timedelta
from pathlib import Path
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.layout.radial import LayoutConfig
from domain.link_previews import DEFAULT_EXCLUDED_DOMAINS, DEFAULT_USER_AGENT, LinkPreviewConfig
from domain.models import Size
from domain.services.site_stats import StatsSources

DEFAULT_CONFIG_PATH = Path("config/site.yaml")


def _split_string_list_value(raw_value: str) -> list[str]:
    raw = raw_value.strip()
    if raw.startswith("[") and raw.endswith("]"):
        raw = raw[1:-1].strip()
    if not raw:
        return []
    return [
        token for token in (part.strip().strip("'").strip('"') for part in raw.split(",")) if token
    ]


class CanvasSettings(BaseModel):
    card_width: float = 250.0
    card_height: float = 300.0
    padding: float = 80.0
    base_radius: float = 250.0
    radius_jitter: float = 200.0
    items_per_layer: int = Field(default=8, ge=1)
    layer_spacing: float = 380.0
    max_attempts: int = Field(default=100, ge=1)
    reserve_anchor: bool = False
    cache_size: int = Field(default=32, ge=0)

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            card_size=Size(self.card_width, self.card_height),
            padding=self.padding,
            base_radius=self.base_radius,
            radius_jitter=self.radius_jitter,
            items_per_layer=self.items_per_layer,
            layer_spacing=self.layer_spacing,
            max_attempts=self.max_attempts,
            reserve_anchor=self.reserve_anchor,
            cache_size=self.cache_size,
        )


class LinkPreviewSettings(BaseModel):
    output_dir: Path = Path("public/previews")
    manifest_path: Path = Path("public/previews/manifest.json")
    content_hash_path: Path = Path("public/previews/.content-hash")
    public_prefix: str = "/previews"
    screenshot_width: int = 1200
    screenshot_height: int = 630
    timeout_ms: int = 30000
    retry_timeout_ms: int = 45000
    image_format: Literal["png", "jpeg"] = "jpeg"
    image_quality: int = Field(default=80, ge=0, le=100)
    concurrency: int = Field(default=3, ge=1)
    max_age_days: int = 180
    excluded_domains: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_DOMAINS)
    )
    user_agent: str = DEFAULT_USER_AGENT

    @field_validator("image_format", mode="before")
    @classmethod
    def normalize_image_format(cls, value: object) -> str:
        normalized = str(value or "jpeg").strip().lower()
        return "jpeg" if normalized == "jpg" else normalized

    @field_validator("excluded_domains", mode="before")
    @classmethod
    def normalize_domains(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, list):
            normalized: list[str] = []
            for item in value:
                normalized.extend(_split_string_list_value(str(item)))
            return normalized
        return _split_string_list_value(str(value))

    def to_preview_config(self, site_domain: str) -> LinkPreviewConfig:
        return LinkPreviewConfig(
            output_dir=self.output_dir,
            manifest_path=self.manifest_path,
            content_hash_path=self.content_hash_path,
            public_prefix=self.public_prefix,
            screenshot_width=self.screenshot_width,
            screenshot_height=self.screenshot_height,
            timeout_ms=self.timeout_ms,
            retry_timeout_ms=self.retry_timeout_ms,
            image_format=self.image_format,
            image_quality=self.image_quality,
            concurrency=self.concurrency,
            max_age=timedelta(days=self.max_age_days),
            site_domain=site_domain,
            excluded_domains=tuple(self.excluded_domains),
            user_agent=self.user_agent,
        )


class DataSettings(BaseModel):
    messages_path: Path = Path("data/messages.json")
    article_views_path: Path = Path("data/article_views.json")
    article_reactions_path: Path = Path("data/article_reactions.json")
    posts_path: Path = Path(".velite/posts.json")
    changelog_path: Path = Path(".velite/changelog.json")

    def to_stats_sources(self) -> StatsSources:
        return StatsSources(
            posts_path=self.posts_path,
            changelog_path=self.changelog_path,
            messages_path=self.messages_path,
            article_views_path=self.article_views_path,
            article_reactions_path=self.article_reactions_path,
        )


class StatsSettings(BaseModel):
    revamp_date: date = date(2025, 3, 31)
    words_per_minute: int = Field(default=200, ge=1)


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SITE_", env_nested_delimiter="__")

    title: str = "Site Tools"
    site_domain: str = "braydoncoyer.dev"
    log_level: str = "INFO"
    canvas: CanvasSettings = CanvasSettings()
    previews: LinkPreviewSettings = LinkPreviewSettings()
    data: DataSettings = DataSettings()
    stats: StatsSettings = StatsSettings()

    _yaml_path: ClassVar[Path | None] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        return str(value).upper() if value else "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)

    def layout_config(self) -> LayoutConfig:
        return self.canvas.to_layout_config()

    def preview_config(self) -> LinkPreviewConfig:
        return self.previews.to_preview_config(self.site_domain)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("SITE_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
