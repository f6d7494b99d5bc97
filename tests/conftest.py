from __future__ import annotations

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from app.config import AppSettings, DataSettings, LinkPreviewSettings


def _clear_site_env() -> None:
    for key in list(os.environ):
        if key.startswith("SITE_"):
            os.environ.pop(key, None)


_clear_site_env()


@pytest.fixture(autouse=True)
def clear_site_env() -> Generator[None, None, None]:
    _clear_site_env()
    yield
    _clear_site_env()


@pytest.fixture
def data_settings(tmp_path: Path) -> DataSettings:
    return DataSettings(
        messages_path=tmp_path / "data" / "messages.json",
        article_views_path=tmp_path / "data" / "article_views.json",
        article_reactions_path=tmp_path / "data" / "article_reactions.json",
        posts_path=tmp_path / ".velite" / "posts.json",
        changelog_path=tmp_path / ".velite" / "changelog.json",
    )


@pytest.fixture
def preview_settings(tmp_path: Path) -> LinkPreviewSettings:
    return LinkPreviewSettings(
        output_dir=tmp_path / "public" / "previews",
        manifest_path=tmp_path / "public" / "previews" / "manifest.json",
        content_hash_path=tmp_path / "public" / "previews" / ".content-hash",
    )


@pytest.fixture
def app_settings(data_settings: DataSettings, preview_settings: LinkPreviewSettings) -> AppSettings:
    return AppSettings(data=data_settings, previews=preview_settings)


@pytest.fixture
def app_settings_factory(app_settings: AppSettings) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return app_settings.model_copy(update=overrides)

    return _factory
