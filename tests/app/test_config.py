from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from app.config import AppSettings, load_settings
from domain.models import Size


def test_defaults_match_canvas_constants(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    settings = load_settings()
    layout = settings.layout_config()
    assert layout.card_size == Size(250, 300)
    assert layout.padding == 80
    assert layout.base_radius == 250
    assert layout.radius_jitter == 200
    assert layout.items_per_layer == 8
    assert layout.layer_spacing == 380
    assert layout.max_attempts == 100
    assert layout.reserve_anchor is False

    previews = settings.preview_config()
    assert previews.max_age == timedelta(days=180)
    assert previews.site_domain == "braydoncoyer.dev"
    assert "x.com" in previews.excluded_domains


def test_yaml_file_and_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "site.yaml"
    config_path.write_text(
        "\n".join(
            [
                "title: Wall",
                "site_domain: example.dev",
                "log_level: debug",
                "canvas:",
                "  padding: 40",
                "  reserve_anchor: true",
                "previews:",
                "  image_format: jpg",
                "  excluded_domains: 'a.com, b.com'",
                "stats:",
                "  revamp_date: 2024-01-15",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("SITE_TITLE", "From env")
    monkeypatch.setenv("SITE_CANVAS__LAYER_SPACING", "500")

    settings = load_settings(config_path)

    assert settings.title == "From env"
    assert settings.log_level == "DEBUG"
    assert settings.canvas.padding == 40
    assert settings.canvas.layer_spacing == 500
    assert settings.layout_config().reserve_anchor is True
    assert settings.previews.image_format == "jpeg"
    assert settings.preview_config().excluded_domains == ("a.com", "b.com")
    assert settings.preview_config().site_domain == "example.dev"
    assert settings.stats.revamp_date.isoformat() == "2024-01-15"


def test_config_path_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "env.yaml"
    config_path.write_text("title: Env path\n", encoding="utf-8")
    monkeypatch.setenv("SITE_CONFIG_PATH", str(config_path))
    assert load_settings().title == "Env path"


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "absent.yaml")


def test_yaml_source_is_not_sticky(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    config_path = tmp_path / "site.yaml"
    config_path.write_text("title: Once\n", encoding="utf-8")
    assert load_settings(config_path).title == "Once"
    assert AppSettings().title == "Site Tools"
