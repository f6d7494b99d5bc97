from __future__ import annotations

import logging
from pathlib import Path

import orjson
from filelock import FileLock
from pydantic import ValidationError

from adapters.filesystem.json_utils import load_json, write_json_atomic
from domain.models import LinkPreviewManifest
from domain.ports.repositories import LinkPreviewManifestRepository

logger = logging.getLogger(__name__)


class FileSystemLinkPreviewRepository(LinkPreviewManifestRepository):
    def load(self, path: Path) -> LinkPreviewManifest | None:
        if not path.exists():
            return None
        try:
            return LinkPreviewManifest.model_validate(load_json(path))
        except (orjson.JSONDecodeError, ValidationError) as exc:
            logger.warning("Ignoring unreadable manifest %s: %s", path, exc)
            return None

    def save(self, manifest: LinkPreviewManifest, path: Path) -> None:
        lock_path = path.with_suffix(f"{path.suffix}.lock")
        with FileLock(str(lock_path)):
            write_json_atomic(path, manifest.to_dict())

    def load_content_hash(self, path: Path) -> str | None:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8").strip() or None

    def save_content_hash(self, value: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")
