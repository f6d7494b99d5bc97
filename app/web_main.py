from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import cast

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import ORJSONResponse
from pydantic import ValidationError

from adapters.filesystem.link_preview_repository import FileSystemLinkPreviewRepository
from adapters.filesystem.site_data_repository import (
    FileSystemPostRepository,
    FileSystemSiteDataRepository,
)
from adapters.layout.radial import RadialLayoutEngine
from app.config import AppSettings, load_settings
from app.wiring import build_layout_engine
from domain.link_previews import LinkPreviewConfig
from domain.models import CanvasItem, LinkPreviewManifest
from domain.services.seeded_random import hash_url
from domain.services.site_stats import BuildSiteStats

logger = logging.getLogger(__name__)

MAX_CANVAS_ITEMS = 2000


@dataclass(frozen=True)
class SiteContext:
    settings: AppSettings
    layout: RadialLayoutEngine
    site_data: FileSystemSiteDataRepository
    manifests: FileSystemLinkPreviewRepository
    preview_config: LinkPreviewConfig
    stats_builder: BuildSiteStats


def create_app(settings: AppSettings) -> FastAPI:
    app = FastAPI(title=settings.title)

    site_data = FileSystemSiteDataRepository()
    context = SiteContext(
        settings=settings,
        layout=build_layout_engine(settings),
        site_data=site_data,
        manifests=FileSystemLinkPreviewRepository(),
        preview_config=settings.preview_config(),
        stats_builder=BuildSiteStats(FileSystemPostRepository(), site_data),
    )
    app.state.context = context

    @app.get("/api/health")
    def api_health() -> ORJSONResponse:
        return ORJSONResponse({"status": "ok"})

    @app.get("/api/community-wall/layout")
    def api_community_wall_layout(
        context: SiteContext = Depends(get_context),
    ) -> ORJSONResponse:
        path = context.settings.data.messages_path
        try:
            messages = context.site_data.load_messages(path)
        except FileNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Message snapshot not found") from exc
        except ValidationError as exc:
            logger.exception("Message snapshot %s is invalid", path)
            raise HTTPException(status_code=500, detail="Message snapshot is invalid") from exc
        layout = context.layout.build_layout(messages)
        payload = layout.to_dict()
        by_id = {message.id: message for message in messages}
        for placement in payload["placements"]:
            message = by_id.get(placement["id"])
            if message is not None:
                placement["message"] = message.model_dump(mode="json")
        return ORJSONResponse(payload)

    @app.post("/api/canvas/layout")
    def api_canvas_layout(
        items: list[CanvasItem] = Body(...),
        context: SiteContext = Depends(get_context),
    ) -> ORJSONResponse:
        if len(items) > MAX_CANVAS_ITEMS:
            raise HTTPException(
                status_code=422,
                detail=f"At most {MAX_CANVAS_ITEMS} items can be laid out at once",
            )
        return ORJSONResponse(context.layout.build_layout(items).to_dict())

    @app.get("/api/link-previews")
    def api_link_previews(context: SiteContext = Depends(get_context)) -> ORJSONResponse:
        return ORJSONResponse(load_manifest(context).to_dict())

    @app.get("/api/link-previews/lookup")
    def api_link_preview_lookup(
        url: str = Query(..., min_length=1),
        context: SiteContext = Depends(get_context),
    ) -> ORJSONResponse:
        return preview_response(context, hash_url(url))

    @app.get("/api/link-previews/{url_hash}")
    def api_link_preview(
        url_hash: str,
        context: SiteContext = Depends(get_context),
    ) -> ORJSONResponse:
        return preview_response(context, url_hash)

    @app.get("/api/stats")
    def api_stats(context: SiteContext = Depends(get_context)) -> ORJSONResponse:
        stats_settings = context.settings.stats
        try:
            report = context.stats_builder.build(
                context.settings.data.to_stats_sources(),
                revamp_date=stats_settings.revamp_date,
                today=date.today(),
                words_per_minute=stats_settings.words_per_minute,
            )
        except FileNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Compiled posts not found") from exc
        return ORJSONResponse(report.to_dict())

    return app


def get_context(request: Request) -> SiteContext:
    return cast(SiteContext, request.app.state.context)


def load_manifest(context: SiteContext) -> LinkPreviewManifest:
    manifest = context.manifests.load(context.preview_config.manifest_path)
    if manifest is None:
        raise HTTPException(status_code=404, detail="Link preview manifest not found")
    return manifest


def preview_response(context: SiteContext, url_hash: str) -> ORJSONResponse:
    entry = load_manifest(context).previews.get(url_hash)
    if entry is None or entry.status != "success":
        raise HTTPException(status_code=404, detail="Link preview not found")
    return ORJSONResponse(entry.to_dict())


def build_app() -> FastAPI:
    return create_app(load_settings())
