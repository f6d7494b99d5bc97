from __future__ import annotations

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import orjson
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from adapters.filesystem.site_data_repository import (
    FileSystemPostRepository,
    FileSystemSiteDataRepository,
)
from app.config import AppSettings, load_settings
from app.wiring import build_layout_engine, build_preview_fixer, build_preview_generator
from domain.models import CanvasItem
from domain.services.generate_link_previews import PreviewRunSummary
from domain.services.site_stats import BuildSiteStats
from domain.services.toc import extract_headings

app = typer.Typer(no_args_is_help=True)
canvas_app = typer.Typer(no_args_is_help=True)
previews_app = typer.Typer(no_args_is_help=True)
app.add_typer(canvas_app, name="canvas")
app.add_typer(previews_app, name="previews")
console = Console()


def _settings(ctx: typer.Context) -> AppSettings:
    return ctx.obj


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    try:
        settings = load_settings(config)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(code=1) from exc
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    ctx.obj = settings


@canvas_app.command("layout")
def canvas_layout(
    ctx: typer.Context,
    messages: Optional[Path] = typer.Option(
        None, help="Message snapshot JSON. Defaults to the configured snapshot.",
    ),
    ids: Optional[list[str]] = typer.Option(
        None, "--id", help="Lay out these identifiers instead of a snapshot (last one is centered).",
    ),
    output: Optional[Path] = typer.Option(None, help="Write layout JSON here instead of stdout."),
) -> None:
    settings = _settings(ctx)
    engine = build_layout_engine(settings)

    if ids:
        items = [CanvasItem(id=item_id) for item_id in ids]
    else:
        snapshot = messages or settings.data.messages_path
        if not snapshot.exists():
            console.print(f"[red]Message snapshot not found:[/] {snapshot}")
            raise typer.Exit(code=1)
        try:
            messages_in_snapshot = FileSystemSiteDataRepository().load_messages(snapshot)
        except (orjson.JSONDecodeError, ValidationError) as exc:
            console.print(f"[red]Invalid message snapshot:[/] {snapshot}\n{escape(str(exc))}")
            raise typer.Exit(code=1) from exc
        items = [CanvasItem(id=message.id) for message in messages_in_snapshot]

    layout = engine.build_layout(items)
    payload = orjson.dumps(layout.to_dict(), option=orjson.OPT_INDENT_2)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(payload)
        console.print(f"[green]Wrote[/] {output} ({len(layout.placements)} cards)")
        return
    typer.echo(payload.decode("utf-8"))


def _print_summary(summary: PreviewRunSummary) -> None:
    table = Table(title="Link previews")
    table.add_column("Outcome")
    table.add_column("URLs found", justify="right")
    table.add_column("Processed", justify="right")
    table.add_column("Succeeded", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Manifest entries", justify="right")
    table.add_row(
        summary.outcome,
        str(summary.discovered),
        str(summary.processed),
        str(summary.succeeded),
        str(summary.failed),
        str(summary.total_previews),
    )
    console.print(table)


@previews_app.command("generate")
def previews_generate(
    ctx: typer.Context,
    posts: Optional[Path] = typer.Option(None, help="Compiled posts JSON."),
) -> None:
    settings = _settings(ctx)
    generator = build_preview_generator(settings)
    summary = asyncio.run(generator.run(posts or settings.data.posts_path))
    _print_summary(summary)
    if summary.outcome == "no_posts":
        console.print("[yellow]No compiled posts found, wrote manifest with existing previews.[/]")


@previews_app.command("fix")
def previews_fix(
    ctx: typer.Context,
    retry_all: bool = typer.Option(False, "--all", help="Also retry previously failed captures."),
    posts: Optional[Path] = typer.Option(None, help="Compiled posts JSON."),
) -> None:
    settings = _settings(ctx)
    fixer = build_preview_fixer(settings)
    summary = asyncio.run(fixer.run(posts or settings.data.posts_path, retry_all=retry_all))
    _print_summary(summary)
    if summary.outcome == "no_manifest":
        console.print("[red]No manifest found. Run 'previews generate' first.[/]")
        raise typer.Exit(code=1)
    if summary.outcome == "no_posts":
        console.print("[red]No compiled posts found.[/]")
        raise typer.Exit(code=1)
    if summary.failed and not retry_all:
        console.print("[yellow]Some captures failed; rerun with --all to retry them.[/]")


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    settings = _settings(ctx)
    builder = BuildSiteStats(FileSystemPostRepository(), FileSystemSiteDataRepository())
    try:
        report = builder.build(
            settings.data.to_stats_sources(),
            revamp_date=settings.stats.revamp_date,
            today=date.today(),
            words_per_minute=settings.stats.words_per_minute,
        )
    except FileNotFoundError as exc:
        console.print(f"[red]Compiled posts not found:[/] {settings.data.posts_path}")
        raise typer.Exit(code=1) from exc
    typer.echo(orjson.dumps(report.to_dict(), option=orjson.OPT_INDENT_2).decode("utf-8"))


@app.command("toc")
def toc(input_path: Path = typer.Argument(..., help="MDX or Markdown file.")) -> None:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)
    for heading in extract_headings(input_path.read_text(encoding="utf-8")):
        indent = "  " * (heading.level - 2)
        typer.echo(f"{indent}- {heading.text} (#{heading.slug})")


@app.command("serve")
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8080),
) -> None:
    import uvicorn

    from app.web_main import create_app

    uvicorn.run(create_app(_settings(ctx)), host=host, port=port)


if __name__ == "__main__":
    app()
