"""CLI interface — thin wrapper over ClipFeedService, the HTTP API and the MCP server."""

import logging
from pathlib import Path

import typer

from clipfeed.config import settings
from clipfeed.errors import ClipFeedError, NotFoundError
from clipfeed.service import ClipFeedService
from clipfeed.storage.sqlite import SQLiteVideoRepository


app = typer.Typer(
    name="clipfeed",
    help="clipfeed: upload short clips, page the feed, like videos.",
    no_args_is_help=True,
)


def _get_service() -> ClipFeedService:
    """Create a service instance with default dependencies."""
    settings.ensure_dirs()
    return ClipFeedService(repository=SQLiteVideoRepository())


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def upload(
    path: Path = typer.Argument(..., help="Local MP4 or WebM file to add."),
    title: str = typer.Option(..., "--title", "-t", help="Title shown on the feed card."),
) -> None:
    """Add a local video file to the feed."""
    svc = _get_service()
    try:
        video = svc.upload_file(path, title)
    except ClipFeedError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"✅ Uploaded: {video.title}")
    typer.echo(f"   ID:   {video.id}")
    typer.echo(f"   URL:  {video.url}")


@app.command(name="list")
def list_videos(
    limit: int = typer.Option(settings.default_page_size, "--limit", "-n", help="Page size (1-20)."),
    cursor: int | None = typer.Option(None, "--cursor", "-c", help="Show videos older than this id."),
) -> None:
    """Show one page of the feed, newest first."""
    svc = _get_service()
    page = svc.get_feed(cursor=cursor, limit=limit)
    if not page.videos:
        typer.echo("Feed is empty. Use 'clipfeed upload <file> --title ...' to add a video.")
        return
    for v in page.videos:
        typer.echo(f"  {v.id:>5}  ❤ {v.likes:<5}  {v.title}")
    if page.next_cursor is not None:
        typer.echo(f"\nMore: clipfeed list --cursor {page.next_cursor}")


@app.command()
def info(video_id: int = typer.Argument(..., help="Video id.")) -> None:
    """Show full details for a video."""
    svc = _get_service()
    try:
        video = svc.get_video(video_id)
    except NotFoundError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Title:    {video.title}")
    typer.echo(f"URL:      {video.url}")
    typer.echo(f"File:     {svc.uploads_dir / video.storage_name}")
    typer.echo(f"Likes:    {video.likes}")
    typer.echo(f"Created:  {video.created_at}")


@app.command()
def like(video_id: int = typer.Argument(..., help="Video id.")) -> None:
    """Add one like to a video."""
    svc = _get_service()
    try:
        result = svc.like(video_id)
    except ClipFeedError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"❤ {result.likes} likes on video {result.id}")


@app.command()
def serve(
    host: str = typer.Option(settings.host, "--host", help="Host to bind to."),
    port: int = typer.Option(settings.port, "--port", help="Port to bind to."),
    reload: bool = typer.Option(False, "--reload", help="Enable hot-reload for development."),
) -> None:
    """Start the HTTP API and media server."""
    import uvicorn

    _configure_logging(settings.log_level)
    typer.echo(f"Starting clipfeed on http://{host}:{port}")
    uvicorn.run(
        "clipfeed.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def mcp(
    stdio: bool = typer.Option(False, "--stdio", help="Use stdio transport instead of HTTP."),
    host: str = typer.Option(settings.host, "--host", help="Host to bind to."),
    port: int = typer.Option(settings.port + 1, "--port", help="Port to bind to."),
) -> None:
    """Start the clipfeed MCP server."""
    from clipfeed.server import mcp as mcp_server

    _configure_logging(settings.log_level)
    if stdio:
        typer.echo("Starting clipfeed MCP server (stdio)...", err=True)
        mcp_server.run(transport="stdio")
    else:
        typer.echo(f"Starting clipfeed MCP server on http://{host}:{port}/mcp")
        mcp_server.run(transport="streamable-http", host=host, port=port)
