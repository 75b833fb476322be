"""FastMCP server — thin wrapper exposing ClipFeedService as MCP tools."""

from fastmcp import FastMCP

from clipfeed.config import settings
from clipfeed.errors import NotFoundError
from clipfeed.service import ClipFeedService
from clipfeed.storage.sqlite import SQLiteVideoRepository


mcp = FastMCP(
    name="clipfeed",
    instructions=(
        "clipfeed is a short-video feed. Use get_feed to page through "
        "videos newest-first (pass nextCursor back as cursor), get_video "
        "for a single clip, and like_video to add a like."
    ),
)

_service: ClipFeedService | None = None


def _get_service() -> ClipFeedService:
    """Lazy-initialise the service singleton with default dependencies."""
    global _service
    if _service is None:
        settings.ensure_dirs()
        _service = ClipFeedService(repository=SQLiteVideoRepository())
    return _service


@mcp.tool(annotations={"readOnlyHint": True})
def get_feed(cursor: int | None = None, limit: int = 5) -> dict:
    """Get one page of the feed, newest videos first.

    Args:
        cursor: nextCursor from the previous page; omit for the newest videos.
        limit: Page size, clamped to 1..20 (default 5).
    """
    return _get_service().get_feed(cursor=cursor, limit=limit).to_wire()


@mcp.tool(annotations={"readOnlyHint": True})
def get_video(video_id: int) -> dict:
    """Get a single video's title, URL and like count.

    Args:
        video_id: Numeric video id.
    """
    try:
        return _get_service().get_video(video_id).to_card().model_dump(mode="json")
    except NotFoundError as e:
        return {"error": str(e)}


@mcp.tool(annotations={"readOnlyHint": False, "idempotentHint": False})
def like_video(video_id: int) -> dict:
    """Add one like to a video and return the new count.

    Args:
        video_id: Numeric video id.
    """
    try:
        return _get_service().like(video_id).model_dump()
    except NotFoundError as e:
        return {"error": str(e)}
