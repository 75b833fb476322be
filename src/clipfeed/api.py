"""HTTP JSON API — thin FastAPI wrapper over ClipFeedService."""

import logging

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import Scope

from clipfeed import __version__
from clipfeed.config import settings
from clipfeed.errors import ClipFeedError, PayloadTooLargeError, ValidationError
from clipfeed.service import ClipFeedService
from clipfeed.storage.sqlite import SQLiteVideoRepository

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/upload"
# Room for multipart boundaries, part headers and the title field.
_MULTIPART_SLACK = 64 * 1024

router = APIRouter(prefix="/api")


def get_service(request: Request) -> ClipFeedService:
    return request.app.state.service


def _parse_id(raw: str) -> int:
    # int() would also accept "1_0", padded whitespace and non-ASCII digits.
    if not (raw.isascii() and raw.isdigit()):
        raise ValidationError(f"Bad id: {raw!r}")
    return int(raw)


def _error_body(exc: ClipFeedError, message: str | None = None) -> dict:
    return {"error": message or str(exc), "reason": exc.reason}


class UploadSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject oversized uploads from Content-Length before the body is read.

    The upload pipeline still enforces the ceiling on the streamed bytes;
    this only spares the server from spooling a body that is certain to fail.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "POST" and request.url.path == UPLOAD_PATH:
            service: ClipFeedService = request.app.state.service
            declared = request.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > service.max_upload_bytes + _MULTIPART_SLACK:
                limit_mb = service.max_upload_bytes / (1024 * 1024)
                exc = PayloadTooLargeError(f"File too large. Max: {limit_mb:.0f}MB")
                logger.warning("Rejected upload: Content-Length %s", declared)
                return JSONResponse(status_code=exc.status_code, content=_error_body(exc))
        return await call_next(request)


class SinglePageStaticFiles(StaticFiles):
    """Static front-end mount that answers unknown paths with index.html.

    Client-side routes such as /watch/3 have no file behind them; the
    bundle resolves them once index.html is loaded.
    """

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


async def clipfeed_error_handler(request: Request, exc: ClipFeedError) -> JSONResponse:
    """Map the error taxonomy onto status codes with a machine-readable reason."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc, "Storage failure"))
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Malformed request", "reason": "validation"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@router.get("/health")
def health() -> dict:
    return {"ok": True}


@router.get("/videos")
def list_videos(
    limit: str | None = None,
    cursor: str | None = None,
    service: ClipFeedService = Depends(get_service),
) -> dict:
    """One page of the feed; ``limit`` and ``cursor`` are lenient on purpose."""
    return service.get_feed(cursor=cursor, limit=limit).to_wire()


@router.get("/videos/{video_id}")
def get_video(video_id: str, service: ClipFeedService = Depends(get_service)) -> dict:
    video = service.get_video(_parse_id(video_id))
    return video.to_card().model_dump(mode="json")


@router.post("/videos/{video_id}/like")
def like_video(video_id: str, service: ClipFeedService = Depends(get_service)) -> dict:
    return service.like(_parse_id(video_id)).model_dump()


@router.post("/upload", status_code=201)
def upload_video(
    title: str | None = Form(None),
    video: UploadFile | None = File(None),
    service: ClipFeedService = Depends(get_service),
) -> dict:
    """Store a multipart upload (``title`` + ``video``) and return its feed card."""
    if video is None:
        stored = service.upload(title, None, None, None)
    else:
        stored = service.upload(
            title,
            video.file,
            video.filename,
            video.content_type,
            declared_size=video.size,
        )
    return stored.to_card().model_dump(mode="json")


def _default_service() -> ClipFeedService:
    settings.ensure_dirs()
    return ClipFeedService(repository=SQLiteVideoRepository())


def create_app(service: ClipFeedService | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        service: Service to serve. Defaults to one backed by the
                 configured SQLite database and uploads directory.
    """
    service = service or _default_service()

    app = FastAPI(title="clipfeed", version=__version__)
    app.state.service = service

    app.add_middleware(UploadSizeLimitMiddleware)
    app.add_exception_handler(ClipFeedError, clipfeed_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)
    app.mount(
        settings.media_url_prefix.rstrip("/"),
        StaticFiles(directory=service.uploads_dir, check_dir=False),
        name="media",
    )
    if settings.static_dir is not None:
        app.mount("/", SinglePageStaticFiles(directory=settings.static_dir, html=True), name="static")

    return app
