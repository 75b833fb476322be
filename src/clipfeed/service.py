"""Core business logic for clipfeed."""

import logging
from pathlib import Path
from typing import BinaryIO

from clipfeed.config import settings
from clipfeed.errors import NotFoundError
from clipfeed.feed import FeedService
from clipfeed.ingestion.uploads import UploadPipeline
from clipfeed.likes import LikeService
from clipfeed.models import FeedPage, LikeResult, Video
from clipfeed.storage.repository import VideoRepository

logger = logging.getLogger(__name__)


class ClipFeedService:
    """Core service layer — single orchestration point for all clipfeed operations.

    The HTTP API, the MCP server and the CLI are thin wrappers over this
    class. Dependencies are injected via constructor for testability and
    backend swappability.
    """

    def __init__(
        self,
        repository: VideoRepository,
        uploads: UploadPipeline | None = None,
        feed: FeedService | None = None,
        likes: LikeService | None = None,
    ) -> None:
        self._repo = repository
        self._uploads = uploads or UploadPipeline(repository)
        self._feed = feed or FeedService(repository)
        self._likes = likes or LikeService(repository)

        settings.ensure_dirs()

    @property
    def uploads_dir(self) -> Path:
        """Directory the stored media files live in."""
        return self._uploads.uploads_dir

    @property
    def max_upload_bytes(self) -> int:
        return self._uploads.max_bytes

    def upload(
        self,
        title: str | None,
        stream: BinaryIO | None,
        filename: str | None,
        content_type: str | None,
        declared_size: int | None = None,
    ) -> Video:
        """Validate, store and register an uploaded clip.

        Raises:
            ValidationError, UnsupportedMediaError, PayloadTooLargeError, StorageFailure
        """
        return self._uploads.ingest(title, stream, filename, content_type, declared_size)

    def upload_file(self, path: Path, title: str) -> Video:
        """Register a clip from a local file."""
        return self._uploads.ingest_path(path, title)

    def get_feed(self, cursor: object = None, limit: object = None) -> FeedPage:
        """One page of the reverse-chronological feed."""
        return self._feed.get_page(cursor, limit)

    def get_video(self, video_id: int) -> Video:
        """Look up a single video.

        Raises:
            NotFoundError: If the video does not exist.
        """
        video = self._repo.get(video_id)
        if video is None:
            raise NotFoundError(f"Video not found: {video_id}")
        return video

    def like(self, video_id: int) -> LikeResult:
        """Add one like to a video and return the fresh count."""
        return self._likes.like(video_id)

    def count(self) -> int:
        return self._repo.count()
