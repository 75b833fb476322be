"""Like counter mutations."""

import logging

from clipfeed.errors import NotFoundError
from clipfeed.models import LikeResult
from clipfeed.storage.repository import VideoRepository

logger = logging.getLogger(__name__)


class LikeService:
    """Increment-and-read of a video's like counter.

    Every call counts: there is no per-viewer de-duplication. The
    increment itself happens inside the store so concurrent likes
    on one video are never lost.
    """

    def __init__(self, repository: VideoRepository) -> None:
        self._repo = repository

    def like(self, video_id: int) -> LikeResult:
        """Add one like.

        Raises:
            NotFoundError: If no video has this id. Nothing is changed.
        """
        likes = self._repo.increment_likes(video_id)
        if likes is None:
            raise NotFoundError(f"Video not found: {video_id}")
        logger.debug("Video %d now has %d likes", video_id, likes)
        return LikeResult(id=video_id, likes=likes)
