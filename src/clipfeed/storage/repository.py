"""Abstract repository interface for video storage."""

from abc import ABC, abstractmethod

from clipfeed.models import Video


class VideoRepository(ABC):
    """Abstract base class defining the video storage contract.

    Implementations must make ``insert`` and ``increment_likes``
    atomic under concurrent callers; the services above hold no
    locks of their own and rely on this.
    """

    @abstractmethod
    def insert(self, title: str, storage_name: str) -> int:
        """Create a record with likes=0 and created_at=now, returning its new id.

        Raises:
            ValidationError: If title or storage_name is empty.
            StorageFailure: If the record cannot be written.
        """

    @abstractmethod
    def get(self, video_id: int) -> Video | None:
        """Retrieve a video by id. Returns None if not found."""

    @abstractmethod
    def list_before(self, cursor: int | None, limit: int) -> list[Video]:
        """Return at most ``limit`` videos with id < cursor, newest first.

        A None cursor starts from the newest video. This is a range
        scan on id, never an offset, so inserts at the head cannot
        shift the pages a client has already walked.
        """

    @abstractmethod
    def increment_likes(self, video_id: int) -> int | None:
        """Add exactly one like and return the new count, or None for an unknown id."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored videos."""

    def close(self) -> None:
        """Release any underlying resources."""
