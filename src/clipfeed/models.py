"""Domain models for clipfeed."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, computed_field

from clipfeed.config import settings


def media_url(storage_name: str) -> str:
    """Public path under which a stored file is served."""
    return f"{settings.media_url_prefix.rstrip('/')}/{storage_name}"


class Video(BaseModel):
    """Core domain entity: one uploaded clip as stored."""

    id: int  # assigned by the store, strictly increasing
    title: str
    storage_name: str  # file name under the uploads directory
    likes: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @computed_field
    @property
    def url(self) -> str:
        """Playable URL derived from storage_name."""
        return media_url(self.storage_name)

    def to_card(self) -> "FeedCard":
        """Client-facing representation (storage name stays server-side)."""
        return FeedCard(
            id=self.id,
            title=self.title,
            url=self.url,
            likes=self.likes,
            created_at=self.created_at,
        )


class FeedCard(BaseModel):
    """A video as it travels over the wire: {id, title, url, likes, created_at}."""

    id: int
    title: str
    url: str
    likes: int
    created_at: datetime


class FeedPage(BaseModel):
    """One page of the reverse-chronological feed.

    ``next_cursor`` is None once the feed is exhausted. It is
    serialized as ``nextCursor`` to match the browser client.
    """

    model_config = ConfigDict(populate_by_name=True)

    videos: list[FeedCard] = Field(default_factory=list)
    next_cursor: int | None = Field(default=None, alias="nextCursor")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class LikeResult(BaseModel):
    """Fresh like count returned after an increment."""

    id: int
    likes: int
