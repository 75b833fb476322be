"""Reverse-chronological feed delivery over keyset cursors."""

import logging

from clipfeed.config import settings
from clipfeed.models import FeedPage
from clipfeed.storage.repository import VideoRepository

logger = logging.getLogger(__name__)


def _to_int(raw: object) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def clamp_limit(raw: object, *, default: int | None = None, maximum: int | None = None) -> int:
    """Coerce a page size into [1, maximum].

    Missing or non-numeric input falls back to the default; numeric
    input outside the range is clamped. Never raises.
    """
    default = default if default is not None else settings.default_page_size
    maximum = maximum if maximum is not None else settings.max_page_size
    value = _to_int(raw)
    if value is None:
        value = default
    return max(1, min(maximum, value))


def parse_cursor(raw: object) -> int | None:
    """Turn a query-string cursor into an id; anything unusable means "from the top"."""
    return _to_int(raw)


class FeedService:
    """Stateless cursor pagination over the store.

    The cursor is the id of the oldest video the client already has;
    the next page is the ``limit`` videos strictly older than it.
    A short page is terminal: ``next_cursor`` is only set when the page
    came back full.
    """

    def __init__(
        self,
        repository: VideoRepository,
        default_limit: int | None = None,
        max_limit: int | None = None,
    ) -> None:
        self._repo = repository
        self._default_limit = default_limit or settings.default_page_size
        self._max_limit = max_limit or settings.max_page_size

    def get_page(self, cursor: object = None, limit: object = None) -> FeedPage:
        """Fetch one page of the feed.

        Args:
            cursor: Id bound from the previous page's next_cursor, or None for the newest.
            limit: Requested page size; clamped, never rejected.
        """
        size = clamp_limit(limit, default=self._default_limit, maximum=self._max_limit)
        bound = parse_cursor(cursor)

        videos = self._repo.list_before(bound, size)
        next_cursor = videos[-1].id if len(videos) == size else None

        logger.debug("Feed page cursor=%s limit=%d -> %d videos", bound, size, len(videos))
        return FeedPage(videos=[v.to_card() for v in videos], next_cursor=next_cursor)
