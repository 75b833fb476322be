"""Feed client: paging session state machine, autoplay policy and API consumer.

Everything here mirrors what the browser does with the HTTP API, expressed
as plain values and pure functions so the paging and playback rules can be
exercised without a DOM. ``FeedController`` wires them to a real server
through httpx.
"""

import logging
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

import httpx

from clipfeed.errors import (
    ClipFeedError,
    NotFoundError,
    PayloadTooLargeError,
    StorageFailure,
    UnsupportedMediaError,
    ValidationError,
)
from clipfeed.models import FeedCard, FeedPage, LikeResult

logger = logging.getLogger(__name__)

PLAY_THRESHOLD = 0.6
NEAR_BOTTOM_MARGIN = 200


class FeedState(str, Enum):
    IDLE = "idle"
    LOADING_PAGE = "loadingPage"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class FeedSession:
    """Paging state of one feed view. Every transition returns a new session."""

    state: FeedState = FeedState.IDLE
    next_cursor: int | None = None
    videos: tuple[FeedCard, ...] = field(default_factory=tuple)
    page_size: int = 5
    muted: bool = True  # applies to every card


def begin_load(session: FeedSession) -> FeedSession | None:
    """idle -> loadingPage. Returns None if a fetch is in flight or the feed is exhausted."""
    if session.state is not FeedState.IDLE:
        return None
    return replace(session, state=FeedState.LOADING_PAGE)


def apply_page(session: FeedSession, page: FeedPage) -> FeedSession:
    """Append a fetched page; an empty page or a null cursor ends the feed."""
    if session.state is not FeedState.LOADING_PAGE:
        raise ValueError(f"apply_page called in state {session.state.value}")
    exhausted = not page.videos or page.next_cursor is None
    return replace(
        session,
        state=FeedState.EXHAUSTED if exhausted else FeedState.IDLE,
        next_cursor=None if exhausted else page.next_cursor,
        videos=session.videos + tuple(page.videos),
    )


def fail_load(session: FeedSession) -> FeedSession:
    """A failed fetch returns to idle with cursor and cards untouched, so it can be retried."""
    if session.state is not FeedState.LOADING_PAGE:
        return session
    return replace(session, state=FeedState.IDLE)


def prepend_upload(session: FeedSession, card: FeedCard) -> FeedSession:
    """Show a fresh upload at the top without touching the paging cursor or state."""
    return replace(session, videos=(card,) + session.videos)


def apply_like(session: FeedSession, result: LikeResult) -> FeedSession:
    """Replace one card's like count with the server's fresh value."""
    videos = tuple(
        card.model_copy(update={"likes": result.likes}) if card.id == result.id else card
        for card in session.videos
    )
    return replace(session, videos=videos)


def toggle_mute(session: FeedSession) -> FeedSession:
    """Flip the feed-wide mute switch; paging state is untouched."""
    return replace(session, muted=not session.muted)


def should_load_more(
    scroll_top: float, client_height: float, scroll_height: float, margin: float = NEAR_BOTTOM_MARGIN
) -> bool:
    """True when the viewport bottom is within ``margin`` pixels of the content bottom."""
    return scroll_top + client_height >= scroll_height - margin


def select_playing(
    visible_fractions: Mapping[Hashable, float], threshold: float = PLAY_THRESHOLD
) -> Hashable | None:
    """Pick the one item that should play; every other item is paused.

    An item qualifies when more than ``threshold`` of it is visible. If
    several qualify, the most visible wins and ties go to the earliest
    item in iteration (feed) order. None means pause everything.
    """
    chosen = None
    best = threshold
    for item_id, fraction in visible_fractions.items():
        if fraction > best:
            chosen, best = item_id, fraction
    return chosen


_ERRORS_BY_REASON: dict[str, type[ClipFeedError]] = {
    cls.reason: cls
    for cls in (ValidationError, UnsupportedMediaError, PayloadTooLargeError, NotFoundError, StorageFailure)
}


def _raise_for_error(response: httpx.Response) -> None:
    """Translate an API error response back into the error taxonomy."""
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = {}
    message = body.get("error") or f"HTTP {response.status_code}"
    error_cls = _ERRORS_BY_REASON.get(body.get("reason", ""))
    if error_cls is None:
        error_cls = NotFoundError if response.status_code == 404 else StorageFailure
    raise error_cls(message)


class FeedController:
    """Drives a FeedSession against the HTTP API.

    Any ``httpx.Client`` pointed at the server works, including
    FastAPI's TestClient.
    """

    def __init__(self, http: httpx.Client, page_size: int = 5) -> None:
        self._http = http
        self.session = FeedSession(page_size=page_size)

    def load_more(self) -> bool:
        """Fetch the next page if allowed. Returns False when the fetch was skipped.

        A failed fetch leaves the session as it was (back in idle)
        and re-raises.
        """
        loading = begin_load(self.session)
        if loading is None:
            return False
        self.session = loading

        params: dict[str, int] = {"limit": self.session.page_size}
        if self.session.next_cursor is not None:
            params["cursor"] = self.session.next_cursor
        try:
            response = self._http.get("/api/videos", params=params)
            _raise_for_error(response)
            page = FeedPage.model_validate(response.json())
        except (httpx.HTTPError, ClipFeedError):
            self.session = fail_load(self.session)
            logger.warning("Could not load feed page", exc_info=True)
            raise
        self.session = apply_page(self.session, page)
        return True

    def load_all(self) -> tuple[FeedCard, ...]:
        """Page until the feed is exhausted."""
        while self.load_more():
            pass
        return self.session.videos

    def like(self, video_id: int) -> LikeResult:
        """Like a video; on failure the displayed count is left unchanged."""
        response = self._http.post(f"/api/videos/{video_id}/like")
        _raise_for_error(response)
        result = LikeResult.model_validate(response.json())
        self.session = apply_like(self.session, result)
        return result

    def upload(self, path: Path, title: str, content_type: str) -> FeedCard:
        """Upload a local clip and prepend its card; on failure the feed is untouched."""
        path = Path(path)
        with path.open("rb") as fh:
            response = self._http.post(
                "/api/upload",
                data={"title": title},
                files={"video": (path.name, fh, content_type)},
            )
        _raise_for_error(response)
        card = FeedCard.model_validate(response.json())
        self.session = prepend_upload(self.session, card)
        return card

    def toggle_mute(self) -> bool:
        """Flip mute for the whole feed and return the new setting."""
        self.session = toggle_mute(self.session)
        return self.session.muted

    def playing(self, visible_fractions: Mapping[int, float]) -> int | None:
        """The card id to play for the current viewport, restricted to loaded cards."""
        loaded = {card.id for card in self.session.videos}
        return select_playing({k: v for k, v in visible_fractions.items() if k in loaded})
