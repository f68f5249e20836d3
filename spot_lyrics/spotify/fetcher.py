"""
Pagination and batching engine for spot-lyrics.

Spotify never returns a whole album or playlist in one response, and its
bulk endpoints accept a bounded number of identifiers. This module holds
the two loops that deal with that, independent of any particular endpoint:

    walk_collection(): follows an offset/limit cursor until a page says
                       there is no next page.
    batch_fetch():     splits an identifier list into fixed-size batches,
                       one request each, and keeps going when a batch fails.

Both take the request itself as a callable, so SpotifyClient supplies the
endpoint (with its re-login handling) and tests supply plain functions.

Batch Optimization:
    130 identifiers with batch_size=50:
    - Without batching: 130 API calls
    - With batching: 3 API calls (50, 50, 30)

Partial Failures:
    A failed batch is recorded in the FailureAggregator for every
    identifier it contained, and the next batch is requested as usual.
    Only AuthError from an exhausted login escapes, since no later
    request could succeed either.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Sequence, TypeVar

from spot_lyrics.core.exceptions import AuthorizationDenied, TransientError
from spot_lyrics.core.logger import get_logger
from spot_lyrics.core.report import FailureAggregator, FailureReason

logger = get_logger(__name__)

T = TypeVar("T")

# Provider page and batch limits
ALBUM_PAGE_SIZE = 50
PLAYLIST_PAGE_SIZE = 100
DEFAULT_BATCH_SIZE = 50


@dataclass(frozen=True)
class Page:
    """
    One page of a collection walk.

    Attributes:
        identifiers: Item identifiers in page order. May contain None or
                     empty strings for unavailable items.
        has_next: Whether the provider reports a further page.
        total: Total declared by the provider, informational only.
    """
    identifiers: tuple[str | None, ...]
    has_next: bool
    total: int | None = None


@dataclass
class PageCursor:
    """
    Offset/limit position of a collection walk.

    Lives for a single walk. advance() moves the offset by exactly one
    page and records whether another page exists.
    """
    limit: int
    offset: int = 0
    has_next: bool = True

    def __post_init__(self) -> None:
        if self.limit <= 0:
            raise ValueError(f"Page size must be positive, got {self.limit}")
        if self.offset < 0:
            raise ValueError(f"Offset must not be negative, got {self.offset}")

    def advance(self, has_next: bool) -> None:
        self.has_next = has_next
        if has_next:
            self.offset += self.limit


def walk_collection(
    fetch_page: Callable[[int, int], Page],
    page_size: int,
    pace: Callable[[], None] | None = None
) -> list[str]:
    """
    Collect every identifier of a paginated collection.

    Args:
        fetch_page: Called as fetch_page(offset, limit), returns a Page.
        page_size: Items per page (50 for albums, 100 for playlists).
        pace: Optional hook called before every page request.

    Returns:
        Non-empty identifiers in collection order.

    Raises:
        ValueError: If page_size is not positive.
        TransientError: If a page request fails. The walk cannot know
                        whether more pages follow, so it stops.
        AuthError: If authentication could not be restored.

    Behavior:
        Starts at offset 0 and advances by page_size after every page.
        Stops on the first page reporting no next page, even if fewer
        items than the declared total were seen.

    Example:
        ids = walk_collection(
            lambda offset, limit: client.album_page(album_id, offset, limit),
            page_size=ALBUM_PAGE_SIZE
        )
    """
    cursor = PageCursor(limit=page_size)
    identifiers: list[str] = []
    dropped = 0

    while cursor.has_next:
        if pace is not None:
            pace()

        page = fetch_page(cursor.offset, cursor.limit)
        for identifier in page.identifiers:
            if identifier:
                identifiers.append(identifier)
            else:
                dropped += 1

        logger.debug(
            f"Page at offset {cursor.offset}: {len(page.identifiers)} items, "
            f"has_next={page.has_next}"
        )
        cursor.advance(page.has_next)

    if dropped:
        logger.warning(f"Skipped {dropped} unavailable items (local files, removed tracks, etc.)")

    return identifiers


def chunk_identifiers(
    identifiers: Sequence[str],
    batch_size: int = DEFAULT_BATCH_SIZE
) -> Iterator[list[str]]:
    """
    Split identifiers into contiguous batches of at most batch_size.

    Concatenating the batches gives back the input unchanged.

    Raises:
        ValueError: If batch_size is not positive.
    """
    if batch_size <= 0:
        raise ValueError(f"Batch size must be positive, got {batch_size}")

    for start in range(0, len(identifiers), batch_size):
        yield list(identifiers[start:start + batch_size])


def batch_fetch(
    identifiers: Sequence[str],
    fetch_batch: Callable[[list[str]], Sequence[T | None]],
    batch_size: int = DEFAULT_BATCH_SIZE,
    aggregator: FailureAggregator | None = None,
    pace: Callable[[], None] | None = None
) -> list[T]:
    """
    Fetch items for many identifiers, one request per batch.

    Args:
        identifiers: Identifiers to resolve, in the desired output order.
        fetch_batch: Called with each batch; returns one entry per
                     identifier, None for unresolved ones.
        batch_size: Maximum identifiers per request (50 for tracks).
        aggregator: Receives one outcome per identifier. Optional.
        pace: Optional hook called before every batch request.

    Returns:
        Resolved items, flattened in input order. Unresolved identifiers
        and failed batches leave gaps rather than placeholders.

    Raises:
        ValueError: If batch_size is not positive.
        AuthError: If the login protocol itself is exhausted.
    """
    batches = list(chunk_identifiers(identifiers, batch_size))
    items: list[T] = []

    for index, batch in enumerate(batches, start=1):
        if pace is not None:
            pace()

        try:
            results = list(fetch_batch(batch))
        except AuthorizationDenied as e:
            logger.error(f"Batch {index}/{len(batches)} denied after re-login: {e}")
            _record_batch(aggregator, batch, FailureReason.AUTH_ERROR, e.message)
            continue
        except TransientError as e:
            logger.error(f"Batch {index}/{len(batches)} failed: {e}")
            _record_batch(aggregator, batch, FailureReason.TRANSIENT_ERROR, e.message)
            continue

        if len(results) < len(batch):
            results.extend([None] * (len(batch) - len(results)))

        for identifier, item in zip(batch, results):
            if item is None:
                if aggregator is not None:
                    aggregator.record_failure(identifier, FailureReason.NOT_FOUND)
                continue
            items.append(item)
            if aggregator is not None:
                aggregator.record_success(identifier)

    return items


def _record_batch(
    aggregator: FailureAggregator | None,
    batch: list[str],
    reason: FailureReason,
    message: str
) -> None:
    if aggregator is None:
        return
    for identifier in batch:
        aggregator.record_failure(identifier, reason, message)
