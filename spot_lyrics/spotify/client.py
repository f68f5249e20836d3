"""
Spotify client for spot-lyrics.

This module wraps spotipy (public Web API) and the web-player lyrics
endpoint behind one object that is bound to an explicit SessionManager.

Authentication:
    There is no OAuth flow here. The bearer token comes from the injected
    SessionManager, which mints it from the sp_dc cookie. spotipy is
    constructed with auth=<token> and rebuilt whenever the token changes.

Re-login on Denial:
    Every request runs through _with_reauth(). A 401/403 answer triggers
    exactly one SessionManager.refresh() and one retry of the same request.
    A second denial is raised as AuthorizationDenied.

Pacing:
    A fixed minimum interval (fetch.request_delay) separates consecutive
    requests. spotipy's own retry adapter is disabled so no request is
    retried behind our back.

Usage:
    session = SessionManager.from_config(config)
    client = SpotifyClient.from_config(config, session)

    ref = parse_collection_ref(url, CollectionKind.ALBUM)
    track_ids = client.get_item_collection_ids(ref)
    tracks = client.get_items_batch(track_ids)
    result = client.get_item_detail(tracks[0].spotify_id)
"""

import time
from typing import Any, Callable, TypeVar

import requests
import spotipy

from spot_lyrics.core.config import Config, FetchConfig
from spot_lyrics.core.exceptions import (
    AuthorizationDenied,
    NotFoundError,
    TransientError,
)
from spot_lyrics.core.logger import get_logger
from spot_lyrics.core.report import FailureAggregator, FailureReason
from spot_lyrics.spotify.fetcher import Page, batch_fetch, walk_collection
from spot_lyrics.spotify.models import (
    Collection,
    CollectionKind,
    CollectionRef,
    Failed,
    Found,
    LookupResult,
    Lyrics,
    NotFound,
    Track,
)
from spot_lyrics.spotify.session import SessionManager

logger = get_logger(__name__)

T = TypeVar("T")

LYRICS_URL = "https://spclient.wg.spotify.com/color-lyrics/v2/track/{track_id}"

DENIED_STATUSES = (401, 403)


class SpotifyClient:
    """
    Spotify data access bound to one SessionManager.

    Attributes:
        session: The SessionManager providing bearer tokens.
        failures: FailureAggregator receiving per-item outcomes of
                  get_items_batch() (and of the lyrics job).

    Example:
        client = SpotifyClient(session, FetchConfig(request_delay=0))
        ids = client.get_item_collection_ids(ref)
        for name, reason in client.failures.unresolved():
            print(name, reason)
    """

    def __init__(
        self,
        session: SessionManager,
        fetch: FetchConfig | None = None,
        failures: FailureAggregator | None = None,
        api_factory: Callable[..., spotipy.Spotify] = spotipy.Spotify,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        """
        Args:
            session: SessionManager that owns the credential and the token.
            fetch: Page sizes, batch size and pacing. Defaults to FetchConfig().
            failures: Aggregator to record outcomes into. A new one if None.
            api_factory: Builds the spotipy client for a token (tests pass a fake).
            clock: Monotonic clock used for request pacing.
            sleep: Called with the remaining pacing delay.
        """
        self._session = session
        self._fetch = fetch or FetchConfig()
        self._failures = failures if failures is not None else FailureAggregator()
        self._api_factory = api_factory
        self._clock = clock
        self._sleep = sleep

        self._api: spotipy.Spotify | None = None
        self._api_token: str | None = None
        self._last_request: float | None = None

    @classmethod
    def from_config(cls, config: Config, session: SessionManager, **kwargs: Any) -> "SpotifyClient":
        return cls(session, fetch=config.fetch, **kwargs)

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def failures(self) -> FailureAggregator:
        return self._failures

    def ensure_authenticated(self) -> str:
        """Make sure the session holds a token. Raises AuthError if it cannot."""
        return self._session.ensure_authenticated()

    # =========================================================================
    # Collection Operations
    # =========================================================================

    def get_collection(self, ref: CollectionRef) -> Collection:
        """
        Get album or playlist metadata.

        Raises:
            NotFoundError: If Spotify has no such album/playlist.
            TransientError: On network or unexpected status errors.
            AuthError: If authentication could not be restored.
        """
        if ref.kind is CollectionKind.ALBUM:
            data = self._with_reauth(
                lambda token: self._api_for(token).album(ref.spotify_id),
                f"album {ref.spotify_id}"
            )
        else:
            data = self._with_reauth(
                lambda token: self._api_for(token).playlist(
                    ref.spotify_id, fields="id,name,owner,tracks.total"
                ),
                f"playlist {ref.spotify_id}"
            )

        if not isinstance(data, dict):
            raise TransientError(
                f"Unexpected response for {ref.kind.value} {ref.spotify_id}",
                details={"identifier": ref.spotify_id}
            )
        return Collection.from_spotify_api(ref, data)

    def get_item_collection_ids(self, ref: CollectionRef) -> list[str]:
        """
        Get ALL track identifiers of an album or playlist, in order.

        Pages of 50 (albums) or 100 (playlists) are requested until a page
        reports no next page. Local files and removed tracks are dropped.

        Raises:
            NotFoundError: If the collection does not exist.
            TransientError: If a page request fails.
            AuthError: If authentication could not be restored.
        """
        if ref.kind is CollectionKind.ALBUM:
            page_size = self._fetch.album_page_size
            fetch_page = self._album_page_fetcher(ref.spotify_id)
        else:
            page_size = self._fetch.playlist_page_size
            fetch_page = self._playlist_page_fetcher(ref.spotify_id)

        identifiers = walk_collection(fetch_page, page_size)
        logger.info(f"Found {len(identifiers)} tracks in {ref.kind.value} {ref.spotify_id}")
        return identifiers

    def _album_page_fetcher(self, album_id: str) -> Callable[[int, int], Page]:
        def fetch_page(offset: int, limit: int) -> Page:
            response = self._with_reauth(
                lambda token: self._api_for(token).album_tracks(
                    album_id, limit=limit, offset=offset
                ),
                f"album {album_id} tracks at offset {offset}"
            )
            items = _page_items(response, album_id)
            return Page(
                identifiers=tuple(_album_track_id(item) for item in items),
                has_next=response.get("next") is not None,
                total=response.get("total"),
            )
        return fetch_page

    def _playlist_page_fetcher(self, playlist_id: str) -> Callable[[int, int], Page]:
        def fetch_page(offset: int, limit: int) -> Page:
            response = self._with_reauth(
                lambda token: self._api_for(token).playlist_items(
                    playlist_id,
                    limit=limit,
                    offset=offset,
                    additional_types=("track",)
                ),
                f"playlist {playlist_id} tracks at offset {offset}"
            )
            items = _page_items(response, playlist_id)
            return Page(
                identifiers=tuple(_playlist_track_id(item) for item in items),
                has_next=response.get("next") is not None,
                total=response.get("total"),
            )
        return fetch_page

    # =========================================================================
    # Track Operations
    # =========================================================================

    def get_items_batch(
        self,
        track_ids: list[str],
        aggregator: FailureAggregator | None = None
    ) -> list[Track]:
        """
        Get full track records for many identifiers.

        Args:
            track_ids: Spotify track IDs, any number. Split into batches
                       of fetch.batch_size (max 50) internally.
            aggregator: Receives one outcome per track ID. Defaults to
                        self.failures.

        Returns:
            Track objects in input order. Tracks Spotify could not resolve
            and tracks of failed batches are omitted and recorded in
            the aggregator instead.

        Raises:
            AuthError: If the login protocol is exhausted.
        """
        if not track_ids:
            return []

        tracks = batch_fetch(
            track_ids,
            self._fetch_tracks_batch,
            batch_size=self._fetch.batch_size,
            aggregator=aggregator if aggregator is not None else self._failures,
        )
        logger.debug(f"Resolved {len(tracks)}/{len(track_ids)} track records")
        return tracks

    def _fetch_tracks_batch(self, batch: list[str]) -> list[Track | None]:
        try:
            response = self._with_reauth(
                lambda token: self._api_for(token).tracks(batch),
                f"tracks batch of {len(batch)}"
            )
        except NotFoundError:
            return [None] * len(batch)

        if not isinstance(response, dict) or not isinstance(response.get("tracks"), list):
            raise TransientError(
                "Unexpected response for tracks batch",
                details={"batch_size": len(batch)}
            )

        tracks: list[Track | None] = []
        for track_data in response["tracks"]:
            if not track_data:
                tracks.append(None)
                continue
            try:
                tracks.append(Track.from_spotify_api(track_data))
            except (KeyError, TypeError) as e:
                logger.debug(f"Malformed track object skipped: {e}")
                tracks.append(None)
        return tracks

    def get_current_track_id(self) -> str | None:
        """
        Get the id of the track playing on the user's active device.

        Returns:
            The Spotify track ID, or None when nothing is playing, no
            device is active (204 or 404) or the item is not a track
            (an episode or an ad).

        Raises:
            TransientError: On network or unexpected status errors.
            AuthorizationDenied: If denied again after a re-login.
            AuthError: If the login protocol is exhausted.
        """
        try:
            playing = self._with_reauth(
                lambda token: self._api_for(token).current_user_playing_track(),
                "currently playing track"
            )
        except NotFoundError:
            return None

        if not isinstance(playing, dict):
            return None
        item = playing.get("item")
        if not isinstance(item, dict) or item.get("type", "track") != "track":
            logger.debug(f"Currently playing item is not a track: {playing.get('currently_playing_type')}")
            return None
        return item.get("id") or None

    # =========================================================================
    # Lyrics Operations
    # =========================================================================

    def get_item_detail(self, track_id: str) -> LookupResult:
        """
        Get the lyrics of one track.

        Args:
            track_id: Spotify track ID.

        Returns:
            Found(Lyrics) when lyrics exist, NotFound when the track has
            none, Failed(TRANSIENT_ERROR) on network/status/parse errors and
            Failed(AUTH_ERROR) when the request was denied again after a
            re-login.

        Raises:
            AuthError: If the login protocol is exhausted.

        Example:
            result = client.get_item_detail("4cOdK2wGLETKBW3PvgPWqT")
            if isinstance(result, Found):
                print(len(result.item.lines))
        """
        try:
            payload = self._with_reauth(
                lambda token: self._request_lyrics(track_id, token),
                f"lyrics for {track_id}"
            )
        except NotFoundError:
            return NotFound(track_id)
        except AuthorizationDenied as e:
            return Failed(track_id, FailureReason.AUTH_ERROR, e.message)
        except TransientError as e:
            return Failed(track_id, FailureReason.TRANSIENT_ERROR, e.message)

        try:
            lyrics = Lyrics.from_spotify_api(track_id, payload)
        except ValueError as e:
            return Failed(track_id, FailureReason.TRANSIENT_ERROR, str(e))

        if not lyrics.lines:
            return NotFound(track_id)
        return Found(lyrics)

    def _request_lyrics(self, track_id: str, token: str) -> dict[str, Any]:
        """
        GET the color-lyrics payload with the current bearer token.

        The sp_dc cookie is scoped to open.spotify.com, so the shared HTTP
        session does not send it to spclient.
        """
        response = self._session.http.get(
            LYRICS_URL.format(track_id=track_id),
            params={"format": "json", "market": "from_token"},
            headers={"Authorization": f"Bearer {token}"},
            timeout=self._session.timeout,
        )

        status = response.status_code
        if status == 404 or status == 204:
            raise NotFoundError(f"No lyrics for {track_id}", details={"identifier": track_id})
        if status in DENIED_STATUSES:
            raise AuthorizationDenied(
                f"Lyrics request denied with HTTP {status}",
                details={"identifier": track_id, "http_status": status},
                status=status
            )
        if not 200 <= status < 300:
            raise TransientError(
                f"HTTP {status}",
                details={"identifier": track_id, "http_status": status}
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransientError(
                f"Invalid lyrics JSON: {e}",
                details={"identifier": track_id}
            ) from e

    # =========================================================================
    # Request Plumbing
    # =========================================================================

    def _with_reauth(self, request: Callable[[str], T], what: str) -> T:
        """
        Run a request with a valid token, re-logging in once on 401/403.

        Args:
            request: Called with the current bearer token.
            what: Short description for logs and error messages.

        Raises:
            AuthorizationDenied: If the retry after the re-login is denied too.
            NotFoundError: On 404.
            TransientError: On any other network or status failure.
            AuthError: If the login protocol is exhausted.
        """
        token = self._session.ensure_authenticated()
        try:
            return self._call(request, token, what)
        except AuthorizationDenied as e:
            logger.warning(f"Authorization denied for {what} (HTTP {e.status}), re-authenticating")

        token = self._session.refresh(stale_token=token)
        return self._call(request, token, what)

    def _call(self, request: Callable[[str], T], token: str, what: str) -> T:
        self._pace()
        try:
            return request(token)
        except spotipy.SpotifyException as e:
            raise _translate_spotify_error(e, what) from e
        except requests.RequestException as e:
            raise TransientError(
                f"Network error while fetching {what}: {e}",
                details={"original_error": str(e)}
            ) from e

    def _api_for(self, token: str) -> spotipy.Spotify:
        """spotipy client for a token, rebuilt only when the token changes."""
        if self._api is None or self._api_token != token:
            self._api = self._api_factory(
                auth=token,
                requests_timeout=self._session.timeout,
                retries=0,
                status_retries=0,
            )
            self._api_token = token
        return self._api

    def _pace(self) -> None:
        """Keep at least fetch.request_delay seconds between requests."""
        delay = self._fetch.request_delay
        if delay > 0 and self._last_request is not None:
            remaining = delay - (self._clock() - self._last_request)
            if remaining > 0:
                self._sleep(remaining)
        self._last_request = self._clock()


def _translate_spotify_error(error: spotipy.SpotifyException, what: str) -> Exception:
    status = error.http_status
    details = {"http_status": status, "original_error": str(error)}

    if status in DENIED_STATUSES:
        return AuthorizationDenied(
            f"Request for {what} denied with HTTP {status}",
            details=details,
            status=status
        )
    if status == 404:
        return NotFoundError(f"Not found: {what}", details=details)
    return TransientError(f"Failed to fetch {what}: HTTP {status}", details=details)


def _page_items(response: Any, identifier: str) -> list[Any]:
    if not isinstance(response, dict) or not isinstance(response.get("items"), list):
        raise TransientError(
            f"Unexpected page response for {identifier}",
            details={"identifier": identifier}
        )
    return response["items"]


def _album_track_id(item: Any) -> str | None:
    if not isinstance(item, dict):
        return None
    return item.get("id")


def _playlist_track_id(item: Any) -> str | None:
    """Track id of a playlist entry, None for local files, episodes and removed tracks."""
    if not isinstance(item, dict):
        return None
    track = item.get("track")
    if not isinstance(track, dict) or track.get("is_local", False):
        return None
    if track.get("type", "track") != "track":
        return None
    return track.get("id")
