"""
Data models for Spotify entities and lookup outcomes.

This module defines immutable dataclasses representing Spotify objects
(tracks, albums/playlists, lyrics) and the tagged result returned by
per-item lookups.

Design Decisions:
    - All dataclasses are frozen (immutable) to prevent accidental modification
    - Fields match Spotify API response structure where possible
    - Optional fields have sensible defaults
    - "No data" is a value (NotFound), never an exception

Usage:
    from spot_lyrics.spotify.models import Track, Found, NotFound, Failed

    track = Track.from_spotify_api(track_data)

    result = client.get_item_detail(track.spotify_id)
    if isinstance(result, Found):
        lyrics = result.item
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from spot_lyrics.core.report import FailureReason


# =========================================================================
# Collections
# =========================================================================

class CollectionKind(Enum):
    """Kind of Spotify collection a job can walk."""
    ALBUM = "album"
    PLAYLIST = "playlist"


@dataclass(frozen=True)
class CollectionRef:
    """
    Reference to a Spotify album or playlist.

    Attributes:
        kind: ALBUM or PLAYLIST.
        spotify_id: The 22-character base62 identifier.
    """
    kind: CollectionKind
    spotify_id: str

    @property
    def url(self) -> str:
        return f"https://open.spotify.com/{self.kind.value}/{self.spotify_id}"


@dataclass(frozen=True)
class Collection:
    """
    Metadata of an album or playlist, used for folder naming.

    Attributes:
        ref: The CollectionRef this metadata belongs to.
        name: Album or playlist name.
        owner_name: Playlist owner display name (empty for albums).
        artists: Album artist names (empty for playlists).
        release_date: Album release date (empty for playlists).
        total_tracks: Track count declared by Spotify. Informational only,
                      pagination never relies on it.
    """
    ref: CollectionRef
    name: str
    owner_name: str = ""
    artists: tuple[str, ...] = ()
    release_date: str = ""
    total_tracks: int = 0

    @classmethod
    def from_spotify_api(cls, ref: CollectionRef, data: dict[str, Any]) -> "Collection":
        """
        Create a Collection from a spotify.album() or spotify.playlist() response.

        Args:
            ref: Reference the data was fetched for.
            data: The raw API response.
        """
        if ref.kind is CollectionKind.ALBUM:
            return cls(
                ref=ref,
                name=data.get("name") or "Unknown Album",
                artists=tuple(a.get("name", "") for a in data.get("artists") or []),
                release_date=data.get("release_date") or "",
                total_tracks=data.get("total_tracks") or 0,
            )

        owner = data.get("owner") or {}
        return cls(
            ref=ref,
            name=data.get("name") or "Unknown Playlist",
            owner_name=owner.get("display_name") or owner.get("id") or "Unknown",
            total_tracks=(data.get("tracks") or {}).get("total") or 0,
        )

    def naming_values(self) -> dict[str, str]:
        """Placeholder values for the album/playlist folder name formats."""
        return {
            "name": self.name,
            "owner": self.owner_name,
            "artists": ", ".join(self.artists),
            "artist": self.artists[0] if self.artists else "",
            "year": self.release_date[:4],
            "total_tracks": str(self.total_tracks),
        }


# =========================================================================
# Tracks
# =========================================================================

@dataclass(frozen=True)
class Track:
    """
    Immutable representation of a Spotify track.

    Only the metadata needed for naming .lrc files and writing LRC
    header tags is kept.

    Attributes:
        spotify_id: Unique Spotify track ID (22-character base62 string).
                    Example: "4cOdK2wGLETKBW3PvgPWqT"
        spotify_url: Full Spotify URL for the track.
        name: Track title as it appears on Spotify.
        artist: Primary artist name (first artist in the list).
        artists: All artist names. Tuple for immutability.
        album: Album name.
        album_artist: Main artist of the album (may differ for compilations).
        duration_ms: Track duration in milliseconds. Used for [length:].
        track_number: Position of the track within its album.
        disc_number: Disc number for multi-disc albums.
        tracks_count: Total tracks on the album.
        release_date: Album release date, "2024-01-15" or just "2024".
        year: Release year extracted from release_date (0 if unknown).
        explicit: Whether the track is marked explicit on Spotify.

    Example:
        track = Track.from_spotify_api(spotify_track_data)
        print(f"{track.name} by {track.artist}")
    """

    spotify_id: str
    spotify_url: str
    name: str
    artist: str
    artists: tuple[str, ...]
    album: str
    duration_ms: int

    album_artist: str = ""
    track_number: int = 1
    disc_number: int = 1
    tracks_count: int = 1
    release_date: str = ""
    year: int = 0
    explicit: bool = False

    @classmethod
    def from_spotify_api(cls, track_data: dict[str, Any]) -> "Track":
        """
        Create a Track instance from a Spotify full track object.

        Args:
            track_data: One entry of the spotify.tracks() response.

        Returns:
            Track: A new Track instance populated with the extracted data.

        Raises:
            KeyError: If the id or name is missing from track_data.
        """
        spotify_id = track_data["id"]
        name = track_data["name"]
        spotify_url = (track_data.get("external_urls") or {}).get(
            "spotify",
            f"https://open.spotify.com/track/{spotify_id}"
        )

        artists_list = [a["name"] for a in track_data.get("artists") or [] if a.get("name")]
        artist = artists_list[0] if artists_list else "Unknown Artist"

        album_info = track_data.get("album") or {}
        album_artists = album_info.get("artists") or []
        album_artist = album_artists[0].get("name", artist) if album_artists else artist

        release_date = album_info.get("release_date") or ""
        year = 0
        if release_date:
            try:
                year = int(release_date[:4])
            except ValueError:
                year = 0

        return cls(
            spotify_id=spotify_id,
            spotify_url=spotify_url,
            name=name,
            artist=artist,
            artists=tuple(artists_list),
            album=album_info.get("name") or "Unknown Album",
            duration_ms=track_data.get("duration_ms") or 0,
            album_artist=album_artist,
            track_number=track_data.get("track_number") or 1,
            disc_number=track_data.get("disc_number") or 1,
            tracks_count=album_info.get("total_tracks") or 1,
            release_date=release_date,
            year=year,
            explicit=track_data.get("explicit", False),
        )

    @property
    def label(self) -> str:
        """Display label used in reports: 'Artist - Title'."""
        return f"{self.artist} - {self.name}"

    def naming_values(self) -> dict[str, str]:
        """Placeholder values for the .lrc file name format."""
        return {
            "name": self.name,
            "artist": self.artist,
            "artists": ", ".join(self.artists),
            "album": self.album,
            "album_artist": self.album_artist,
            "track_number": f"{self.track_number:02d}",
            "disc_number": str(self.disc_number),
            "tracks_count": str(self.tracks_count),
            "year": str(self.year) if self.year else "",
            "id": self.spotify_id,
        }


# =========================================================================
# Lyrics
# =========================================================================

@dataclass(frozen=True)
class LyricsLine:
    """
    One line of lyrics.

    Attributes:
        words: Text of the line (may be empty for instrumental breaks).
        start_time_ms: Start offset in milliseconds, None when the
                       provider did not send a parsable value.
    """
    words: str
    start_time_ms: int | None = None

    @classmethod
    def from_spotify_api(cls, line_data: dict[str, Any]) -> "LyricsLine":
        # startTimeMs arrives as a string, e.g. "15230"
        raw_start = line_data.get("startTimeMs")
        try:
            start_time_ms = int(raw_start) if raw_start not in (None, "") else None
        except (TypeError, ValueError):
            start_time_ms = None
        return cls(words=line_data.get("words") or "", start_time_ms=start_time_ms)


@dataclass(frozen=True)
class Lyrics:
    """
    Lyrics of a track from the color-lyrics endpoint.

    Attributes:
        track_id: Spotify track ID the lyrics belong to.
        sync_type: "LINE_SYNCED", "SYLLABLE_SYNCED" or "UNSYNCED".
        lines: Ordered lyric lines.
        provider: Lyrics provider display name, if sent.
        language: ISO language code, if sent.
    """
    track_id: str
    sync_type: str
    lines: tuple[LyricsLine, ...]
    provider: str = ""
    language: str = ""

    @property
    def is_synced(self) -> bool:
        return self.sync_type != "UNSYNCED"

    @classmethod
    def from_spotify_api(cls, track_id: str, payload: dict[str, Any]) -> "Lyrics":
        """
        Create Lyrics from a color-lyrics JSON payload.

        Raises:
            ValueError: If the payload has no 'lyrics.lines' list.
        """
        data = payload.get("lyrics") if isinstance(payload, dict) else None
        if not isinstance(data, dict) or not isinstance(data.get("lines"), list):
            raise ValueError("Lyrics payload has no 'lyrics.lines' list")

        return cls(
            track_id=track_id,
            sync_type=data.get("syncType") or "UNSYNCED",
            lines=tuple(
                LyricsLine.from_spotify_api(line)
                for line in data["lines"]
                if isinstance(line, dict)
            ),
            provider=data.get("providerDisplayName") or data.get("provider") or "",
            language=data.get("language") or "",
        )


# =========================================================================
# Lookup results
# =========================================================================

@dataclass(frozen=True)
class Found:
    """The lookup produced data."""
    item: Any


@dataclass(frozen=True)
class NotFound:
    """The provider explicitly has no data for the identifier."""
    identifier: str


@dataclass(frozen=True)
class Failed:
    """
    The lookup failed.

    Attributes:
        identifier: The identifier that was looked up.
        reason: TRANSIENT_ERROR or AUTH_ERROR.
        message: Detail such as the status code or exception text.
    """
    identifier: str
    reason: FailureReason
    message: str = ""


LookupResult = Found | NotFound | Failed
