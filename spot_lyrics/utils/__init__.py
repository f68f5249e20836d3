"""
Utility functions for spot-lyrics.

This module provides common utility functions used across the application:
    - Spotify URL/URI parsing into identifiers and collection references
    - Filename sanitization (using yt-dlp's sanitize_filename)
    - Naming-format rendering for .lrc files and folders
    - Path and duration helpers

Usage:
    from spot_lyrics.utils import (
        parse_collection_ref,
        render_name,
        ensure_directory
    )
"""

import re
from pathlib import Path

from yt_dlp.utils import sanitize_filename as yt_dlp_sanitize

from spot_lyrics.spotify.models import CollectionKind, CollectionRef


# Matches {placeholder} in naming formats
_PLACEHOLDER_PATTERN = re.compile(r"\{([a-z_]+)\}")

_SPOTIFY_TYPES = ("track", "album", "playlist", "artist")


def sanitize_filename(name: str, restricted: bool = False) -> str:
    """
    Sanitize a string for use as a filename.

    Uses yt-dlp's sanitize_filename function so lyrics files follow the
    same naming rules as downloaded audio files.

    Args:
        name: The string to sanitize (e.g., track title, artist name).
        restricted: If True, use more aggressive sanitization that
                   removes all special characters. Default False.

    Returns:
        Sanitized string safe for use in filenames.

    Examples:
        sanitize_filename("AC/DC")         # no path separator left
        sanitize_filename("What?!")        # no '?' left
    """
    return yt_dlp_sanitize(name, restricted=restricted)


def _split_spotify_reference(url_or_id: str) -> tuple[str | None, str]:
    """Return (type or None, id) for a URL, a spotify: URI or a bare id."""
    value = url_or_id.strip()

    # Handle spotify: URI format
    if value.startswith("spotify:"):
        parts = value.split(":")
        kind = parts[-2] if len(parts) >= 3 else None
        return kind, parts[-1]

    # Handle URL format
    if "spotify.com" in value:
        # Remove query parameters and fragments
        value = value.split("?")[0].split("#")[0]
        segments = [s for s in value.rstrip("/").split("/") if s]
        kind = segments[-2] if len(segments) >= 2 and segments[-2] in _SPOTIFY_TYPES else None
        return kind, segments[-1] if segments else ""

    # Assume it's already an ID
    return None, value


def extract_spotify_id(url_or_id: str) -> str:
    """
    Extract Spotify ID from a URL or return ID as-is.

    Handles various Spotify URL formats:
        - https://open.spotify.com/album/ID
        - https://open.spotify.com/intl-it/track/ID?si=xxx
        - spotify:playlist:ID
        - Just the ID

    Args:
        url_or_id: Spotify URL or bare ID.

    Returns:
        The Spotify ID.

    Raises:
        ValueError: If no identifier can be extracted.

    Examples:
        extract_spotify_id("https://open.spotify.com/track/abc123?si=xyz")
        # Returns: "abc123"

        extract_spotify_id("spotify:track:abc123")
        # Returns: "abc123"
    """
    _, spotify_id = _split_spotify_reference(url_or_id)
    if not spotify_id:
        raise ValueError(f"No Spotify ID found in: {url_or_id!r}")
    return spotify_id


def parse_collection_ref(url_or_id: str, kind: CollectionKind) -> CollectionRef:
    """
    Build a CollectionRef for an album or playlist URL, URI or bare id.

    Args:
        url_or_id: What the user passed on the command line.
        kind: The collection kind the caller expects.

    Returns:
        CollectionRef with the extracted id.

    Raises:
        ValueError: If the URL/URI names a different type
                    (e.g. a playlist URL passed to --album).
    """
    found_type, spotify_id = _split_spotify_reference(url_or_id)
    if found_type is not None and found_type != kind.value:
        raise ValueError(f"Expected a Spotify {kind.value} link, got a {found_type} link")
    if not spotify_id:
        raise ValueError(f"No Spotify ID found in: {url_or_id!r}")
    return CollectionRef(kind=kind, spotify_id=spotify_id)


def render_name(name_format: str, values: dict[str, str]) -> str:
    """
    Fill a naming format and sanitize the result for the filesystem.

    Placeholders are written as {key}. Unknown keys render as empty
    strings instead of raising.

    Args:
        name_format: e.g. "{track_number}. {name} - {artist}".
        values: Placeholder values, typically Track.naming_values().

    Returns:
        Sanitized name without extension.

    Example:
        render_name("{name} - {artist}", {"name": "Intro", "artist": "AC/DC"})
    """
    rendered = _PLACEHOLDER_PATTERN.sub(
        lambda match: str(values.get(match.group(1), "")),
        name_format
    )
    rendered = " ".join(rendered.split())
    return sanitize_filename(rendered) or "unknown"


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory.

    Returns:
        The same path (for chaining).

    Raises:
        OSError: If directory cannot be created (permissions, etc.)
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def format_timestamp(milliseconds: int) -> str:
    """
    Format a millisecond offset as an LRC timestamp body "mm:ss.xx".

    Minutes are not wrapped at 60, so long tracks stay ordered.

    Examples:
        format_timestamp(15230)    # "00:15.23"
        format_timestamp(3725000)  # "62:05.00"
    """
    milliseconds = max(0, milliseconds)
    minutes, remainder = divmod(milliseconds, 60_000)
    seconds, millis = divmod(remainder, 1000)
    return f"{minutes:02d}:{seconds:02d}.{millis // 10:02d}"
