"""
Spotify integration module for spot-lyrics.

This module provides all functionality for talking to Spotify:
    - generate_totp: Login code for the web-player token endpoint
    - SessionManager: sp_dc cookie -> bearer token, with retry and re-login
    - SpotifyClient: Collections, track records and lyrics
    - walk_collection, batch_fetch: Pagination and batching engine
    - Track, Collection, Lyrics, Found/NotFound/Failed: Data models

Usage:
    from spot_lyrics.spotify import SessionManager, SpotifyClient

    session = SessionManager.from_config(config)
    client = SpotifyClient.from_config(config, session)
"""

from spot_lyrics.spotify.client import SpotifyClient
from spot_lyrics.spotify.fetcher import (
    Page,
    PageCursor,
    batch_fetch,
    chunk_identifiers,
    walk_collection,
)
from spot_lyrics.spotify.models import (
    Collection,
    CollectionKind,
    CollectionRef,
    Failed,
    Found,
    LookupResult,
    Lyrics,
    LyricsLine,
    NotFound,
    Track,
)
from spot_lyrics.spotify.session import SessionManager, SessionState
from spot_lyrics.spotify.totp import generate_totp

__all__ = [
    # Session
    "SessionManager",
    "SessionState",
    "generate_totp",
    # Client
    "SpotifyClient",
    # Fetcher
    "Page",
    "PageCursor",
    "batch_fetch",
    "chunk_identifiers",
    "walk_collection",
    # Models
    "Collection",
    "CollectionKind",
    "CollectionRef",
    "Failed",
    "Found",
    "LookupResult",
    "Lyrics",
    "LyricsLine",
    "NotFound",
    "Track",
]
