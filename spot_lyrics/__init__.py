"""
spot-lyrics: Download synced Spotify lyrics as .lrc files.

This package authenticates against Spotify's web-player API with the
browser sp_dc cookie, walks albums and playlists, and saves the lyrics
of every track in LRC format.

Architecture:
    core/       - Configuration, logging, exceptions, failure report
    spotify/    - Login code, session, pagination/batching, client, models
    download/   - LRC formatting and the lyrics job
    utils/      - URL parsing, filename sanitization, naming formats
    cli.py      - Command-line interface

Usage:
    Command Line:
        spot-lyrics --album "https://open.spotify.com/album/..."
        spot-lyrics --playlist "https://open.spotify.com/playlist/..." --force

    Python API:
        from spot_lyrics.core import load_config, setup_logging
        from spot_lyrics.spotify import SessionManager, SpotifyClient, CollectionKind
        from spot_lyrics.download import download_collection
        from spot_lyrics.utils import parse_collection_ref

        config = load_config()
        setup_logging(config.output.directory)

        session = SessionManager.from_config(config)
        client = SpotifyClient.from_config(config, session)

        ref = parse_collection_ref(album_url, CollectionKind.ALBUM)
        stats = download_collection(client, ref, config.output.directory, config.lyrics)

Configuration:
    Requires a config.yaml file in the current directory:

        spotify:
          sp_dc: "AQ..."

        output:
          directory: "~/Music/Lyrics"

Dependencies:
    - spotipy: Spotify Web API client
    - requests: Token, server-time and lyrics endpoints
    - yt-dlp: Filename sanitization
    - rich-click: CLI colors
    - tqdm: Progress bars
    - pyyaml: Configuration file parsing
    - python-dotenv: SP_DC from a .env file
"""

__version__ = "0.1.0"
__author__ = "spot-lyrics"
__license__ = "MIT"

# Convenience imports for common usage
from spot_lyrics.core import (
    AuthError,
    Config,
    ConfigError,
    FailureAggregator,
    SpotLyricsError,
    TransientError,
    get_logger,
    load_config,
    setup_logging,
)
from spot_lyrics.spotify import SessionManager, SpotifyClient, Track, generate_totp

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    "FailureAggregator",
    # Exceptions
    "SpotLyricsError",
    "ConfigError",
    "AuthError",
    "TransientError",
    # Spotify
    "SessionManager",
    "SpotifyClient",
    "Track",
    "generate_totp",
]
