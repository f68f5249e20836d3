"""
Download module for spot-lyrics.

Contains the lyrics job:
    - download_collection: Album/playlist -> folder of .lrc files
    - download_lyrics: Track IDs -> .lrc files in one directory
    - format_lrc: Lyrics -> LRC text
"""

from spot_lyrics.download.lyrics import (
    LyricsStats,
    download_collection,
    download_lyrics,
    format_lrc,
    lyrics_file_path,
    resolve_target_dir,
    write_lrc,
)

__all__ = [
    "LyricsStats",
    "download_collection",
    "download_lyrics",
    "format_lrc",
    "lyrics_file_path",
    "resolve_target_dir",
    "write_lrc",
]
