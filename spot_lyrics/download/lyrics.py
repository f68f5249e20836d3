"""
Lyrics download job for spot-lyrics.

This module turns Spotify track identifiers into .lrc files on disk,
using SpotifyClient for every remote call.

Workflow:
    1. Resolve the target folder (one sub-folder per album/playlist
       when lyrics.create_folder is set)
    2. Collect track identifiers (walk the album/playlist)
    3. Fetch full track records in batches of 50
    4. For each track:
       a. Skip if its .lrc file exists (unless force)
       b. Fetch lyrics with get_item_detail()
       c. Found: format as LRC and write the file
       d. NotFound / Failed: record in the client's FailureAggregator
    5. Report statistics

Lyrics are per-track and optional: no single track's failure stops the
job. Only AuthError (the session cannot be restored) escapes.

Usage:
    from spot_lyrics.download.lyrics import download_collection

    stats = download_collection(client, ref, config.output.directory, config.lyrics)
    print(f"Downloaded {stats.downloaded}/{stats.total} lyrics")
"""

from dataclasses import dataclass
from pathlib import Path

from tqdm import tqdm

from spot_lyrics.core.config import LyricsConfig
from spot_lyrics.core.exceptions import LyricsError
from spot_lyrics.core.logger import get_logger
from spot_lyrics.core.report import FailureAggregator, FailureReason
from spot_lyrics.spotify.client import SpotifyClient
from spot_lyrics.spotify.models import (
    Collection,
    CollectionKind,
    CollectionRef,
    Found,
    Lyrics,
    NotFound,
    Track,
)
from spot_lyrics.utils import ensure_directory, format_timestamp, render_name

logger = get_logger(__name__)

LRC_EXTENSION = ".lrc"


@dataclass
class LyricsStats:
    """
    Statistics from a lyrics job.

    Attributes:
        total: Track identifiers the job was asked to handle.
        downloaded: .lrc files written.
        synced: Written files with timestamps.
        plain: Written files without timestamps.
        skipped: Tracks whose .lrc file already existed.
        not_found: Tracks without lyrics on Spotify.
        failed: Tracks whose record, lyrics request or file write failed.
    """

    total: int = 0
    downloaded: int = 0
    synced: int = 0
    plain: int = 0
    skipped: int = 0
    not_found: int = 0
    failed: int = 0

    @property
    def found_rate(self) -> float:
        """Calculate lyrics found rate as percentage of attempted tracks."""
        attempted = self.total - self.skipped
        if attempted <= 0:
            return 0.0
        return (self.downloaded / attempted) * 100

    def merge(self, other: "LyricsStats") -> "LyricsStats":
        """Return the field-wise sum of two stats objects."""
        return LyricsStats(
            total=self.total + other.total,
            downloaded=self.downloaded + other.downloaded,
            synced=self.synced + other.synced,
            plain=self.plain + other.plain,
            skipped=self.skipped + other.skipped,
            not_found=self.not_found + other.not_found,
            failed=self.failed + other.failed,
        )


# =========================================================================
# LRC Formatting
# =========================================================================

def format_lrc(lyrics: Lyrics, track: Track, synced: bool = True) -> str:
    """
    Render lyrics in LRC format.

    Args:
        lyrics: Lyrics returned by SpotifyClient.get_item_detail().
        track: Track the lyrics belong to (for the header tags).
        synced: Write [mm:ss.xx] timestamps when the lyrics have them.

    Returns:
        LRC text ending with a newline.

    Format:
        [ti:Song Title]
        [al:Album Name]
        [ar:Artist Name]
        [length:03:30.00]
        [00:15.23]First line of the song
        [00:18.50]Second line continues

        Lines without a parsable start time, and every line of UNSYNCED
        lyrics, are written without a timestamp.
    """
    lines = [
        f"[ti:{track.name}]",
        f"[al:{track.album}]",
        f"[ar:{track.artist}]",
    ]
    if track.duration_ms > 0:
        lines.append(f"[length:{format_timestamp(track.duration_ms)}]")

    use_timestamps = synced and lyrics.is_synced
    for line in lyrics.lines:
        if use_timestamps and line.start_time_ms is not None:
            lines.append(f"[{format_timestamp(line.start_time_ms)}]{line.words}")
        else:
            lines.append(line.words)

    return "\n".join(lines) + "\n"


def lyrics_file_path(track: Track, target_dir: Path, name_format: str) -> Path:
    """Path of the .lrc file for a track, named after lyrics.file_name."""
    return target_dir / f"{render_name(name_format, track.naming_values())}{LRC_EXTENSION}"


def write_lrc(path: Path, content: str) -> None:
    """
    Write LRC content as UTF-8.

    Raises:
        LyricsError: If the file cannot be written.
    """
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise LyricsError(
            f"Failed to save lyrics file: {e}",
            details={"file_path": str(path), "original_error": str(e)}
        ) from e


# =========================================================================
# Jobs
# =========================================================================

def download_lyrics(
    client: SpotifyClient,
    track_ids: list[str],
    target_dir: Path,
    options: LyricsConfig
) -> LyricsStats:
    """
    Download lyrics for a list of tracks into one directory.

    Args:
        client: Authenticated-on-demand SpotifyClient.
        track_ids: Spotify track IDs, in the order files should be written.
        target_dir: Directory for the .lrc files. Created if missing.
        options: File naming, sync and overwrite behavior.

    Returns:
        LyricsStats for this call.

    Raises:
        AuthError: If the session cannot be restored.

    Behavior:
        Every track ID ends up in client.failures exactly once: a failed
        record lookup, a written or already existing file (success), or
        the outcome of its lyrics request with an "Artist - Title" label.
    """
    stats = LyricsStats(total=len(track_ids))
    if not track_ids:
        return stats

    ensure_directory(target_dir)

    # Record lookups resolve into lyrics outcomes, only their failures are final
    lookups = FailureAggregator()
    tracks = client.get_items_batch(track_ids, aggregator=lookups)
    client.failures.add_records(lookups.failures)
    stats.failed += len(track_ids) - len(tracks)

    for track in tqdm(tracks, desc="Lyrics", unit="track"):
        path = lyrics_file_path(track, target_dir, options.file_name)

        if path.exists() and not options.force:
            logger.debug(f"Already exists, skipping: {path.name}")
            client.failures.record_success(track.spotify_id)
            stats.skipped += 1
            continue

        result = client.get_item_detail(track.spotify_id)

        if isinstance(result, Found):
            lyrics = result.item
            try:
                write_lrc(path, format_lrc(lyrics, track, options.synced))
            except LyricsError as e:
                logger.error(f"{track.label}: {e.message}")
                client.failures.record_failure(
                    track.spotify_id,
                    FailureReason.TRANSIENT_ERROR,
                    e.message,
                    label=track.label
                )
                stats.failed += 1
                continue

            client.failures.record_success(track.spotify_id)
            stats.downloaded += 1
            if options.synced and lyrics.is_synced:
                stats.synced += 1
            else:
                stats.plain += 1
            logger.debug(f"Saved: {path.name}")
            continue

        client.failures.record(track.spotify_id, result, label=track.label)
        if isinstance(result, NotFound):
            stats.not_found += 1
        else:
            stats.failed += 1

    logger.info(
        f"Lyrics: {stats.downloaded} downloaded, {stats.skipped} skipped, "
        f"{stats.not_found} without lyrics, {stats.failed} failed"
    )
    return stats


def resolve_target_dir(
    output_dir: Path,
    collection: Collection,
    options: LyricsConfig
) -> Path | None:
    """
    Pick the folder for a collection's lyrics.

    Returns:
        output_dir itself when create_folder is off, otherwise a
        sub-folder named after the album/playlist. None when that
        sub-folder already exists and force is off (the collection
        is skipped).
    """
    if not options.create_folder:
        return output_dir

    if collection.ref.kind is CollectionKind.ALBUM:
        name_format = options.album_folder_name
    else:
        name_format = options.playlist_folder_name

    folder = output_dir / render_name(name_format, collection.naming_values())
    if folder.exists() and not options.force:
        logger.warning(
            f"Folder already exists, skipping: {folder.name} (use --force to overwrite)"
        )
        return None
    return folder


def download_collection(
    client: SpotifyClient,
    ref: CollectionRef,
    output_dir: Path,
    options: LyricsConfig
) -> LyricsStats:
    """
    Download lyrics for every track of an album or playlist.

    Args:
        client: SpotifyClient to use.
        ref: The album or playlist.
        output_dir: Base output directory.
        options: Lyrics behavior (folder naming, force, synced).

    Returns:
        LyricsStats; empty when the collection folder was skipped.

    Raises:
        NotFoundError: If the album/playlist does not exist.
        TransientError: If its metadata or a page of it cannot be fetched.
        AuthError: If the session cannot be restored.
    """
    collection = client.get_collection(ref)
    logger.info(f"{ref.kind.value.capitalize()}: {collection.name}")

    target_dir = resolve_target_dir(output_dir, collection, options)
    if target_dir is None:
        return LyricsStats()

    track_ids = client.get_item_collection_ids(ref)
    if collection.total_tracks and len(track_ids) != collection.total_tracks:
        logger.debug(
            f"Spotify declared {collection.total_tracks} tracks, walked {len(track_ids)}"
        )

    return download_lyrics(client, track_ids, target_dir, options)
