"""
Command-line interface for spot-lyrics.

This module implements the CLI using Click, providing the command
for downloading synced lyrics of Spotify albums, playlists and tracks.
rich-click is used for the output colors.

Commands:
    spot-lyrics --album <url|id>         Lyrics for every track of an album
    spot-lyrics --playlist <url|id>      Lyrics for every track of a playlist
    spot-lyrics --track <url|id> ...     Lyrics for single tracks
    spot-lyrics --current                Lyrics for the track playing right now

Options:
    --config <path>                      config.yaml to use (default: ./config.yaml)
    -d, --directory <path>               Output directory (overrides config.yaml)
    --force                              Overwrite existing .lrc files and folders
    --unsynced                           Write lyrics without timestamps
    --verbose                            Show DEBUG messages on the console

Usage:
    spot-lyrics --album "https://open.spotify.com/album/..."
    spot-lyrics --playlist 37i9dQZF1DXcBWIGoYBM5M --force
    spot-lyrics --track spotify:track:4cOdK2wGLETKBW3PvgPWqT --track ...

Configuration:
    The CLI requires a config.yaml file with:
    - The sp_dc cookie (or the SP_DC environment variable / .env)
    - Output directory path

Exit Codes:
    0    Success (some tracks may still be unresolved, see the report)
    1    Configuration error or unexpected error
    3    Authentication failed (sp_dc invalid or expired)
    4    Other spot-lyrics error (an album/playlist could not be fetched,
         nothing is playing for --current, network)
    130  Interrupted by user
"""

import sys
from dataclasses import replace
from pathlib import Path

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cli": [
        {
            "name": "Input Sources",
            "options": ["--album", "--playlist", "--track", "--current"],
        },
        {
            "name": "Lyrics Options",
            "options": ["--force", "--unsynced"],
        },
        {
            "name": "Advanced Options",
            "options": ["--directory", "--config", "--verbose"],
        },
        {
            "name": "Info",
            "options": ["--version", "--help"],
        },
    ],
}

from spot_lyrics import __version__
from spot_lyrics.core import (
    AuthError,
    Config,
    ConfigError,
    FailureReason,
    NotFoundError,
    SpotLyricsError,
    TransientError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from spot_lyrics.download import LyricsStats, download_collection, download_lyrics
from spot_lyrics.spotify import CollectionKind, SessionManager, SpotifyClient
from spot_lyrics.utils import ensure_directory, extract_spotify_id, parse_collection_ref

logger = get_logger(__name__)


@click.command()
@click.option(
    "--album", "albums",
    multiple=True,
    metavar="<spotify-url>",
    help="Spotify album URL, URI or ID (repeatable)"
)
@click.option(
    "--playlist", "playlists",
    multiple=True,
    metavar="<spotify-url>",
    help="Spotify playlist URL, URI or ID (repeatable)"
)
@click.option(
    "--track", "tracks",
    multiple=True,
    metavar="<spotify-url>",
    help="Spotify track URL, URI or ID (repeatable)"
)
@click.option(
    "--current",
    is_flag=True,
    help="Lyrics for the track currently playing on your account"
)
@click.option(
    "-d", "--directory",
    type=click.Path(file_okay=False, resolve_path=True, path_type=Path),
    default=None,
    metavar="<path>",
    help="Output directory (overrides output.directory in config.yaml)"
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite existing .lrc files and folders"
)
@click.option(
    "--unsynced",
    is_flag=True,
    help="Write lyrics without timestamps"
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show debug messages on the console"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    albums: tuple[str, ...],
    playlists: tuple[str, ...],
    tracks: tuple[str, ...],
    current: bool,
    directory: Path | None,
    config_path: Path | None,
    force: bool,
    unsynced: bool,
    verbose: bool,
    version: bool
) -> None:
    """
    spot-lyrics: Download synced lyrics from Spotify as .lrc files.

    Authenticates with the sp_dc cookie of a logged-in browser session
    and saves one .lrc file per track.

    \b
    BASIC USAGE:
        spot-lyrics --album "https://open.spotify.com/album/..."
        spot-lyrics --playlist "https://open.spotify.com/playlist/..."
        spot-lyrics --track "https://open.spotify.com/track/..."
        spot-lyrics --current
    """
    if version:
        click.echo(f"spot-lyrics {__version__}")
        ctx.exit(0)

    sources = [name for name, values in (
        ("--album", albums),
        ("--playlist", playlists),
        ("--track", tracks),
        ("--current", current),
    ) if values]

    if not sources:
        click.echo(ctx.get_help())
        ctx.exit(0)

    if len(sources) > 1:
        raise click.UsageError(f"Use only one of --album, --playlist, --track, --current (got {', '.join(sources)})")

    try:
        if albums:
            refs = [parse_collection_ref(value, CollectionKind.ALBUM) for value in albums]
        elif playlists:
            refs = [parse_collection_ref(value, CollectionKind.PLAYLIST) for value in playlists]
        else:
            refs = []
        track_ids = [extract_spotify_id(value) for value in tracks]
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    _run(
        refs=refs,
        track_ids=track_ids,
        current=current,
        directory=directory,
        config_path=config_path,
        force=force,
        unsynced=unsynced,
        verbose=verbose,
    )


def _run(
    refs: list,
    track_ids: list[str],
    current: bool,
    directory: Path | None,
    config_path: Path | None,
    force: bool,
    unsynced: bool,
    verbose: bool
) -> None:
    """
    Execute the lyrics job.

    This is the main orchestration function that:
    1. Loads configuration
    2. Sets up logging
    3. Builds the session and the Spotify client
    4. Downloads lyrics for every requested source; an album or playlist
       that cannot be fetched is recorded and the next one is tried
    5. Reports results

    Raises:
        SystemExit: On fatal errors (with appropriate exit code).
    """
    session: SessionManager | None = None

    try:
        config = load_config(config_path)
        if directory is not None:
            config = replace(config, output=replace(config.output, directory=directory))

        setup_logging(config.output.directory, verbose=verbose)
        logger.info("spot-lyrics starting")

        ensure_directory(config.output.directory)

        options = config.lyrics
        if force:
            options = replace(options, force=True)
        if unsynced:
            options = replace(options, synced=False)

        session = SessionManager.from_config(config)
        client = SpotifyClient.from_config(config, session)
        client.ensure_authenticated()

        if current:
            current_id = client.get_current_track_id()
            if current_id is None:
                raise NotFoundError("No track is currently playing")
            logger.info(f"Currently playing: {current_id}")
            track_ids = [current_id]

        stats = LyricsStats()
        failed_collections = 0
        for ref in refs:
            try:
                stats = stats.merge(
                    download_collection(client, ref, config.output.directory, options)
                )
            except (NotFoundError, TransientError) as e:
                logger.error(f"Skipping {ref.kind.value} {ref.spotify_id}: {e.message}")
                if isinstance(e, NotFoundError):
                    reason = FailureReason.NOT_FOUND
                else:
                    reason = FailureReason.TRANSIENT_ERROR
                client.failures.record_failure(
                    ref.spotify_id,
                    reason,
                    e.message,
                    label=f"{ref.kind.value} {ref.spotify_id}"
                )
                failed_collections += 1
        if track_ids:
            stats = stats.merge(
                download_lyrics(client, track_ids, config.output.directory, options)
            )

        _print_final_stats(stats, client, config)

        if failed_collections:
            click.echo(
                f"Error: {failed_collections} of {len(refs)} collections could not be fetched",
                err=True
            )
            sys.exit(4)

        logger.info("spot-lyrics completed successfully")

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except AuthError as e:
        click.echo(f"Authentication error: {e.message}", err=True)
        click.echo("Check the sp_dc cookie in config.yaml (it may have expired)", err=True)
        logger.error(f"Authentication error: {e.message}", exc_info=True)
        sys.exit(3)

    except SpotLyricsError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        if session is not None:
            session.close()
        shutdown_logging()


def _print_final_stats(stats: LyricsStats, client: SpotifyClient, config: Config) -> None:
    """Log the job statistics and every unresolved item."""
    logger.info("=" * 60)
    logger.info("STATISTICS")
    logger.info("=" * 60)
    logger.info(f"Tracks:            {stats.total}")
    logger.info(f"Downloaded:        {stats.downloaded} ({stats.synced} synced, {stats.plain} plain)")
    logger.info(f"Already existed:   {stats.skipped}")
    logger.info(f"No lyrics:         {stats.not_found}")
    logger.info(f"Failed:            {stats.failed}")
    logger.info(f"Saved to:          {config.output.directory}")

    unresolved = client.failures.unresolved()
    if unresolved:
        logger.info("-" * 60)
        logger.info(f"Unresolved ({client.failures.summary()}):")
        for name, reason in unresolved:
            logger.info(f"  {name}: {reason}")
    logger.info("=" * 60)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `spot-lyrics` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
