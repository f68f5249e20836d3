"""
Configuration management for spot-lyrics.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - The sp_dc browser cookie used to mint web-player tokens
    - Output directory for lyrics files and logs
    - Lyrics naming and overwrite behavior
    - Session retry parameters and fetch pacing

Configuration File Location:
    The config.yaml file is looked up in the current working directory
    unless an explicit path is given.

Credential Fallback:
    When 'spotify.sp_dc' is absent, the SP_DC environment variable is used.
    A local .env file is loaded with python-dotenv before the lookup.

Example config.yaml:
    spotify:
      sp_dc: "AQ..."

    output:
      directory: "~/Music/Lyrics"

    lyrics:
      synced: true
      create_folder: true
      force: false
      file_name: "{track_number}. {name} - {artist}"

    session:
      max_login_attempts: 3
      login_retry_pause: 0.5

    fetch:
      album_page_size: 50
      playlist_page_size: 100
      batch_size: 50
      request_delay: 0.05
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from spot_lyrics.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

# Environment variable holding the sp_dc cookie when config.yaml omits it
SP_DC_ENV_VAR = "SP_DC"

# Provider limits for the paging and bulk endpoints
MAX_ALBUM_PAGE_SIZE = 50
MAX_PLAYLIST_PAGE_SIZE = 100
MAX_BATCH_SIZE = 50


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify web-session credential.

    Attributes:
        sp_dc: Value of the sp_dc cookie copied from a logged-in browser
               session on open.spotify.com. Never logged or displayed.
    """
    sp_dc: str = field(repr=False)


@dataclass(frozen=True)
class OutputConfig:
    """
    Output directory configuration.

    Attributes:
        directory: Absolute path where .lrc files and logs are written.
                   ~ is expanded. Created on demand.
    """
    directory: Path


@dataclass(frozen=True)
class LyricsConfig:
    """
    Lyrics job behavior.

    Attributes:
        synced: Write [mm:ss.xx] timestamps when the provider has them.
        create_folder: Put album/playlist lyrics in their own sub-folder.
        force: Overwrite existing files and re-use existing folders.
        file_name: Naming format for .lrc files ({name}, {artist}, ...).
        album_folder_name: Naming format for album folders.
        playlist_folder_name: Naming format for playlist folders.
    """
    synced: bool = True
    create_folder: bool = True
    force: bool = False
    file_name: str = "{track_number}. {name} - {artist}"
    album_folder_name: str = "{name} - {artists}"
    playlist_folder_name: str = "{name} - {owner}"


@dataclass(frozen=True)
class SessionConfig:
    """
    Login protocol parameters.

    Attributes:
        max_login_attempts: Total login attempts before AuthError. Default: 3.
        login_retry_pause: Fixed pause in seconds between attempts. Default: 0.5.
        request_timeout: Timeout in seconds for every HTTP request. Default: 10.
    """
    max_login_attempts: int = 3
    login_retry_pause: float = 0.5
    request_timeout: float = 10.0


@dataclass(frozen=True)
class FetchConfig:
    """
    Pagination and batching parameters.

    Attributes:
        album_page_size: Page size for album track walks (max 50).
        playlist_page_size: Page size for playlist track walks (max 100).
        batch_size: Identifiers per bulk track request (max 50).
        request_delay: Fixed pacing delay in seconds between requests.
    """
    album_page_size: int = MAX_ALBUM_PAGE_SIZE
    playlist_page_size: int = MAX_PLAYLIST_PAGE_SIZE
    batch_size: int = MAX_BATCH_SIZE
    request_delay: float = 0.05


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable (frozen dataclass).

    Example:
        config = load_config()
        print(f"Saving to: {config.output.directory}")
        print(f"Batch size: {config.fetch.batch_size}")
    """
    spotify: SpotifyConfig
    output: OutputConfig
    lyrics: LyricsConfig = field(default_factory=LyricsConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is not found, has invalid YAML syntax,
                     is missing required fields, or contains invalid values.

    Behavior:
        1. Locate config file (explicit path or CWD/config.yaml)
        2. Read and parse YAML content
        3. Validate structure (required sections exist)
        4. Resolve the sp_dc credential (config, then SP_DC / .env)
        5. Parse optional sections with defaults
        6. Create and return frozen Config object
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    _validate_config(raw_config)

    return Config(
        spotify=_parse_spotify_config(raw_config.get("spotify")),
        output=_parse_output_config(raw_config["output"]),
        lyrics=_parse_lyrics_config(raw_config.get("lyrics")),
        session=_parse_session_config(raw_config.get("session")),
        fetch=_parse_fetch_config(raw_config.get("fetch")),
    )


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Check required sections exist and every present section is a mapping.

    Raises:
        ConfigError: If validation fails.
    """
    if "output" not in raw_config:
        raise ConfigError(
            "Missing required section: 'output'",
            details={"missing_section": "output"}
        )

    for section in ("spotify", "output", "lyrics", "session", "fetch"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )


def _parse_spotify_config(spotify_section: dict[str, Any] | None) -> SpotifyConfig:
    """
    Resolve the sp_dc cookie.

    The value in config.yaml wins; otherwise SP_DC from the environment
    (after loading .env) is used.

    Raises:
        ConfigError: If no non-empty credential is available.
    """
    sp_dc = (spotify_section or {}).get("sp_dc")

    if sp_dc is None:
        load_dotenv()
        sp_dc = os.environ.get(SP_DC_ENV_VAR)

    if not isinstance(sp_dc, str) or not sp_dc.strip():
        raise ConfigError(
            "'spotify.sp_dc' must be a non-empty string "
            f"(or set the {SP_DC_ENV_VAR} environment variable)",
            details={"field": "spotify.sp_dc"}
        )

    return SpotifyConfig(sp_dc=sp_dc.strip())


def _parse_output_config(output_section: dict[str, Any]) -> OutputConfig:
    """
    Parse the output section, expanding ~ and making the path absolute.

    Does NOT create the directory (that happens when the job runs).
    """
    directory = output_section.get("directory", "")

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'output.directory' must be a non-empty string",
            details={"field": "output.directory"}
        )

    return OutputConfig(directory=Path(directory.strip()).expanduser().resolve())


def _parse_lyrics_config(lyrics_section: dict[str, Any] | None) -> LyricsConfig:
    """Parse the optional lyrics section, applying defaults."""
    defaults = LyricsConfig()
    if lyrics_section is None:
        return defaults

    values: dict[str, Any] = {}
    for name in ("synced", "create_folder", "force"):
        raw = lyrics_section.get(name)
        if raw is None:
            continue
        if not isinstance(raw, bool):
            raise ConfigError(
                f"'lyrics.{name}' must be true or false",
                details={"field": f"lyrics.{name}", "value": raw}
            )
        values[name] = raw

    for name in ("file_name", "album_folder_name", "playlist_folder_name"):
        raw = lyrics_section.get(name)
        if raw is None:
            continue
        if not isinstance(raw, str) or not raw.strip():
            raise ConfigError(
                f"'lyrics.{name}' must be a non-empty string",
                details={"field": f"lyrics.{name}"}
            )
        values[name] = raw

    return replace(defaults, **values)


def _parse_session_config(session_section: dict[str, Any] | None) -> SessionConfig:
    """Parse the optional session section, applying defaults."""
    defaults = SessionConfig()
    if session_section is None:
        return defaults

    return SessionConfig(
        max_login_attempts=_positive_int(
            session_section, "max_login_attempts", defaults.max_login_attempts, "session"
        ),
        login_retry_pause=_non_negative_number(
            session_section, "login_retry_pause", defaults.login_retry_pause, "session"
        ),
        request_timeout=_positive_number(
            session_section, "request_timeout", defaults.request_timeout, "session"
        ),
    )


def _parse_fetch_config(fetch_section: dict[str, Any] | None) -> FetchConfig:
    """
    Parse the optional fetch section, applying defaults.

    Page and batch sizes above the provider limits are rejected rather
    than silently clamped.
    """
    defaults = FetchConfig()
    if fetch_section is None:
        return defaults

    album_page_size = _positive_int(
        fetch_section, "album_page_size", defaults.album_page_size, "fetch", MAX_ALBUM_PAGE_SIZE
    )
    playlist_page_size = _positive_int(
        fetch_section, "playlist_page_size", defaults.playlist_page_size, "fetch", MAX_PLAYLIST_PAGE_SIZE
    )
    batch_size = _positive_int(
        fetch_section, "batch_size", defaults.batch_size, "fetch", MAX_BATCH_SIZE
    )
    request_delay = _non_negative_number(
        fetch_section, "request_delay", defaults.request_delay, "fetch"
    )

    return FetchConfig(
        album_page_size=album_page_size,
        playlist_page_size=playlist_page_size,
        batch_size=batch_size,
        request_delay=request_delay,
    )


def _positive_int(
    section: dict[str, Any],
    name: str,
    default: int,
    section_name: str,
    maximum: int | None = None
) -> int:
    raw = section.get(name)
    if raw is None:
        return default

    # bool is an int subclass, reject it explicitly
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        raise ConfigError(
            f"'{section_name}.{name}' must be a positive integer",
            details={"field": f"{section_name}.{name}", "value": raw}
        )

    if maximum is not None and raw > maximum:
        raise ConfigError(
            f"'{section_name}.{name}' must not exceed {maximum}",
            details={"field": f"{section_name}.{name}", "value": raw, "maximum": maximum}
        )

    return raw


def _non_negative_number(
    section: dict[str, Any],
    name: str,
    default: float,
    section_name: str
) -> float:
    raw = section.get(name)
    if raw is None:
        return default

    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0:
        raise ConfigError(
            f"'{section_name}.{name}' must be a non-negative number",
            details={"field": f"{section_name}.{name}", "value": raw}
        )

    return float(raw)


def _positive_number(
    section: dict[str, Any],
    name: str,
    default: float,
    section_name: str
) -> float:
    raw = section.get(name)
    if raw is None:
        return default

    # urllib3 refuses a zero timeout
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw <= 0:
        raise ConfigError(
            f"'{section_name}.{name}' must be a positive number",
            details={"field": f"{section_name}.{name}", "value": raw}
        )

    return float(raw)
