"""
Core module for spot-lyrics.

Contains fundamental components used throughout the application:
    - config: Configuration loading and validation
    - logger: Logging setup with multiple outputs
    - exceptions: Custom exception hierarchy
    - report: Per-item outcome tracking
"""

from spot_lyrics.core.config import (
    Config,
    FetchConfig,
    LyricsConfig,
    OutputConfig,
    SessionConfig,
    SpotifyConfig,
    load_config,
)
from spot_lyrics.core.exceptions import (
    AuthError,
    AuthorizationDenied,
    ConfigError,
    LyricsError,
    NotFoundError,
    SpotLyricsError,
    TransientError,
)
from spot_lyrics.core.logger import (
    get_logger,
    log_unresolved_item,
    setup_logging,
    shutdown_logging,
)
from spot_lyrics.core.report import (
    FailureAggregator,
    FailureReason,
    FailureRecord,
)

__all__ = [
    # Config
    "Config",
    "FetchConfig",
    "LyricsConfig",
    "OutputConfig",
    "SessionConfig",
    "SpotifyConfig",
    "load_config",
    # Exceptions
    "AuthError",
    "AuthorizationDenied",
    "ConfigError",
    "LyricsError",
    "NotFoundError",
    "SpotLyricsError",
    "TransientError",
    # Logger
    "get_logger",
    "log_unresolved_item",
    "setup_logging",
    "shutdown_logging",
    # Report
    "FailureAggregator",
    "FailureReason",
    "FailureRecord",
]
