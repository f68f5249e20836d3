"""
Logging configuration for spot-lyrics.

This module sets up the logging system with multiple outputs:
    - Console: Real-time progress with tqdm-compatible formatting
    - log_full_<ts>.log: Complete log of all events (DEBUG and above)
    - log_errors_<ts>.log: Only ERROR and CRITICAL level messages
    - unresolved_<ts>.log: Items that could not be resolved, with the reason

The logging system follows the principle: everything to screen is also saved
to file, then filtered into specialized files.

Log File Locations:
    All log files are created in output_dir/logs. Each run gets its own
    timestamped set of files.

Usage:
    from spot_lyrics.core.logger import setup_logging, get_logger

    setup_logging(output_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Fetching album")
    log_unresolved_item(logger, "4cOdK2wGLETKBW3PvgPWqT", "No lyrics available")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that adds colors to console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    tqdm progress bars write to stderr and use carriage returns to update in-place.
    Standard logging to stderr can interfere with this, causing visual glitches.
    This handler uses tqdm.write() which properly coordinates with active progress bars.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class UnresolvedItemHandler(logging.Handler):
    """
    Handler that captures unresolved items for the unresolved report file.

    This handler listens for log records that carry unresolved item
    information and writes them to unresolved_<ts>.log in a simple,
    human-readable format:

        Artist Name - Song Title
        4cOdK2wGLETKBW3PvgPWqT: No lyrics available

        5W3cjX2J3tjhG8zb6u0qHn
        5W3cjX2J3tjhG8zb6u0qHn: Transient error: HTTP 503

    The handler looks for specific extra fields in log records:
        - 'unresolved_item_id': The Spotify identifier
        - 'unresolved_item_reason': Human-readable reason
        - 'unresolved_item_label': Display label (optional, defaults to the id)

    Only records containing these fields are written to the report.

    Usage:
        log_unresolved_item(logger, track_id, "No lyrics available", label="Artist - Title")
    """

    def __init__(self, report_path: Path) -> None:
        """
        Args:
            report_path: Path to the unresolved report file.
                         File will be created/overwritten.
        """
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "unresolved_item_id"):
            return

        if self.report_file is None:
            return

        try:
            identifier = getattr(record, "unresolved_item_id", "")
            reason = getattr(record, "unresolved_item_reason", "Unknown reason")
            label = getattr(record, "unresolved_item_label", None) or identifier

            self.report_file.write(f"{label}\n")
            self.report_file.write(f"{identifier}: {reason}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(output_dir: Path, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        output_dir: Directory where log files will be created.
                    Logs are stored in a 'logs' subdirectory.
        verbose: Show DEBUG messages on the console as well.

    Behavior:
        1. Create output_dir/logs if it doesn't exist
        2. Generate timestamp for this run's log files
        3. Configure root logger level to DEBUG
        4. Console handler (TqdmLoggingHandler), INFO or DEBUG
        5. Full log file handler, DEBUG
        6. Error log file handler, filtered to ERROR+
        7. Unresolved item handler
        8. Quiet down urllib3/spotipy chatter below WARNING
    """
    logs_dir = output_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_log_path = logs_dir / f"log_full_{timestamp}.log"
    full_handler = logging.FileHandler(full_log_path, mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_log_path = logs_dir / f"log_errors_{timestamp}.log"
    error_handler = logging.FileHandler(error_log_path, mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    unresolved_path = logs_dir / f"unresolved_{timestamp}.log"
    unresolved_handler = UnresolvedItemHandler(unresolved_path)
    unresolved_handler.open()
    root_logger.addHandler(unresolved_handler)

    # Request URLs carry the TOTP and bearer-bound paths
    for noisy in ("urllib3", "spotipy"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called will have no
        handlers and will not produce output.
    """
    return logging.getLogger(name)


def log_unresolved_item(
    logger: logging.Logger,
    identifier: str,
    reason: str,
    label: str | None = None,
    level: int = logging.WARNING
) -> None:
    """
    Log an item that could not be resolved.

    Logs a message (WARNING unless another level is given) and attaches
    extra fields that UnresolvedItemHandler will use to write to
    unresolved_<ts>.log, whatever the level.

    Args:
        logger: The logger to use for the message.
        identifier: The Spotify identifier of the item.
        reason: Human-readable reason (e.g. "No lyrics available").
        label: Optional display label such as "Artist - Title".
        level: Logging level of the console/log file message.
    """
    logger.log(
        level,
        f"Unresolved: {label or identifier} ({reason})",
        extra={
            "unresolved_item_id": identifier,
            "unresolved_item_reason": reason,
            "unresolved_item_label": label,
        }
    )


def shutdown_logging() -> None:
    """
    Properly shut down the logging system.

    Flushes and closes all handlers, then removes them from the root logger.
    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
