"""
Exception classes for spot-lyrics.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional details
dictionary, and maps to one failure mode of the session/fetch pipeline.

Exception Hierarchy:
    SpotLyricsError (base)
        ConfigError - Configuration file or credential issues (fatal, before network)
        AuthError - Token minting exhausted or credential rejected (fatal for the job)
            AuthorizationDenied - 401/403 on a data request
        TransientError - One page/batch/item failed (recorded, siblings continue)
        NotFoundError - Provider has no data for an identifier (expected outcome)
        LyricsError - A lyrics file could not be written
"""


class SpotLyricsError(Exception):
    """
    Base exception for all spot-lyrics errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all spot-lyrics errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., track id, status).

    Example:
        try:
            client.get_item_collection_ids(ref)
        except SpotLyricsError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'identifier': Spotify ID involved in the error
                     - 'http_status': Status code returned by the remote service
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(SpotLyricsError):
    """
    Raised when there's an issue with the configuration or the credential.

    This is a CRITICAL error that should stop program execution before
    any network activity happens.

    Common causes:
        - config.yaml not found or has invalid YAML syntax
        - sp_dc cookie missing from config.yaml and from the SP_DC variable
        - Invalid field values (e.g., page size above the provider limit)

    Example:
        raise ConfigError(
            "'spotify.sp_dc' must be a non-empty string",
            details={'field': 'spotify.sp_dc'}
        )
    """
    pass


class AuthError(SpotLyricsError):
    """
    Raised when the session cannot be authenticated.

    This is a CRITICAL error for the whole job: without a bearer token
    no further request can succeed.

    Common causes:
        - sp_dc cookie expired or revoked
        - Token endpoint kept returning malformed or invalid-shape tokens
        - Network unreachable during every login attempt

    Example:
        raise AuthError(
            "sp_dc provided is invalid or connection failed after 3 attempts",
            details={'attempts': 3}
        )
    """
    pass


class AuthorizationDenied(AuthError):
    """
    Raised when a data request is rejected with 401 or 403.

    The client answers the first denial with a single re-login and retry.
    A second denial for the same call is raised to the caller, where batch
    and per-item callers record it instead of aborting the job.
    """

    def __init__(self, message: str, details: dict | None = None, status: int = 401) -> None:
        super().__init__(message, details)
        self.status = status


class TransientError(SpotLyricsError):
    """
    Raised when a single page, batch or item request fails.

    This is a NON-CRITICAL error - the failure is recorded and the job
    continues with the remaining pages, batches or items.

    Common causes:
        - Connection reset or timeout
        - Unexpected status code (5xx, 429)
        - Response body is not the expected JSON shape
    """
    pass


class NotFoundError(SpotLyricsError):
    """
    Raised when the provider explicitly has no data for an identifier.

    This is an expected outcome (e.g., an instrumental track without
    lyrics), not a failure of the system.
    """
    pass


class LyricsError(SpotLyricsError):
    """
    Raised when lyrics could not be written to disk.

    This is a NON-CRITICAL error - the track is reported as unresolved
    and the job moves on to the next one.

    Example:
        raise LyricsError(
            "Failed to save lyrics file",
            details={'file_path': '/path/to/01. Song - Artist.lrc'}
        )
    """
    pass
