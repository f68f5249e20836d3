"""
Web-player session for spot-lyrics.

This module turns the long-lived sp_dc browser cookie into short-lived
bearer tokens the same way open.spotify.com does, and keeps one token
alive for the whole job.

Login Protocol:
    1. GET https://open.spotify.com/server-time for the server clock
       (falls back to the local clock on any failure)
    2. Compute the six-digit code with generate_totp()
    3. GET https://open.spotify.com/get_access_token with the code,
       authenticated only by the sp_dc cookie
    4. Accept the token only if it is non-empty and starts with "BQ"

    Steps 1-4 are retried up to max_attempts times with a fixed pause.
    When every attempt fails the session is LOGGED_OUT and AuthError is
    raised.

State Machine:
    LOGGED_OUT --ensure_authenticated()--> LOGGING_IN --ok--> AUTHENTICATED
    LOGGING_IN --attempts exhausted--> LOGGED_OUT
    AUTHENTICATED --refresh() after 401/403--> LOGGING_IN

Cookie Scope:
    The sp_dc cookie is bound to the open.spotify.com domain in the cookie
    jar, so it is never sent to api.spotify.com or spclient.wg.spotify.com.

Usage:
    session = SessionManager(config.spotify.sp_dc)
    token = session.ensure_authenticated()

    # After a data request was rejected with 401/403:
    token = session.refresh(stale_token=token)
"""

import threading
import time
from enum import Enum
from typing import Any, Callable

import requests

from spot_lyrics.core.config import Config
from spot_lyrics.core.exceptions import AuthError, ConfigError
from spot_lyrics.core.logger import get_logger
from spot_lyrics.spotify.totp import TOTP_VERSION, generate_totp

logger = get_logger(__name__)


SERVER_TIME_URL = "https://open.spotify.com/server-time"
TOKEN_URL = "https://open.spotify.com/get_access_token"

COOKIE_NAME = "sp_dc"
COOKIE_DOMAIN = "open.spotify.com"

# Every valid web-player bearer token starts with this prefix
TOKEN_PREFIX = "BQ"

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/101.0.4951.41 Safari/537.36"
)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_PAUSE = 0.5
DEFAULT_TIMEOUT = 10.0


class SessionState(Enum):
    """Authentication state of a SessionManager."""
    LOGGED_OUT = "logged_out"
    LOGGING_IN = "logging_in"
    AUTHENTICATED = "authenticated"


class SessionManager:
    """
    Owns the bearer token and the login protocol for one credential.

    There is no global session: create one SessionManager per job and
    hand it to SpotifyClient.

    Attributes:
        state: Current SessionState.
        token: Current bearer token, or None unless AUTHENTICATED.
        http: The requests.Session carrying the scoped sp_dc cookie.

    Thread Safety:
        Token and state are only changed while holding an internal RLock.
        refresh() is single-flight: callers that saw the same stale token
        trigger at most one login between them.

    Example:
        session = SessionManager(sp_dc, retry_pause=0)
        try:
            token = session.ensure_authenticated()
        except AuthError:
            ...
        finally:
            session.close()
    """

    def __init__(
        self,
        sp_dc: str,
        http: requests.Session | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_pause: float = DEFAULT_RETRY_PAUSE,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        """
        Args:
            sp_dc: Value of the sp_dc cookie. Must be non-empty.
            http: Optional pre-built requests.Session (tests pass a mock).
            max_attempts: Total login attempts before AuthError.
            retry_pause: Fixed pause in seconds between login attempts.
            timeout: Timeout in seconds for every HTTP request.
            clock: Returns the local Unix time; used when server-time fails.
            sleep: Called with retry_pause between attempts.

        Raises:
            ConfigError: If sp_dc is empty or whitespace. No network
                         activity happens in that case.
            ValueError: If max_attempts is less than 1 or timeout is
                        not positive.
        """
        if not isinstance(sp_dc, str) or not sp_dc.strip():
            raise ConfigError(
                "sp_dc cookie must be a non-empty string",
                details={"field": "spotify.sp_dc"}
            )
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self._http = http if http is not None else requests.Session()
        self._http.headers.update({
            "User-Agent": USER_AGENT,
            "App-Platform": "WebPlayer",
        })
        self._http.cookies.set(COOKIE_NAME, sp_dc.strip(), domain=COOKIE_DOMAIN)

        self._max_attempts = max_attempts
        self._retry_pause = retry_pause
        self._timeout = timeout
        self._clock = clock
        self._sleep = sleep

        self._lock = threading.RLock()
        self._token: str | None = None
        self._state = SessionState.LOGGED_OUT

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> "SessionManager":
        """Build a SessionManager from the loaded configuration."""
        return cls(
            config.spotify.sp_dc,
            max_attempts=config.session.max_login_attempts,
            retry_pause=config.session.login_retry_pause,
            timeout=config.session.request_timeout,
            **kwargs
        )

    def __repr__(self) -> str:
        return f"SessionManager(state={self._state.name})"

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED and self._token is not None

    @property
    def http(self) -> requests.Session:
        return self._http

    @property
    def timeout(self) -> float:
        return self._timeout

    # =========================================================================
    # Authentication
    # =========================================================================

    def ensure_authenticated(self, force_relogin: bool = False) -> str:
        """
        Return a usable bearer token, logging in first if needed.

        Args:
            force_relogin: Run the login protocol even when AUTHENTICATED.

        Returns:
            The current bearer token.

        Raises:
            AuthError: If every login attempt failed.
        """
        with self._lock:
            if self.is_authenticated and not force_relogin:
                return self._token
            return self._login()

    def refresh(self, stale_token: str | None) -> str:
        """
        Replace a token that was rejected with 401/403.

        If the session already holds a different token (another caller
        refreshed in the meantime), that token is returned without a
        second login.

        Args:
            stale_token: The token the rejected request was sent with.

        Returns:
            A fresh bearer token.

        Raises:
            AuthError: If every login attempt failed.
        """
        with self._lock:
            if self.is_authenticated and self._token != stale_token:
                logger.debug("Token already refreshed by another caller")
                return self._token

            logger.info("Access token rejected, logging in again")
            self._state = SessionState.LOGGING_IN
            self._token = None
            return self._login()

    def close(self) -> None:
        """Release the HTTP session. The manager is LOGGED_OUT afterwards."""
        with self._lock:
            self._token = None
            self._state = SessionState.LOGGED_OUT
            self._http.close()

    # =========================================================================
    # Login Protocol
    # =========================================================================

    def _login(self) -> str:
        self._state = SessionState.LOGGING_IN
        self._token = None
        last_error: Exception | None = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                token = self._request_token(attempt)
            except (requests.RequestException, ValueError, AuthError) as e:
                last_error = e
                logger.warning(f"Login attempt {attempt}/{self._max_attempts} failed: {e}")
                if attempt < self._max_attempts:
                    self._sleep(self._retry_pause)
                continue

            self._token = token
            self._state = SessionState.AUTHENTICATED
            logger.info(f"Obtained access token (attempt {attempt})")
            return token

        self._token = None
        self._state = SessionState.LOGGED_OUT
        raise AuthError(
            f"sp_dc provided is invalid or connection failed after "
            f"{self._max_attempts} attempts",
            details={"attempts": self._max_attempts, "original_error": str(last_error)}
        ) from last_error

    def _request_token(self, attempt: int) -> str:
        """
        One login attempt.

        Raises:
            requests.RequestException: On transport failure.
            ValueError: If the body is not JSON.
            AuthError: On a non-success status, a bad shape or a bad prefix.
        """
        server_time = self._server_time()
        params = {
            "reason": "init",
            "productType": "web-player",
            "totp": generate_totp(server_time),
            "totpVer": str(TOTP_VERSION),
            "ts": str(server_time),
        }

        response = self._http.get(
            TOKEN_URL,
            params=params,
            timeout=self._timeout,
            allow_redirects=False
        )
        if not 200 <= response.status_code < 300:
            raise AuthError(
                f"Token endpoint returned HTTP {response.status_code}",
                details={"http_status": response.status_code, "attempt": attempt}
            )

        payload = response.json()
        token = payload.get("accessToken") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthError(
                "Token endpoint returned no access token",
                details={"attempt": attempt}
            )

        if not token.startswith(TOKEN_PREFIX):
            logger.warning(f"Received potentially invalid token (attempt {attempt}): {token[:10]}...")
            raise AuthError(
                f"Access token does not start with '{TOKEN_PREFIX}'",
                details={"attempt": attempt}
            )

        return token

    def _server_time(self) -> int:
        """Server clock in seconds, or the local clock if it cannot be read."""
        try:
            response = self._http.get(SERVER_TIME_URL, timeout=self._timeout)
            response.raise_for_status()
            server_time = response.json().get("serverTime")
            if isinstance(server_time, bool) or not isinstance(server_time, int):
                raise ValueError(f"unexpected serverTime value: {server_time!r}")
            return server_time
        except (requests.RequestException, ValueError, AttributeError) as e:
            local_time = int(self._clock())
            logger.warning(f"Could not read server time ({e}), using local clock")
            return local_time
