"""Exception hierarchy for mutauth.

All exceptions inherit from :class:`MutauthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`mutauth.exit_codes`.
The top-level error handler in :func:`mutauth.app.main` catches
``MutauthError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Every authorization failure is a single terminal outcome for the request
that raised it. Across the library boundary an error is only its formatted
message (:meth:`MutauthError.to_message`); callers match on text, not on a
stable code.

Subclass hierarchy::

    MutauthError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 1)
    +-- AuthorizationError         (exit 3)
    |   +-- NoInitialUrlError
    |   +-- InvalidUrlError
    |   +-- PlatformError
    |   +-- TokenMissingError
    |   +-- AuthorizationTimeoutError
    +-- VerificationError          (exit 3)
    +-- ConnectionError_           (exit 6)
"""

from __future__ import annotations

from mutauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class MutauthError(Exception):
    """Base exception for all mutauth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`mutauth.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code

    def to_message(self) -> str:
        """Serialise the error to the single string callers receive."""
        return str(self)


class InvalidUsageError(MutauthError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(MutauthError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthorizationError(MutauthError):
    """Raised when an authorization request fails.

    None of the subclasses are retried by the flows; each one ends the
    request it was raised from.
    """

    exit_code = EXIT_AUTH_FAILURE


class NoInitialUrlError(AuthorizationError):
    """The primary surface's URL could not be read when it had to be captured."""

    def __init__(self) -> None:
        super().__init__("Missing initial url")


class InvalidUrlError(AuthorizationError):
    """A supplied URL string failed to parse.

    Args:
        reason: The underlying parser's message.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid url: {reason}")


class PlatformError(AuthorizationError):
    """A surface backend failed to open, navigate, read, or close a surface.

    Backend failures are wrapped uniformly; the original exception is kept
    as ``__cause__``.

    Args:
        reason: Description of the underlying failure.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Platform error: {reason}")


class TokenMissingError(AuthorizationError):
    """The token marker was observed but no ``musicUserToken`` parameter was present."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(
            f"Invalid url: musicUserToken marker found without a musicUserToken "
            f"query parameter ({url})"
        )


class AuthorizationTimeoutError(AuthorizationError):
    """The provider did not redirect with a token before the caller's deadline."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Authorization timed out after {timeout:g} seconds")


class VerificationError(MutauthError):
    """Raised when the Apple Music API rejects a developer token / MUT pair."""

    exit_code = EXIT_AUTH_FAILURE


class ConnectionError_(MutauthError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR
