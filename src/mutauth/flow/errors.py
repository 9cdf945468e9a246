"""Uniform wrapping of surface backend failures."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from mutauth.exceptions import AuthorizationError, PlatformError


@contextmanager
def wrap_platform_errors(action: str) -> Iterator[None]:
    """Re-raise any backend exception inside the block as :class:`PlatformError`.

    Authorization errors pass through untouched.

    Args:
        action: What was being attempted, prefixed to the message.
    """
    try:
        yield
    except AuthorizationError:
        raise
    except Exception as exc:
        raise PlatformError(f"{action}: {exc}") from exc
