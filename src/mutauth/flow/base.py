"""Abstract base class for authorization flows.

An :class:`AuthorizationFlow` turns an OAuth URL into a Music User Token by
driving browser surfaces from a :class:`~mutauth.surfaces.SurfaceHost`.
The two concrete strategies differ only in surface lifecycle:

- :class:`~mutauth.flow.single_surface.SingleSurfaceFlow` for hosts limited
  to one surface per window, handing the token back to the app through a
  redirect.
- :class:`~mutauth.flow.multi_surface.MultiSurfaceFlow` for hosts that can
  open dedicated windows, returning the token directly.

Both share :func:`~mutauth.flow.poll.poll_for_token`.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from mutauth.exceptions import AuthorizationTimeoutError
from mutauth.flow.errors import wrap_platform_errors
from mutauth.flow.poll import POLL_INTERVAL
from mutauth.surfaces.base import BrowserSurface, SurfaceHost

logger = logging.getLogger(__name__)

AUTHORIZATION_SURFACE = "apple-music-authorization"
"""Label of the surface showing the identity provider's sign-in pages."""


class AuthorizationFlow(ABC):
    """One strategy for obtaining a Music User Token.

    Each call to :meth:`authorize` is an independent authorization request
    with its own surfaces; concurrent calls are not coordinated.

    Args:
        host: Factory for the surfaces this flow opens.
        interval: Seconds between URL observations.
    """

    def __init__(self, host: SurfaceHost, *, interval: float = POLL_INTERVAL) -> None:
        self._host = host
        self._interval = interval

    @property
    def host(self) -> SurfaceHost:
        return self._host

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier of the strategy (``"single"`` or ``"multi"``)."""
        ...

    async def authorize(
        self,
        oauth_url: str,
        *,
        surface: Optional[BrowserSurface] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Run one authorization request and return the Music User Token.

        Args:
            oauth_url: The identity provider's authorization URL.
            surface: The caller's already-open surface. Required by the
                single-surface flow, ignored by the multi-surface flow.
            timeout: Seconds after which the request is abandoned. ``None``
                polls until the provider redirects with a token.

        Returns:
            The extracted token.

        Raises:
            AuthorizationError: For every failure; see
                :mod:`mutauth.exceptions`.
        """
        if timeout is None:
            return await self._authorize(oauth_url, surface)
        try:
            return await asyncio.wait_for(self._authorize(oauth_url, surface), timeout)
        except asyncio.TimeoutError:
            raise AuthorizationTimeoutError(timeout) from None

    @abstractmethod
    async def _authorize(self, oauth_url: str, surface: Optional[BrowserSurface]) -> str:
        ...

    async def _discard(self, surface: BrowserSurface) -> None:
        """Close *surface* on an error path without masking the error in flight."""
        if surface.is_closed:
            return
        try:
            await surface.close()
        except Exception:
            logger.warning("Failed to close surface %s", surface.label, exc_info=True)

    async def _close(self, surface: BrowserSurface) -> None:
        with wrap_platform_errors(f"cannot close surface '{surface.label}'"):
            await surface.close()
