"""Authorization in a dedicated window, for hosts that can open several surfaces.

1. Open a fixed-size, content-protected authorization window at the OAuth URL.
2. Poll it until the provider redirects with the token.
3. Close the window and return the token to the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

from mutauth.flow.base import AUTHORIZATION_SURFACE, AuthorizationFlow
from mutauth.flow.errors import wrap_platform_errors
from mutauth.flow.poll import POLL_INTERVAL, StallWorkaround, poll_for_token
from mutauth.models import SurfaceOptions
from mutauth.surfaces.base import BrowserSurface, SurfaceHost
from mutauth.urls import parse_url

logger = logging.getLogger(__name__)

WINDOW_OPTIONS = SurfaceOptions(
    title="Apple Music Authorization",
    width=600,
    height=800,
    content_protected=True,
)


class MultiSurfaceFlow(AuthorizationFlow):
    """Open a new authorization window, poll it, close it, return the token.

    Args:
        host: Surface host able to open additional windows.
        stall: Sign-in stall workaround; disabled when omitted.
        interval: Seconds between URL observations.
    """

    def __init__(
        self,
        host: SurfaceHost,
        *,
        stall: Optional[StallWorkaround] = None,
        interval: float = POLL_INTERVAL,
    ) -> None:
        super().__init__(host, interval=interval)
        self._stall = stall or StallWorkaround(enabled=False)

    @property
    def name(self) -> str:
        return "multi"

    @property
    def stall(self) -> StallWorkaround:
        return self._stall

    async def _authorize(self, oauth_url: str, surface: Optional[BrowserSurface]) -> str:
        target = parse_url(oauth_url)

        with wrap_platform_errors("cannot open authorization surface"):
            window = await self._host.open_surface(
                AUTHORIZATION_SURFACE, str(target), WINDOW_OPTIONS
            )

        try:
            token = await poll_for_token(
                window,
                interval=self._interval,
                stall=self._stall if self._stall.enabled else None,
            )
        except BaseException:
            await self._discard(window)
            raise

        await self._close(window)
        logger.debug("Authorization window closed; token obtained")
        return token
