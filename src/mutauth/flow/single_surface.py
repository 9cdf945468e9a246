"""Authorization with a redirect back into the app, for single-surface hosts.

The caller's surface stays where it is so its URL can serve as the return
point. The provider's sign-in runs in a separate authorization surface; once
the token appears, the app surface is navigated to the return point with a
``musicUserToken`` parameter appended, which is how the app picks it up.
"""

from __future__ import annotations

import logging
from typing import Optional

from mutauth.exceptions import InvalidUsageError, NoInitialUrlError
from mutauth.flow.base import AUTHORIZATION_SURFACE, AuthorizationFlow
from mutauth.flow.errors import wrap_platform_errors
from mutauth.flow.poll import poll_for_token
from mutauth.surfaces.base import BrowserSurface
from mutauth.urls import append_token, parse_url

logger = logging.getLogger(__name__)

APP_SURFACE = "music-player"
"""Label of the app-internal surface that receives the hand-back redirect."""


class SingleSurfaceFlow(AuthorizationFlow):
    """Poll a dedicated authorization surface, then redirect the app surface.

    Requires the caller's surface in :meth:`authorize`.
    """

    @property
    def name(self) -> str:
        return "single"

    async def _authorize(self, oauth_url: str, surface: Optional[BrowserSurface]) -> str:
        if surface is None:
            raise InvalidUsageError("The single-surface flow needs the caller's surface")

        # Must be captured before anything navigates away from it.
        try:
            initial_url = await surface.current_url()
        except Exception as exc:
            raise NoInitialUrlError() from exc
        if initial_url is None:
            raise NoInitialUrlError()
        return_point = parse_url(initial_url)

        target = parse_url(oauth_url)

        with wrap_platform_errors("cannot open authorization surface"):
            auth_surface = await self._host.open_surface(AUTHORIZATION_SURFACE, str(target))

        try:
            token = await poll_for_token(auth_surface, interval=self._interval)
            handback = append_token(return_point, token)
            with wrap_platform_errors("cannot hand the token back to the app"):
                await self._host.open_or_reuse(APP_SURFACE, handback)
        except BaseException:
            await self._discard(auth_surface)
            raise

        await self._discard(auth_surface)
        logger.debug("Token handed back to %s", APP_SURFACE)
        return token
