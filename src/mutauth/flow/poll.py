"""The poll-and-match loop shared by both authorization flows.

The identity provider offers no callback: once the user has signed in it
redirects the authorization surface to a URL carrying the Music User Token
as a query parameter. :func:`poll_for_token` samples the surface's URL on a
fixed cadence until that marker shows up.

Observations are strictly sequential; the loop suspends only while sleeping
between ticks and during the optional stall workaround delay.
"""

from __future__ import annotations

import asyncio
import logging
import platform
from dataclasses import dataclass
from typing import Optional

from mutauth.flow.errors import wrap_platform_errors
from mutauth.surfaces.base import BrowserSurface
from mutauth.urls import extract_token, has_token_marker

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5
"""Seconds between two observations of the surface URL."""

STALL_MARKER = "idmsa"
"""Substring identifying the identity provider's sign-in sub-domain."""

STALL_DELAY = 2.0
"""Seconds to wait before forcing the re-navigation."""


@dataclass(frozen=True)
class StallWorkaround:
    """Forced re-navigation for the sign-in page that stalls on a loading spinner.

    On macOS development builds the sign-in page can hang because password
    login replaces the Touch ID path used by release builds. Re-navigating to
    the same URL once un-sticks it. The one-shot flag lives in the poll loop,
    so a workaround fires at most once per authorization request.

    Attributes:
        enabled: Whether the workaround is active at all.
        marker: Substring of the URL that identifies the stalled page.
        delay: Seconds to wait before re-navigating.
    """

    enabled: bool = True
    marker: str = STALL_MARKER
    delay: float = STALL_DELAY

    @classmethod
    def for_build(cls, dev_mode: bool, system: Optional[str] = None) -> StallWorkaround:
        """Return the workaround for a build, active only for macOS development builds.

        Args:
            dev_mode: Whether this is a development build.
            system: Operating system name as reported by
                :func:`platform.system`; detected when omitted.
        """
        system = system if system is not None else platform.system()
        return cls(enabled=dev_mode and system == "Darwin")

    def matches(self, url: str) -> bool:
        return self.enabled and self.marker in url


def _redact(url: str) -> str:
    """Drop the query string so tokens never reach the logs."""
    return url.split("?", 1)[0]


async def poll_for_token(
    surface: BrowserSurface,
    *,
    interval: float = POLL_INTERVAL,
    stall: Optional[StallWorkaround] = None,
) -> str:
    """Sample *surface* until its URL carries a ``musicUserToken`` parameter.

    An unreadable URL (``None``) is a normal intermediate state and simply
    waits for the next tick. There is no deadline; wrap the call in
    :func:`asyncio.wait_for` to bound it.

    Args:
        surface: The authorization surface to observe.
        interval: Seconds between observations.
        stall: Optional stall workaround, applied at most once.

    Returns:
        The extracted Music User Token.

    Raises:
        TokenMissingError: If the marker appears without a usable
            ``musicUserToken`` query parameter.
        PlatformError: If reading or re-navigating the surface fails.
    """
    refreshed = False
    tick = 0
    while True:
        tick += 1
        with wrap_platform_errors(f"cannot read url of surface '{surface.label}'"):
            url = await surface.current_url()

        if url is None:
            logger.debug("tick %d: %s has no readable url yet", tick, surface.label)
            await asyncio.sleep(interval)
            continue

        if stall is not None and not refreshed and stall.matches(url):
            logger.info(
                "Sign-in page %s may be stalled; re-navigating in %gs",
                _redact(url),
                stall.delay,
            )
            await asyncio.sleep(stall.delay)
            with wrap_platform_errors(f"cannot re-navigate surface '{surface.label}'"):
                await surface.navigate(url)
            refreshed = True
            continue

        if has_token_marker(url):
            token = extract_token(url)
            logger.debug("tick %d: token found on %s", tick, _redact(url))
            return token

        logger.debug("tick %d: %s shows %s", tick, surface.label, _redact(url))
        await asyncio.sleep(interval)
