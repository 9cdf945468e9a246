"""Abstract browser surface and surface host interfaces.

A *browser surface* is an embedded, navigable rendering surface (a webview
window, a tab) that can report the URL it currently shows. A *surface host*
is the toolkit-side factory that opens surfaces for the running application.

The authorization flows in :mod:`mutauth.flow` only talk to these two
interfaces. To support a new toolkit, subclass both and register the host
in :data:`mutauth.surfaces.BACKENDS`.

All methods are coroutines: a backend whose toolkit runs on a separate UI
thread marshals each call to it and awaits the result.

See Also:
    :mod:`mutauth.surfaces.qt` for the PyQt6 WebEngine backend.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Coroutine, Optional, TypeVar

from mutauth.models import SurfaceOptions

T = TypeVar("T")


class BrowserSurface(ABC):
    """A navigable embedded browser instance.

    Subclasses must implement :meth:`current_url`, :meth:`navigate`,
    :meth:`close` and the :attr:`is_closed` property. A surface is owned by
    whichever flow opened it until it is closed.
    """

    def __init__(self, label: str) -> None:
        self._label = label

    @property
    def label(self) -> str:
        """Identifier of the surface within its host (e.g. ``"music-player"``)."""
        return self._label

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """Whether :meth:`close` has completed."""
        ...

    @abstractmethod
    async def current_url(self) -> Optional[str]:
        """Return the URL the surface is currently showing.

        Returns:
            The URL string, or ``None`` when it cannot be read right now
            (nothing loaded yet, mid-navigation). ``None`` is a normal,
            transient state and not an error.
        """
        ...

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """Force the surface to load *url*."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the surface and release its resources.

        Closing an already-closed surface is a no-op.
        """
        ...

    def __repr__(self) -> str:
        state = "closed" if self.is_closed else "open"
        return f"<{type(self).__name__} {self._label!r} ({state})>"


class SurfaceHost(ABC):
    """Factory for browser surfaces inside the running application."""

    @property
    def supports_multiple_surfaces(self) -> bool:
        """Whether the platform may open more than one surface at a time.

        Hosts restricted to a single surface per window should return
        ``False`` so :func:`~mutauth.flow.create_flow` selects the
        single-surface flow.
        """
        return True

    @abstractmethod
    async def open_surface(
        self,
        label: str,
        url: str,
        options: Optional[SurfaceOptions] = None,
    ) -> BrowserSurface:
        """Open a new surface labelled *label* showing *url*.

        Args:
            label: Identifier for the new surface.
            url: Absolute URL to load.
            options: Optional presentation hints.

        Returns:
            The opened surface.
        """
        ...

    def get_surface(self, label: str) -> Optional[BrowserSurface]:
        """Return the still-open surface labelled *label*, if the host tracks one."""
        return None

    async def open_or_reuse(
        self,
        label: str,
        url: str,
        options: Optional[SurfaceOptions] = None,
    ) -> BrowserSurface:
        """Navigate the open surface labelled *label* to *url*, or open a new one."""
        existing = self.get_surface(label)
        if existing is not None and not existing.is_closed:
            await existing.navigate(url)
            return existing
        return await self.open_surface(label, url, options)

    def run(self, main: Callable[[SurfaceHost], Coroutine[Any, Any, T]]) -> T:
        """Run *main* to completion with this host driving the UI.

        The default runs the coroutine on a fresh event loop in the calling
        thread. Toolkits that own the main thread override this to run the
        flow on a worker thread while their event loop spins.

        Args:
            main: Coroutine function receiving this host.

        Returns:
            Whatever *main* returns.
        """
        return asyncio.run(main(self))
