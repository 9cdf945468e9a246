"""Poll-and-match authorization flows.

:func:`create_flow` picks the strategy for a surface host::

    from mutauth.flow import create_flow

    flow = create_flow(host, FlowVariant.AUTO, dev_mode=False)
    token = await flow.authorize(oauth_url)
"""

from __future__ import annotations

from typing import Optional

from mutauth.flow.base import AUTHORIZATION_SURFACE, AuthorizationFlow
from mutauth.flow.multi_surface import MultiSurfaceFlow
from mutauth.flow.poll import POLL_INTERVAL, StallWorkaround, poll_for_token
from mutauth.flow.single_surface import APP_SURFACE, SingleSurfaceFlow
from mutauth.models import FlowVariant
from mutauth.surfaces.base import SurfaceHost


def create_flow(
    host: SurfaceHost,
    variant: FlowVariant = FlowVariant.AUTO,
    *,
    dev_mode: bool = False,
    system: Optional[str] = None,
) -> AuthorizationFlow:
    """Build the authorization flow for *host*.

    Args:
        host: The surface host the flow will drive.
        variant: Requested strategy. ``AUTO`` uses the multi-surface flow
            when the host supports more than one surface.
        dev_mode: Whether this is a development build (enables the macOS
            sign-in stall workaround in the multi-surface flow).
        system: Operating system override for the stall workaround gate.

    Returns:
        A :class:`SingleSurfaceFlow` or :class:`MultiSurfaceFlow`.
    """
    if variant == FlowVariant.AUTO:
        variant = FlowVariant.MULTI if host.supports_multiple_surfaces else FlowVariant.SINGLE

    if variant == FlowVariant.SINGLE:
        return SingleSurfaceFlow(host)
    return MultiSurfaceFlow(host, stall=StallWorkaround.for_build(dev_mode, system))


__all__ = [
    "APP_SURFACE",
    "AUTHORIZATION_SURFACE",
    "AuthorizationFlow",
    "MultiSurfaceFlow",
    "POLL_INTERVAL",
    "SingleSurfaceFlow",
    "StallWorkaround",
    "create_flow",
    "poll_for_token",
]
