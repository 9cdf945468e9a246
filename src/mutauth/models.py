"""Canonical Pydantic models shared across all mutauth modules.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`FlowVariant`, :class:`OutputConfig`, and :class:`GlobalConfig`.

**Runtime models** -- produced and consumed during one authorization:
    :class:`SurfaceOptions` describes how a backend should present a new
    browser surface, and :class:`MusicTokens` is the developer token / Music
    User Token pair remembered by the session service.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, Field


# --- Configuration ---


class FlowVariant(str, enum.Enum):
    """Which authorization flow to run.

    ``AUTO`` picks :attr:`MULTI` when the surface host can open more than one
    surface, and :attr:`SINGLE` otherwise.
    """

    AUTO = "auto"
    SINGLE = "single"
    MULTI = "multi"


class OutputConfig(BaseModel):
    """Output formatting preferences."""

    format: str = Field(
        default="auto", description="Default output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """Global user configuration stored as ``config.json``.

    Loaded by :func:`~mutauth.config.load_global_config` and persisted by
    :func:`~mutauth.config.save_global_config`. Environment variables and CLI
    flags are layered on top by :func:`~mutauth.config.resolve_settings`.

    The polling cadence, the token parameter name and the stall workaround
    constants are fixed by the identity provider and deliberately absent.
    """

    variant: FlowVariant = Field(
        default=FlowVariant.AUTO, description="Authorization flow: auto, single, multi"
    )
    backend: str = Field(default="qt", description="Browser surface backend")
    dev_mode: bool = Field(
        default=False,
        description="Development build; enables the macOS sign-in stall workaround",
    )
    verify: bool = Field(
        default=False, description="Verify the token against the Apple Music API"
    )
    developer_token_source: Optional[str] = Field(
        default=None,
        description="Developer token source: env:VAR, file:/path, prompt, store:NAME",
    )
    return_url: Optional[str] = Field(
        default=None,
        description="App URL the single-surface flow hands the token back to",
    )
    storefront_url: str = Field(
        default="https://api.music.apple.com/v1/me/storefront",
        description="Endpoint used to verify a Music User Token",
    )
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Runtime ---


class SurfaceOptions(BaseModel):
    """Presentation hints for a newly opened browser surface.

    Backends apply what they support and ignore the rest; a mobile-style
    backend has no window chrome to size.
    """

    title: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    content_protected: bool = Field(
        default=False, description="Exclude the surface from screen capture"
    )


class MusicTokens(BaseModel):
    """The token pair that configures an authorized MusicKit session.

    Example::

        MusicTokens(developer_token="eyJ...", music_user_token="AqB...")
    """

    developer_token: str = ""
    music_user_token: str
