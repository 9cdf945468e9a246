"""Strict URL parsing, token extraction and hand-back URL construction.

:mod:`urllib.parse` accepts almost any string, so URLs are parsed with
:class:`httpx.URL` and additionally required to be absolute: a scheme must
be present, web schemes must carry a host, and a host may not hold
characters such as spaces or ``<>|`` that no domain contains. Anything else
is reported as :class:`~mutauth.exceptions.InvalidUrlError` carrying the
parser's message.
"""

from __future__ import annotations

from urllib.parse import unquote, urlencode

import httpx

from mutauth.exceptions import InvalidUrlError, TokenMissingError

TOKEN_PARAM = "musicUserToken"
"""Query parameter (and substring marker) the identity provider redirects with."""

_HOST_REQUIRED_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp"})

# Code points a domain may not contain once percent-decoded. IPv6 literals
# are validated by httpx and skipped.
_FORBIDDEN_DOMAIN_CHARS = frozenset(" #%/<>?@[\\]^|\x7f") | frozenset(map(chr, range(0x20)))


def parse_url(raw: str) -> httpx.URL:
    """Parse *raw* as an absolute URL.

    Args:
        raw: The URL string supplied by a caller or read from a surface.

    Returns:
        The parsed :class:`httpx.URL`.

    Raises:
        InvalidUrlError: If the string does not follow the URL grammar, is
            relative, or is a web URL without a host or with a host
            containing characters no domain may hold.
    """
    try:
        url = httpx.URL(raw)
    except (httpx.InvalidURL, TypeError) as exc:
        raise InvalidUrlError(str(exc)) from exc

    if not url.scheme:
        raise InvalidUrlError(f"relative URL without a base: {raw!r}")
    if url.scheme in _HOST_REQUIRED_SCHEMES and not url.host:
        raise InvalidUrlError(f"empty host: {raw!r}")
    if url.host and ":" not in url.host:
        if any(ch in _FORBIDDEN_DOMAIN_CHARS for ch in unquote(url.host)):
            raise InvalidUrlError(f"invalid domain character: {raw!r}")
    return url


def has_token_marker(url: str) -> bool:
    """Return True when *url* contains the token marker anywhere."""
    return TOKEN_PARAM in url


def extract_token(url: str) -> str:
    """Return the ``musicUserToken`` query parameter of *url*.

    Only called once :func:`has_token_marker` matched. When the parameter is
    repeated, the last occurrence wins. An empty value (``?musicUserToken=``)
    is returned as ``""``; the identity provider decides what it redirects
    with and the caller receives it unchanged.

    Raises:
        TokenMissingError: If the URL cannot be parsed or carries the marker
            only outside the query, e.g. in its path.
    """
    try:
        values = httpx.URL(url).params.get_list(TOKEN_PARAM)
    except httpx.InvalidURL as exc:
        raise TokenMissingError(url) from exc
    if not values:
        raise TokenMissingError(url)
    return values[-1]


def append_token(return_point: httpx.URL | str, token: str) -> str:
    """Build the hand-back URL: *return_point* plus ``musicUserToken=<token>``.

    The parameter is appended; an existing query string is kept as is.

    Example::

        >>> append_token("https://app.local/home", "ABC123")
        'https://app.local/home?musicUserToken=ABC123'
    """
    url = return_point if isinstance(return_point, httpx.URL) else parse_url(return_point)
    pair = urlencode({TOKEN_PARAM: token})
    query = url.query.decode("ascii")
    query = f"{query}&{pair}" if query else pair
    return str(url.copy_with(query=query.encode("ascii")))
