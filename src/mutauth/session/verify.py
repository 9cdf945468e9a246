"""Check a Music User Token against the Apple Music API.

A MusicKit session is only usable when the developer token and the Music
User Token are accepted together. Fetching the user's storefront is the
cheapest request that needs both.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from mutauth.exceptions import ConnectionError_, VerificationError

DEFAULT_STOREFRONT_URL = "https://api.music.apple.com/v1/me/storefront"


async def verify_music_user_token(
    developer_token: str,
    music_user_token: str,
    *,
    url: str = DEFAULT_STOREFRONT_URL,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    """Verify a token pair by requesting the user's storefront.

    Args:
        developer_token: The app's MusicKit developer token (a JWT).
        music_user_token: The token returned by an authorization flow.
        url: Storefront endpoint.
        client: Client to use; a short-lived one is created when omitted.

    Returns:
        The storefront identifier (e.g. ``"us"``) when the response names one.

    Raises:
        VerificationError: If the API rejects the tokens or answers with an
            unexpected status.
        ConnectionError_: On network failures.
    """
    headers = {
        "Authorization": f"Bearer {developer_token}",
        "Music-User-Token": music_user_token,
        "Accept": "application/json",
    }

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=30.0) as own_client:
                response = await own_client.get(url, headers=headers)
        else:
            response = await client.get(url, headers=headers)
    except httpx.TimeoutException as exc:
        raise ConnectionError_(f"Token verification timed out: {exc}") from exc
    except httpx.HTTPError as exc:
        raise ConnectionError_(f"Token verification failed: {exc}") from exc

    if response.status_code in (401, 403):
        raise VerificationError(
            f"Apple Music rejected the token (HTTP {response.status_code})"
        )
    if response.status_code >= 400:
        raise VerificationError(
            f"Token verification failed with status {response.status_code}: "
            f"{response.text}"
        )

    try:
        body: Any = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if isinstance(data, list) and data and isinstance(data[0], dict):
        storefront = data[0].get("id")
        if isinstance(storefront, str):
            return storefront
    return None
