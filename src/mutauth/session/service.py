"""Remembered MusicKit sessions on top of the authorization flows.

:class:`MusicKitAuthorizationService` is what an application calls to get
an authorized session. It first tries to restore a remembered session
without user interaction, falls back to running an
:class:`~mutauth.flow.AuthorizationFlow`, optionally verifies the result
against the Apple Music API, and remembers it for next time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from mutauth.flow.base import AuthorizationFlow
from mutauth.models import MusicTokens
from mutauth.session.credential_store import CredentialEntry, CredentialStore
from mutauth.session.verify import DEFAULT_STOREFRONT_URL, verify_music_user_token
from mutauth.surfaces.base import BrowserSurface

logger = logging.getLogger(__name__)

AUTH_TYPE = "musickit"


class MusicKitAuthorizationService:
    """Authorize, restore and forget a MusicKit session.

    Args:
        store: Where the session is remembered. Defaults to the
            ``MusicKit`` entry of the credential store.
        verify: Check new tokens against the Apple Music API before
            remembering them.
        storefront_url: Endpoint used for verification.
    """

    key = "MusicKit"

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        *,
        verify: bool = False,
        storefront_url: str = DEFAULT_STOREFRONT_URL,
    ) -> None:
        self._store = store or CredentialStore(self.key)
        self._verify = verify
        self._storefront_url = storefront_url
        self.is_authorized = False

    def passively_authorize(self) -> Optional[MusicTokens]:
        """Restore the remembered session without any user interaction.

        Returns:
            The remembered tokens, or ``None`` when nothing valid is stored.
        """
        if not self._store.is_valid():
            logger.debug("No remembered MusicKit session")
            self.is_authorized = False
            return None
        entry = self._store.load()
        if entry is None:
            self.is_authorized = False
            return None
        logger.debug("Restoring remembered MusicKit session")
        self.is_authorized = True
        return MusicTokens(
            developer_token=entry.metadata.get("developer_token", ""),
            music_user_token=entry.credential,
        )

    async def authorize(
        self,
        flow: AuthorizationFlow,
        oauth_url: str,
        *,
        developer_token: str = "",
        surface: Optional[BrowserSurface] = None,
        timeout: Optional[float] = None,
        force: bool = False,
    ) -> MusicTokens:
        """Return an authorized session, running *flow* when nothing is remembered.

        Args:
            flow: The authorization flow to run if needed.
            oauth_url: The identity provider's authorization URL.
            developer_token: Developer token the session is configured with;
                required when verification is enabled.
            surface: The caller's surface (single-surface flow only).
            timeout: Optional deadline for the flow, in seconds.
            force: Skip the remembered session and always run the flow.

        Returns:
            The authorized token pair.

        Raises:
            AuthorizationError: If the flow fails.
            VerificationError: If verification is enabled and the API
                rejects the token.
        """
        if not force:
            remembered = self.passively_authorize()
            if remembered is not None:
                return remembered

        logger.info("Starting %s-surface authorization", flow.name)
        music_user_token = await flow.authorize(oauth_url, surface=surface, timeout=timeout)
        tokens = MusicTokens(
            developer_token=developer_token, music_user_token=music_user_token
        )

        storefront: Optional[str] = None
        if self._verify:
            storefront = await verify_music_user_token(
                developer_token, music_user_token, url=self._storefront_url
            )

        self.remember(tokens, storefront=storefront)
        self.is_authorized = True
        return tokens

    def unauthorize(self) -> None:
        """Forget the remembered session."""
        self.forget()
        self.is_authorized = False

    def remember(self, tokens: MusicTokens, storefront: Optional[str] = None) -> None:
        metadata: dict[str, str] = {
            "developer_token": tokens.developer_token,
            "authorized_at": datetime.now(timezone.utc).isoformat(),
        }
        if storefront:
            metadata["storefront"] = storefront
        self._store.save(
            CredentialEntry(
                auth_type=AUTH_TYPE,
                credential=tokens.music_user_token,
                metadata=metadata,
            )
        )

    def forget(self) -> None:
        self._store.clear()

    def remembered_entry(self) -> Optional[CredentialEntry]:
        """The raw remembered entry, for status reporting."""
        return self._store.load()
