"""Remembered MusicKit sessions and token verification.

- :class:`MusicKitAuthorizationService` -- restore, authorize, forget.
- :class:`CredentialStore` -- atomic, owner-only persistence on disk.
- :func:`verify_music_user_token` -- check a token against Apple Music.
"""

from mutauth.session.credential_store import CredentialEntry, CredentialStore
from mutauth.session.service import MusicKitAuthorizationService
from mutauth.session.verify import verify_music_user_token

__all__ = [
    "CredentialEntry",
    "CredentialStore",
    "MusicKitAuthorizationService",
    "verify_music_user_token",
]
