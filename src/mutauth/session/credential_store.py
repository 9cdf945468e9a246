"""Persistent credential store for remembered sessions.

Stores one JSON file per entry name in ``~/.local/share/mutauth/credentials/``
(XDG) or the platform-equivalent directory. Files are written atomically
with ``0o600`` permissions so that tokens are never world-readable, even
momentarily.

The authorization flows never touch this module; only
:class:`~mutauth.session.service.MusicKitAuthorizationService` persists
what a flow returned.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from mutauth.config import _atomic_write, get_data_dir


class CredentialEntry(BaseModel):
    """A single stored credential.

    Attributes:
        auth_type: What produced the entry (e.g. ``"musickit"``).
        credential: The secret value -- for MusicKit, the Music User Token.
        metadata: Arbitrary context such as the developer token it was
            issued for.
    """

    auth_type: str = Field(description="What created this entry")
    credential: str = Field(description="The credential value")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Context stored alongside the credential",
    )


def _credentials_dir() -> Path:
    """Return the credentials directory, creating it if needed."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


class CredentialStore:
    """Read/write one named credential entry.

    Args:
        name: The entry name used to derive the file name.

    Example::

        store = CredentialStore("MusicKit")
        store.save(CredentialEntry(auth_type="musickit", credential="tok123"))
        entry = store.load()
        assert entry.credential == "tok123"
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._path = _credentials_dir() / f"{name}.json"

    @property
    def path(self) -> Path:
        """The filesystem path to this entry's credential file."""
        return self._path

    def save(self, entry: CredentialEntry) -> None:
        """Persist a credential entry atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        text = json.dumps(entry.model_dump(mode="json"), indent=2) + "\n"
        _atomic_write(self._path, text, mode=0o600)

    def load(self) -> Optional[CredentialEntry]:
        """Load the stored entry, or ``None`` if missing or unreadable."""
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return CredentialEntry.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError):
            return None

    def is_valid(self) -> bool:
        """Check whether a non-empty credential exists on disk.

        Music User Tokens carry no expiry the client can read; a revoked
        token only shows up as a 401 from ``mutauth auth verify``.
        """
        entry = self.load()
        return entry is not None and bool(entry.credential)

    def clear(self) -> None:
        """Delete the stored credential file if it exists."""
        if self._path.is_file():
            self._path.unlink()
