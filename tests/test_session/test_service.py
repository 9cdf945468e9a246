"""Tests for mutauth.session.service -- remembered MusicKit sessions."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest

from mutauth.exceptions import PlatformError, VerificationError
from mutauth.flow import AUTHORIZATION_SURFACE, MultiSurfaceFlow
from mutauth.models import MusicTokens
from mutauth.session.credential_store import CredentialStore
from mutauth.session.service import MusicKitAuthorizationService

OAUTH_URL = "https://authorize.music.apple.com/woa"
TOKEN_URL = "https://cb.local/done?musicUserToken=ABC123"


@pytest.fixture()
def store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CredentialStore:
    monkeypatch.setattr("mutauth.session.credential_store.get_data_dir", lambda: tmp_path)
    return CredentialStore(MusicKitAuthorizationService.key)


def _flow(make_host, script: Optional[list] = None) -> MultiSurfaceFlow:  # noqa: ANN001
    host = make_host(scripts={AUTHORIZATION_SURFACE: script or [TOKEN_URL]})
    return MultiSurfaceFlow(host, interval=0)


class TestPassiveAuthorization:
    def test_nothing_remembered(self, store: CredentialStore) -> None:
        service = MusicKitAuthorizationService(store)
        assert service.passively_authorize() is None
        assert service.is_authorized is False

    def test_restores_remembered_tokens(self, store: CredentialStore) -> None:
        service = MusicKitAuthorizationService(store)
        service.remember(MusicTokens(developer_token="dev", music_user_token="mut"))

        restored = MusicKitAuthorizationService(store).passively_authorize()

        assert restored == MusicTokens(developer_token="dev", music_user_token="mut")


class TestAuthorize:
    def test_runs_flow_and_remembers(self, store: CredentialStore, make_host) -> None:
        service = MusicKitAuthorizationService(store)

        tokens = asyncio.run(service.authorize(_flow(make_host), OAUTH_URL, developer_token="dev"))

        assert tokens.music_user_token == "ABC123"
        assert service.is_authorized is True
        entry = store.load()
        assert entry is not None
        assert entry.credential == "ABC123"
        assert entry.metadata["developer_token"] == "dev"
        assert "authorized_at" in entry.metadata

    def test_empty_token_is_handed_over_but_not_restored(
        self, store: CredentialStore, make_host
    ) -> None:
        service = MusicKitAuthorizationService(store)
        flow = _flow(make_host, ["https://cb.local/done?musicUserToken="])

        tokens = asyncio.run(service.authorize(flow, OAUTH_URL))

        assert tokens.music_user_token == ""
        assert MusicKitAuthorizationService(store).passively_authorize() is None

    def test_remembered_session_skips_flow(self, store: CredentialStore, make_host) -> None:
        service = MusicKitAuthorizationService(store)
        service.remember(MusicTokens(developer_token="dev", music_user_token="OLD"))
        flow = _flow(make_host)

        tokens = asyncio.run(service.authorize(flow, OAUTH_URL))

        assert tokens.music_user_token == "OLD"
        assert flow.host.open_calls == []

    def test_force_runs_flow(self, store: CredentialStore, make_host) -> None:
        service = MusicKitAuthorizationService(store)
        service.remember(MusicTokens(music_user_token="OLD"))

        tokens = asyncio.run(service.authorize(_flow(make_host), OAUTH_URL, force=True))

        assert tokens.music_user_token == "ABC123"
        assert store.load().credential == "ABC123"

    def test_flow_failure_remembers_nothing(self, store: CredentialStore, make_host) -> None:
        service = MusicKitAuthorizationService(store)
        flow = _flow(make_host, [RuntimeError("crash")])

        with pytest.raises(PlatformError):
            asyncio.run(service.authorize(flow, OAUTH_URL))
        assert store.load() is None
        assert service.is_authorized is False

    def test_verification_stores_storefront(self, store: CredentialStore, make_host) -> None:
        service = MusicKitAuthorizationService(store, verify=True)
        with patch(
            "mutauth.session.service.verify_music_user_token",
            new=AsyncMock(return_value="gb"),
        ) as verify:
            asyncio.run(service.authorize(_flow(make_host), OAUTH_URL, developer_token="dev"))

        verify.assert_awaited_once()
        assert verify.await_args.args == ("dev", "ABC123")
        assert store.load().metadata["storefront"] == "gb"

    def test_rejected_token_is_not_remembered(self, store: CredentialStore, make_host) -> None:
        service = MusicKitAuthorizationService(store, verify=True)
        with patch(
            "mutauth.session.service.verify_music_user_token",
            new=AsyncMock(side_effect=VerificationError("rejected")),
        ):
            with pytest.raises(VerificationError):
                asyncio.run(service.authorize(_flow(make_host), OAUTH_URL, developer_token="dev"))
        assert store.load() is None


class TestUnauthorize:
    def test_forgets_session(self, store: CredentialStore) -> None:
        service = MusicKitAuthorizationService(store)
        service.remember(MusicTokens(music_user_token="mut"))
        service.passively_authorize()

        service.unauthorize()

        assert service.is_authorized is False
        assert service.remembered_entry() is None
        assert service.passively_authorize() is None
