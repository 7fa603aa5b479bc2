"""Tests for sign-in, sign-out and profile updates."""

import pytest

from src.planner.errors import AuthenticationError, SessionClosedError
from src.planner.session import (
    AVATARS,
    SessionManager,
    data_url_to_emoji,
    emoji_to_data_url,
)
from src.planner.store import PlannerStore


@pytest.fixture
def manager(config, firestore_db, genai_client, fake_auth):
    return SessionManager(
        PlannerStore(firestore_db), genai_client, auth_client=fake_auth, config=config
    )


class TestSignIn:
    def test_opens_session_for_token_user(self, manager):
        session = manager.sign_in("token-u1")

        assert session.uid == "u1"
        assert session.email == "u1@example.com"
        assert not session.is_admin
        assert not session.tutor.closed

    def test_admin_email_is_case_insensitive(self, manager):
        assert manager.sign_in("token-boss").is_admin

    def test_each_session_gets_its_own_tutor(self, manager):
        first = manager.sign_in("token-u1")
        second = manager.sign_in("token-u2")
        assert first.tutor is not second.tutor

    @pytest.mark.parametrize("token", ["", "garbage"])
    def test_invalid_token(self, manager, token):
        with pytest.raises(AuthenticationError):
            manager.sign_in(token)

    def test_sign_out_closes_tutor(self, manager):
        session = manager.sign_in("token-u1")
        manager.sign_out(session)

        assert session.closed
        assert session.tutor.closed
        with pytest.raises(SessionClosedError):
            session.update_profile("Asha", AVATARS[0])


class TestProfile:
    def test_update_profile(self, manager, fake_auth, firestore_db):
        session = manager.sign_in("token-u1")
        session.update_profile("  Asha ", AVATARS[2])

        assert session.display_name == "Asha"
        assert fake_auth.updates == [("u1", {"display_name": "Asha"})]
        stored = firestore_db.docs["users/u1"]["profile"]
        assert data_url_to_emoji(stored["avatar"]) == AVATARS[2]

    def test_rejects_unknown_avatar(self, manager):
        with pytest.raises(ValueError):
            manager.sign_in("token-u1").update_profile("Asha", "X")

    def test_profile_restored_on_next_sign_in(self, manager):
        """A fresh session picks up the saved name and avatar."""
        first = manager.sign_in("token-u1")
        first.update_profile("Asha", AVATARS[4])
        manager.sign_out(first)

        second = manager.sign_in("token-u1")
        assert second.display_name == "Asha"
        assert second.avatar == AVATARS[4]

    def test_new_user_has_no_avatar(self, manager):
        session = manager.sign_in("token-u1")
        assert session.avatar is None
        assert session.display_name == "u1"

    def test_emoji_data_url_round_trip(self):
        url = emoji_to_data_url("🤓")
        assert url.startswith("data:image/svg+xml,")
        assert data_url_to_emoji(url) == "🤓"

    def test_non_avatar_urls(self):
        assert data_url_to_emoji(None) is None
        assert data_url_to_emoji("https://example.com/me.png") is None
