"""Per-user session management on top of Firebase Authentication.

SessionManager verifies Firebase ID tokens and hands out UserSession objects
that own everything scoped to one signed-in user (store access, tutor chat).
Sessions are created on sign-in and disposed on sign-out; nothing is kept in
module-level globals.
"""

import re
from typing import Any
from urllib.parse import quote, unquote

from firebase_admin import auth as firebase_auth

from src.planner.config import PlannerConfig, get_config
from src.planner.errors import AuthenticationError, SessionClosedError, TransientError
from src.planner.logging import get_logger
from src.planner.tutor import TutorSession

logger = get_logger(__name__)

AVATARS = ["😊", "🥳", "😎", "😍", "😇", "🤔", "😂", "🤯", "🤩", "🤓", "🤖", "👻"]

_SVG_PREFIX = "data:image/svg+xml,"
_SVG_TEXT_RE = re.compile(r"<text[^>]*>(.*)</text>")


def emoji_to_data_url(emoji: str) -> str:
    """Encode an emoji avatar as an SVG data URL."""
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">'
        f'<text y=".9em" font-size="90">{emoji}</text></svg>'
    )
    return _SVG_PREFIX + quote(svg)


def data_url_to_emoji(url: str | None) -> str | None:
    """Recover the emoji from an avatar data URL; None for anything else."""
    if not url or not url.startswith(_SVG_PREFIX):
        return None
    match = _SVG_TEXT_RE.search(unquote(url[len(_SVG_PREFIX):]))
    return match.group(1) if match else None


class UserSession:
    """Everything scoped to one signed-in user."""

    def __init__(
        self,
        uid: str,
        *,
        email: str | None,
        display_name: str | None,
        avatar: str | None = None,
        store: Any,
        tutor: TutorSession,
        admin_emails: list[str],
        auth_client: Any = firebase_auth,
    ) -> None:
        self.uid = uid
        self.email = email
        self.display_name = display_name
        self.avatar = avatar
        self.store = store
        self.tutor = tutor
        self._admin_emails = admin_emails
        self._auth = auth_client
        self._closed = False

    @property
    def is_admin(self) -> bool:
        return bool(self.email) and self.email.lower() in self._admin_emails

    @property
    def closed(self) -> bool:
        return self._closed

    def update_profile(self, display_name: str, avatar: str) -> None:
        """Change the display name (Firebase user) and emoji avatar (profile doc).

        Raises:
            ValueError: Blank name or an avatar outside AVATARS.
            SessionClosedError: After sign-out.
        """
        if self._closed:
            raise SessionClosedError("Session has ended. Please sign in again.")
        if not display_name.strip():
            raise ValueError("Display name must not be empty")
        if avatar not in AVATARS:
            raise ValueError(f"Unknown avatar {avatar!r}")

        self._auth.update_user(self.uid, display_name=display_name.strip())
        self.store.save_profile(self.uid, display_name.strip(), emoji_to_data_url(avatar))
        self.display_name = display_name.strip()
        self.avatar = avatar
        logger.info("profile_updated", uid=self.uid)

    def close(self) -> None:
        if self._closed:
            return
        self.tutor.close()
        self._closed = True


class SessionManager:
    """Creates and disposes user sessions.

    Args:
        store: Shared PlannerStore (stateless per user, safe to share).
        genai_client: Gemini client used for each user's tutor chat.
        auth_client: Module or object with ``verify_id_token`` and
            ``update_user`` (defaults to ``firebase_admin.auth``).
        config: Supplies the model name and admin emails.
    """

    def __init__(
        self,
        store: Any,
        genai_client: Any,
        *,
        auth_client: Any = firebase_auth,
        config: PlannerConfig | None = None,
    ) -> None:
        self.store = store
        self.genai_client = genai_client
        self.auth = auth_client
        self.config = config or get_config()

        logger.info(
            "session_manager_initialized",
            model=self.config.gemini_model,
            admins=len(self.config.admin_email_list),
        )

    def verify(self, id_token: str) -> dict:
        """Verify a Firebase ID token and return its decoded claims.

        Raises:
            AuthenticationError: Token missing, malformed, expired or revoked.
            TransientError: Google's signing certificates could not be fetched.
        """
        if not id_token:
            raise AuthenticationError("Missing ID token")
        try:
            return self.auth.verify_id_token(id_token)
        except firebase_auth.CertificateFetchError as e:
            logger.warning("auth_certificate_fetch_failed", error=str(e))
            raise TransientError(f"Could not verify sign-in: {e}") from e
        except (
            firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError,
            firebase_auth.InvalidIdTokenError,
            ValueError,
        ) as e:
            logger.info("auth_check", result="rejected", reason=type(e).__name__)
            raise AuthenticationError("Your sign-in has expired. Please sign in again.") from e

    def sign_in(self, id_token: str) -> UserSession:
        """Verify *id_token* and open a session for its user."""
        return self.open_session(self.verify(id_token))

    def open_session(self, claims: dict) -> UserSession:
        """Open a session from already-verified token claims.

        The saved profile (display name, emoji avatar) is restored from the store.
        """
        uid = claims.get("uid") or claims.get("sub")
        if not uid:
            raise AuthenticationError("ID token has no user ID")

        profile = self.store.load_profile(uid)
        session = UserSession(
            uid,
            email=claims.get("email"),
            display_name=profile.get("displayName") or claims.get("name"),
            avatar=data_url_to_emoji(profile.get("avatar")),
            store=self.store,
            tutor=TutorSession(self.genai_client, model=self.config.gemini_model),
            admin_emails=self.config.admin_email_list,
            auth_client=self.auth,
        )
        logger.info("session_opened", uid=uid, admin=session.is_admin)
        return session

    def sign_out(self, session: UserSession) -> None:
        session.close()
        logger.info("session_closed", uid=session.uid)
