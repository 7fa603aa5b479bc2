"""Firestore persistence for goals, schedules, pomodoro sessions and reminders.

Document layout:
  users/{uid}                       {"goal": {...}, "schedule": [...], "updatedAt": ts}
  users/{uid}/pomodoroSessions/{id} {"userId", "date", "duration", "completedAt"}
  users/{uid}/reminders/{id}        {"userId", "message", "time"}

Payloads use the camelCase wire format (``model_dump(by_alias=True)``).
"""

import time
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from pydantic import ValidationError

from src.planner.config import PlannerConfig, get_config
from src.planner.errors import NotAuthenticatedError, StoreError
from src.planner.logging import get_logger
from src.planner.models import (
    AdminStats,
    CustomReminder,
    PomodoroSession,
    ScheduleItem,
    StudyGoal,
)
from src.planner.reminders import validate_reminder_time

log = get_logger(__name__)

USERS = "users"
POMODORO_SESSIONS = "pomodoroSessions"
REMINDERS = "reminders"


def init_firebase(config: PlannerConfig | None = None) -> firebase_admin.App:
    """Initialize the default Firebase app once and return it.

    Raises:
        ConfigurationError: If FIREBASE_CREDENTIALS is not set.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    config = config or get_config()
    config.require("firebase_credentials")
    cred = credentials.Certificate(config.firebase_credentials)
    options = {"projectId": config.firebase_project_id} if config.firebase_project_id else None
    app = firebase_admin.initialize_app(cred, options)
    log.info("firebase_initialized", project_id=config.firebase_project_id or None)
    return app


def _require_user(uid: str) -> None:
    if not uid:
        raise NotAuthenticatedError()


class PlannerStore:
    """Document-store collaborator.

    Args:
        db: A Firestore client. Defaults to ``firestore.client()`` on the
            default Firebase app.
    """

    def __init__(self, db: Any | None = None) -> None:
        if db is None:
            db = firestore.client(init_firebase())
        self.db = db

    def _user(self, uid: str):
        _require_user(uid)
        return self.db.collection(USERS).document(uid)

    # ------------------------------------------------------------------
    # Goal and schedule
    # ------------------------------------------------------------------
    def save_goal(self, uid: str, goal: StudyGoal) -> None:
        payload = {"goal": goal.model_dump(mode="json", by_alias=True)}
        self._write(self._user(uid), payload, "Could not save your study goal.")
        log.info("goal_saved", uid=uid, exam=goal.exam)

    def load_goal(self, uid: str) -> StudyGoal | None:
        data = self._read_user(uid)
        if not data or not data.get("goal"):
            return None
        try:
            return StudyGoal.model_validate(data["goal"])
        except ValidationError as e:
            log.warning("stored_goal_invalid", uid=uid, errors=e.error_count())
            return None

    def save_schedule(self, uid: str, items: Sequence[ScheduleItem]) -> None:
        """Persist the full schedule list (the schedule-update callback target)."""
        payload = {
            "schedule": [item.model_dump(mode="json", by_alias=True) for item in items],
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        self._write(self._user(uid), payload, "Could not save your schedule.")
        log.info("schedule_saved", uid=uid, items=len(items))

    def load_schedule(self, uid: str) -> list[ScheduleItem]:
        """Load the stored schedule; invalid entries are dropped with a warning."""
        data = self._read_user(uid)
        if not data:
            return []

        items: list[ScheduleItem] = []
        for raw in data.get("schedule") or []:
            try:
                items.append(ScheduleItem.model_validate(raw))
            except ValidationError as e:
                log.warning("stored_item_invalid", uid=uid, errors=e.error_count())
        return items

    def save_profile(self, uid: str, display_name: str, avatar_url: str) -> None:
        payload = {"profile": {"displayName": display_name, "avatar": avatar_url}}
        self._write(self._user(uid), payload, "Could not update your profile.")

    def load_profile(self, uid: str) -> dict:
        data = self._read_user(uid) or {}
        return data.get("profile") or {}

    # ------------------------------------------------------------------
    # Pomodoro sessions
    # ------------------------------------------------------------------
    def add_pomodoro_session(
        self, uid: str, duration: int, now: datetime | None = None
    ) -> str:
        """Record a completed focus session and return its document ID."""
        now = now or datetime.now(timezone.utc)
        session = PomodoroSession(
            user_id=uid,
            date=now.strftime("%Y-%m-%d"),
            duration=duration,
            completed_at=int(now.timestamp() * 1000),
        )
        payload = session.model_dump(mode="json", by_alias=True, exclude={"id"})
        try:
            _, ref = self._user(uid).collection(POMODORO_SESSIONS).add(payload)
        except google_exceptions.GoogleAPICallError as e:
            log.error("pomodoro_save_failed", uid=uid, error=str(e))
            raise StoreError("Could not save your session. Please try again.") from e

        log.info("pomodoro_recorded", uid=uid, duration=duration, id=ref.id)
        return ref.id

    def list_pomodoro_sessions(self, uid: str) -> list[PomodoroSession]:
        docs = self._stream(
            self._user(uid).collection(POMODORO_SESSIONS),
            "Could not fetch your sessions.",
        )
        return [PomodoroSession.model_validate({**doc.to_dict(), "id": doc.id}) for doc in docs]

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------
    def list_reminders(self, uid: str) -> list[CustomReminder]:
        """All reminders for *uid*, earliest time first."""
        docs = self._stream(
            self._user(uid).collection(REMINDERS),
            "Could not fetch your reminders.",
        )
        reminders = [
            CustomReminder.model_validate({**doc.to_dict(), "id": doc.id}) for doc in docs
        ]
        return sorted(reminders, key=lambda r: r.time)

    def add_reminder(self, uid: str, message: str, time_of_day: str) -> CustomReminder:
        """Create a reminder.

        Raises:
            ValueError: Blank message or time not in HH:MM form.
        """
        if not message.strip():
            raise ValueError("Please provide a message and a time.")
        validate_reminder_time(time_of_day)

        payload = {"userId": uid, "message": message.strip(), "time": time_of_day}
        try:
            _, ref = self._user(uid).collection(REMINDERS).add(payload)
        except google_exceptions.GoogleAPICallError as e:
            log.error("reminder_save_failed", uid=uid, error=str(e))
            raise StoreError("Failed to save reminder.") from e

        log.info("reminder_added", uid=uid, id=ref.id, time=time_of_day)
        return CustomReminder(id=ref.id, user_id=uid, message=message.strip(), time=time_of_day)

    def delete_reminder(self, uid: str, reminder_id: str) -> None:
        try:
            self._user(uid).collection(REMINDERS).document(reminder_id).delete()
        except google_exceptions.GoogleAPICallError as e:
            log.error("reminder_delete_failed", uid=uid, id=reminder_id, error=str(e))
            raise StoreError("Failed to delete reminder.") from e
        log.info("reminder_deleted", uid=uid, id=reminder_id)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------
    def admin_stats(self) -> AdminStats:
        """Platform-wide totals across every user's sub-collections.

        Collection-group queries need Firestore indexes; a missing index
        surfaces as a StoreError.
        """
        started = time.monotonic()
        try:
            pomodoros = self._count(self.db.collection_group(POMODORO_SESSIONS))
            reminders = self._count(self.db.collection_group(REMINDERS))
        except google_exceptions.GoogleAPICallError as e:
            log.error("admin_stats_failed", error=str(e))
            raise StoreError(
                "Could not fetch platform-wide statistics. "
                "You may need to create Firestore indexes."
            ) from e

        log.info(
            "admin_stats_fetched",
            pomodoros=pomodoros,
            reminders=reminders,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return AdminStats(total_pomodoros=pomodoros, total_reminders=reminders)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @staticmethod
    def _count(query) -> int:
        # Aggregation results come back as [[AggregationResult]]
        results = query.count().get()
        return int(results[0][0].value)

    @staticmethod
    def _write(ref, payload: dict, failure_message: str) -> None:
        try:
            ref.set(payload, merge=True)
        except google_exceptions.GoogleAPICallError as e:
            log.error("store_write_failed", path=getattr(ref, "path", None), error=str(e))
            raise StoreError(failure_message) from e

    @staticmethod
    def _stream(collection, failure_message: str) -> list:
        try:
            return list(collection.stream())
        except google_exceptions.GoogleAPICallError as e:
            log.error("store_read_failed", error=str(e))
            raise StoreError(failure_message) from e

    def _read_user(self, uid: str) -> dict | None:
        ref = self._user(uid)
        try:
            snapshot = ref.get()
        except google_exceptions.GoogleAPICallError as e:
            log.error("store_read_failed", uid=uid, error=str(e))
            raise StoreError("Could not load your data. Please try again.") from e
        if not snapshot.exists:
            return None
        return snapshot.to_dict()
