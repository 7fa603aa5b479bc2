"""Custom reminder matching and dispatch.

A reminder fires once, in the minute its HH:MM time matches the clock, and
is deleted after firing. ``ReminderDispatcher.check`` is meant to be called
once a minute (by a scheduler loop or cron).
"""

import re
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Protocol

from src.planner.logging import get_logger
from src.planner.models import CustomReminder

log = get_logger(__name__)

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

NOTIFICATION_TITLE = "Schedulify Reminder"


def validate_reminder_time(value: str) -> str:
    """Return *value* if it is a 24-hour "HH:MM" time.

    Raises:
        ValueError: Otherwise.
    """
    if not _TIME_RE.match(value or ""):
        raise ValueError(f"Reminder time must be HH:MM (24-hour), got {value!r}")
    return value


def due_reminders(reminders: Sequence[CustomReminder], now: datetime) -> list[CustomReminder]:
    """Reminders whose time equals the current minute."""
    current = now.strftime("%H:%M")
    return [reminder for reminder in reminders if reminder.time == current]


class ReminderStore(Protocol):
    def list_reminders(self, uid: str) -> list[CustomReminder]: ...

    def delete_reminder(self, uid: str, reminder_id: str) -> None: ...


class ReminderDispatcher:
    """Fires due reminders through a notifier and removes them.

    Args:
        store: Anything with ``list_reminders`` / ``delete_reminder``.
        notify: Called as ``notify(title, body)`` for each due reminder.
    """

    def __init__(self, store: ReminderStore, notify: Callable[[str, str], None]) -> None:
        self.store = store
        self.notify = notify

    def check(self, uid: str, now: datetime | None = None) -> list[CustomReminder]:
        """Notify and delete every reminder due at *now*.

        Returns:
            The reminders that fired.
        """
        now = now or datetime.now()
        fired = due_reminders(self.store.list_reminders(uid), now)
        for reminder in fired:
            self.notify(NOTIFICATION_TITLE, reminder.message)
            self.store.delete_reminder(uid, reminder.id)
            log.info("reminder_fired", uid=uid, id=reminder.id, time=reminder.time)
        return fired
