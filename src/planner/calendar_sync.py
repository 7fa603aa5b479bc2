"""Sync a weekly study schedule to Google Calendar as recurring events.

Each schedule item becomes a weekly event starting on the next occurrence of
its weekday (today counts) and repeating until the goal's target date.
Events are tagged with a private extended property holding the owner's uid,
so a re-sync clears that user's previous batch (and only theirs) before
creating the new one.
"""

import os
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from pydantic import BaseModel

from src.planner.config import PlannerConfig, get_config
from src.planner.errors import ConfigurationError, TransientError
from src.planner.logging import get_logger
from src.planner.models import WEEKDAYS, ScheduleItem, StudyGoal
from src.planner.timeslots import format_minutes

log = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events"]

# Private extended property; its value is the uid of the user who synced
SYNC_TAG = "schedulify"

# Weekday name -> Python weekday number (0=Monday)
DAY_INDEX = {day: index for index, day in enumerate(WEEKDAYS)}


class SyncReport(BaseModel):
    mode: str
    created: int = 0
    cleared: int = 0
    failed: int = 0
    skipped: list[str] = []
    errors: list[str] = []
    events: list[dict[str, Any]] = []


def create_calendar_service(config: PlannerConfig | None = None, owner: str | None = None):
    """Build an authorized Calendar v3 service from a stored user token.

    With GOOGLE_CALENDAR_TOKEN_DIR set, each user's own token is read from
    ``<dir>/<owner>.json``; otherwise the single GOOGLE_CALENDAR_CREDENTIALS
    token is used for everyone.

    Raises:
        ConfigurationError: No token location configured, or no token file
            for this user.
    """
    config = config or get_config()
    if config.google_calendar_token_dir and owner:
        token_path = os.path.join(config.google_calendar_token_dir, f"{owner}.json")
    else:
        config.require("google_calendar_credentials")
        token_path = config.google_calendar_credentials
    if not os.path.exists(token_path):
        raise ConfigurationError(f"No Calendar token at {token_path}")
    creds = Credentials.from_authorized_user_file(token_path, SCOPES)
    if creds.expired and creds.refresh_token:
        creds.refresh(Request())
        log.info("calendar_token_refreshed")
    return build("calendar", "v3", credentials=creds, cache_discovery=False)


def next_weekday(target: int, from_date: date) -> date:
    """Return the next occurrence of *target* weekday (0=Mon) from *from_date* inclusive."""
    days_ahead = (target - from_date.weekday()) % 7
    return from_date + timedelta(days=days_ahead)


def item_label(item: ScheduleItem) -> str:
    return f"{item.day[:3]} {item.time_slot} {item.subject}"


def build_event_body(
    item: ScheduleItem, goal: StudyGoal, today: date, tz: str, *, owner: str
) -> dict[str, Any] | None:
    """Build the Calendar API event JSON for one recurring study slot.

    Returns:
        The event body, or None if the slot cannot be parsed or its first
        occurrence falls after the target date.
    """
    time_range = item.time_range
    if time_range is None:
        return None

    start_date = next_weekday(DAY_INDEX[item.day], today)
    if start_date > goal.target_date:
        return None
    end_date = start_date + timedelta(days=1) if time_range.crosses_midnight else start_date

    # UNTIL must be UTC when DTSTART carries a timezone
    until = f"{goal.target_date.strftime('%Y%m%d')}T235959Z"

    return {
        "summary": f"{item.activity}: {item.subject}",
        "description": f"Topic: {item.topic}\nGoal: {goal.exam}",
        "start": {
            "dateTime": f"{start_date}T{format_minutes(time_range.start)}:00",
            "timeZone": tz,
        },
        "end": {
            "dateTime": f"{end_date}T{format_minutes(time_range.end)}:00",
            "timeZone": tz,
        },
        "recurrence": [f"RRULE:FREQ=WEEKLY;UNTIL={until}"],
        "reminders": {"useDefault": True},
        "extendedProperties": {
            "private": {SYNC_TAG: owner, "day": item.day, "timeSlot": item.time_slot},
        },
    }


class CalendarSync:
    """Calendar collaborator around a ``googleapiclient`` Calendar v3 service.

    Args:
        owner: uid of the user whose events are written and cleared.
        service: An object with ``events()``. Defaults to one built from config
            with the owner's token.
        config: Supplies the calendar ID and timezone.
    """

    def __init__(
        self, owner: str, service: Any | None = None, config: PlannerConfig | None = None
    ) -> None:
        if not owner:
            raise ValueError("Calendar sync needs the owning user's uid")
        config = config or get_config()
        self.owner = owner
        self.service = service if service is not None else create_calendar_service(config, owner)
        self.calendar_id = config.google_calendar_id
        self.timezone = config.timezone

    def _today(self) -> date:
        return datetime.now(ZoneInfo(self.timezone)).date()

    def clear_synced_events(self) -> tuple[int, list[str]]:
        """Delete the events a previous sync created for this owner. Returns (count, errors)."""
        cleared = 0
        errors: list[str] = []
        page_token = None
        while True:
            try:
                response = (
                    self.service.events()
                    .list(
                        calendarId=self.calendar_id,
                        privateExtendedProperty=f"{SYNC_TAG}={self.owner}",
                        singleEvents=False,
                        pageToken=page_token,
                    )
                    .execute()
                )
            except HttpError as e:
                log.error("calendar_list_failed", error=str(e))
                errors.append(f"list: {e}")
                return cleared, errors

            for event in response.get("items", []):
                try:
                    self.service.events().delete(
                        calendarId=self.calendar_id, eventId=event["id"]
                    ).execute()
                    cleared += 1
                except HttpError as e:
                    errors.append(f"delete {event['id']}: {e}")

            page_token = response.get("nextPageToken")
            if not page_token:
                return cleared, errors

    def sync(
        self,
        items: Sequence[ScheduleItem],
        goal: StudyGoal,
        *,
        dry_run: bool = False,
        today: date | None = None,
    ) -> SyncReport:
        """Replace previously synced events with the current schedule.

        Per-event failures are collected in the report rather than raised.

        Raises:
            TransientError: The calendar could not be reached at all.
        """
        today = today or self._today()
        report = SyncReport(mode="dry-run" if dry_run else "execute")

        bodies: list[tuple[ScheduleItem, dict[str, Any]]] = []
        for item in items:
            body = build_event_body(item, goal, today, self.timezone, owner=self.owner)
            if body is None:
                report.skipped.append(item_label(item))
                continue
            bodies.append((item, body))

        if dry_run:
            report.events = [body for _, body in bodies]
            log.info("calendar_sync_dry_run", events=len(bodies), skipped=len(report.skipped))
            return report

        report.cleared, clear_errors = self.clear_synced_events()
        report.errors.extend(clear_errors)

        for item, body in bodies:
            try:
                self.service.events().insert(calendarId=self.calendar_id, body=body).execute()
                report.created += 1
            except HttpError as e:
                report.failed += 1
                report.errors.append(f"create {item_label(item)}: {e}")
                log.warning("calendar_event_failed", item=item_label(item), error=str(e))
            except OSError as e:
                raise TransientError(f"Calendar unreachable: {e}") from e

        log.info(
            "calendar_synced",
            owner=self.owner,
            created=report.created,
            cleared=report.cleared,
            failed=report.failed,
            skipped=len(report.skipped),
        )
        return report
