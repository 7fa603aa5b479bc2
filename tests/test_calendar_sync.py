"""Tests for Google Calendar sync (fake Calendar v3 service)."""

from datetime import date

import pytest

from src.planner.calendar_sync import (
    SYNC_TAG,
    CalendarSync,
    build_event_body,
    create_calendar_service,
    next_weekday,
)
from src.planner.config import PlannerConfig
from src.planner.errors import ConfigurationError, TransientError
from src.planner.models import ScheduleItem
from tests.conftest import FakeCalendarService, FakeEvents, tagged_event

# A Monday
TODAY = date(2026, 10, 19)


class TestNextWeekday:
    def test_today_counts(self):
        assert next_weekday(0, TODAY) == TODAY

    def test_wraps_to_next_week(self):
        assert next_weekday(6, TODAY) == date(2026, 10, 25)
        assert next_weekday(0, date(2026, 10, 20)) == date(2026, 10, 26)


class TestBuildEventBody:
    def test_weekly_event_until_target(self, items, goal):
        body = build_event_body(items[1], goal, TODAY, "Asia/Kolkata", owner="u1")

        assert body["summary"] == "Revise: Science"
        assert body["start"] == {"dateTime": "2026-10-20T13:00:00", "timeZone": "Asia/Kolkata"}
        assert body["end"]["dateTime"] == "2026-10-20T14:00:00"
        assert body["recurrence"] == ["RRULE:FREQ=WEEKLY;UNTIL=20261231T235959Z"]
        assert "Acids" in body["description"]

    def test_tagged_with_owner(self, items, goal):
        """The private tag carries the uid so clears stay per user."""
        body = build_event_body(items[1], goal, TODAY, "UTC", owner="u1")
        assert body["extendedProperties"]["private"][SYNC_TAG] == "u1"

    def test_session_past_midnight_ends_next_day(self, goal):
        late = ScheduleItem(day="Monday", time_slot="11:00 PM - 12:30 AM",
                            subject="Maths", topic="T", activity="Revise")
        body = build_event_body(late, goal, TODAY, "UTC", owner="u1")
        assert body["end"]["dateTime"] == "2026-10-20T00:30:00"

    def test_unparseable_slot_skipped(self, goal):
        vague = ScheduleItem(day="Monday", time_slot="After school",
                             subject="Maths", topic="T", activity="Study")
        assert build_event_body(vague, goal, TODAY, "UTC", owner="u1") is None

    def test_after_target_date_skipped(self, items, goal):
        goal = goal.model_copy(update={"target_date": TODAY})
        assert build_event_body(items[1], goal, TODAY, "UTC", owner="u1") is None


class TestCreateCalendarService:
    def test_missing_user_token(self, tmp_path):
        config = PlannerConfig(_env_file=None, google_calendar_token_dir=str(tmp_path))
        with pytest.raises(ConfigurationError, match="u1.json"):
            create_calendar_service(config, "u1")

    def test_nothing_configured(self):
        with pytest.raises(ConfigurationError):
            create_calendar_service(PlannerConfig(_env_file=None), "u1")


class TestCalendarSync:
    def _sync(self, config, events, owner="u1"):
        return CalendarSync(owner, FakeCalendarService(events), config=config)

    def test_owner_required(self, config):
        with pytest.raises(ValueError, match="uid"):
            CalendarSync("", FakeCalendarService(), config=config)

    def test_dry_run_makes_no_calls(self, config, items, goal):
        events = FakeEvents(existing=[tagged_event("old", "u1")])
        report = self._sync(config, events).sync(items, goal, dry_run=True, today=TODAY)

        assert report.mode == "dry-run"
        assert len(report.events) == len(items)
        assert events.inserted == []
        assert events.deleted == []

    def test_execute_replaces_previous_events(self, config, items, goal):
        events = FakeEvents(existing=[tagged_event("old1", "u1"), tagged_event("old2", "u1")])
        report = self._sync(config, events).sync(items, goal, today=TODAY)

        assert events.deleted == ["old1", "old2"]
        assert report.cleared == 2
        assert report.created == len(items)
        assert report.failed == 0

    def test_other_owners_events_survive(self, config, items, goal):
        """A second user syncing into the same calendar leaves the first user's events alone."""
        events = FakeEvents(existing=[tagged_event("mine", "u1"), tagged_event("theirs", "u2")])
        report = self._sync(config, events, owner="u2").sync(items, goal, today=TODAY)

        assert events.deleted == ["theirs"]
        assert report.cleared == 1
        assert any(event["id"] == "mine" for event in events.events)

    def test_untagged_events_survive(self, config, items, goal):
        events = FakeEvents(existing=[{"id": "dentist"}])
        self._sync(config, events).sync(items, goal, today=TODAY)
        assert events.deleted == []

    def test_clear_only(self, config, items, goal):
        events = FakeEvents(existing=[tagged_event("old", "u1"), tagged_event("keep", "u9")])
        assert self._sync(config, events).clear_synced_events() == (1, [])
        assert [event["id"] for event in events.events] == ["keep"]

    def test_per_event_failures_are_reported(self, config, items, goal):
        events = FakeEvents(fail_summaries={"Mock Test: Science"})
        report = self._sync(config, events).sync(items, goal, today=TODAY)

        assert report.created == len(items) - 1
        assert report.failed == 1
        assert report.errors and "Sun" in report.errors[0]

    def test_unreachable_calendar(self, config, items, goal):
        events = FakeEvents(insert_error=OSError("network down"))
        with pytest.raises(TransientError, match="Calendar unreachable"):
            self._sync(config, events).sync(items, goal, today=TODAY)
