"""Shared fixtures and in-memory fakes for the planner's external services.

Nothing here touches the network: Gemini, Firestore, Firebase Auth and the
Calendar API are all replaced by small fakes with the same call shapes.
"""

import itertools
import json
from types import SimpleNamespace

import pytest
from google.api_core import exceptions as google_exceptions
from googleapiclient.errors import HttpError

from src.planner.calendar_sync import SYNC_TAG
from src.planner.config import PlannerConfig
from src.planner.models import ScheduleItem, StudyGoal


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------
class FakeModels:
    """Stands in for ``client.models``; replies are consumed in order."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    def queue(self, reply):
        self.replies.append(reply)

    def generate_content(self, *, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, SimpleNamespace):
            return reply
        text = reply if isinstance(reply, str) or reply is None else json.dumps(reply)
        return SimpleNamespace(text=text, candidates=[])


class FakeChat:
    def __init__(self, chunks=None):
        self.chunks = chunks or ["Sure, ", "let's go."]
        self.sent = []

    def send_message_stream(self, message):
        self.sent.append(message)
        for text in self.chunks:
            yield SimpleNamespace(text=text)


class FakeChats:
    def __init__(self):
        self.created = []

    def create(self, *, model, config=None):
        chat = FakeChat()
        self.created.append({"model": model, "config": config, "chat": chat})
        return chat


class FakeGenaiClient:
    def __init__(self, replies=None):
        self.models = FakeModels(replies)
        self.chats = FakeChats()


# ---------------------------------------------------------------------------
# Firestore
# ---------------------------------------------------------------------------
class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, db, path):
        self.db = db
        self.path = path
        self.id = path.rsplit("/", 1)[-1]

    def set(self, data, merge=False):
        self.db.check()
        current = self.db.docs.get(self.path, {}) if merge else {}
        self.db.docs[self.path] = {**current, **data}

    def get(self):
        self.db.check()
        return FakeSnapshot(self.id, self.db.docs.get(self.path))

    def delete(self):
        self.db.check()
        self.db.docs.pop(self.path, None)

    def collection(self, name):
        return FakeCollection(self.db, f"{self.path}/{name}")


class FakeCollection:
    def __init__(self, db, path):
        self.db = db
        self.path = path

    def document(self, doc_id):
        return FakeDocument(self.db, f"{self.path}/{doc_id}")

    def add(self, data):
        self.db.check()
        ref = self.document(f"doc{next(self.db.ids)}")
        self.db.docs[ref.path] = dict(data)
        return None, ref

    def stream(self):
        self.db.check()
        return [
            FakeSnapshot(path.rsplit("/", 1)[-1], data)
            for path, data in self.db.docs.items()
            if path.rsplit("/", 1)[0] == self.path
        ]


class FakeCountQuery:
    def __init__(self, db, name):
        self.db = db
        self.name = name

    def count(self):
        return self

    def get(self):
        self.db.check()
        total = sum(1 for path in self.db.docs if path.split("/")[-2] == self.name)
        return [[SimpleNamespace(value=total)]]


class FakeFirestore:
    """Path-keyed document dict; ``fail = True`` makes every call error."""

    def __init__(self):
        self.docs = {}
        self.ids = itertools.count(1)
        self.fail = False

    def check(self):
        if self.fail:
            raise google_exceptions.ServiceUnavailable("firestore down")

    def collection(self, name):
        return FakeCollection(self, name)

    def collection_group(self, name):
        return FakeCountQuery(self, name)


# ---------------------------------------------------------------------------
# Firebase Auth
# ---------------------------------------------------------------------------
class FakeAuth:
    """Accepts tokens of the form "token-<uid>"; anything else is invalid."""

    def __init__(self, emails=None):
        self.emails = emails or {}
        self.updates = []

    def verify_id_token(self, id_token):
        if not id_token.startswith("token-"):
            raise ValueError("Invalid ID token")
        uid = id_token[len("token-"):]
        return {"uid": uid, "email": self.emails.get(uid, f"{uid}@example.com"), "name": uid}

    def update_user(self, uid, **kwargs):
        self.updates.append((uid, kwargs))


# ---------------------------------------------------------------------------
# Google Calendar
# ---------------------------------------------------------------------------
class FakeCalendarRequest:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error is not None:
            raise self.error
        return self.result


class FakeEvents:
    """One shared calendar; ``list`` honours ``privateExtendedProperty``."""

    def __init__(self, existing=None, fail_summaries=(), insert_error=None):
        self.events = list(existing or [])
        self.fail_summaries = set(fail_summaries)
        self.insert_error = insert_error
        self.inserted = []
        self.deleted = []
        self.ids = itertools.count(1)

    def list(self, *, calendarId, privateExtendedProperty=None, **kwargs):
        matched = self.events
        if privateExtendedProperty:
            key, _, value = privateExtendedProperty.partition("=")
            matched = [
                event for event in self.events
                if event.get("extendedProperties", {}).get("private", {}).get(key) == value
            ]
        return FakeCalendarRequest({"items": list(matched)})

    def delete(self, calendarId, eventId):
        self.deleted.append(eventId)
        self.events = [event for event in self.events if event["id"] != eventId]
        return FakeCalendarRequest({})

    def insert(self, calendarId, body):
        if self.insert_error is not None:
            return FakeCalendarRequest(error=self.insert_error)
        if body["summary"] in self.fail_summaries:
            resp = SimpleNamespace(status=403, reason="Forbidden")
            return FakeCalendarRequest(
                error=HttpError(resp, b'{"error": {"message": "Forbidden"}}')
            )
        event = {"id": f"evt{next(self.ids)}", **body}
        self.inserted.append(body)
        self.events.append(event)
        return FakeCalendarRequest(event)


class FakeCalendarService:
    def __init__(self, events=None):
        self._events = events or FakeEvents()

    def events(self):
        return self._events


def tagged_event(event_id, owner):
    """An existing calendar event as a previous sync by *owner* left it."""
    return {"id": event_id, "extendedProperties": {"private": {SYNC_TAG: owner}}}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def config():
    return PlannerConfig(
        _env_file=None,
        gemini_api_key="test-key",
        admin_emails="Admin@Example.com",
        timezone="Asia/Kolkata",
    )


@pytest.fixture
def goal():
    return StudyGoal(
        exam="Board Exams",
        subjects=["Maths", "Science"],
        target_date="2026-12-31",
    )


@pytest.fixture
def items():
    return [
        ScheduleItem(day="Monday", time_slot="9:00 AM - 11:00 AM", subject="Maths",
                     topic="Polynomials", activity="Study"),
        ScheduleItem(day="Tuesday", time_slot="1:00 PM - 2:00 PM", subject="Science",
                     topic="Acids", activity="Revise"),
        ScheduleItem(day="Monday", time_slot="12:30 PM - 1:00 PM", subject="Maths",
                     topic="Quiz", activity="Daily Quiz"),
        ScheduleItem(day="Sunday", time_slot="9:00 AM - 11:00 AM", subject="Science",
                     topic="Full syllabus", activity="Mock Test"),
    ]


@pytest.fixture
def genai_client():
    return FakeGenaiClient()


@pytest.fixture
def firestore_db():
    return FakeFirestore()


@pytest.fixture
def fake_auth():
    return FakeAuth(emails={"boss": "admin@example.com"})


@pytest.fixture
def no_sleep(monkeypatch):
    """Make tenacity backoff instant."""
    monkeypatch.setattr("time.sleep", lambda seconds: None)


@pytest.fixture
def calendar_events():
    return FakeEvents()
