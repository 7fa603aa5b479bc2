"""Pydantic models for planner data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Python attributes are snake_case; the JSON wire format (generation API and
Firestore documents) is camelCase, e.g. ``timeSlot`` and ``targetDate``.
Dump with ``model_dump(by_alias=True)`` when writing to either.
"""

from datetime import date
from typing import Annotated, Literal, NamedTuple, Union, get_args

from pydantic import BaseModel, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from src.planner.timeslots import TimeRange

Weekday = Literal[
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
]
Activity = Literal["Study", "Revise", "Practice", "Mock Test", "Daily Quiz"]
Status = Literal["Not Started", "In Progress", "Completed"]
BreakActivityType = Literal["Mindfulness", "Puzzle", "Creative", "Physical"]

WEEKDAYS: tuple[str, ...] = get_args(Weekday)
ACTIVITIES: tuple[str, ...] = get_args(Activity)
STATUSES: tuple[str, ...] = get_args(Status)
BREAK_ACTIVITY_TYPES: tuple[str, ...] = get_args(BreakActivityType)

DEFAULT_CLASS_NAME = "Class 10 (Boards)"

_WIRE_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class SlotKey(NamedTuple):
    """Stable identity of a schedule item within a week."""

    day: str
    time_slot: str


class ScheduleItem(BaseModel):
    """One cell of the weekly plan.

    Items are frozen: a status or importance change produces a new item via
    ``model_copy(update=...)``, so lists of items can be shared safely.
    """

    day: Weekday
    time_slot: str  # "9:00 AM - 11:00 AM"
    subject: str
    topic: str
    activity: Activity
    status: Status = "Not Started"
    important: bool = False

    model_config = {**_WIRE_CONFIG, "frozen": True}

    @field_validator("day", mode="before")
    @classmethod
    def _normalize_day(cls, value):
        # The model sometimes answers "monday" or " Monday"
        if isinstance(value, str):
            return value.strip().capitalize()
        return value

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.day, self.time_slot)

    @property
    def time_range(self) -> TimeRange | None:
        return TimeRange.parse(self.time_slot)


class StudyGoal(BaseModel):
    """What the student is preparing for; the input to schedule generation."""

    exam: str
    class_name: str = DEFAULT_CLASS_NAME
    subjects: list[str]
    target_date: date
    custom_syllabus: str = ""
    coaching_timings: str = ""

    model_config = _WIRE_CONFIG

    @field_validator("subjects", mode="before")
    @classmethod
    def _split_subjects(cls, value):
        # Goal forms submit "Science, Maths, Social Science"
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)):
            return value
        stripped = [s.strip() if isinstance(s, str) else s for s in value]
        return [s for s in stripped if s != ""]

    @field_validator("subjects")
    @classmethod
    def _require_subjects(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one subject is required")
        return value

    @field_validator("exam")
    @classmethod
    def _require_exam(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("exam is required")
        return value.strip()


class PomodoroSession(BaseModel):
    """A completed focus session, stored under users/{uid}/pomodoroSessions."""

    id: str | None = None
    user_id: str
    date: str  # YYYY-MM-DD
    duration: int  # minutes
    completed_at: int  # epoch milliseconds

    model_config = _WIRE_CONFIG


class CustomReminder(BaseModel):
    """A daily notification at a wall-clock time."""

    id: str
    user_id: str
    message: str
    time: str  # "HH:MM"

    model_config = _WIRE_CONFIG


class Resource(BaseModel):
    title: str
    url: str


class QuizQuestion(BaseModel):
    question: str
    options: list[str]
    correct_answer: str  # exact text of one option

    model_config = _WIRE_CONFIG


class Flashcard(BaseModel):
    question: str
    answer: str


class TopicResourceSet(BaseModel):
    """Study hub content for one topic: links, a revision quiz, flashcards."""

    videos: list[Resource]
    notes: list[Resource]
    quiz: list[QuizQuestion]
    flashcards: list[Flashcard]


class MindfulnessActivity(BaseModel):
    type: Literal["Mindfulness"]
    title: str
    steps: list[str] = []


class PuzzleActivity(BaseModel):
    type: Literal["Puzzle"]
    title: str
    jumbled_word: str
    hint: str = ""
    answer: str

    model_config = _WIRE_CONFIG


class SuggestionActivity(BaseModel):
    type: Literal["Creative", "Physical"]
    title: str
    description: str = ""


BreakActivity = Annotated[
    Union[MindfulnessActivity, PuzzleActivity, SuggestionActivity],
    Field(discriminator="type"),
]

break_activity_adapter: TypeAdapter[BreakActivity] = TypeAdapter(BreakActivity)


class GroundingSource(BaseModel):
    """A web page the tutor's answer was grounded on."""

    uri: str
    title: str = ""


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str
    sources: list[GroundingSource] = []


class ChatChunk(BaseModel):
    """One piece of a streamed tutor reply."""

    text: str
    sources: list[GroundingSource] = []


class AdminStats(BaseModel):
    total_pomodoros: int
    total_reminders: int

    model_config = _WIRE_CONFIG
