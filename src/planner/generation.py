"""Gemini-backed generation: weekly schedules, study hub content, break activities.

Every call is a JSON-mode ``generate_content`` request with a response schema.
Responses are all-or-nothing: anything that is not valid JSON of the expected
shape becomes a GenerationError carrying a message fit to show the user.

Transport failures are retried (TransientError); rejected requests are not.
"""

import json
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import TypeAdapter, ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.planner.config import PlannerConfig, get_config
from src.planner.errors import (
    GenerationError,
    PermanentError,
    RateLimitError,
    TransientError,
)
from src.planner.logging import get_logger
from src.planner.models import (
    ACTIVITIES,
    BREAK_ACTIVITY_TYPES,
    STATUSES,
    WEEKDAYS,
    BreakActivity,
    ScheduleItem,
    StudyGoal,
    TopicResourceSet,
    break_activity_adapter,
)

log = get_logger(__name__)

_schedule_adapter = TypeAdapter(list[ScheduleItem])

SCHEDULE_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "day": {"type": "STRING", "enum": list(WEEKDAYS)},
            "timeSlot": {
                "type": "STRING",
                "description": "Time range, e.g. '9:00 AM - 11:00 AM'.",
            },
            "subject": {"type": "STRING"},
            "topic": {"type": "STRING", "description": "Specific topic to cover."},
            "activity": {"type": "STRING", "enum": list(ACTIVITIES)},
            "status": {"type": "STRING", "enum": list(STATUSES)},
            "important": {"type": "BOOLEAN"},
        },
        "required": [
            "day", "timeSlot", "subject", "topic", "activity", "status", "important",
        ],
    },
}

_LINK_LIST = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {"title": {"type": "STRING"}, "url": {"type": "STRING"}},
        "required": ["title", "url"],
    },
}

TOPIC_RESOURCES_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "videos": _LINK_LIST,
        "notes": _LINK_LIST,
        "quiz": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "options": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "correctAnswer": {"type": "STRING"},
                },
                "required": ["question", "options", "correctAnswer"],
            },
        },
        "flashcards": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "answer": {"type": "STRING"},
                },
                "required": ["question", "answer"],
            },
        },
    },
    "required": ["videos", "notes", "quiz", "flashcards"],
}

BREAK_ACTIVITY_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "type": {"type": "STRING", "enum": list(BREAK_ACTIVITY_TYPES)},
        "title": {"type": "STRING"},
        "steps": {"type": "ARRAY", "items": {"type": "STRING"}},
        "jumbledWord": {"type": "STRING"},
        "hint": {"type": "STRING"},
        "answer": {"type": "STRING"},
        "description": {"type": "STRING"},
    },
    "required": ["type", "title"],
}


def create_client(config: PlannerConfig | None = None) -> genai.Client:
    """Build a Gemini client from configuration.

    Raises:
        ConfigurationError: If GEMINI_API_KEY is not set.
    """
    config = config or get_config()
    config.require("gemini_api_key")
    return genai.Client(api_key=config.gemini_api_key)


def classify_api_error(exc: Exception) -> Exception:
    """Map SDK and transport exceptions onto the planner error hierarchy."""
    if isinstance(exc, genai_errors.ClientError):
        if exc.code == 429:
            return RateLimitError(f"Generation rate limited: {exc}")
        return PermanentError(f"Generation request rejected: {exc}")
    if isinstance(exc, genai_errors.ServerError):
        return TransientError(f"Generation service unavailable: {exc}")
    if isinstance(exc, httpx.TransportError):
        return TransientError(f"Generation request failed: {exc}")
    if isinstance(exc, genai_errors.APIError):
        return PermanentError(f"Generation request failed: {exc}")
    return exc


def build_schedule_prompt(goal: StudyGoal) -> str:
    subjects = ", ".join(goal.subjects)
    syllabus = goal.custom_syllabus or f"The entire standard {goal.class_name} syllabus"
    commitments = goal.coaching_timings or "None"
    return f"""
You are an expert academic planner for a {goal.class_name} student preparing for {goal.exam}.
Subjects: {subjects}.
Target exam date: {goal.target_date.isoformat()}.
Fixed commitments (coaching, etc.): "{commitments}".
Syllabus focus: "{syllabus}".

Create a balanced, realistic study timetable for the next 7 days (Monday to Sunday).
- Use slots of 1-2 hours written like "9:00 AM - 11:00 AM", with short breaks between long sessions.
- Cover every subject during the week and mix difficult with easy ones.
- Mix Study, Revise and Practice sessions, with at least one Mock Test or Daily Quiz.
- Give every Study session a specific, manageable topic.
- Never schedule during the fixed commitments; leave time for meals and end each day by 10 PM.
- Set every status to "Not Started" and every important flag to false.
Return only a JSON array matching the schema.
"""


def build_topic_prompt(subject: str, topic: str) -> str:
    return f"""
You are a content curator for school students.
Subject: {subject}
Topic: {topic}

1. Find 2-3 relevant YouTube videos that explain this topic well.
2. Find 2-3 relevant articles or notes for studying it.
3. Write a 4-question multiple-choice quiz with 4 options each; correctAnswer must equal one option exactly.
4. Write 3-5 flashcards with a question and a concise answer.
Return only a JSON object matching the schema.
"""


def build_break_prompt(category: str) -> str:
    return f"""
Suggest one engaging 5-10 minute study-break activity in the category "{category}".
Set "type" to "{category}" and give it a short "title".
- Mindfulness: 3-4 simple "steps".
- Puzzle: a common 6-8 letter word as "answer", its scrambled form as "jumbledWord", and a "hint".
- Creative or Physical: a one or two sentence "description".
Only fill the properties that belong to the category. Return only a JSON object.
"""


def _parse_json(text: str | None, failure_message: str) -> Any:
    try:
        return json.loads(text or "")
    except json.JSONDecodeError as e:
        log.error("generation_invalid_json", error=str(e), raw=(text or "")[:500])
        raise GenerationError(failure_message) from e


class ScheduleGenerator:
    """Generation collaborator wrapping a ``google.genai.Client``.

    The client is injectable so tests (and alternative transports) can supply
    any object exposing ``models.generate_content``.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        model: str | None = None,
        config: PlannerConfig | None = None,
    ) -> None:
        config = config or get_config()
        self.client = client if client is not None else create_client(config)
        self.model = model or config.gemini_model

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, max=10),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    def _generate_json(self, prompt: str, schema: dict[str, Any]) -> str | None:
        """Run one JSON-mode generation call and return the raw text.

        Raises:
            TransientError: Network failure or 5xx (retried).
            RateLimitError: 429 from the API (retried).
            PermanentError: Request rejected (4xx).
        """
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
        except (genai_errors.APIError, httpx.TransportError) as e:
            classified = classify_api_error(e)
            log.warning(
                "generation_call_failed",
                error=str(e),
                type=type(classified).__name__,
            )
            raise classified from e
        return response.text

    def generate_schedule(self, goal: StudyGoal) -> list[ScheduleItem]:
        """Generate a full week for *goal*.

        Returns:
            Non-empty list of items, every one Not Started and not important.

        Raises:
            GenerationError: Response empty, not an array, or any item invalid.
        """
        message = (
            "Could not generate a valid study schedule. "
            "The AI returned an unexpected format."
        )
        log.info("schedule_generation_started", exam=goal.exam, subjects=goal.subjects)
        data = _parse_json(self._generate_json(build_schedule_prompt(goal), SCHEDULE_SCHEMA), message)

        if not isinstance(data, list):
            log.error("schedule_not_array", type=type(data).__name__)
            raise GenerationError(message)
        if not data:
            raise GenerationError(
                "The generated schedule was empty. Please try refining your goals."
            )

        try:
            items = _schedule_adapter.validate_python(data)
        except ValidationError as e:
            log.error("schedule_items_invalid", errors=e.error_count())
            raise GenerationError(message) from e

        items = [
            item.model_copy(update={"status": "Not Started", "important": False})
            for item in items
        ]
        log.info("schedule_generated", items=len(items))
        return items

    def get_topic_resources(self, subject: str, topic: str) -> TopicResourceSet:
        """Fetch videos, notes, a quiz and flashcards for one topic.

        Raises:
            GenerationError: Any of the four sections missing or malformed.
        """
        message = "Could not generate valid learning resources."
        data = _parse_json(
            self._generate_json(build_topic_prompt(subject, topic), TOPIC_RESOURCES_SCHEMA),
            message,
        )
        if not isinstance(data, dict) or any(
            data.get(field) is None for field in ("videos", "notes", "quiz", "flashcards")
        ):
            log.error("topic_resources_incomplete", subject=subject, topic=topic)
            raise GenerationError(message)

        try:
            resources = TopicResourceSet.model_validate(data)
        except ValidationError as e:
            raise GenerationError(message) from e

        log.info(
            "topic_resources_generated",
            subject=subject,
            topic=topic,
            videos=len(resources.videos),
            quiz=len(resources.quiz),
        )
        return resources

    def suggest_break_activity(self, category: str) -> BreakActivity:
        """Suggest a short break activity of the given category.

        Raises:
            ValueError: Unknown category.
            GenerationError: Response missing type/title or not matching them.
        """
        if category not in BREAK_ACTIVITY_TYPES:
            raise ValueError(
                f"Unknown category {category!r}. Valid: {list(BREAK_ACTIVITY_TYPES)}"
            )

        message = "Could not generate a valid break activity."
        data = _parse_json(
            self._generate_json(build_break_prompt(category), BREAK_ACTIVITY_SCHEMA),
            message,
        )
        if not isinstance(data, dict) or not data.get("type") or not data.get("title"):
            raise GenerationError(message)

        try:
            activity = break_activity_adapter.validate_python(data)
        except ValidationError as e:
            log.error("break_activity_invalid", category=category, errors=e.error_count())
            raise GenerationError(message) from e

        log.info("break_activity_generated", category=category, type=activity.type)
        return activity
