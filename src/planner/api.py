"""HTTP API over the planner.

Every route except /health expects ``Authorization: Bearer <Firebase ID
token>``. Sessions are opened on first use per user and kept until sign-out
(or SESSION_IDLE_MINUTES without a request) so the tutor conversation carries
over between requests.

Run with: uvicorn "src.planner.api:create_app" --factory
"""

import threading
import time
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from src.planner.activities import (
    HUB_CLASS_NAME,
    check_puzzle_answer,
    hub_available,
    score_quiz,
)
from src.planner.app import StudyPlanner
from src.planner.calendar_sync import CalendarSync, SyncReport
from src.planner.config import PlannerConfig, get_config
from src.planner.errors import (
    AuthenticationError,
    ConfigurationError,
    GenerationError,
    NotAuthenticatedError,
    PermanentError,
    SessionClosedError,
    StoreError,
    TransientError,
)
from src.planner.grid import build_grid
from src.planner.logging import bind_request, clear_request, get_logger, setup_logging
from src.planner.models import (
    AdminStats,
    ChatMessage,
    CustomReminder,
    PuzzleActivity,
    QuizQuestion,
    ScheduleItem,
    SlotKey,
    Status,
    StudyGoal,
    TopicResourceSet,
    break_activity_adapter,
)
from src.planner.mutations import set_status, toggle_important
from src.planner.progress import overall_progress, progress_by_subject
from src.planner.reminders import ReminderDispatcher
from src.planner.session import SessionManager, UserSession

log = get_logger(__name__)


class _Body(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class SlotRequest(_Body):
    day: str
    time_slot: str

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.day, self.time_slot)


class StatusRequest(SlotRequest):
    status: Status


class ReminderRequest(_Body):
    message: str
    time: str


class PomodoroRequest(_Body):
    duration: int


class ChatRequest(_Body):
    message: str


class ProfileRequest(_Body):
    display_name: str
    avatar: str


class CalendarSyncRequest(_Body):
    dry_run: bool = True


class QuizScoreRequest(_Body):
    quiz: list[QuizQuestion]
    answers: dict[int, str] = {}


class PuzzleCheckRequest(_Body):
    puzzle: PuzzleActivity
    guess: str


def _local_now(tz: str) -> datetime:
    return datetime.now(ZoneInfo(tz))


def _dump(items: list[ScheduleItem]) -> list[dict]:
    return [item.model_dump(mode="json", by_alias=True) for item in items]


def _error_handler(status_code: int) -> Callable[[Request, Exception], JSONResponse]:
    def handler(request: Request, exc: Exception) -> JSONResponse:
        log.info(
            "api_error",
            path=request.url.path,
            status=status_code,
            type=type(exc).__name__,
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


class SessionCache:
    """Open sessions by uid, shared by the threadpool that runs sync handlers.

    Sessions idle longer than ``idle_seconds`` are signed out on the next
    lookup so their tutor chats do not accumulate.
    """

    def __init__(
        self,
        session_manager: SessionManager,
        idle_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session_manager = session_manager
        self.idle_seconds = idle_seconds
        self.clock = clock
        self._sessions: dict[str, UserSession] = {}
        self._last_seen: dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def get_or_open(self, claims: dict) -> UserSession:
        uid = claims.get("uid") or claims.get("sub")
        with self._lock:
            now = self.clock()
            self._evict_idle(now)
            session = self._sessions.get(uid)
            if session is None or session.closed:
                session = self.session_manager.open_session(claims)
                self._sessions[session.uid] = session
            self._last_seen[session.uid] = now
            return session

    def sign_out(self, session: UserSession) -> None:
        with self._lock:
            if self._sessions.get(session.uid) is session:
                del self._sessions[session.uid]
                self._last_seen.pop(session.uid, None)
        self.session_manager.sign_out(session)

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_seen.clear()
        for session in sessions:
            self.session_manager.sign_out(session)

    def _evict_idle(self, now: float) -> None:
        cutoff = now - self.idle_seconds
        for uid in [uid for uid, seen in self._last_seen.items() if seen < cutoff]:
            del self._last_seen[uid]
            self.session_manager.sign_out(self._sessions.pop(uid))
            log.info("session_evicted", uid=uid)


def create_app(
    session_manager: SessionManager | None = None,
    generator: Any | None = None,
    calendar_factory: Callable[[str], CalendarSync] | None = None,
    config: PlannerConfig | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """Build the API.

    Collaborators default to the real Firebase / Gemini / Calendar ones built
    from config; tests pass fakes. ``clock`` drives idle-session eviction.
    """
    config = config or get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    if generator is None or session_manager is None:
        from src.planner.generation import ScheduleGenerator
        from src.planner.store import PlannerStore

        generator = generator or ScheduleGenerator(config=config)
        session_manager = session_manager or SessionManager(
            PlannerStore(), generator.client, config=config
        )
    if calendar_factory is None:
        def calendar_factory(uid: str) -> CalendarSync:
            return CalendarSync(uid, config=config)

    sessions = SessionCache(session_manager, config.session_idle_minutes * 60, clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("api_started", model=config.gemini_model)
        yield
        sessions.close_all()
        log.info("api_stopped")

    app = FastAPI(
        title="Schedulify Planner",
        description="AI-generated weekly study schedules",
        lifespan=lifespan,
    )

    # Handlers are looked up along the exception's MRO
    app.add_exception_handler(GenerationError, _error_handler(502))
    app.add_exception_handler(AuthenticationError, _error_handler(401))
    app.add_exception_handler(NotAuthenticatedError, _error_handler(401))
    app.add_exception_handler(SessionClosedError, _error_handler(401))
    app.add_exception_handler(ConfigurationError, _error_handler(500))
    app.add_exception_handler(PermanentError, _error_handler(502))
    app.add_exception_handler(TransientError, _error_handler(503))
    app.add_exception_handler(StoreError, _error_handler(503))
    app.add_exception_handler(ValueError, _error_handler(422))

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = bind_request(
            request.method, request.url.path, request.headers.get("x-request-id")
        )
        try:
            response = await call_next(request)
        finally:
            clear_request()
        response.headers["x-request-id"] = request_id
        return response

    def current_session(authorization: str | None = Header(default=None)) -> UserSession:
        scheme, _, token = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise NotAuthenticatedError()

        return sessions.get_or_open(session_manager.verify(token.strip()))

    def admin_session(session: UserSession = Depends(current_session)) -> UserSession:
        if not session.is_admin:
            log.warning("admin_access_denied", uid=session.uid)
            raise HTTPException(status_code=403, detail="Admin access required")
        return session

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    @app.post("/session/sign-out")
    def sign_out(session: UserSession = Depends(current_session)):
        sessions.sign_out(session)
        return {"status": "signed_out"}

    @app.get("/profile")
    def get_profile(session: UserSession = Depends(current_session)):
        return {"displayName": session.display_name, "avatar": session.avatar}

    @app.put("/profile")
    def update_profile(body: ProfileRequest, session: UserSession = Depends(current_session)):
        session.update_profile(body.display_name, body.avatar)
        return {"displayName": session.display_name, "avatar": session.avatar}

    # ------------------------------------------------------------------
    # Goal and schedule
    # ------------------------------------------------------------------
    @app.post("/goal")
    def set_goal(goal: StudyGoal, session: UserSession = Depends(current_session)):
        planner = StudyPlanner(generator)
        planner.session = session
        if not planner.handle_goal_set(goal):
            if isinstance(planner.failure, StoreError):
                raise planner.failure
            raise GenerationError(planner.error)
        return _dump(planner.schedule)

    @app.get("/goal")
    def get_goal(session: UserSession = Depends(current_session)):
        goal = session.store.load_goal(session.uid)
        if goal is None:
            raise HTTPException(status_code=404, detail="No study goal set")
        return goal.model_dump(mode="json", by_alias=True)

    @app.get("/schedule")
    def get_schedule(session: UserSession = Depends(current_session)):
        return _dump(session.store.load_schedule(session.uid))

    @app.get("/schedule/grid")
    def get_grid(session: UserSession = Depends(current_session)):
        grid = build_grid(session.store.load_schedule(session.uid))
        return {
            "timeSlots": grid.time_slots,
            "cells": {
                slot: {
                    day: item.model_dump(mode="json", by_alias=True) if item else None
                    for day, item in row.items()
                }
                for slot, row in grid.cells.items()
            },
        }

    @app.post("/schedule/status")
    def update_status(body: StatusRequest, session: UserSession = Depends(current_session)):
        items = set_status(session.store.load_schedule(session.uid), body.key, body.status)
        session.store.save_schedule(session.uid, items)
        return _dump(items)

    @app.post("/schedule/important")
    def update_important(body: SlotRequest, session: UserSession = Depends(current_session)):
        items = toggle_important(session.store.load_schedule(session.uid), body.key)
        session.store.save_schedule(session.uid, items)
        return _dump(items)

    @app.get("/progress")
    def get_progress(session: UserSession = Depends(current_session)):
        items = session.store.load_schedule(session.uid)
        return {
            "overall": overall_progress(items),
            "subjects": [s.model_dump() for s in progress_by_subject(items)],
        }

    # ------------------------------------------------------------------
    # Reminders and pomodoro
    # ------------------------------------------------------------------
    @app.get("/reminders")
    def list_reminders(session: UserSession = Depends(current_session)):
        return [
            r.model_dump(by_alias=True) for r in session.store.list_reminders(session.uid)
        ]

    @app.post("/reminders", status_code=201)
    def add_reminder(body: ReminderRequest, session: UserSession = Depends(current_session)):
        reminder: CustomReminder = session.store.add_reminder(
            session.uid, body.message, body.time
        )
        return reminder.model_dump(by_alias=True)

    @app.delete("/reminders/{reminder_id}", status_code=204)
    def delete_reminder(reminder_id: str, session: UserSession = Depends(current_session)):
        session.store.delete_reminder(session.uid, reminder_id)

    @app.post("/reminders/due")
    def fire_due_reminders(session: UserSession = Depends(current_session)):
        """Polled once a minute by the client; due reminders fire once and are deleted."""
        notifications: list[dict] = []
        dispatcher = ReminderDispatcher(
            session.store,
            lambda title, body: notifications.append({"title": title, "body": body}),
        )
        dispatcher.check(session.uid, _local_now(config.timezone))
        return notifications

    @app.get("/pomodoro")
    def list_pomodoro(session: UserSession = Depends(current_session)):
        return [
            s.model_dump(by_alias=True)
            for s in session.store.list_pomodoro_sessions(session.uid)
        ]

    @app.post("/pomodoro", status_code=201)
    def record_pomodoro(body: PomodoroRequest, session: UserSession = Depends(current_session)):
        if body.duration <= 0:
            raise ValueError("duration must be positive")
        return {"id": session.store.add_pomodoro_session(session.uid, body.duration)}

    # ------------------------------------------------------------------
    # Study hub, breaks and tutor
    # ------------------------------------------------------------------
    @app.get("/topics/resources")
    def topic_resources(
        day: str,
        time_slot: str = Query(alias="timeSlot"),
        session: UserSession = Depends(current_session),
    ):
        goal = session.store.load_goal(session.uid)
        key = SlotKey(day, time_slot)
        item = next(
            (i for i in session.store.load_schedule(session.uid) if i.key == key), None
        )
        if goal is None or item is None:
            raise HTTPException(status_code=404, detail="No session in that slot")
        if not hub_available(goal, item):
            raise HTTPException(
                status_code=409,
                detail=f"The study hub covers {HUB_CLASS_NAME} study, revise and practice sessions",
            )
        resources: TopicResourceSet = generator.get_topic_resources(item.subject, item.topic)
        return resources.model_dump(by_alias=True)

    @app.post("/quiz/score")
    def quiz_score(body: QuizScoreRequest, session: UserSession = Depends(current_session)):
        return {"score": score_quiz(body.quiz, body.answers), "total": len(body.quiz)}

    @app.get("/break-activity/{category}")
    def break_activity(category: str, session: UserSession = Depends(current_session)):
        activity = generator.suggest_break_activity(category)
        return break_activity_adapter.dump_python(activity, mode="json", by_alias=True)

    @app.post("/break-activity/puzzle/check")
    def puzzle_check(body: PuzzleCheckRequest, session: UserSession = Depends(current_session)):
        return {"correct": check_puzzle_answer(body.puzzle, body.guess)}

    @app.post("/chat")
    def chat(body: ChatRequest, session: UserSession = Depends(current_session)):
        reply: ChatMessage = session.tutor.ask(body.message)
        return reply.model_dump()

    @app.get("/chat/history")
    def chat_history(session: UserSession = Depends(current_session)):
        return [message.model_dump() for message in session.tutor.history]

    # ------------------------------------------------------------------
    # Admin and calendar
    # ------------------------------------------------------------------
    @app.get("/admin/stats")
    def admin_stats(session: UserSession = Depends(admin_session)):
        stats: AdminStats = session.store.admin_stats()
        return stats.model_dump(by_alias=True)

    @app.post("/calendar/sync")
    def sync_calendar(
        body: CalendarSyncRequest, session: UserSession = Depends(current_session)
    ):
        goal = session.store.load_goal(session.uid)
        items = session.store.load_schedule(session.uid)
        if goal is None or not items:
            raise HTTPException(status_code=409, detail="Generate a schedule first")
        calendar = calendar_factory(session.uid)
        report: SyncReport = calendar.sync(items, goal, dry_run=body.dry_run)
        return report.model_dump()

    return app
