"""View-state container for one user's planner.

StudyPlanner holds the goal, the current schedule list and which screen the
client should show. All schedule edits go through the pure functions in
``mutations`` and the resulting list is handed to ``on_schedule_update``.
"""

from collections.abc import Callable, Sequence
from typing import Literal

from src.planner.errors import GenerationError, PlannerError, StoreError
from src.planner.grid import GridBuilder, ScheduleGrid
from src.planner.logging import get_logger
from src.planner.models import ScheduleItem, Status, StudyGoal
from src.planner.mutations import Target, set_status, toggle_important
from src.planner.progress import SubjectProgress, overall_progress, progress_by_subject

log = get_logger(__name__)

View = Literal["loading", "auth", "goal_setup", "generating_schedule", "dashboard", "error"]

GENERIC_GENERATION_ERROR = "Failed to generate schedule. Please try again."


class StudyPlanner:
    """Client state machine: loading -> auth -> goal_setup -> generating -> dashboard.

    Args:
        generator: Anything with ``generate_schedule(goal)``.
        on_schedule_update: Called with every new schedule list. When omitted
            and a session is attached, the session's store persists it.
    """

    def __init__(
        self,
        generator,
        on_schedule_update: Callable[[list[ScheduleItem]], object] | None = None,
    ) -> None:
        self.generator = generator
        self.on_schedule_update = on_schedule_update
        self.session = None
        self.view: View = "loading"
        self.goal: StudyGoal | None = None
        self.schedule: list[ScheduleItem] = []
        self.error: str | None = None
        self.failure: PlannerError | None = None
        self._grid = GridBuilder()

    # ------------------------------------------------------------------
    # Auth lifecycle
    # ------------------------------------------------------------------
    def attach(self, session) -> View:
        """Enter the signed-in state and restore saved data.

        ``None`` means nobody is signed in.
        """
        self.session = session
        if session is None:
            self._reset()
            self.view = "auth"
            return self.view

        try:
            self.goal = session.store.load_goal(session.uid)
            self.schedule = session.store.load_schedule(session.uid)
        except StoreError as e:
            log.error("planner_restore_failed", uid=session.uid, error=str(e))
            self.error = str(e)
            self.view = "error"
            return self.view

        self.view = "dashboard" if self.goal and self.schedule else "goal_setup"
        log.info("planner_restored", uid=session.uid, view=self.view, items=len(self.schedule))
        return self.view

    def sign_out(self) -> None:
        if self.session is not None:
            self.session.close()
        self.session = None
        self._reset()
        self.view = "auth"

    def _reset(self) -> None:
        self.goal = None
        self.schedule = []
        self.error = None
        self.failure = None

    # ------------------------------------------------------------------
    # Goal and schedule
    # ------------------------------------------------------------------
    def edit_goal(self) -> None:
        self.error = None
        self.view = "goal_setup"

    def handle_goal_set(self, goal: StudyGoal) -> bool:
        """Generate a schedule for *goal*.

        All-or-nothing: on any failure, including a failed save, the previous
        schedule is cleared, the view returns to goal setup, ``error`` holds a
        message for the user and ``failure`` the underlying exception.
        """
        self.goal = goal
        self.error = None
        self.failure = None
        self.view = "generating_schedule"

        try:
            schedule = self.generator.generate_schedule(goal)
        except GenerationError as e:
            return self._generation_failed(str(e), e)
        except PlannerError as e:
            log.warning("schedule_generation_failed", error=str(e), type=type(e).__name__)
            return self._generation_failed(GENERIC_GENERATION_ERROR, e)

        if not schedule:
            return self._generation_failed(
                "The generated schedule was empty. Please try refining your goals.",
                GenerationError("The generated schedule was empty."),
            )

        try:
            if self.session is not None:
                self.session.store.save_goal(self.session.uid, goal)
            self._replace(schedule)
        except StoreError as e:
            log.error("schedule_save_failed", error=str(e))
            return self._generation_failed(str(e), e)

        self.view = "dashboard"
        return True

    def _generation_failed(self, message: str, failure: PlannerError) -> bool:
        self.schedule = []
        self.error = message
        self.failure = failure
        self.view = "goal_setup"
        return False

    def update_status(self, target: Target, status: Status) -> list[ScheduleItem]:
        self._replace(set_status(self.schedule, target, status))
        return self.schedule

    def toggle_important(self, target: Target) -> list[ScheduleItem]:
        self._replace(toggle_important(self.schedule, target))
        return self.schedule

    def _replace(self, schedule: Sequence[ScheduleItem]) -> None:
        self.schedule = list(schedule)
        if self.on_schedule_update is not None:
            self.on_schedule_update(self.schedule)
        elif self.session is not None:
            self.session.store.save_schedule(self.session.uid, self.schedule)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    @property
    def grid(self) -> ScheduleGrid:
        return self._grid.build(self.schedule)

    @property
    def overall_progress(self) -> int:
        return overall_progress(self.schedule)

    @property
    def subject_progress(self) -> list[SubjectProgress]:
        return progress_by_subject(self.schedule)
