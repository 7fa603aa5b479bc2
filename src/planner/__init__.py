"""Schedulify study planner.

Turns a study goal into an AI-generated weekly schedule, projects it onto a
time-slot x weekday grid, tracks progress and syncs it to Google Calendar.
"""

from src.planner.app import StudyPlanner
from src.planner.grid import GridBuilder, ScheduleGrid, build_grid, sort_time_slots
from src.planner.models import ScheduleItem, SlotKey, StudyGoal
from src.planner.mutations import set_status, toggle_important
from src.planner.progress import overall_progress, progress_by_subject
from src.planner.timeslots import TimeRange, slot_start_minutes

__all__ = [
    "StudyPlanner",
    "ScheduleItem",
    "StudyGoal",
    "SlotKey",
    "ScheduleGrid",
    "GridBuilder",
    "build_grid",
    "sort_time_slots",
    "set_status",
    "toggle_important",
    "overall_progress",
    "progress_by_subject",
    "TimeRange",
    "slot_start_minutes",
]
