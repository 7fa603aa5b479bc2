"""Completion statistics for the progress dashboard."""

from collections.abc import Sequence

from pydantic import BaseModel

from src.planner.models import ScheduleItem


class SubjectProgress(BaseModel):
    subject: str
    completed: int
    total: int
    percentage: int


def _percent(completed: int, total: int) -> int:
    # Integer round-half-up, so 1 of 8 reads 13%
    if total == 0:
        return 0
    return (200 * completed + total) // (2 * total)


def overall_progress(items: Sequence[ScheduleItem]) -> int:
    """Percentage of items marked Completed (0 for an empty schedule)."""
    completed = sum(1 for item in items if item.status == "Completed")
    return _percent(completed, len(items))


def progress_by_subject(items: Sequence[ScheduleItem]) -> list[SubjectProgress]:
    """Per-subject completion, subjects in the order they first appear."""
    grouped: dict[str, list[ScheduleItem]] = {}
    for item in items:
        grouped.setdefault(item.subject, []).append(item)

    result: list[SubjectProgress] = []
    for subject, subject_items in grouped.items():
        completed = sum(1 for item in subject_items if item.status == "Completed")
        result.append(
            SubjectProgress(
                subject=subject,
                completed=completed,
                total=len(subject_items),
                percentage=_percent(completed, len(subject_items)),
            )
        )
    return result
