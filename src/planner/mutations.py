"""Single-field schedule edits that return a new list.

Two ways to address the target:

- a ``ScheduleItem``: matched by identity, so the exact instance taken from
  the list (or grid) is edited even when another item shares its slot;
- a ``SlotKey`` / ``(day, time_slot)`` tuple: the first item in that slot,
  for callers holding reloaded data rather than the original objects.

Neither function persists anything; hand the result to the schedule update
callback.
"""

from collections.abc import Sequence

from src.planner.logging import get_logger
from src.planner.models import STATUSES, ScheduleItem, SlotKey, Status

log = get_logger(__name__)

Target = ScheduleItem | SlotKey | tuple[str, str]


def target_key(target: Target) -> SlotKey:
    if isinstance(target, ScheduleItem):
        return target.key
    return SlotKey(*target)


def _matches(item: ScheduleItem, target: Target) -> bool:
    if isinstance(target, ScheduleItem):
        return item is target
    return item.key == target_key(target)


def _replace_first(
    items: Sequence[ScheduleItem], target: Target, updater
) -> list[ScheduleItem]:
    updated = list(items)
    for index, item in enumerate(updated):
        if _matches(item, target):
            updated[index] = updater(item)
            return updated

    key = target_key(target)
    log.debug("schedule_target_not_found", day=key.day, time_slot=key.time_slot)
    return updated


def set_status(
    items: Sequence[ScheduleItem], target: Target, status: Status
) -> list[ScheduleItem]:
    """Return a copy of *items* with the target's status replaced.

    Raises:
        ValueError: If *status* is not a known status.
    """
    if status not in STATUSES:
        raise ValueError(f"Unknown status {status!r}. Valid: {list(STATUSES)}")

    return _replace_first(
        items,
        target,
        lambda item: item.model_copy(update={"status": status}),
    )


def toggle_important(
    items: Sequence[ScheduleItem], target: Target
) -> list[ScheduleItem]:
    """Return a copy of *items* with the target's importance flag flipped."""
    return _replace_first(
        items,
        target,
        lambda item: item.model_copy(update={"important": not item.important}),
    )
