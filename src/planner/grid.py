"""Schedule grid builder - projects a flat item list onto a slot x weekday table.

The grid is what every renderer consumes (the API, the CLI table):

    grid.time_slots             ["9:00 AM - 11:00 AM", "12:30 PM - 1:00 PM", ...]
    grid.cells[slot]["Monday"]  ScheduleItem or None

Building never fails. Slots that cannot be parsed sort first; when two items
share a (day, time slot) the first one encountered wins the cell.
"""

from collections.abc import Sequence

from pydantic import BaseModel

from src.planner.logging import get_logger
from src.planner.models import WEEKDAYS, ScheduleItem, SlotKey
from src.planner.timeslots import slot_start_minutes

log = get_logger(__name__)


class ScheduleGrid(BaseModel):
    """Ordered time slots plus the two-level slot -> day -> item lookup."""

    time_slots: list[str]
    cells: dict[str, dict[str, ScheduleItem | None]]

    model_config = {"frozen": True}

    def cell(self, time_slot: str, day: str) -> ScheduleItem | None:
        return self.cells.get(time_slot, {}).get(day)

    def rows(self) -> list[tuple[str, list[ScheduleItem | None]]]:
        """Row-major view: one (slot, [Monday..Sunday cells]) pair per slot."""
        return [
            (slot, [self.cells[slot][day] for day in WEEKDAYS])
            for slot in self.time_slots
        ]

    def items(self) -> list[ScheduleItem]:
        """Every placed item, slot by slot, Monday first."""
        return [item for _, row in self.rows() for item in row if item is not None]


def sort_time_slots(time_slots: Sequence[str]) -> list[str]:
    """Distinct slots ordered by start time.

    Ties (including every unparseable slot, which counts as midnight) are
    broken by the slot text so the order does not depend on input order.
    """
    distinct = set(time_slots)
    return sorted(distinct, key=lambda slot: (slot_start_minutes(slot), slot))


def build_grid(items: Sequence[ScheduleItem]) -> ScheduleGrid:
    """Build the display grid for a list of schedule items.

    Args:
        items: Schedule items in any order.

    Returns:
        ScheduleGrid with sorted slots and one cell per (slot, weekday).
    """
    first_by_key: dict[SlotKey, ScheduleItem] = {}
    collisions = 0
    for item in items:
        if item.key in first_by_key:
            collisions += 1
            continue
        first_by_key[item.key] = item

    time_slots = sort_time_slots([item.time_slot for item in items])
    cells = {
        slot: {day: first_by_key.get(SlotKey(day, slot)) for day in WEEKDAYS}
        for slot in time_slots
    }

    if collisions:
        log.warning("schedule_slot_collisions", dropped=collisions)
    log.debug("schedule_grid_built", items=len(items), time_slots=len(time_slots))
    return ScheduleGrid(time_slots=time_slots, cells=cells)


class GridBuilder:
    """Caches the last grid, keyed on the identity of the item list.

    Schedules are replaced rather than edited, so a new list object is the
    only signal that the grid needs rebuilding.
    """

    def __init__(self) -> None:
        self._source: Sequence[ScheduleItem] | None = None
        self._grid: ScheduleGrid | None = None

    def build(self, items: Sequence[ScheduleItem]) -> ScheduleGrid:
        if self._grid is None or items is not self._source:
            self._grid = build_grid(items)
            self._source = items
        return self._grid
