"""Tests for the schedule grid builder."""

import random

from src.planner.grid import GridBuilder, build_grid, sort_time_slots
from src.planner.models import WEEKDAYS, ScheduleItem


def _item(day, slot, subject="Maths", activity="Study"):
    return ScheduleItem(day=day, time_slot=slot, subject=subject, topic="T", activity=activity)


class TestSortTimeSlots:
    def test_orders_by_start_time(self):
        slots = ["1:00 PM - 2:00 PM", "9:00 AM - 11:00 AM", "12:30 PM - 1:00 PM"]
        assert sort_time_slots(slots) == [
            "9:00 AM - 11:00 AM",
            "12:30 PM - 1:00 PM",
            "1:00 PM - 2:00 PM",
        ]

    def test_deduplicates(self):
        assert sort_time_slots(["9:00 AM - 10:00 AM"] * 3) == ["9:00 AM - 10:00 AM"]

    def test_unparseable_slots_sort_first(self):
        result = sort_time_slots(["9:00 AM - 10:00 AM", "Evening"])
        assert result == ["Evening", "9:00 AM - 10:00 AM"]


class TestBuildGrid:
    def test_places_item_in_its_own_cell_only(self):
        monday = _item("Monday", "9:00 AM - 11:00 AM")
        grid = build_grid([monday])

        assert grid.time_slots == ["9:00 AM - 11:00 AM"]
        assert grid.cells["9:00 AM - 11:00 AM"]["Monday"] == monday
        for day in WEEKDAYS:
            if day != "Monday":
                assert grid.cells["9:00 AM - 11:00 AM"][day] is None

    def test_every_item_placed_once(self, items):
        grid = build_grid(items)
        assert sorted(grid.items(), key=lambda i: i.key) == sorted(items, key=lambda i: i.key)
        for item in items:
            assert grid.cell(item.time_slot, item.day) == item

    def test_first_item_wins_on_collision(self):
        first = _item("Monday", "9:00 AM - 10:00 AM", subject="Maths")
        second = _item("Monday", "9:00 AM - 10:00 AM", subject="Science")
        grid = build_grid([first, second])
        assert grid.cell("9:00 AM - 10:00 AM", "Monday").subject == "Maths"
        assert len(grid.items()) == 1

    def test_order_independent(self, items):
        shuffled = list(items)
        random.Random(7).shuffle(shuffled)
        assert build_grid(items) == build_grid(shuffled)

    def test_empty_schedule(self):
        grid = build_grid([])
        assert grid.time_slots == []
        assert grid.rows() == []

    def test_rows_follow_weekday_order(self, items):
        grid = build_grid(items)
        slot, cells = grid.rows()[0]
        assert slot == "9:00 AM - 11:00 AM"
        assert len(cells) == 7
        assert cells[0].day == "Monday"
        assert cells[6].day == "Sunday"


class TestGridBuilder:
    def test_reuses_grid_for_same_list(self, items):
        builder = GridBuilder()
        assert builder.build(items) is builder.build(items)

    def test_rebuilds_for_new_list(self, items):
        builder = GridBuilder()
        first = builder.build(items)
        second = builder.build(list(items))
        assert first is not second
        assert first == second
