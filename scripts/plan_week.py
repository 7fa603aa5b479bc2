"""Generate a weekly study schedule with Gemini and print it as a grid or JSON.

Run with: python scripts/plan_week.py --exam "JEE Main" --subjects "Physics, Maths" --target-date 2027-04-01
Table:    python scripts/plan_week.py ... --table
Save:     python scripts/plan_week.py ... --output data/schedule.json
Store:    python scripts/plan_week.py ... --uid <firebase uid>   # also writes to Firestore

Exit codes:
  0 = success (JSON or table on stdout, or file written)
  1 = error (message on stderr)
"""

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.planner.config import get_config  # noqa: E402
from src.planner.errors import PlannerError  # noqa: E402
from src.planner.generation import ScheduleGenerator  # noqa: E402
from src.planner.grid import ScheduleGrid, build_grid  # noqa: E402
from src.planner.logging import setup_logging  # noqa: E402
from src.planner.models import DEFAULT_CLASS_NAME, WEEKDAYS, StudyGoal  # noqa: E402
from src.planner.progress import overall_progress  # noqa: E402
from src.planner.syllabus import format_custom_syllabus, syllabus_for  # noqa: E402


def _log(msg: str) -> None:
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a weekly study schedule")
    parser.add_argument("--exam", required=True, help="Exam being prepared for")
    parser.add_argument(
        "--class", dest="class_name", default=DEFAULT_CLASS_NAME,
        help=f"Class / track (default: {DEFAULT_CLASS_NAME})",
    )
    parser.add_argument("--subjects", required=True, help="Comma-separated subjects")
    parser.add_argument("--target-date", required=True, help="Exam date, YYYY-MM-DD")
    parser.add_argument(
        "--topics", default="",
        help="Comma-separated syllabus topics to cover (see --list-topics)",
    )
    parser.add_argument("--coaching", default="", help="Fixed coaching timings to avoid")
    parser.add_argument("--table", action="store_true", help="Print a grid instead of JSON")
    parser.add_argument("--output", help="Write goal + schedule JSON to this path")
    parser.add_argument("--uid", help="Also save goal and schedule to Firestore for this user")
    parser.add_argument(
        "--list-topics", action="store_true",
        help="Print the syllabus catalogue for --class and exit",
    )
    return parser.parse_args()


def _format_grid(grid: ScheduleGrid) -> str:
    """Format a schedule grid as a human-readable table.

    Columns: Time | Monday .. Sunday
    """
    if not grid.time_slots:
        return "(no sessions scheduled)"

    headers = ["Time", *WEEKDAYS]

    rows = []
    for slot, cells in grid.rows():
        rows.append(
            [slot]
            + [
                f"{'*' if item.important else ''}{item.activity}: {item.subject}"
                if item else "-"
                for item in cells
            ]
        )

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [
        " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)) for row in rows
    ]

    return "\n".join([header_line, separator, *row_lines])


def main(args: argparse.Namespace) -> None:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    if args.list_topics:
        catalogue = syllabus_for(args.class_name)
        if not catalogue:
            _log(f"No syllabus catalogued for {args.class_name!r}")
            sys.exit(1)
        for subject, topics in catalogue.items():
            print(f"{subject}:")
            for topic in topics:
                print(f"  - {topic}")
        return

    topics = [t.strip() for t in args.topics.split(",") if t.strip()]
    goal = StudyGoal(
        exam=args.exam,
        class_name=args.class_name,
        subjects=args.subjects,
        target_date=args.target_date,
        custom_syllabus=format_custom_syllabus(topics) if topics else "",
        coaching_timings=args.coaching,
    )

    _log(f"plan_week: generating schedule for {goal.exam} ({', '.join(goal.subjects)})")
    items = ScheduleGenerator(config=config).generate_schedule(goal)
    grid = build_grid(items)
    _log(f"  {len(items)} sessions across {len(grid.time_slots)} time slots")

    if args.uid:
        from src.planner.store import PlannerStore

        store = PlannerStore()
        store.save_goal(args.uid, goal)
        store.save_schedule(args.uid, items)
        _log(f"  Saved to Firestore for user {args.uid}")

    result = {
        "goal": goal.model_dump(mode="json", by_alias=True),
        "schedule": [item.model_dump(mode="json", by_alias=True) for item in items],
        "progress": overall_progress(items),
    }

    if args.output:
        output_file = Path(args.output)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(json.dumps(result, indent=2, ensure_ascii=False), encoding="utf-8")
        _log(f"  Wrote {output_file}")

    if args.table:
        print(_format_grid(grid))
    elif not args.output:
        print(json.dumps(result, indent=2, ensure_ascii=False))

    _log("plan_week: done")


if __name__ == "__main__":
    args = _parse_args()
    try:
        main(args)
    except (PlannerError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
