"""
Sync a generated study schedule to Google Calendar as weekly recurring events.

Reads the goal and schedule either from a JSON file written by plan_week.py
or from Firestore for a user, then replaces previously synced events with
one recurring event per schedule item, repeating until the exam date.

Usage:
    python scripts/sync_calendar.py --file data/schedule.json              # dry-run (default)
    python scripts/sync_calendar.py --file data/schedule.json --execute    # clear old + create events
    python scripts/sync_calendar.py --uid <firebase uid> --clear-only      # just remove synced events

Events are tagged with the owner uid (--uid, or --owner with --file), and only
that owner's previously synced events are cleared.

Pre-requisites:
    - GOOGLE_CALENDAR_CREDENTIALS points at an authorized user token file
      with the calendar.events scope
"""

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.planner.calendar_sync import CalendarSync, SyncReport, item_label  # noqa: E402
from src.planner.config import get_config  # noqa: E402
from src.planner.errors import PlannerError  # noqa: E402
from src.planner.logging import setup_logging  # noqa: E402
from src.planner.models import ScheduleItem, StudyGoal  # noqa: E402

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
REPORTS_DIR = PROJECT_ROOT / "reports"


def load_from_file(path: Path) -> tuple[StudyGoal, list[ScheduleItem]]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    goal = StudyGoal.model_validate(data["goal"])
    items = [ScheduleItem.model_validate(raw) for raw in data["schedule"]]
    return goal, items


def load_from_store(uid: str) -> tuple[StudyGoal, list[ScheduleItem]]:
    from src.planner.store import PlannerStore

    store = PlannerStore()
    goal = store.load_goal(uid)
    if goal is None:
        raise PlannerError(f"No study goal saved for user {uid}")
    return goal, store.load_schedule(uid)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main():
    parser = argparse.ArgumentParser(
        description="Sync a study schedule to Google Calendar"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Goal + schedule JSON from plan_week.py")
    source.add_argument("--uid", help="Load goal + schedule from Firestore")
    parser.add_argument(
        "--owner", default="local",
        help="Owner tag for --file syncs (default: local); --uid syncs use the uid",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--execute", action="store_true",
        help="Clear old events and create new recurring events",
    )
    group.add_argument(
        "--clear-only", action="store_true",
        help="Only remove previously synced events (no creation)",
    )
    args = parser.parse_args()

    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    mode = "execute" if args.execute else ("clear-only" if args.clear_only else "dry-run")

    print("=" * 60)
    print(f"CALENDAR SYNC [{mode.upper()}]")
    print("=" * 60)

    goal, items = load_from_file(args.file) if args.file else load_from_store(args.uid)
    print(f"Loaded {len(items)} sessions for {goal.exam} (until {goal.target_date})\n")

    sync = CalendarSync(args.uid or args.owner, config=config)

    if mode == "clear-only":
        cleared, errors = sync.clear_synced_events()
        report = SyncReport(mode=mode, cleared=cleared, errors=errors)
    else:
        report = sync.sync(items, goal, dry_run=(mode == "dry-run"))

    if mode == "dry-run":
        print("--- DRY RUN -- no events created ---\n")
        for event in report.events:
            print(f"  {event['start']['dateTime']}  {event['summary']}")
        if report.skipped:
            print(f"\n  Skipped (unparseable slot or after exam): {', '.join(report.skipped)}")
        print("\nRun with --execute to create events, or --clear-only to remove them.")
        return

    # Save report
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y-%m-%d_%H%M%S")
    report_path = REPORTS_DIR / f"calendar_sync_{ts}.json"
    payload = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "exam": goal.exam,
        "slots": [item_label(item) for item in items],
        **report.model_dump(exclude={"events"}),
    }
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)

    print(f"\n{'=' * 60}")
    print("SUMMARY")
    print(f"{'=' * 60}")
    print(f"  Cleared:  {report.cleared}")
    print(f"  Created:  {report.created}")
    print(f"  Failed:   {report.failed}")
    for error in report.errors:
        print(f"    {error}")
    print(f"\nReport: {report_path}")


if __name__ == "__main__":
    try:
        main()
    except (PlannerError, OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
