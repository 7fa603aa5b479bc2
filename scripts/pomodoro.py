"""Run a pomodoro timer in the terminal, recording finished focus sessions.

Run with: python scripts/pomodoro.py                      # one focus session
Cycles:   python scripts/pomodoro.py --cycles 4           # 4 pomodoros with breaks between
Store:    python scripts/pomodoro.py --uid <firebase uid> # record each pomodoro in Firestore

Durations come from POMODORO_MINUTES / SHORT_BREAK_MINUTES / LONG_BREAK_MINUTES.

Exit codes:
  0 = all cycles finished (or interrupted with Ctrl+C)
  1 = error (message on stderr)
"""

import argparse
import os
import sys
import time
from collections.abc import Callable

from dotenv import load_dotenv

load_dotenv()

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.planner.config import get_config  # noqa: E402
from src.planner.errors import PlannerError  # noqa: E402
from src.planner.logging import setup_logging  # noqa: E402
from src.planner.pomodoro import PomodoroTimer  # noqa: E402


def _log(msg: str) -> None:
    print(msg, file=sys.stderr)


def run(
    timer: PomodoroTimer,
    cycles: int,
    sleep: Callable[[float], object] = time.sleep,
    out: Callable[[str], object] = _log,
) -> int:
    """Tick *timer* once a second until *cycles* pomodoros have finished.

    Breaks start automatically after each pomodoro; the final break is not
    run. Returns the number of pomodoros completed.
    """
    timer.start()
    out(f"{timer.title} {timer.display}")
    while timer.completed_count < cycles:
        sleep(1)
        timer.tick()
        if timer.active:
            if timer.time_left % 60 == 0:
                out(f"  {timer.display}")
            continue
        if timer.completed_count >= cycles:
            break
        timer.start()
        out(f"{timer.title} {timer.display}")
    return timer.completed_count


def main(args: argparse.Namespace) -> None:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    on_complete = None
    if args.uid:
        from src.planner.store import PlannerStore

        store = PlannerStore()

        def on_complete(minutes: int) -> None:
            store.add_pomodoro_session(args.uid, minutes)
            _log(f"  Recorded {minutes} min session for {args.uid}")

    timer = PomodoroTimer(
        on_complete=on_complete,
        on_alarm=lambda mode: _log("\a  Time's up!"),
        config=config,
    )
    try:
        completed = run(timer, args.cycles)
    except KeyboardInterrupt:
        completed = timer.completed_count
        _log("\n  Stopped.")
    _log(f"pomodoro: {completed} session(s) completed")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Terminal pomodoro timer")
    parser.add_argument("--cycles", type=int, default=1, help="Pomodoros to run (default: 1)")
    parser.add_argument("--uid", help="Record finished pomodoros in Firestore for this user")
    try:
        main(parser.parse_args())
    except (PlannerError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
