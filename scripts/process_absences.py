"""Materialize absence deduction records for all teachers.

Meant to run once a day (e.g. from cron shortly after midnight). Without
arguments it processes yesterday; `--days N` processes the trailing N days,
and an explicit date processes just that day. Teacher/day pairs that already
have absence records are skipped, so re-running is safe.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.compensation_engine.compensation_engine.common.datetime_utils import parse_iso_date, today_local
from src.compensation_engine.compensation_engine.main import create_container


def main() -> int:
    parser = argparse.ArgumentParser(description="Detect and record teacher absences")
    parser.add_argument("date", nargs="?", help="Day to process (YYYY-MM-DD); default: yesterday")
    parser.add_argument("--days", type=int, default=1, help="Number of trailing days to process")
    parser.add_argument("--teacher", action="append", dest="teachers", help="Only process this teacher (repeatable)")
    args = parser.parse_args()

    container = create_container()
    service = container.absence_processing_service
    today = today_local()

    days = [parse_iso_date(args.date)] if args.date else service.trailing_days(today, args.days)
    if not days:
        print("Nothing to process")
        return 0
    summary = service.process_absences(days, today=today, teacher_ids=args.teachers)

    print(
        f"Absences {days[0].isoformat()}..{days[-1].isoformat()}: "
        f"processed={summary.processed} skipped={summary.skipped} errored={summary.errored}"
    )
    for failure in summary.failures:
        print(f"  FAILED {failure.item_key}: {failure.error_type}: {failure.error_message}")
    return 1 if summary.errored else 0


if __name__ == "__main__":
    sys.exit(main())
