"""Record lateness deductions for all teachers.

Without arguments it processes today; `--days N` processes the N days ending
today, and an explicit date processes just that day. Students already recorded
for a teacher and day are left alone, so the job can run several times a day.
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
    parser = argparse.ArgumentParser(description="Detect and record teacher lateness")
    parser.add_argument("date", nargs="?", help="Day to process (YYYY-MM-DD); default: today")
    parser.add_argument("--days", type=int, default=1, help="Number of days ending today to process")
    parser.add_argument("--teacher", action="append", dest="teachers", help="Only process this teacher (repeatable)")
    args = parser.parse_args()

    container = create_container()
    service = container.lateness_processing_service
    today = today_local()

    days = [parse_iso_date(args.date)] if args.date else service.recent_days(today, args.days)
    if not days:
        print("Nothing to process")
        return 0
    summary = service.process_lateness(days, today=today, teacher_ids=args.teachers)

    print(
        f"Lateness {days[0].isoformat()}..{days[-1].isoformat()}: "
        f"processed={summary.processed} skipped={summary.skipped} errored={summary.errored}"
    )
    for failure in summary.failures:
        print(f"  FAILED {failure.item_key}: {failure.error_type}: {failure.error_message}")
    return 1 if summary.errored else 0


if __name__ == "__main__":
    sys.exit(main())
