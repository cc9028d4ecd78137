"""Export a CSV salary summary for every teacher over a period."""

from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.compensation_engine.compensation_engine.common.datetime_utils import parse_iso_date
from src.compensation_engine.compensation_engine.main import create_container

FIELDS = [
    "teacher_id",
    "teacher_name",
    "period_start",
    "period_end",
    "number_of_students",
    "teaching_days",
    "base_salary",
    "lateness_deduction",
    "absence_deduction",
    "bonuses",
    "net_salary",
    "anomalies",
]


def main() -> int:
    parser = argparse.ArgumentParser(description="Teacher salary report (CSV)")
    parser.add_argument("start", help="Period start (YYYY-MM-DD)")
    parser.add_argument("end", help="Period end (YYYY-MM-DD)")
    parser.add_argument("-o", "--output", help="Output file; default: stdout")
    args = parser.parse_args()

    start, end = parse_iso_date(args.start), parse_iso_date(args.end)
    container = create_container()
    result = container.compensation_service.calculate_all_teacher_salaries(start, end)

    out = open(args.output, "w", newline="", encoding="utf-8") if args.output else sys.stdout
    try:
        writer = csv.DictWriter(out, fieldnames=FIELDS)
        writer.writeheader()
        for breakdown in result.breakdowns.values():
            writer.writerow(breakdown.summary_row())
    finally:
        if out is not sys.stdout:
            out.close()

    summary = result.summary
    print(
        f"Salary report {start.isoformat()}..{end.isoformat()}: "
        f"processed={summary.processed} errored={summary.errored}",
        file=sys.stderr,
    )
    for failure in summary.failures:
        print(f"  FAILED {failure.item_key}: {failure.error_type}: {failure.error_message}", file=sys.stderr)
    return 1 if summary.errored else 0


if __name__ == "__main__":
    sys.exit(main())
