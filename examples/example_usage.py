"""Example: compute one teacher's pay through the service layer."""

import importlib
from datetime import date

from config import get_settings_module

from src.compensation_engine.compensation_engine.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    breakdown = container.compensation_service.calculate_teacher_salary("T-001", date(2024, 9, 1), date(2024, 9, 30))
    print(breakdown.summary_row())
    for item in breakdown.lateness_items:
        print(item.day, item.student_name, item.minutes_late, item.tier_label, item.deduction_amount)
    for item in breakdown.absence_items:
        print(item.day, item.student_name, item.reason_code.value, item.deduction_amount)


if __name__ == "__main__":
    main()
