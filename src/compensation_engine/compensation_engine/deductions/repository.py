from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import DeductionType
from .model import DeductionRecord


class DeductionRecordRepository(Protocol):
    def list_records(
        self,
        *,
        teacher_id: str,
        start: date,
        end: date,
        deduction_type: Optional[DeductionType] = None,
    ) -> Sequence[DeductionRecord]:
        raise NotImplementedError

    def has_records_for(self, *, teacher_id: str, day: date, deduction_type: DeductionType) -> bool:
        raise NotImplementedError

    def create_records(self, records: Sequence[DeductionRecord]) -> int:
        raise NotImplementedError

    def mark_waived(self, record_id: int, *, reason: str, waived_at: datetime, admin_id: str) -> bool:
        """Set amount to 0, keeping the original amount and waiver audit fields."""

        raise NotImplementedError
