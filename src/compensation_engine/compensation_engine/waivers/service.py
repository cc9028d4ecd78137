from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Union

from ..cache.service import ResultCache
from ..common.datetime_utils import now_local
from ..common.validators import require_date_range, require_non_empty
from ..core.enums import DeductionType
from ..core.exceptions import ValidationError
from ..deductions.repository import DeductionRecordRepository
from .model import Waiver, WaiverIndex
from .repository import WaiverRepository

logger = logging.getLogger(__name__)


class WaiverService:
    def __init__(
        self,
        waivers: WaiverRepository,
        records: DeductionRecordRepository,
        *,
        cache: Optional[ResultCache] = None,
    ):
        self._waivers = waivers
        self._records = records
        self._cache = cache

    def index_for(self, teacher_id: str, start: date, end: date) -> WaiverIndex:
        return WaiverIndex(teacher_id, self._waivers.list_waivers(teacher_id=teacher_id, start=start, end=end))

    def is_waived(
        self, teacher_id: str, day: date, deduction_type: DeductionType
    ) -> tuple[bool, Optional[str]]:
        waivers = self._waivers.list_waivers(teacher_id=teacher_id, start=day, end=day, deduction_type=deduction_type)
        return WaiverIndex(teacher_id, waivers).is_waived(day, deduction_type)

    def apply_waiver(
        self,
        teacher_id: str,
        start: date,
        end: date,
        deduction_type: Union[DeductionType, str],
        reason: str,
        *,
        admin_id: str,
        now: Optional[datetime] = None,
    ) -> int:
        """Store a waiver and zero the matching materialized records.

        Records are never deleted: each adjusted record keeps its original
        amount, the waiver reason, the timestamp and the admin. Returns the
        number of records adjusted.
        """

        teacher_id = require_non_empty(teacher_id, "teacher_id")
        reason = require_non_empty(reason, "reason")
        admin_id = require_non_empty(admin_id, "admin_id")
        require_date_range(start, end)
        try:
            deduction_type = DeductionType(deduction_type)
        except ValueError as e:
            raise ValidationError(f"Unknown deduction type: {deduction_type!r}") from e

        now = now or now_local()
        waiver_id = self._waivers.create_waiver(
            Waiver(
                waiver_id=None,
                teacher_ids=frozenset({teacher_id}),
                deduction_type=deduction_type,
                start_date=start,
                end_date=end,
                reason=reason,
                created_by=admin_id,
                created_at=now,
            )
        )

        adjusted = 0
        records = self._records.list_records(teacher_id=teacher_id, start=start, end=end, deduction_type=deduction_type)
        for record in records:
            if record.record_id is None or record.amount == 0:
                continue
            if self._records.mark_waived(record.record_id, reason=reason, waived_at=now, admin_id=admin_id):
                adjusted += 1

        if self._cache is not None:
            self._cache.invalidate_teacher(teacher_id)

        logger.info(
            "Waiver %s applied by %s: teacher=%s type=%s %s..%s, %d record(s) zeroed",
            waiver_id,
            admin_id,
            teacher_id,
            deduction_type.value,
            start.isoformat(),
            end.isoformat(),
            adjusted,
        )
        return adjusted
