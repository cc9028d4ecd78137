from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import DeductionType
from .model import Waiver


class WaiverRepository(Protocol):
    def list_waivers(
        self,
        *,
        teacher_id: str,
        start: date,
        end: date,
        deduction_type: Optional[DeductionType] = None,
    ) -> Sequence[Waiver]:
        """Waivers naming the teacher whose range overlaps [start, end]."""

        raise NotImplementedError

    def create_waiver(self, waiver: Waiver) -> int:
        raise NotImplementedError
