from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import BonusRecord


class BonusRepository(Protocol):
    def list_bonuses(self, *, teacher_id: str, start: date, end: date) -> Sequence[BonusRecord]:
        """Approved bonuses awarded inside [start, end]."""

        raise NotImplementedError
