from __future__ import annotations

from datetime import date
from typing import Protocol

from .model import PolicySnapshot


class PolicyRepository(Protocol):
    def load_snapshot(self, *, as_of: date) -> PolicySnapshot:
        """Load raw policy rows.

        The snapshot's `version` must change whenever any policy row changes,
        so cached results computed under an older policy are not served.
        """

        raise NotImplementedError
