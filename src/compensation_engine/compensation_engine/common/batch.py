"""Thread-pool batch runner with per-item failure isolation."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Hashable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")


@dataclass(frozen=True)
class BatchFailure:
    item_key: str
    error_type: str
    error_message: str


@dataclass(frozen=True)
class BatchSummary:
    processed: int = 0
    skipped: int = 0
    errored: int = 0
    failures: tuple[BatchFailure, ...] = ()
    cancelled: bool = False

    @property
    def total(self) -> int:
        return self.processed + self.skipped + self.errored


class Skip(Exception):
    """Raised by a batch item callback to count the item as skipped."""


def run_batch(
    items: Iterable[K],
    work: Callable[[K], R],
    *,
    max_workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
    label: str = "batch",
) -> tuple[dict[K, R], BatchSummary]:
    """Run `work` for every item; one failing item never aborts the others.

    The cancellation token is checked before each item starts. Items not yet
    started when it is set are left out of the summary.
    """

    results: dict[K, R] = {}
    failures: list[BatchFailure] = []
    skipped = 0
    lock = threading.Lock()
    cancelled = threading.Event()

    def _run(item: K) -> None:
        nonlocal skipped
        if cancel_event is not None and cancel_event.is_set():
            cancelled.set()
            return
        try:
            result = work(item)
        except Skip:
            with lock:
                skipped += 1
            return
        except Exception as e:
            logger.exception("%s item %s failed", label, item)
            with lock:
                failures.append(BatchFailure(item_key=str(item), error_type=type(e).__name__, error_message=str(e)))
            return
        with lock:
            results[item] = result

    items = list(items)
    if max_workers <= 1:
        for item in items:
            _run(item)
    else:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=label) as pool:
            # _run traps item errors itself; list() surfaces anything else.
            list(pool.map(_run, items))

    failures.sort(key=lambda f: f.item_key)
    summary = BatchSummary(
        processed=len(results),
        skipped=skipped,
        errored=len(failures),
        failures=tuple(failures),
        cancelled=cancelled.is_set(),
    )
    logger.info(
        "%s finished: processed=%d skipped=%d errored=%d cancelled=%s",
        label,
        summary.processed,
        summary.skipped,
        summary.errored,
        summary.cancelled,
    )
    return results, summary
