"""Bounded-concurrency batch execution.

A fixed pool of worker threads pulls item indices from a shared cursor and
processes one item at a time. Items are never pre-assigned to workers, so a
slow item only delays the worker that picked it up. Result slot ``i`` always
holds the outcome of input ``i``.

The executor is generic over the work-unit type: index synchronization runs
one unit per collection prefix, ``render-many`` one unit per manifest item.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from icns.exceptions import IcnsError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ItemStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class BatchItem(Generic[T, R]):
    index: int
    input: T
    status: ItemStatus = ItemStatus.SKIPPED
    output: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status is ItemStatus.OK


@dataclass
class BatchReport(Generic[T, R]):
    items: list[BatchItem[T, R]]
    concurrency: int
    fail_fast: bool
    duration_ms: int = 0

    total: int = field(init=False)
    attempted: int = field(init=False)
    succeeded: int = field(init=False)
    failed: int = field(init=False)
    skipped: int = field(init=False)

    def __post_init__(self) -> None:
        self.total = len(self.items)
        self.succeeded = sum(1 for item in self.items if item.status is ItemStatus.OK)
        self.failed = sum(1 for item in self.items if item.status is ItemStatus.FAILED)
        self.skipped = sum(1 for item in self.items if item.status is ItemStatus.SKIPPED)
        self.attempted = self.succeeded + self.failed

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.skipped == 0

    def counts(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "failFast": self.fail_fast,
            "concurrency": self.concurrency,
            "durationMs": self.duration_ms,
        }


def clamp_concurrency(concurrency: int, item_count: int) -> int:
    """Clamp ``concurrency`` to ``1..item_count`` (at least 1)."""
    return max(1, min(int(concurrency), max(1, item_count)))


def _notify(callback: Callable[[BatchItem[T, R]], None] | None, item: BatchItem[T, R]) -> None:
    if callback is None:
        return
    try:
        callback(item)
    except Exception:
        logger.exception("Batch callback failed for item #%d", item.index + 1)


def _run_one(item: BatchItem[T, R], worker: Callable[[T], R]) -> None:
    try:
        item.output = worker(item.input)
        item.status = ItemStatus.OK
    except IcnsError as e:
        item.error = e
        item.status = ItemStatus.FAILED
        logger.info("Batch item #%d failed: %s", item.index + 1, e.message)
    except Exception as e:
        item.error = e
        item.status = ItemStatus.FAILED
        logger.exception("Batch item #%d raised an unexpected error", item.index + 1)


def run_batch(
    items: Sequence[T],
    concurrency: int,
    worker: Callable[[T], R],
    fail_fast: bool = False,
    on_item_done: Callable[[BatchItem[T, R]], None] | None = None,
) -> BatchReport[T, R]:
    """Run ``worker`` over ``items`` and report every outcome positionally.

    Args:
        items: Work units, in the order results must be reported.
        concurrency: Maximum number of items processed at the same time.
        worker: Callable processing one unit. Exceptions it raises are
            recorded on the item, never propagated.
        fail_fast: Process strictly sequentially and stop at the first
            failure; remaining items are reported as skipped.
        on_item_done: Optional callback invoked after each attempted item
            (from the worker thread), e.g. to advance a progress bar.
            Exceptions it raises are logged and ignored.

    Returns:
        BatchReport with exactly ``len(items)`` entries.
    """
    started = time.monotonic()
    slots: list[BatchItem[T, R]] = [BatchItem(index=i, input=value) for i, value in enumerate(items)]

    if fail_fast:
        effective = 1
        for slot in slots:
            _run_one(slot, worker)
            _notify(on_item_done, slot)
            if not slot.ok:
                logger.info("Fail-fast: skipping %d remaining item(s)", len(slots) - slot.index - 1)
                break
    else:
        effective = clamp_concurrency(concurrency, len(slots))
        cursor = 0
        lock = threading.Lock()

        def next_index() -> int | None:
            nonlocal cursor
            with lock:
                if cursor >= len(slots):
                    return None
                index = cursor
                cursor += 1
                return index

        def runner() -> None:
            while (index := next_index()) is not None:
                _run_one(slots[index], worker)
                _notify(on_item_done, slots[index])

        if slots:
            with concurrent.futures.ThreadPoolExecutor(max_workers=effective) as executor:
                futures = [executor.submit(runner) for _ in range(effective)]
                for future in concurrent.futures.as_completed(futures):
                    future.result()

    duration_ms = int((time.monotonic() - started) * 1000)
    report = BatchReport(items=slots, concurrency=effective, fail_fast=fail_fast, duration_ms=duration_ms)
    logger.debug(
        "Batch finished: %d ok, %d failed, %d skipped in %d ms",
        report.succeeded,
        report.failed,
        report.skipped,
        duration_ms,
    )
    return report
