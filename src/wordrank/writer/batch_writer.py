"""
Batched writes with bounded concurrency and retries of unprocessed items.
"""
import logging
import threading
import traceback
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from wordrank.common.config import (
    BACKOFF_BASE, BACKOFF_MAX, BATCH_WRITE_LIMIT,
    DEFAULT_MAX_RETRIES, DEFAULT_MAX_WORKERS
)
from wordrank.common.errors import RetryExhaustedError, StoreRejectedError, StoreTransportError
from wordrank.common.utils import backoff_delay, chunked

logger = logging.getLogger(__name__)

CANCELLED = 'cancelled'
# Rejections that can be narrowed down to the offending item by resubmitting items alone
ITEM_LEVEL_CODES = ('ValidationException',)
UNPROCESSED = 'unprocessed by store after retries'


class BatchState(Enum):
    PENDING = 'pending'
    SUBMITTED = 'submitted'
    COMPLETED = 'completed'
    PARTIAL_FAILURE = 'partial_failure'
    FAILED = 'failed'


@dataclass
class FailedRecord:
    """A payload that could not be written, with the last error seen for it."""
    payload: Any
    error: str


@dataclass
class Batch:
    batch_id: int
    items: List[tuple]  # (payload, request) pairs
    state: BatchState = BatchState.PENDING
    attempts: int = 0


@dataclass
class BatchOutcome:
    batch_id: int
    state: BatchState
    attempts: int
    written: int
    failed: List[FailedRecord] = field(default_factory=list)


@dataclass
class WriteReport:
    """Aggregated result of writing one payload stream to one table."""
    table: str
    submitted: int = 0
    written: int = 0
    duplicates: int = 0
    batches: int = 0
    failed: List[FailedRecord] = field(default_factory=list)

    @property
    def ok(self):
        return not self.failed


class BatchWriter:
    """
    Writes payloads to a store table in size-bounded batches.

    Up to max_workers batches are in flight at once. Items the store reports
    as unprocessed, or whole batches whose call failed, are resubmitted after
    an exponential backoff until max_retries is used up.
    """

    def __init__(self, store, table_name,
                 to_request: Callable[[Any], Dict] = lambda p: p.to_put_request(),
                 key_of: Callable[[Any], tuple] = lambda p: p.key(),
                 batch_size=BATCH_WRITE_LIMIT, max_workers=DEFAULT_MAX_WORKERS,
                 max_retries=DEFAULT_MAX_RETRIES, backoff_base=BACKOFF_BASE,
                 backoff_max=BACKOFF_MAX, stop_event: Optional[threading.Event] = None):
        if not 1 <= batch_size <= BATCH_WRITE_LIMIT:
            raise ValueError(f"batch_size must be between 1 and {BATCH_WRITE_LIMIT}, got {batch_size}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        if max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {max_retries}")
        self.store = store
        self.table_name = table_name
        self.to_request = to_request
        self.key_of = key_of
        self.batch_size = batch_size
        self.max_workers = max_workers
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.stop_event = stop_event or threading.Event()

    def make_batches(self, payloads):
        """
        Convert payloads to requests and split them into batches.

        Payloads sharing a store key are collapsed (last value wins) since a
        single BatchWriteItem call rejects duplicate keys.

        Returns:
            (batches, duplicates_collapsed)
        """
        unique = {}
        total = 0
        for payload in payloads:
            total += 1
            unique[self.key_of(payload)] = (payload, self.to_request(payload))

        items = list(unique.values())
        batches = [Batch(batch_id=i, items=chunk)
                   for i, chunk in enumerate(chunked(items, self.batch_size))]
        return batches, total - len(items)

    def write(self, payloads, raise_on_failure=False) -> WriteReport:
        """
        Write every payload and report what was written and what failed.

        Raises:
            RetryExhaustedError: only when raise_on_failure is set and some
                payloads could not be written.
        """
        batches, duplicates = self.make_batches(payloads)
        report = WriteReport(
            table=self.table_name,
            submitted=sum(len(b.items) for b in batches),
            duplicates=duplicates,
            batches=len(batches),
        )
        if duplicates:
            logger.info(f"Collapsed {duplicates} duplicate item(s) for table {self.table_name}")
        logger.info(f"Writing {report.submitted} item(s) to {self.table_name} in {len(batches)} batch(es) "
                    f"with {self.max_workers} worker(s)")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._run_batch, batch) for batch in batches]
            for batch, future in zip(batches, futures):
                try:
                    outcome = future.result()
                except Exception as e:
                    logger.error(f"Unexpected error writing batch {batch.batch_id}: {e}")
                    logger.error(traceback.format_exc())
                    outcome = BatchOutcome(
                        batch_id=batch.batch_id, state=BatchState.FAILED, attempts=batch.attempts,
                        written=0, failed=[FailedRecord(payload, str(e)) for payload, _ in batch.items],
                    )
                report.written += outcome.written
                report.failed.extend(outcome.failed)

        logger.info(f"Table {self.table_name}: {report.written} written, {len(report.failed)} failed")
        if raise_on_failure and report.failed:
            raise RetryExhaustedError(report.failed)
        return report

    def _run_batch(self, batch: Batch) -> BatchOutcome:
        """Drive one batch through submit/retry until it completes or fails."""
        remaining = batch.items
        written = 0
        last_error = UNPROCESSED

        if self.stop_event.is_set():
            logger.warning(f"Batch {batch.batch_id} abandoned before dispatch")
            return self._finish(batch, BatchState.FAILED, written, remaining, CANCELLED)

        while True:
            batch.state = BatchState.SUBMITTED
            batch.attempts += 1
            requests = [request for _, request in remaining]
            try:
                unprocessed = self.store.batch_write(self.table_name, requests)
            except StoreRejectedError as e:
                return self._handle_rejection(batch, written, remaining, e)
            except StoreTransportError as e:
                logger.warning(f"Batch {batch.batch_id} attempt {batch.attempts} failed: {e}")
                last_error = str(e)
                unprocessed = requests
            else:
                last_error = UNPROCESSED

            still_pending = [(p, r) for p, r in remaining if r in unprocessed]
            written += len(remaining) - len(still_pending)
            remaining = still_pending

            if not remaining:
                return self._finish(batch, BatchState.COMPLETED, written, remaining, None)

            retry = batch.attempts  # 1-based number of the retry about to happen
            if retry > self.max_retries:
                logger.error(f"Batch {batch.batch_id}: {len(remaining)} item(s) still unprocessed "
                             f"after {self.max_retries} retries")
                return self._finish(batch, BatchState.FAILED, written, remaining, last_error)

            batch.state = BatchState.PARTIAL_FAILURE
            delay = backoff_delay(retry, self.backoff_base, self.backoff_max)
            logger.info(f"Batch {batch.batch_id}: {len(remaining)} item(s) unprocessed, "
                        f"retry {retry}/{self.max_retries} in {delay:.2f}s")
            if self.stop_event.wait(delay):
                logger.warning(f"Batch {batch.batch_id} abandoned during backoff")
                return self._finish(batch, BatchState.FAILED, written, remaining, CANCELLED)

    def _handle_rejection(self, batch, written, remaining, error):
        """
        Settle a batch the store refused outright.

        A validation failure names no item, so a multi-item batch is split and
        each item resubmitted alone. Only the items that are rejected on their
        own end up failed.
        """
        if len(remaining) == 1 or error.code not in ITEM_LEVEL_CODES:
            logger.error(f"Batch {batch.batch_id}: {len(remaining)} item(s) rejected: {error}")
            return self._finish(batch, BatchState.FAILED, written, remaining, str(error))

        logger.warning(f"Batch {batch.batch_id} rejected ({error.code}), "
                       f"resubmitting {len(remaining)} item(s) one at a time")
        failed = []
        for item in remaining:
            outcome = self._run_batch(Batch(batch_id=batch.batch_id, items=[item]))
            batch.attempts += outcome.attempts
            written += outcome.written
            failed.extend(outcome.failed)

        batch.state = BatchState.FAILED if failed else BatchState.COMPLETED
        return BatchOutcome(
            batch_id=batch.batch_id,
            state=batch.state,
            attempts=batch.attempts,
            written=written,
            failed=failed,
        )

    def _finish(self, batch, state, written, remaining, error):
        batch.state = state
        logger.debug(f"Batch {batch.batch_id} {state.value} after {batch.attempts} attempt(s)")
        return BatchOutcome(
            batch_id=batch.batch_id,
            state=state,
            attempts=batch.attempts,
            written=written,
            failed=[FailedRecord(payload, error) for payload, _ in remaining],
        )
