"""Scanner — the single-pass pipeline from a cursor to a ranked report.

Each record is classified and accumulated before the next one is fetched;
the only blocking point is the cursor fetch.  A failing cursor aborts the
whole scan: shares over an incomplete total have no meaning, so no partial
report is returned.
"""

from __future__ import annotations

import time
from typing import Callable

import structlog
from bson.errors import BSONError
from pymongo.errors import PyMongoError

from oplog_stats.errors import ScanError, SourceError
from oplog_stats.models import ScanResult, SkipReason
from oplog_stats.sources.base import Cursor
from oplog_stats.stats.aggregator import AggregateResult, Aggregator
from oplog_stats.stats.classifier import classify
from oplog_stats.stats.report import build_report

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[ScanResult], None]


def to_scan_result(aggregate: AggregateResult) -> ScanResult:
    """Turn a (final or interim) aggregate into a :class:`ScanResult`."""
    return ScanResult(
        rows=tuple(build_report(aggregate.table, aggregate.grand_total_bytes)),
        skipped_count=aggregate.skipped_count,
        skipped_by_reason={r.value: n for r, n in aggregate.skipped_by_reason.items()},
        grand_total_bytes=aggregate.grand_total_bytes,
        processed_count=aggregate.processed_count,
    )


def scan(
    cursor: Cursor,
    *,
    progress_every: int | None = None,
    on_progress: ProgressCallback | None = None,
) -> ScanResult:
    """Consume ``cursor`` to exhaustion and return the ranked report.

    Parameters
    ----------
    cursor:
        A freshly opened cursor.  It is closed when the scan ends, whether
        it succeeds or fails.
    progress_every:
        When given (positive), ``on_progress`` receives an interim result
        and a ``scan.progress`` event is logged every that many records.
    on_progress:
        Callback for interim results.  Interim results are diagnostic only.

    Raises :class:`ScanError` if the cursor fails before it is exhausted.
    """
    if progress_every is not None and progress_every <= 0:
        raise ValueError("progress_every must be positive")

    aggregator = Aggregator()
    processed = 0
    started = time.monotonic()
    logger.info("scan.started")

    with cursor:
        while True:
            try:
                raw = cursor.next()
            except (SourceError, PyMongoError, BSONError, OSError) as exc:
                logger.error("scan.aborted", processed=processed, error=str(exc))
                raise ScanError(
                    f"failed to get a document from the oplog after {processed} records",
                    processed=processed,
                ) from exc
            if raw is None:
                break

            outcome = classify(raw)
            if isinstance(outcome, SkipReason):
                aggregator.skip(outcome)
                logger.debug("scan.record_skipped", reason=outcome.value, size=raw.size_bytes)
            else:
                aggregator.accumulate(outcome)
            processed += 1

            if progress_every and processed % progress_every == 0:
                logger.info(
                    "scan.progress",
                    processed=processed,
                    skipped=aggregator.skipped_count,
                    keys=len(aggregator),
                )
                if on_progress is not None:
                    on_progress(to_scan_result(aggregator.snapshot()))

    result = to_scan_result(aggregator.finish())
    logger.info(
        "scan.finished",
        processed=processed,
        skipped=result.skipped_count,
        keys=len(result.rows),
        total_bytes=result.grand_total_bytes,
        elapsed_s=round(time.monotonic() - started, 3),
    )
    return result
