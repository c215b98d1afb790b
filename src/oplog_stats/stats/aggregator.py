"""Per-key running totals for a single scan pass."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

import structlog

from oplog_stats.models import ClassifiedEntry, SkipReason, StatKey, StatValue

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AggregateResult:
    """Finished, read-only aggregate handed over to the report builder."""

    table: Mapping[StatKey, StatValue]
    skipped_count: int = 0
    grand_total_bytes: int = 0
    skipped_by_reason: Mapping[SkipReason, int] = field(default_factory=dict)

    @property
    def processed_count(self) -> int:
        """Accumulated plus skipped records."""
        return sum(v.document_count for v in self.table.values()) + self.skipped_count


class Aggregator:
    """Accumulate classified entries into an aggregate table.

    :meth:`accumulate` is the only way values enter the table.  After
    :meth:`finish` the aggregator is frozen.
    """

    def __init__(self) -> None:
        self._table: dict[StatKey, StatValue] = {}
        self._skipped: Counter[SkipReason] = Counter()
        self._grand_total = 0
        self._finished = False

    # ── Mutation ──────────────────────────────────────────────

    def accumulate(self, entry: ClassifiedEntry) -> None:
        self._check_open()
        value = self._table.get(entry.key)
        if value is None:
            value = self._table[entry.key] = StatValue()
        value.document_count += 1
        value.total_bytes += entry.size_bytes
        self._grand_total += entry.size_bytes

    def skip(self, reason: SkipReason) -> None:
        """Count a record that contributes to no statistic."""
        self._check_open()
        self._skipped[reason] += 1

    # ── Read access ───────────────────────────────────────────

    @property
    def skipped_count(self) -> int:
        return sum(self._skipped.values())

    @property
    def grand_total_bytes(self) -> int:
        return self._grand_total

    def __len__(self) -> int:
        return len(self._table)

    def snapshot(self) -> AggregateResult:
        """Return a copy of the current totals (for interim progress output)."""
        table = {k: StatValue(v.document_count, v.total_bytes) for k, v in self._table.items()}
        return self._result(table)

    def finish(self) -> AggregateResult:
        """Freeze the aggregator and hand over the table."""
        self._check_open()
        self._finished = True
        logger.debug(
            "aggregator.finished",
            keys=len(self._table),
            skipped=self.skipped_count,
            total_bytes=self._grand_total,
        )
        return self._result(self._table)

    # ── Internals ─────────────────────────────────────────────

    def _result(self, table: dict[StatKey, StatValue]) -> AggregateResult:
        return AggregateResult(
            table=MappingProxyType(table),
            skipped_count=self.skipped_count,
            grand_total_bytes=self._grand_total,
            skipped_by_reason=dict(self._skipped),
        )

    def _check_open(self) -> None:
        if self._finished:
            raise RuntimeError("aggregator already finished")
