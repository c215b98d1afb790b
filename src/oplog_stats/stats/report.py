"""Report builder — shares and deterministic ranking of aggregated entries."""

from __future__ import annotations

from typing import Mapping

from oplog_stats.models import ReportRow, StatKey, StatValue


def compute_percentage(part: float, total: float) -> float:
    """Return ``part`` as a percentage of ``total`` (0 for an empty total)."""
    if total <= 0:
        return 0.0
    return part * 100.0 / total


def build_report(table: Mapping[StatKey, StatValue], grand_total_bytes: int) -> list[ReportRow]:
    """Return one row per key, largest footprint first.

    Ties on total size are broken by document count (descending), then by
    the textual key (ascending), so identical input always yields identical
    output.  Nothing is truncated here.
    """
    rows = [
        ReportRow(
            key=key.render(),
            document_count=value.document_count,
            total_bytes=value.total_bytes,
            share_percent=compute_percentage(value.total_bytes, grand_total_bytes),
        )
        for key, value in table.items()
    ]
    rows.sort(key=lambda r: (-r.total_bytes, -r.document_count, r.key))
    return rows
