"""Plain-text rendering of scan results."""

from __future__ import annotations

from typing import Sequence

from oplog_stats.models import ReportRow, ScanResult

_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")
_TITLES = ("Entry", "Documents", "Total size", "Share (%)")


def format_size(size: int) -> str:
    """Format a byte count with binary multiples, e.g. ``1.50 MB``."""
    value = float(size)
    for unit in _UNITS:
        if abs(value) < 1024 or unit == _UNITS[-1]:
            break
        value /= 1024
    if unit == "B":
        return f"{size} B"
    return f"{value:.2f} {unit}"


def format_share(share: float) -> str:
    if share < 0.01:
        return "< 0.01"
    return f"{share:.2f}"


def render_table(rows: Sequence[ReportRow], *, top: int | None = None) -> str:
    """Render rows as an aligned table with a title line.

    ``top`` limits the output to the first N rows.
    """
    if top is not None:
        rows = rows[:top]

    lines = [
        (r.key, str(r.document_count), format_size(r.total_bytes), format_share(r.share_percent))
        for r in rows
    ]
    widths = [
        max([len(_TITLES[i])] + [len(line[i]) for line in lines])
        for i in range(len(_TITLES))
    ]

    def fmt(cells: Sequence[str]) -> str:
        first = cells[0].ljust(widths[0])
        rest = [c.rjust(w) for c, w in zip(cells[1:], widths[1:])]
        return " | ".join([first, *rest]).rstrip()

    out = [fmt(_TITLES), "-+-".join("-" * w for w in widths)]
    out.extend(fmt(line) for line in lines)
    return "\n".join(out)


def render_summary(result: ScanResult) -> str:
    lines = [
        f"Processed documents: {result.processed_count}",
        f"Skipped documents: {result.skipped_count}",
    ]
    lines.extend(f"  {reason}: {n}" for reason, n in sorted(result.skipped_by_reason.items()))
    lines.append(f"Total size: {format_size(result.grand_total_bytes)}")
    return "\n".join(lines)
