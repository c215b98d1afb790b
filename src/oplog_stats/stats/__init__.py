"""Scanning and aggregation engine."""

from oplog_stats.stats.aggregator import AggregateResult, Aggregator
from oplog_stats.stats.classifier import classify, split_namespace
from oplog_stats.stats.report import build_report, compute_percentage
from oplog_stats.stats.scanner import scan, to_scan_result

__all__ = [
    "AggregateResult",
    "Aggregator",
    "build_report",
    "classify",
    "compute_percentage",
    "scan",
    "split_namespace",
    "to_scan_result",
]
