"""Export finished scan results for further processing."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import TextIO

import structlog

from oplog_stats.models import ScanResult

logger = structlog.get_logger(__name__)

_CSV_COLUMNS = ["key", "document_count", "total_bytes", "share_percent"]


def write_csv(result: ScanResult, stream: TextIO) -> None:
    writer = csv.writer(stream)
    writer.writerow(_CSV_COLUMNS)
    for r in result.rows:
        writer.writerow([r.key, r.document_count, r.total_bytes, r.share_percent])


def write_json(result: ScanResult, stream: TextIO) -> None:
    json.dump(result.model_dump(mode="json"), stream, indent=2)
    stream.write("\n")


def export_csv(result: ScanResult, output_path: str | Path) -> Path:
    """Write the report rows to a CSV file.

    Returns the output path.
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", newline="", encoding="utf-8") as f:
        write_csv(result, f)

    logger.info("export.csv_written", path=str(output), rows=len(result.rows))
    return output


def export_json(result: ScanResult, output_path: str | Path) -> Path:
    """Write the full result (rows and scan totals) to a JSON file."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", encoding="utf-8") as f:
        write_json(result, f)

    logger.info("export.json_written", path=str(output), rows=len(result.rows))
    return output
