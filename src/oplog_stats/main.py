"""Command-line entrypoint — print statistics about a MongoDB oplog."""

from __future__ import annotations

import argparse
import getpass
import sys
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from oplog_stats import __version__
from oplog_stats.config import Settings, get_settings
from oplog_stats.errors import OplogStatsError, ScanError, iter_causes
from oplog_stats.export import export_csv, export_json, write_csv, write_json
from oplog_stats.logger import setup_logging
from oplog_stats.models import ScanResult
from oplog_stats.render import render_summary, render_table
from oplog_stats.sources import BSONDumpSource, MongoOplogSource
from oplog_stats.stats import scan


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return n


def _positive_int(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"value has to be positive, got {value}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oplog-stats",
        description="Prints statistics about a MongoDB oplog: which namespaces "
        "and operations take up the most space.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    # ── Connection ────────────────────────────────────────────
    conn = parser.add_argument_group("connection")
    conn.add_argument("--host", help="Hostname of the MongoDB instance (default: localhost).")
    conn.add_argument("--port", type=int, help="TCP port of the MongoDB instance (default: 27017).")
    conn.add_argument("--uri", help="Full MongoDB connection string; overrides --host/--port.")
    conn.add_argument("-u", "--username", help="Username to authenticate with.")
    conn.add_argument(
        "-p", "--password",
        help="Password to authenticate with. Prompted for when --username is given "
        "without a password or with an empty one.",
    )
    conn.add_argument(
        "--authenticationDatabase", dest="auth_db", metavar="DBNAME",
        help="Database in which --username has been created.",
    )
    conn.add_argument(
        "--file", metavar="PATH",
        help="Read oplog entries from a BSON dump instead of a server.",
    )

    # ── Scan ──────────────────────────────────────────────────
    scan_group = parser.add_argument_group("scan")
    scan_group.add_argument(
        "-l", "--limit", type=_non_negative_int, metavar="N",
        help="Maximal number of oplog documents to process (newest first).",
    )
    scan_group.add_argument(
        "--printAfter", dest="print_after", type=_positive_int, metavar="N",
        help="Print statistics every time N documents have been processed.",
    )

    # ── Output ────────────────────────────────────────────────
    out = parser.add_argument_group("output")
    out.add_argument("--top", type=_positive_int, metavar="N", help="Only show the N largest entries.")
    out.add_argument("--format", choices=("table", "json", "csv"), default="table")
    out.add_argument("-o", "--output", metavar="PATH", help="Write json/csv output to a file.")
    out.add_argument("--log-level", choices=("DEBUG", "INFO", "WARNING", "ERROR"), default=None)
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    """Overlay command-line flags on top of the configured settings."""
    base = base or get_settings()
    overrides: dict[str, Any] = {
        name: getattr(args, name)
        for name in ("host", "port", "uri", "username", "password", "auth_db",
                     "limit", "print_after", "log_level")
        if getattr(args, name) is not None
    }
    # re-validate so flag values obey the same constraints as configured ones
    settings = Settings.model_validate({**base.model_dump(), **overrides})
    if settings.username and not settings.password:
        settings = settings.model_copy(update={"password": getpass.getpass("Password: ")})
    return settings


def _describe_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"--{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


def print_error(exc: BaseException) -> None:
    print(f"error: {exc}", file=sys.stderr)
    for cause in iter_causes(exc):
        print(f"  cause: {cause}", file=sys.stderr)


def _emit(result: ScanResult, args: argparse.Namespace) -> None:
    if args.format == "table":
        print(render_table(result.rows, top=args.top))
        print()
        print(render_summary(result))
        return

    if args.top is not None:
        result = result.model_copy(update={"rows": result.rows[: args.top]})
    if args.output:
        exporter = export_json if args.format == "json" else export_csv
        path = exporter(result, args.output)
        print(f"Wrote {len(result.rows)} rows to {path}", file=sys.stderr)
    elif args.format == "json":
        write_json(result, sys.stdout)
    else:
        write_csv(result, sys.stdout)


def run(args: argparse.Namespace, settings: Settings) -> ScanResult:
    """Open the configured source, scan it and print the final report."""
    source: BSONDumpSource | MongoOplogSource
    if args.file:
        source = BSONDumpSource(args.file, limit=settings.limit)
    else:
        source = MongoOplogSource.from_settings(settings)

    # interim tables must not mix with machine-readable stdout
    progress_stream = sys.stdout if args.format == "table" else sys.stderr

    def on_progress(interim: ScanResult) -> None:
        print(file=progress_stream)
        print(
            f"Processed {interim.processed_count} documents at {datetime.now().isoformat(timespec='seconds')}",
            file=progress_stream,
        )
        print(render_table(interim.rows, top=args.top), file=progress_stream)
        print(file=progress_stream)

    try:
        if args.file:
            print(f"Obtaining stats from {args.file} (limit: {settings.limit})...", file=sys.stderr)
        else:
            print(f"Obtaining stats (limit: {source.estimated_count()})...", file=sys.stderr)
        result = scan(
            source.open(),
            progress_every=settings.print_after,
            on_progress=on_progress if settings.print_after else None,
        )
    finally:
        source.close()

    if args.format == "table":
        print(f"Final stats after processing {result.processed_count} documents:")
    _emit(result, args)
    return result


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.output and args.format == "table":
        parser.error("--output requires --format json or csv")

    try:
        settings = resolve_settings(args)
    except ValidationError as exc:
        parser.error(_describe_validation_error(exc))
    setup_logging(settings.log_level)

    try:
        run(args, settings)
    except OplogStatsError as exc:
        print_error(exc)
        sys.exit(1)
    except KeyboardInterrupt:
        print_error(ScanError("scan interrupted before the oplog was exhausted"))
        sys.exit(1)


if __name__ == "__main__":
    main()
