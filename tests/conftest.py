"""Shared pytest fixtures."""

from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import Callable

import bson
import pytest
import structlog

from oplog_stats.models import RawRecord


@pytest.fixture(autouse=True)
def quiet_logging():
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


def record(
    ns: object = "store.books",
    op: object = "i",
    size: int = 100,
    retrievable: bool = True,
) -> RawRecord:
    return RawRecord(operation_type=op, namespace=ns, size_bytes=size, is_retrievable=retrievable)


@pytest.fixture
def bad_utf8_doc() -> bytes:
    """A well-framed BSON document whose ``ns`` string is not valid UTF-8."""
    op = b"\x02op\x00" + struct.pack("<i", 2) + b"i\x00"
    ns = b"\x02ns\x00" + struct.pack("<i", 4) + b"a\xff\xfe\x00"
    body = op + ns + b"\x00"
    return struct.pack("<i", len(body) + 4) + body


@pytest.fixture
def make_record() -> Callable[..., RawRecord]:
    return record


@pytest.fixture
def books_records() -> list[RawRecord]:
    """Two inserts and one unretrievable delete on ``store.books``."""
    return [
        record("store.books", "i", 100),
        record("store.books", "i", 100),
        record("store.books", "d", 50, retrievable=False),
    ]


@pytest.fixture
def mixed_records() -> list[RawRecord]:
    return [
        record("store.books", "i", 300),
        record("store.books", "u", 120),
        record("store.books", "u", 80),
        record("store.authors", "i", 200),
        record("store.authors", "d", 40),
        record("admin.$cmd", "c", 90),
        record("store", "db", 30),
        record("", "n", 60),
        record(None, "n", 60),
        record("a.b", "x", 10),
        record("store.books", "i", 999, retrievable=False),
    ]


@pytest.fixture
def oplog_docs() -> list[dict]:
    return [
        {"op": "i", "ns": "store.books", "o": {"_id": 1, "title": "Dune"}},
        {"op": "i", "ns": "store.books", "o": {"_id": 2, "title": "Emma"}},
        {"op": "u", "ns": "store.books", "o": {"$set": {"title": "Dune II"}}, "o2": {"_id": 1}},
        {"op": "n", "ns": "", "o": {"msg": "periodic noop"}},
        {"op": "c", "ns": "store.$cmd", "o": {"create": "authors"}},
    ]


@pytest.fixture
def write_dump(tmp_path: Path) -> Callable[..., Path]:
    """Write documents (dicts or raw bytes) into a BSON dump file."""

    def _write(docs: list, name: str = "oplog.rs.bson") -> Path:
        path = tmp_path / name
        with path.open("wb") as f:
            for doc in docs:
                f.write(doc if isinstance(doc, bytes) else bson.encode(doc))
        return path

    return _write
