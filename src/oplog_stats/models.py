"""Shared models for the oplog scan: records, keys, accumulators and report rows."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# ── Enums ─────────────────────────────────────────────────────


class OpCode(str, Enum):
    """Operation codes found in the ``op`` field of an oplog entry.

    The values are the abbreviations MongoDB writes into the oplog, and the
    ones used in the textual rendering of a :class:`StatKey`.
    """

    INSERT = "i"
    UPDATE = "u"
    DELETE = "d"
    COMMAND = "c"
    DATABASE = "db"
    NOOP = "n"
    UNRECOGNIZED = "?"

    @classmethod
    def from_raw(cls, value: object) -> OpCode:
        """Map a raw ``op`` value onto a code; anything unknown is UNRECOGNIZED."""
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.UNRECOGNIZED


class SkipReason(str, Enum):
    """Why a record did not contribute to any statistic."""
    UNRETRIEVABLE = "unretrievable"


# ── Per-record values (hot path) ──────────────────────────────


@dataclass(frozen=True, slots=True)
class RawRecord:
    """Read-only view of a single oplog document as delivered by a source."""

    operation_type: object
    namespace: object
    size_bytes: int
    is_retrievable: bool = True


@dataclass(frozen=True, slots=True, order=True)
class StatKey:
    """(database, collection, operation) combination statistics are kept for."""

    database: str
    collection: str
    op: OpCode

    def render(self) -> str:
        """Return the stable textual form, e.g. ``store.books:i``.

        An empty collection placeholder renders as ``database:code``, which
        matches the namespace as the oplog stored it.
        """
        ns = f"{self.database}.{self.collection}" if self.collection else self.database
        return f"{ns}:{self.op.value}"

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True, slots=True)
class ClassifiedEntry:
    key: StatKey
    size_bytes: int


@dataclass(slots=True)
class StatValue:
    """Running totals for one :class:`StatKey`."""

    document_count: int = 0
    total_bytes: int = 0


# ── Report DTOs ───────────────────────────────────────────────


class ReportRow(BaseModel):
    """One ranked line of the final report."""

    model_config = ConfigDict(frozen=True)

    key: str
    document_count: int
    total_bytes: int
    share_percent: float


class ScanResult(BaseModel):
    """Outcome of a complete pass over a record source."""

    model_config = ConfigDict(frozen=True)

    rows: tuple[ReportRow, ...] = ()
    skipped_count: int = 0
    skipped_by_reason: dict[str, int] = Field(default_factory=dict)
    grand_total_bytes: int = 0
    # records the source produced; unaffected when rows are cut for display
    processed_count: int = 0
