"""Abstract record source and cursor contracts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Iterator

from bson.errors import InvalidBSON
from bson.raw_bson import RawBSONDocument

from oplog_stats.errors import SourceError
from oplog_stats.models import RawRecord


class Cursor(ABC):
    """Forward-only cursor over the records of a source.

    A cursor is not restartable: once exhausted or closed a new pass needs a
    fresh cursor from :meth:`RecordSource.open`.
    """

    @abstractmethod
    def next(self) -> RawRecord | None:
        """Return the next record, or ``None`` when the source is exhausted.

        Raises :class:`SourceError` when the record cannot be fetched.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resources.  Safe to call more than once."""

    def __iter__(self) -> Iterator[RawRecord]:
        return self

    def __next__(self) -> RawRecord:
        record = self.next()
        if record is None:
            raise StopIteration
        return record

    def __enter__(self) -> Cursor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class IterableCursor(Cursor):
    """Cursor over any iterable of :class:`RawRecord`.

    Exceptions listed in ``errors`` escaping the iterable are re-raised as
    :class:`SourceError`.  ``on_close`` runs once when the cursor closes.
    """

    def __init__(
        self,
        records: Iterable[RawRecord],
        *,
        errors: tuple[type[BaseException], ...] = (),
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self._it: Iterator[RawRecord] | None = iter(records)
        self._errors = errors
        self._on_close = on_close

    def next(self) -> RawRecord | None:
        if self._it is None:
            return None
        try:
            return next(self._it)
        except StopIteration:
            return None
        except self._errors as exc:
            raise SourceError(f"failed to fetch the next oplog record: {exc}") from exc

    def close(self) -> None:
        if self._it is None:
            return
        self._it = None
        if self._on_close is not None:
            self._on_close()


class RecordSource(ABC):
    """Contract for everything that can produce oplog records."""

    name: str = "base"

    @abstractmethod
    def open(self) -> Cursor:
        """Open a new cursor positioned at the first record."""

    def close(self) -> None:
        """Release any resources held by the source."""


def record_from_raw_bson(doc: RawBSONDocument) -> RawRecord:
    """Build a :class:`RawRecord` from an undecoded oplog document.

    The size is the length of the stored bytes.  A document whose body
    cannot be decoded is reported as not retrievable.
    """
    size = len(doc.raw)
    try:
        op = doc.get("op")
        ns = doc.get("ns")
    except (InvalidBSON, ValueError):
        return RawRecord(operation_type=None, namespace=None, size_bytes=size, is_retrievable=False)
    return RawRecord(operation_type=op, namespace=ns, size_bytes=size)
