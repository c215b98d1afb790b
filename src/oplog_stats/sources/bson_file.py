"""Record source over a BSON dump of the oplog (e.g. ``mongodump`` output)."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import BinaryIO, Iterator

import bson
import structlog
from bson.codec_options import CodecOptions
from bson.errors import InvalidBSON
from bson.raw_bson import RawBSONDocument

from oplog_stats.errors import SourceError
from oplog_stats.models import RawRecord
from oplog_stats.sources.base import Cursor, IterableCursor, RecordSource, record_from_raw_bson

logger = structlog.get_logger(__name__)

_RAW_OPTIONS: CodecOptions = CodecOptions(document_class=RawBSONDocument)


class BSONDumpSource(RecordSource):
    """Stream oplog entries from a file of concatenated BSON documents.

    This performs a linear scan of the file; documents are kept undecoded
    until classification reads their ``op`` and ``ns`` fields.
    """

    name = "bson_file"

    def __init__(self, path: str | Path, *, limit: int | None = None) -> None:
        self.path = Path(path)
        self._limit = limit

    def open(self) -> Cursor:
        try:
            f = self.path.open("rb")
        except OSError as exc:
            raise SourceError(f"cannot open BSON dump {self.path}: {exc}") from exc

        logger.info("source.opened", source=self.name, path=str(self.path), limit=self._limit)
        return IterableCursor(
            self._iter_records(f),
            errors=(InvalidBSON, OSError),
            on_close=f.close,
        )

    def _iter_records(self, f: BinaryIO) -> Iterator[RawRecord]:
        docs = bson.decode_file_iter(f, codec_options=_RAW_OPTIONS)
        if self._limit is not None:
            docs = itertools.islice(docs, self._limit)
        for doc in docs:
            yield record_from_raw_bson(doc)
