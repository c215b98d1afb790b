"""Record sources: where oplog entries are read from."""

from oplog_stats.sources.base import Cursor, IterableCursor, RecordSource, record_from_raw_bson
from oplog_stats.sources.bson_file import BSONDumpSource
from oplog_stats.sources.mongodb import MongoOplogSource

__all__ = [
    "BSONDumpSource",
    "Cursor",
    "IterableCursor",
    "MongoOplogSource",
    "RecordSource",
    "record_from_raw_bson",
]
