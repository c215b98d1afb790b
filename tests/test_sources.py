"""Tests for record sources: BSON dumps and the MongoDB oplog."""

from unittest.mock import MagicMock

import bson
import pytest
from bson.raw_bson import RawBSONDocument
from pymongo.errors import AutoReconnect, OperationFailure

from oplog_stats.config import Settings
from oplog_stats.errors import ScanError, SourceError
from oplog_stats.models import RawRecord
from oplog_stats.sources import BSONDumpSource, IterableCursor, MongoOplogSource, record_from_raw_bson
from oplog_stats.sources import mongodb as mongodb_module
from oplog_stats.stats import scan


class TestRecordFromRawBSON:
    def test_size_is_stored_length(self):
        data = bson.encode({"op": "i", "ns": "store.books", "o": {"_id": 1, "title": "Dune"}})
        rec = record_from_raw_bson(RawBSONDocument(data))
        assert rec == RawRecord(operation_type="i", namespace="store.books", size_bytes=len(data))

    def test_missing_fields(self):
        data = bson.encode({"ts": 1})
        rec = record_from_raw_bson(RawBSONDocument(data))
        assert rec.operation_type is None
        assert rec.namespace is None
        assert rec.is_retrievable

    def test_undecodable_document_is_not_retrievable(self, bad_utf8_doc):
        rec = record_from_raw_bson(RawBSONDocument(bad_utf8_doc))
        assert rec.is_retrievable is False
        assert rec.size_bytes == len(bad_utf8_doc)


class TestIterableCursor:
    def test_next_returns_none_when_exhausted(self, make_record):
        cursor = IterableCursor([make_record()])
        assert cursor.next() is not None
        assert cursor.next() is None
        assert cursor.next() is None

    def test_not_restartable_after_close(self, make_record):
        closes: list[int] = []
        cursor = IterableCursor([make_record(), make_record()], on_close=lambda: closes.append(1))
        cursor.next()
        cursor.close()
        cursor.close()
        assert cursor.next() is None
        assert closes == [1]

    def test_translates_listed_errors(self):
        def boom():
            raise OSError("broken pipe")
            yield  # pragma: no cover

        with pytest.raises(SourceError, match="broken pipe"):
            IterableCursor(boom(), errors=(OSError,)).next()


class TestBSONDumpSource:
    def test_reads_all_documents(self, write_dump, oplog_docs):
        path = write_dump(oplog_docs)
        with BSONDumpSource(path).open() as cursor:
            records = list(cursor)
        assert [r.operation_type for r in records] == ["i", "i", "u", "n", "c"]
        assert sum(r.size_bytes for r in records) == path.stat().st_size

    def test_limit(self, write_dump, oplog_docs):
        with BSONDumpSource(write_dump(oplog_docs), limit=2).open() as cursor:
            assert len(list(cursor)) == 2

    def test_each_open_is_a_new_pass(self, write_dump, oplog_docs):
        source = BSONDumpSource(write_dump(oplog_docs))
        assert scan(source.open()) == scan(source.open())

    def test_scan_of_dump(self, write_dump, oplog_docs, bad_utf8_doc):
        path = write_dump([*oplog_docs, bad_utf8_doc])
        result = scan(BSONDumpSource(path).open())

        sizes = [len(bson.encode(d)) for d in oplog_docs]
        rows = {r.key: r for r in result.rows}
        assert rows["store.books:i"].document_count == 2
        assert rows["store.books:i"].total_bytes == sizes[0] + sizes[1]
        assert rows["store.books:u"].total_bytes == sizes[2]
        assert rows[":n"].document_count == 1
        assert rows["store.$cmd:c"].document_count == 1
        assert result.skipped_count == 1
        assert result.grand_total_bytes == sum(sizes)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceError, match="cannot open"):
            BSONDumpSource(tmp_path / "nope.bson").open()

    def test_truncated_file_aborts_scan(self, write_dump, oplog_docs):
        path = write_dump(oplog_docs)
        data = path.read_bytes()
        path.write_bytes(data[:-7])
        with pytest.raises(ScanError) as info:
            scan(BSONDumpSource(path).open())
        assert info.value.processed == len(oplog_docs) - 1


def _mock_client(docs=None, *, iter_side_effect=None):
    client = MagicMock()
    collection = client.get_database.return_value.get_collection.return_value
    cursor = collection.find.return_value
    if iter_side_effect is not None:
        cursor.__iter__.side_effect = iter_side_effect
    else:
        cursor.__iter__.return_value = iter(docs or [])
    return client, collection, cursor


class TestMongoOplogSource:
    def test_find_newest_first_with_limit(self, oplog_docs):
        raw = [RawBSONDocument(bson.encode(d)) for d in oplog_docs]
        client, collection, cursor = _mock_client(raw)
        source = MongoOplogSource(client, limit=5)

        result = scan(source.open())

        client.get_database.assert_called_once()
        assert client.get_database.call_args.args == ("local",)
        client.get_database.return_value.get_collection.assert_called_once_with("oplog.rs")
        collection.find.assert_called_once_with({}, sort=[("$natural", -1)], limit=5)
        cursor.close.assert_called_once()
        assert result.processed_count == len(oplog_docs)

    def test_oldest_first_without_limit(self):
        client, collection, _ = _mock_client([])
        MongoOplogSource(client, newest_first=False).open()
        collection.find.assert_called_once_with({})

    def test_zero_limit_reads_nothing(self):
        client, collection, _ = _mock_client([])
        assert scan(MongoOplogSource(client, limit=0).open()).processed_count == 0
        collection.find.assert_not_called()

    def test_connection_lost_mid_scan(self, oplog_docs):
        def batches():
            yield RawBSONDocument(bson.encode(oplog_docs[0]))
            raise AutoReconnect("connection closed")

        client, _, cursor = _mock_client(iter_side_effect=lambda: batches())
        with pytest.raises(ScanError) as info:
            scan(MongoOplogSource(client).open())
        assert info.value.processed == 1
        assert isinstance(info.value.__cause__, SourceError)
        cursor.close.assert_called_once()

    def test_estimated_count(self):
        client, collection, _ = _mock_client()
        collection.estimated_document_count.return_value = 1234
        assert MongoOplogSource(client).estimated_count() == 1234
        assert MongoOplogSource(client, limit=10).estimated_count() == 10

    def test_estimated_count_failure(self):
        client, collection, _ = _mock_client()
        collection.estimated_document_count.side_effect = OperationFailure("not authorized")
        with pytest.raises(SourceError, match="not authorized"):
            MongoOplogSource(client).estimated_count()


class TestFromSettings:
    def test_without_credentials(self, monkeypatch):
        factory = MagicMock()
        monkeypatch.setattr(mongodb_module, "MongoClient", factory)
        source = MongoOplogSource.from_settings(Settings(host="db1", port=27018, limit=7))

        _, kwargs = factory.call_args
        assert kwargs["host"] == "db1"
        assert kwargs["port"] == 27018
        assert "username" not in kwargs
        assert source._limit == 7

    def test_with_credentials_and_uri(self, monkeypatch):
        factory = MagicMock()
        monkeypatch.setattr(mongodb_module, "MongoClient", factory)
        MongoOplogSource.from_settings(Settings(
            uri="mongodb://rs0.example:27017/?replicaSet=rs0",
            username="ops",
            password="s3cret",
            auth_db="admin",
        ))

        args, kwargs = factory.call_args
        assert args == ("mongodb://rs0.example:27017/?replicaSet=rs0",)
        assert kwargs["username"] == "ops"
        assert kwargs["password"] == "s3cret"
        assert kwargs["authSource"] == "admin"
