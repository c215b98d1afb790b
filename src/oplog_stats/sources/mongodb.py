"""Record source reading the oplog of a live MongoDB replica-set member."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from bson.codec_options import CodecOptions
from bson.raw_bson import RawBSONDocument
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from oplog_stats.errors import SourceError
from oplog_stats.sources.base import Cursor, IterableCursor, RecordSource, record_from_raw_bson

if TYPE_CHECKING:
    from pymongo.collection import Collection

    from oplog_stats.config import Settings

logger = structlog.get_logger(__name__)

_RAW_OPTIONS: CodecOptions = CodecOptions(document_class=RawBSONDocument)


class MongoOplogSource(RecordSource):
    """Expose ``local.oplog.rs`` (or another capped collection) as a record source.

    Documents are fetched undecoded so that sizes are the lengths of the
    stored BSON.  With ``newest_first`` the scan walks the oplog in reverse
    natural order, which makes ``limit`` select the most recent entries.
    """

    name = "mongodb"

    def __init__(
        self,
        client: MongoClient,
        *,
        limit: int | None = None,
        newest_first: bool = True,
        database: str = "local",
        collection: str = "oplog.rs",
    ) -> None:
        self._client = client
        self._limit = limit
        self._newest_first = newest_first
        self._database = database
        self._collection = collection

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> MongoOplogSource:
        """Create a client from :class:`Settings` and wrap it.

        Credentials are only used when a username is configured, which keeps
        deployments without authentication reachable.
        """
        options: dict[str, Any] = {
            "serverSelectionTimeoutMS": settings.server_selection_timeout_ms,
        }
        if settings.username:
            options["username"] = settings.username
            options["password"] = settings.password
            if settings.auth_db:
                options["authSource"] = settings.auth_db

        try:
            if settings.uri:
                client: MongoClient = MongoClient(settings.uri, **options)
            else:
                client = MongoClient(host=settings.host, port=settings.port, **options)
        except PyMongoError as exc:
            raise SourceError(f"failed to create a database client: {exc}") from exc

        kwargs.setdefault("limit", settings.limit)
        kwargs.setdefault("database", settings.oplog_database)
        kwargs.setdefault("collection", settings.oplog_collection)
        return cls(client, **kwargs)

    @property
    def namespace(self) -> str:
        return f"{self._database}.{self._collection}"

    def _oplog(self) -> Collection:
        db = self._client.get_database(self._database, codec_options=_RAW_OPTIONS)
        return db.get_collection(self._collection)

    def estimated_count(self) -> int:
        """Return the estimated number of documents the scan will visit."""
        try:
            count = self._oplog().estimated_document_count()
        except PyMongoError as exc:
            raise SourceError(f"failed to count documents in {self.namespace}: {exc}") from exc
        if self._limit is not None:
            count = min(count, self._limit)
        return count

    def open(self) -> Cursor:
        find_kwargs: dict[str, Any] = {}
        if self._newest_first:
            find_kwargs["sort"] = [("$natural", -1)]
        if self._limit is not None:
            # pymongo treats a limit of 0 as "no limit"
            if self._limit == 0:
                return IterableCursor(())
            find_kwargs["limit"] = self._limit

        try:
            cursor = self._oplog().find({}, **find_kwargs)
        except PyMongoError as exc:
            raise SourceError(f"oplog query on {self.namespace} failed: {exc}") from exc

        logger.info(
            "source.opened",
            source=self.name,
            namespace=self.namespace,
            limit=self._limit,
            newest_first=self._newest_first,
        )
        return IterableCursor(
            (record_from_raw_bson(doc) for doc in cursor),
            errors=(PyMongoError,),
            on_close=cursor.close,
        )

    def close(self) -> None:
        self._client.close()
