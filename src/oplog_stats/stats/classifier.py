"""Turn a raw oplog record into a statistics key and size."""

from __future__ import annotations

from oplog_stats.models import ClassifiedEntry, OpCode, RawRecord, SkipReason, StatKey


def split_namespace(namespace: object) -> tuple[str, str]:
    """Split ``database.collection`` on the first dot.

    Collections may themselves contain dots (``system.buckets.x``).  A bare
    database name yields an empty collection; anything that is not a
    non-empty string yields two empty fields.
    """
    if not isinstance(namespace, str) or not namespace:
        return "", ""
    database, _, collection = namespace.partition(".")
    return database, collection


def classify(raw: RawRecord) -> ClassifiedEntry | SkipReason:
    """Classify one record.

    Never raises: unknown operation codes and malformed namespaces land in
    fallback buckets so that every retrievable record is counted.
    """
    if not raw.is_retrievable:
        return SkipReason.UNRETRIEVABLE

    database, collection = split_namespace(raw.namespace)
    key = StatKey(
        database=database,
        collection=collection,
        op=OpCode.from_raw(raw.operation_type),
    )
    return ClassifiedEntry(key=key, size_bytes=raw.size_bytes)
