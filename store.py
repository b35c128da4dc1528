"""Collection/key document store on SQLite.

Documents are JSON objects. Every call opens its own connection, so worker
threads never share one. Batches run inside a single IMMEDIATE transaction,
which makes them atomic and serializes them against other writers.
"""

import json
import os
import sqlite3
from dataclasses import dataclass
from datetime import datetime

from models import to_utc_iso

_FIELD_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_")


@dataclass
class Document:
    collection: str
    key: str
    data: dict


def _json_default(value):
    if isinstance(value, datetime):
        return to_utc_iso(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dumps(data: dict) -> str:
    return json.dumps(data, default=_json_default, sort_keys=True)


def _field_path(name: str) -> str:
    # Field names are interpolated into json_extract paths, so keep them plain
    if not name or not set(name) <= _FIELD_CHARS:
        raise ValueError(f"Invalid field name: {name!r}")
    return f"$.{name}"


class DocumentStore:
    def __init__(self, db_path: str, timeout: float = 30.0):
        self.db_path = db_path
        self.timeout = timeout

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def init(self) -> None:
        """Create the schema. Raises sqlite3.Error when the database is unreachable."""
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    key TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (collection, key)
                )
            """)
        finally:
            conn.close()

    def get(self, collection: str, key: str) -> dict | None:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND key = ?",
                (collection, key),
            ).fetchone()
        finally:
            conn.close()
        return json.loads(row["data"]) if row else None

    def set(self, collection: str, key: str, data: dict, merge: bool = False) -> None:
        with self.batch() as batch:
            batch.set(collection, key, data, merge=merge)

    def update(self, collection: str, key: str, data: dict) -> None:
        """Merge fields into an existing document. Raises KeyError if it is missing."""
        with self.batch() as batch:
            batch.update(collection, key, data)

    def batch(self) -> "WriteBatch":
        return WriteBatch(self)

    def where(self, collection: str, field: str, value, order_by: str | None = None) -> list[Document]:
        """Equality query on a top-level field, optionally ordered ascending."""
        sql = "SELECT key, data FROM documents WHERE collection = ? AND json_extract(data, ?) = ?"
        params = [collection, _field_path(field), value]
        if order_by:
            sql += " ORDER BY json_extract(data, ?), key"
            params.append(_field_path(order_by))
        conn = self._connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [Document(collection, row["key"], json.loads(row["data"])) for row in rows]

    def page(
        self,
        collection: str,
        order_by: str,
        limit: int,
        start_after: Document | None = None,
        descending: bool = True,
    ) -> list[Document]:
        """One page ordered by (order_by, key). Resume with start_after=<last doc of previous page>.

        The cursor is the (value, key) pair of the last document seen, so rows
        inserted or rewritten behind the cursor never cause skips or repeats.
        """
        path = _field_path(order_by)
        direction = "DESC" if descending else "ASC"
        cmp = "<" if descending else ">"
        sort_expr = "COALESCE(json_extract(data, ?), '')"
        sql = "SELECT key, data FROM documents WHERE collection = ?"
        params: list = [collection]
        if start_after is not None:
            cursor_value = start_after.data.get(order_by)
            if isinstance(cursor_value, datetime):
                cursor_value = to_utc_iso(cursor_value)
            sql += f" AND ({sort_expr}, key) {cmp} (?, ?)"
            params += [path, cursor_value if cursor_value is not None else "", start_after.key]
        sql += f" ORDER BY {sort_expr} {direction}, key {direction} LIMIT ?"
        params += [path, limit]
        conn = self._connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [Document(collection, row["key"], json.loads(row["data"])) for row in rows]

    def count(self, collection: str) -> int:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM documents WHERE collection = ?", (collection,)
            ).fetchone()
        finally:
            conn.close()
        return row["n"]


class WriteBatch:
    """Queued writes applied atomically on commit (or on leaving a with-block cleanly)."""

    def __init__(self, store: DocumentStore):
        self._store = store
        self._ops: list[tuple[str, str, str, dict]] = []

    def __len__(self):
        return len(self._ops)

    def set(self, collection: str, key: str, data: dict, merge: bool = False) -> None:
        self._ops.append(("merge" if merge else "set", collection, key, data))

    def update(self, collection: str, key: str, data: dict) -> None:
        self._ops.append(("update", collection, key, data))

    def commit(self) -> None:
        if not self._ops:
            return
        conn = self._store._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                for op, collection, key, data in self._ops:
                    self._apply(conn, op, collection, key, data)
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()
        self._ops = []

    def _apply(self, conn: sqlite3.Connection, op: str, collection: str, key: str, data: dict) -> None:
        if op != "set":
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND key = ?",
                (collection, key),
            ).fetchone()
            if row is None and op == "update":
                raise KeyError(f"No document {collection}/{key}")
            merged = json.loads(row["data"]) if row else {}
            merged.update(json.loads(_dumps(data)))
            data = merged
        conn.execute(
            "INSERT INTO documents (collection, key, data) VALUES (?, ?, ?) "
            "ON CONFLICT(collection, key) DO UPDATE SET data = excluded.data",
            (collection, key, _dumps(data)),
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.commit()
        return False
