from __future__ import annotations

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generator, List, Mapping, Optional

from .stores import ConditionalCheckFailedError, Item, KeyValueStore, UpdatePlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    pk: str = "pk"
    item: str = "item"


_COLS = _Cols()


class SQLiteStore(KeyValueStore):
    """
    Lightweight SQLite key-value store.
    Each record is kept as a JSON document in a single table keyed by pk.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()
        logger.info("Initialized SQLite store at %s", self._db_path, extra={"backend": "sqlite", "table": _COLS.table})

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.pk} TEXT PRIMARY KEY,
                    {_COLS.item} TEXT NOT NULL
                )
                """
            )

    @staticmethod
    def _load(row: sqlite3.Row) -> Item:
        return json.loads(row[_COLS.item])

    def scan(self) -> List[Item]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT {_COLS.item} FROM {_COLS.table} ORDER BY rowid"
            ).fetchall()
            return [self._load(r) for r in rows]

    def get_item(self, key: str) -> Optional[Item]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT {_COLS.item} FROM {_COLS.table} WHERE {_COLS.pk} = ?", (key,)
            ).fetchone()
            return self._load(row) if row else None

    def put_item(self, item: Mapping[str, Any]) -> None:
        with self._conn() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO {_COLS.table} ({_COLS.pk}, {_COLS.item}) VALUES (?, ?)",
                (item[self.key_attribute], json.dumps(dict(item))),
            )

    def update_item(self, key: str, plan: UpdatePlan) -> Item:
        with self._conn() as conn:
            # Hold the write lock across read-modify-write so the update is atomic
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                f"SELECT {_COLS.item} FROM {_COLS.table} WHERE {_COLS.pk} = ?", (key,)
            ).fetchone()
            if not row:
                raise ConditionalCheckFailedError(key)
            updated = plan.apply(self._load(row))
            conn.execute(
                f"UPDATE {_COLS.table} SET {_COLS.item} = ? WHERE {_COLS.pk} = ?",
                (json.dumps(updated), key),
            )
            return updated

    def delete_item(self, key: str) -> None:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.pk} = ?", (key,))
            if cur.rowcount == 0:
                raise ConditionalCheckFailedError(key)
