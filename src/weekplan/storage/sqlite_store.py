# src/weekplan/storage/sqlite_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..core.errors import TaskNotFound, TransientStoreFailure
from ..core.ports import TaskRecord, Unsubscribe

logger = logging.getLogger(__name__)

RecordCallback = Callable[[list[TaskRecord]], None]


class SqliteRecordStore:
    """
    SQLite record store keyed by (identity_id, task_id).

    Records are stored as JSON blobs so the wire field names survive unchanged.

    Push model:
    - subscribers are per identity
    - after every successful write the full record set for that identity is
      re-read and delivered to each subscriber (not a diff)
    - callbacks run on the event loop thread, after the write has committed

    Thread-safety:
    - each call opens its own SQLite connection
    - blocking calls run in a worker thread via asyncio.to_thread
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._listeners: dict[str, list[RecordCallback]] = {}
        self._ensure_schema()
        logger.info("SqliteRecordStore ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS task_records (
                    identity_id TEXT NOT NULL,
                    task_id TEXT NOT NULL,
                    record TEXT NOT NULL DEFAULT '{}',
                    updated_at REAL NOT NULL DEFAULT 0,
                    PRIMARY KEY (identity_id, task_id)
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(task_records)")
            cols = {row["name"] for row in cur.fetchall()}
            if "updated_at" not in cols:
                cur.execute("ALTER TABLE task_records ADD COLUMN updated_at REAL NOT NULL DEFAULT 0")
                logger.info("SqliteRecordStore migration: added column updated_at")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _str_to_record(s: str | None, task_id: str) -> TaskRecord:
        try:
            val = json.loads(s or "{}")
        except ValueError:
            logger.warning("Corrupt record JSON task_id=%s; treating as empty", task_id)
            val = {}
        record: TaskRecord = val if isinstance(val, dict) else {}
        record.setdefault("id", task_id)
        return record

    # ---- blocking operations (run in a worker thread) ----

    def _get_sync(self, identity_id: str) -> list[TaskRecord]:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT task_id, record FROM task_records WHERE identity_id = ? ORDER BY rowid ASC",
                (identity_id,),
            )
            return [self._str_to_record(row["record"], row["task_id"]) for row in cur.fetchall()]
        finally:
            conn.close()

    def _set_sync(self, identity_id: str, task_id: str, record: TaskRecord) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO task_records(identity_id, task_id, record, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(identity_id, task_id)
                DO UPDATE SET record = excluded.record, updated_at = excluded.updated_at
                """,
                (identity_id, task_id, json.dumps(record, ensure_ascii=False), time.time()),
            )
            conn.commit()
        finally:
            conn.close()

    def _update_sync(self, identity_id: str, task_id: str, partial: TaskRecord) -> None:
        conn = self._get_conn()
        try:
            # BEGIN IMMEDIATE: read-merge-write must not interleave with another writer.
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT record FROM task_records WHERE identity_id = ? AND task_id = ?",
                (identity_id, task_id),
            ).fetchone()
            if row is None:
                conn.rollback()
                raise TaskNotFound(task_id)

            merged = self._str_to_record(row["record"], task_id)
            merged.update(partial)
            conn.execute(
                "UPDATE task_records SET record = ?, updated_at = ? WHERE identity_id = ? AND task_id = ?",
                (json.dumps(merged, ensure_ascii=False), time.time(), identity_id, task_id),
            )
            conn.commit()
        finally:
            conn.close()

    def _remove_sync(self, identity_id: str, task_id: str) -> None:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "DELETE FROM task_records WHERE identity_id = ? AND task_id = ?",
                (identity_id, task_id),
            )
            conn.commit()
            if cur.rowcount == 0:
                raise TaskNotFound(task_id)
        finally:
            conn.close()

    async def _run(self, op: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            logger.exception("SQLite %s failed db=%s", op, self._db_path)
            raise TransientStoreFailure(f"{op} failed: {e}") from e

    # ---- public API (RecordStore) ----

    async def get(self, identity_id: str) -> list[TaskRecord]:
        return await self._run("get", self._get_sync, identity_id)

    async def set(self, identity_id: str, task_id: str, record: TaskRecord) -> None:
        await self._run("set", self._set_sync, identity_id, task_id, dict(record))
        await self._notify(identity_id)

    async def update(self, identity_id: str, task_id: str, partial: TaskRecord) -> None:
        await self._run("update", self._update_sync, identity_id, task_id, dict(partial))
        await self._notify(identity_id)

    async def remove(self, identity_id: str, task_id: str) -> None:
        await self._run("remove", self._remove_sync, identity_id, task_id)
        await self._notify(identity_id)

    def subscribe(self, identity_id: str, callback: RecordCallback) -> Unsubscribe:
        listeners = self._listeners.setdefault(identity_id, [])
        listeners.append(callback)
        logger.debug("Subscribed uid=%s listeners=%d", identity_id, len(listeners))

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                listeners.remove(callback)
            if not listeners:
                self._listeners.pop(identity_id, None)

        return _unsubscribe

    def count_records(self, identity_id: str | None = None) -> int:
        conn = self._get_conn()
        try:
            if identity_id is None:
                (n,) = conn.execute("SELECT COUNT(*) FROM task_records").fetchone()
            else:
                (n,) = conn.execute(
                    "SELECT COUNT(*) FROM task_records WHERE identity_id = ?", (identity_id,)
                ).fetchone()
            return int(n)
        finally:
            conn.close()

    async def _notify(self, identity_id: str) -> None:
        listeners = list(self._listeners.get(identity_id, ()))
        if not listeners:
            return
        try:
            snapshot = await self.get(identity_id)
        except TransientStoreFailure:
            # The write itself succeeded; the next change will deliver a fresh snapshot.
            logger.warning("Snapshot re-read failed after write uid=%s", identity_id)
            return
        for callback in listeners:
            try:
                callback([dict(r) for r in snapshot])
            except Exception:
                logger.exception("Record subscriber crashed uid=%s", identity_id)
