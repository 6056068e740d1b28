from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Mapping
from typing import Any

import psycopg2
from psycopg2 import sql
from psycopg2.extras import Json

from ..models.config_models import DatabaseConfig, ImportConfig
from ..models.reference import ReferenceEntity
from .gateway import GatewayError, SubmissionError

"""PostgreSQL record gateway (psycopg2).

Each record is one INSERT committed on its own, so a failing row never takes
earlier rows with it. psycopg2 is blocking; every call is pushed to a worker
thread with asyncio.to_thread and calls are never overlapped.
"""

logger = logging.getLogger(__name__)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Build the connection DSN.

    優先順位:
        1. DATABASE_URL / PGDSN (DSN 全体)
        2. database.dsn (config)
        3. 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
           (未設定分は config の database セクションで補完)
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def _adapt(value: Any) -> Any:
    # list / dict (subjects, workshops) は jsonb 列として渡す
    if isinstance(value, (list, dict)):
        return Json(value)
    return value


def build_insert(table: str, columns: list[str]) -> sql.Composed:
    return sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
        sql.Identifier(*table.split(".")),
        sql.SQL(", ").join(sql.Identifier(c) for c in columns),
        sql.SQL(", ").join(sql.Placeholder() for _ in columns),
    )


class PostgresRecordGateway:
    def __init__(self, config: ImportConfig, *, connect: Callable[[str], Any] = psycopg2.connect) -> None:
        self._config = config
        self._connect = connect
        self._conn: Any = None

    def _connection(self) -> Any:
        if self._conn is None:
            try:
                self._conn = self._connect(resolve_dsn(self._config.database))
            except psycopg2.Error as e:
                raise GatewayError(f"database connection failed: {e}") from e
            self._conn.autocommit = False
        return self._conn

    def _table(self, kind: str, attr: str) -> str | None:
        return getattr(self._config.kind(kind), attr)

    def _select_references(self, table: str) -> list[ReferenceEntity]:
        conn = self._connection()
        query = sql.SQL("SELECT id, name FROM {} ORDER BY id").format(sql.Identifier(*table.split(".")))
        try:
            with conn.cursor() as cur:
                cur.execute(query)
                rows = cur.fetchall()
            conn.rollback()  # read-only; close the implicit transaction
        except psycopg2.Error as e:
            conn.rollback()
            raise GatewayError(f"reference listing failed: {e}") from e
        return [ReferenceEntity(id=int(row[0]), display_name=str(row[1])) for row in rows]

    def _insert(self, table: str, payload: Mapping[str, Any]) -> None:
        conn = self._connection()
        columns = list(payload)
        query = build_insert(table, columns)
        try:
            with conn.cursor() as cur:
                cur.execute(query, [_adapt(payload[c]) for c in columns])
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            reason = getattr(getattr(e, "diag", None), "message_primary", None) or str(e).strip() or None
            raise SubmissionError(reason) from e

    async def list_reference_entities(self, kind: str) -> list[ReferenceEntity]:
        table = self._table(kind, "reference_table")
        if not table:
            return []
        entities = await asyncio.to_thread(self._select_references, table)
        logger.debug("kind=%s reference entities=%d table=%s", kind, len(entities), table)
        return entities

    async def create_record(self, kind: str, payload: Mapping[str, Any]) -> None:
        table = self._table(kind, "table")
        if not table:
            raise GatewayError(f"kinds.{kind}.table is not configured")
        await asyncio.to_thread(self._insert, table, payload)

    async def close(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await asyncio.to_thread(conn.close)
