from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import psycopg2
import pytest
from psycopg2 import sql
from psycopg2.extras import Json

from tabular_import.models.config_models import DatabaseConfig, ImportConfig, KindConfig
from tabular_import.models.reference import ReferenceEntity
from tabular_import.remote.gateway import GatewayError, SubmissionError
from tabular_import.remote.pg_gateway import PostgresRecordGateway, build_insert, resolve_dsn

_PG_ENV = ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE")


@pytest.fixture(autouse=True)
def _clean_pg_env(monkeypatch):
    for name in _PG_ENV:
        monkeypatch.delenv(name, raising=False)


class UniqueViolation(psycopg2.IntegrityError):
    diag = SimpleNamespace(message_primary='duplicate key value violates unique constraint "batches_name_key"')


class FakeCursor:
    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn

    def execute(self, query: Any, params: Any = None) -> None:
        self.conn.executed.append((query, params))
        if self.conn.fail_with is not None:
            raise self.conn.fail_with

    def fetchall(self) -> list[tuple[Any, ...]]:
        return self.conn.rows

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, *exc: Any) -> None:
        return None


class FakeConnection:
    def __init__(self, rows: list[tuple[Any, ...]] | None = None, fail_with: Exception | None = None) -> None:
        self.rows = rows or []
        self.fail_with = fail_with
        self.executed: list[tuple[Any, Any]] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.autocommit = True

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


def _config() -> ImportConfig:
    return ImportConfig(
        database=DatabaseConfig(host="db", port=5433, user="app", password="pw", database="school"),
        kinds={
            "batches": KindConfig(table="batches", reference_table="public.courses"),
            "courses": KindConfig(table="courses"),
        },
    )


def _gateway(conn: FakeConnection) -> tuple[PostgresRecordGateway, list[str]]:
    dsns: list[str] = []

    def connect(dsn: str) -> FakeConnection:
        dsns.append(dsn)
        return conn

    return PostgresRecordGateway(_config(), connect=connect), dsns


def test_resolve_dsn_from_config_fields():
    assert resolve_dsn(_config().database) == "host=db port=5433 user=app dbname=school password=pw"


def test_resolve_dsn_env_overrides(monkeypatch):
    monkeypatch.setenv("PGHOST", "envhost")
    monkeypatch.setenv("PGDATABASE", "envdb")
    dsn = resolve_dsn(DatabaseConfig())
    assert dsn == "host=envhost port=5432 user=postgres dbname=envdb"


def test_resolve_dsn_full_url_wins(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u@h/d")
    assert resolve_dsn(DatabaseConfig(dsn="ignored")) == "postgresql://u@h/d"
    monkeypatch.delenv("DATABASE_URL")
    assert resolve_dsn(DatabaseConfig(dsn="host=x")) == "host=x"


def test_build_insert_is_composed():
    query = build_insert("public.batches", ["name", "course"])
    assert isinstance(query, sql.Composed)


def test_insert_commits_and_adapts_json_columns():
    conn = FakeConnection()
    gateway, dsns = _gateway(conn)
    payload = {"name": "Chem", "short_code": "CH", "subjects": [{"name": "Organic", "te_max": 70}]}
    asyncio.run(gateway.create_record("courses", payload))

    assert len(dsns) == 1
    assert conn.autocommit is False
    assert conn.commits == 1
    _, params = conn.executed[0]
    assert params[:2] == ["Chem", "CH"]
    assert isinstance(params[2], Json)
    assert params[2].adapted == [{"name": "Organic", "te_max": 70}]


def test_insert_failure_rolls_back_and_reports_primary_message():
    conn = FakeConnection(fail_with=UniqueViolation("dup"))
    gateway, _ = _gateway(conn)
    with pytest.raises(SubmissionError) as e:
        asyncio.run(gateway.create_record("batches", {"name": "B1"}))
    assert e.value.reason == 'duplicate key value violates unique constraint "batches_name_key"'
    assert (conn.commits, conn.rollbacks) == (0, 1)


def test_create_record_without_table_is_fatal():
    gateway, dsns = _gateway(FakeConnection())
    with pytest.raises(GatewayError, match="kinds.participants.table"):
        asyncio.run(gateway.create_record("participants", {"name": "x"}))
    assert dsns == []


def test_list_reference_entities_reads_table():
    conn = FakeConnection(rows=[(1, "Computer Science"), (7, "General")])
    gateway, _ = _gateway(conn)
    entities = asyncio.run(gateway.list_reference_entities("batches"))
    assert entities == [ReferenceEntity(1, "Computer Science"), ReferenceEntity(7, "General")]
    assert conn.rollbacks == 1


def test_list_reference_entities_without_reference_table():
    gateway, dsns = _gateway(FakeConnection())
    assert asyncio.run(gateway.list_reference_entities("courses")) == []
    assert dsns == []


def test_list_reference_entities_failure_is_fatal():
    conn = FakeConnection(fail_with=psycopg2.ProgrammingError("relation does not exist"))
    gateway, _ = _gateway(conn)
    with pytest.raises(GatewayError, match="reference listing failed"):
        asyncio.run(gateway.list_reference_entities("batches"))


def test_connection_failure_is_fatal():
    def connect(dsn: str) -> Any:
        raise psycopg2.OperationalError("could not connect")

    gateway = PostgresRecordGateway(_config(), connect=connect)
    with pytest.raises(GatewayError, match="database connection failed"):
        asyncio.run(gateway.create_record("batches", {"name": "B1"}))


def test_close_closes_open_connection():
    conn = FakeConnection()
    gateway, _ = _gateway(conn)
    asyncio.run(gateway.create_record("courses", {"name": "x"}))
    asyncio.run(gateway.close())
    assert conn.closed is True
