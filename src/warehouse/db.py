"""DuckDB-backed counter store.

Experiments running in a long-lived process (or a CLI run that should
survive restarts) keep their sets, counters and outcomes here. Two
tables back the whole CounterStore contract:

  ab_sets    (key, member)  -- participants / converted sets
  ab_values  (key, value)   -- counters, outcomes, timestamps

Each primitive runs as its own transaction on a fresh cursor, and a
store-level lock lets only one primitive run at a time. DuckDB rejects
concurrent writers to the same key rather than waiting, so without the
lock two threads adding the same member would fail instead of both
succeeding. The lock covers threads of one process only.

Errors from DuckDB are not wrapped; they reach the caller as-is.
"""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import duckdb

DEFAULT_DB_PATH = "data/experiments.duckdb"

SCHEMA = """
CREATE TABLE IF NOT EXISTS ab_sets (
    key     VARCHAR NOT NULL,
    member  VARCHAR NOT NULL,
    PRIMARY KEY (key, member)
);
CREATE TABLE IF NOT EXISTS ab_values (
    key     VARCHAR PRIMARY KEY,
    value   VARCHAR NOT NULL
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> duckdb.DuckDBPyConnection:
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(db_path)


def init_db(conn: duckdb.DuckDBPyConnection) -> None:
    for statement in SCHEMA.split(";"):
        if statement.strip():
            conn.execute(statement)


class DuckDBStore:
    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn
        self._lock = threading.Lock()
        init_db(conn)

    @classmethod
    def open(cls, db_path: str = DEFAULT_DB_PATH) -> "DuckDBStore":
        return cls(get_connection(db_path))

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        with self._lock:
            cur = self._conn.cursor()
            cur.begin()
            try:
                yield cur
                cur.commit()
            except Exception:
                cur.rollback()
                raise
            finally:
                cur.close()

    def add(self, key: str, member: str) -> None:
        with self._transaction() as cur:
            cur.execute(
                "INSERT INTO ab_sets VALUES (?, ?) ON CONFLICT DO NOTHING",
                [key, member],
            )

    def is_member(self, key: str, member: str) -> bool:
        with self._transaction() as cur:
            row = cur.execute(
                "SELECT 1 FROM ab_sets WHERE key = ? AND member = ?",
                [key, member],
            ).fetchone()
        return row is not None

    def cardinality(self, key: str) -> int:
        with self._transaction() as cur:
            (count,) = cur.execute(
                "SELECT COUNT(*) FROM ab_sets WHERE key = ?", [key]
            ).fetchone()
        return int(count)

    def increment(self, key: str) -> int:
        with self._transaction() as cur:
            row = cur.execute(
                "SELECT value FROM ab_values WHERE key = ?", [key]
            ).fetchone()
            if row is None:
                value = 1
                cur.execute("INSERT INTO ab_values VALUES (?, ?)", [key, str(value)])
            else:
                value = int(row[0]) + 1
                cur.execute(
                    "UPDATE ab_values SET value = ? WHERE key = ?", [str(value), key]
                )
        return value

    def get(self, key: str) -> str | None:
        with self._transaction() as cur:
            row = cur.execute(
                "SELECT value FROM ab_values WHERE key = ?", [key]
            ).fetchone()
        return row[0] if row else None

    def set_if_absent(self, key: str, value: str) -> bool:
        with self._transaction() as cur:
            row = cur.execute(
                "SELECT 1 FROM ab_values WHERE key = ?", [key]
            ).fetchone()
            if row is not None:
                return False
            cur.execute("INSERT INTO ab_values VALUES (?, ?)", [key, value])
        return True

    def delete(self, key: str) -> None:
        with self._transaction() as cur:
            cur.execute("DELETE FROM ab_sets WHERE key = ?", [key])
            cur.execute("DELETE FROM ab_values WHERE key = ?", [key])
