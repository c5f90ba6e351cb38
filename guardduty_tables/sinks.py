"""Output sinks for query results."""

from __future__ import annotations

import json
import logging
import sqlite3
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TextIO

from .config import SinkConfig
from .interfaces import RowSink
from .plugin import ColumnType, Table

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


class JsonLinesSink(RowSink):
    """One JSON object per row, to a file or stdout."""

    def __init__(self, config: SinkConfig, stream: Optional[TextIO] = None) -> None:
        path = config.params.get("path")
        self._owns_stream = stream is None and bool(path)
        if stream is not None:
            self._stream = stream
        elif path:
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            self._stream = target.open("a", encoding="utf-8")
        else:
            self._stream = sys.stdout

    def write(self, table_name: str, rows: Iterable[Dict[str, Any]]) -> int:
        count = 0
        for row in rows:
            self._stream.write(json.dumps(row, default=_json_default, sort_keys=False))
            self._stream.write("\n")
            count += 1
        self._stream.flush()
        logger.debug("Wrote %d row(s) from %s as JSON lines", count, table_name)
        return count

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()


_SQLITE_TYPES = {
    ColumnType.STRING: "TEXT",
    ColumnType.JSON: "TEXT",
    ColumnType.INT: "INTEGER",
    ColumnType.BOOL: "INTEGER",
    ColumnType.TIMESTAMP: "TEXT",
}


class SqliteSink(RowSink):
    """Materializes query results into a SQLite table named after the source table."""

    def __init__(self, config: SinkConfig, tables: Dict[str, Table]) -> None:
        path = config.params.get("path")
        if not path:
            raise ValueError("SqliteSink requires path param")
        self._path = Path(path)
        if self._path.parent:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        self._tables = tables

    @contextmanager
    def _conn(self):
        conn = sqlite3.connect(self._path)
        try:
            yield conn
        finally:
            # Rows written before a failure stay in the database
            conn.commit()
            conn.close()

    def write(self, table_name: str, rows: Iterable[Dict[str, Any]]) -> int:
        table = self._tables[table_name]
        column_types = {column.name: column.type for column in table.columns}

        # "partition" and "format" collide with SQL keywords
        ddl_columns = ", ".join(
            f'"{column.name}" {_SQLITE_TYPES[column.type]}' for column in table.columns
        )
        count = 0
        with self._conn() as conn:
            conn.execute(f'CREATE TABLE IF NOT EXISTS "{table_name}" ({ddl_columns})')
            try:
                for row in rows:
                    column_names: List[str] = list(row.keys())
                    quoted_names = ", ".join(f'"{name}"' for name in column_names)
                    placeholders = ", ".join("?" for _ in column_names)
                    conn.execute(
                        f'INSERT INTO "{table_name}" ({quoted_names}) VALUES ({placeholders})',
                        tuple(
                            json.dumps(row[name], default=_json_default)
                            if column_types[name] == ColumnType.JSON
                            else row[name]
                            for name in column_names
                        ),
                    )
                    count += 1
            except Exception as e:
                logger.error("Query on %s failed after %d row(s) were written: %s", table_name, count, e)
                raise
        logger.info("Wrote %d row(s) to %s in %s", count, table_name, self._path)
        return count


def build_sink(config: SinkConfig, tables: Dict[str, Table]) -> RowSink:
    sink_type = config.type
    if sink_type == "jsonl":
        return JsonLinesSink(config)
    elif sink_type == "sqlite":
        return SqliteSink(config, tables)
    raise ValueError(f"Unsupported sink type: {sink_type}")
