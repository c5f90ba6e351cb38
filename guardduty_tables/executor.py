"""Query execution: picks the get or list path, hydrates rows and streams them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .errors import MissingKeyColumnError, TablePluginError, UnknownColumnError
from .plugin import Column, HydrateFunc, Require, Table, TransformContext
from .query import HydrateData, QualValue, QueryCache, QueryData, QueryStatus
from .service import AwsConnection
from .tables.base import TableRegistry
from .transforms import from_column_name

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
HydrateResults = Dict[HydrateFunc, Any]


@dataclass
class Query:
    table: str
    columns: Optional[List[str]] = None
    quals: Dict[str, QualValue] = field(default_factory=dict)
    limit: Optional[int] = None


class QueryExecutor:
    def __init__(self, registry: TableRegistry, connection: AwsConnection) -> None:
        self._registry = registry
        self._connection = connection

    def execute(self, query: Query) -> Iterator[Row]:
        table = self._registry.get(query.table)
        columns = self._resolve_columns(table, query.columns)
        needed = self._needed_columns(table, columns, query.quals)
        status = QueryStatus(query.limit)

        base = QueryData(
            table=table,
            connection=self._connection,
            key_column_quals=self._key_column_quals(table, query.quals),
            columns=[column.name for column in columns],
            status=status,
            cache=QueryCache(),
        )
        use_get = self._can_get(table, query.quals)
        if not use_get:
            self._check_list_key_columns(table, query.quals)

        matrix = table.get_matrix_item(base) if table.get_matrix_item else [{}]
        logger.info(
            "Querying %s via %s across %d matrix item(s)",
            table.name,
            "get" if use_get else "list",
            len(matrix),
        )

        for matrix_item in matrix:
            if status.rows_remaining() == 0:
                break
            d = replace(base, matrix_item=matrix_item)
            logger.debug("Querying %s for %s", table.name, matrix_item)
            items = self._get_items(d) if use_get else self._list_items(d)
            for item, parent_item, hydrated in items:
                row = self._build_row(d, needed, item, parent_item, hydrated)
                if not self._matches_quals(row, query.quals):
                    continue
                status.row_streamed()
                yield {column.name: row[column.name] for column in columns}
                if status.rows_remaining() == 0:
                    break

        logger.info("Query on %s returned %d row(s)", table.name, status.rows_streamed)

    def lookup(
        self, table_name: str, keys: Dict[str, str], columns: Optional[List[str]] = None
    ) -> Optional[Row]:
        """Point lookup by the table's get key columns."""
        table = self._registry.get(table_name)
        if table.get_config is None:
            raise TablePluginError(f"Table {table_name} does not support lookups")
        missing = [
            key_column.name
            for key_column in table.get_config.key_columns
            if key_column.require == Require.REQUIRED and not keys.get(key_column.name)
        ]
        if missing:
            raise MissingKeyColumnError(
                f"Lookup on {table_name} requires key column(s): {', '.join(missing)}"
            )
        rows = list(self.execute(Query(table=table_name, columns=columns, quals=dict(keys), limit=1)))
        return rows[0] if rows else None

    def _get_items(self, d: QueryData) -> Iterator[Tuple[Any, Any, HydrateResults]]:
        get_config = d.table.get_config
        try:
            item = get_config.hydrate(d, HydrateData())
        except Exception as exc:
            if get_config.ignore_config.should_ignore(exc):
                logger.debug("Ignoring error on %s get: %s", d.table.name, exc)
                return
            raise
        if item is None:
            return
        yield item, None, {get_config.hydrate: item}

    def _list_items(self, d: QueryData) -> Iterator[Tuple[Any, Any, HydrateResults]]:
        list_config = d.table.list_config
        if list_config.parent_hydrate is None:
            for item in list_config.hydrate(d, HydrateData()):
                yield item, None, {}
                if d.rows_remaining() == 0:
                    return
            return

        for parent_item in list_config.parent_hydrate(d, HydrateData()):
            for item in list_config.hydrate(d, HydrateData(item=parent_item)):
                yield item, parent_item, {}
                if d.rows_remaining() == 0:
                    return

    def _build_row(
        self,
        d: QueryData,
        columns: List[Column],
        item: Any,
        parent_item: Any,
        hydrated: HydrateResults,
    ) -> Row:
        h = HydrateData(item=item, parent_item=parent_item)
        results = dict(hydrated)
        row: Row = {}
        for column in columns:
            if column.hydrate is None:
                source = item
            else:
                if column.hydrate not in results:
                    results[column.hydrate] = column.hydrate(d, h)
                source = results[column.hydrate]
            transform = column.transform or from_column_name
            row[column.name] = transform(source, TransformContext(column.name, d.matrix_item))
        return row

    def _resolve_columns(self, table: Table, names: Optional[List[str]]) -> List[Column]:
        if not names:
            return list(table.columns)
        columns = []
        for name in names:
            column = table.column(name)
            if column is None:
                raise UnknownColumnError(f"Unknown column {name} for table {table.name}")
            columns.append(column)
        return columns

    def _needed_columns(
        self, table: Table, columns: List[Column], quals: Dict[str, QualValue]
    ) -> List[Column]:
        needed = list(columns)
        for name in quals:
            column = table.column(name)
            if column is None:
                raise UnknownColumnError(f"Unknown column {name} for table {table.name}")
            if column not in needed:
                needed.append(column)
        return needed

    def _key_column_quals(self, table: Table, quals: Dict[str, QualValue]) -> Dict[str, QualValue]:
        key_names = set(table.key_column_names())
        key_names.add("region")
        return {name: value for name, value in quals.items() if name in key_names}

    def _can_get(self, table: Table, quals: Dict[str, QualValue]) -> bool:
        if table.get_config is None:
            return False
        for key_column in table.get_config.key_columns:
            value = quals.get(key_column.name)
            if key_column.require == Require.REQUIRED and not (isinstance(value, str) and value):
                return False
        return True

    def _check_list_key_columns(self, table: Table, quals: Dict[str, QualValue]) -> None:
        if table.list_config is None:
            names = [key_column.name for key_column in table.get_config.key_columns]
            raise MissingKeyColumnError(
                f"Table {table.name} can only be queried by key column(s): {', '.join(names)}"
            )
        missing = [
            key_column.name
            for key_column in table.list_config.key_columns
            if key_column.require == Require.REQUIRED and key_column.name not in quals
        ]
        if missing:
            raise MissingKeyColumnError(
                f"Listing {table.name} requires key column(s): {', '.join(missing)}"
            )

    @staticmethod
    def _matches_quals(row: Row, quals: Dict[str, QualValue]) -> bool:
        for name, wanted in quals.items():
            value = row.get(name)
            if isinstance(wanted, list):
                if value not in wanted:
                    return False
            elif value != wanted:
                return False
        return True
