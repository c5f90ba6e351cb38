"""Per-query state handed to hydrate and list functions."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

if TYPE_CHECKING:
    from .plugin import HydrateFunc, Table
    from .service import AwsConnection

logger = logging.getLogger(__name__)

QualValue = Union[str, List[str]]

UNLIMITED_ROWS = 2**63 - 1


class QueryStatus:
    """Tracks streamed rows against the limit; doubles as a cancellation token."""

    def __init__(self, limit: Optional[int] = None) -> None:
        self._limit = limit
        self._rows_streamed = 0
        self._cancelled = threading.Event()

    @property
    def rows_streamed(self) -> int:
        return self._rows_streamed

    def row_streamed(self) -> None:
        self._rows_streamed += 1

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def rows_remaining(self) -> int:
        if self.cancelled:
            return 0
        if self._limit is None:
            return UNLIMITED_ROWS
        return max(self._limit - self._rows_streamed, 0)


class QueryCache:
    """Single-flight memoization of hydrate results for one query execution."""

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get_or_compute(self, key: str, compute) -> Any:
        with self._lock:
            if key not in self._values:
                logger.debug("Computing cached hydrate %s", key)
                self._values[key] = compute()
            return self._values[key]


@dataclass
class HydrateData:
    item: Any = None
    parent_item: Any = None


@dataclass
class QueryData:
    table: "Table"
    connection: "AwsConnection"
    key_column_quals: Dict[str, QualValue] = field(default_factory=dict)
    columns: List[str] = field(default_factory=list)
    matrix_item: Dict[str, Any] = field(default_factory=dict)
    status: QueryStatus = field(default_factory=QueryStatus)
    cache: QueryCache = field(default_factory=QueryCache)

    def key_column_qual_string(self, name: str) -> str:
        value = self.key_column_quals.get(name)
        if isinstance(value, str):
            return value
        return ""

    def key_column_qual_list(self, name: str) -> List[str]:
        value = self.key_column_quals.get(name)
        if isinstance(value, list):
            return [str(v) for v in value]
        return []

    def rows_remaining(self) -> int:
        return self.status.rows_remaining()

    def cached(self, fn: "HydrateFunc", h: HydrateData) -> Any:
        return self.cache.get_or_compute(fn.__name__, lambda: fn(self, h))

    @property
    def region(self) -> str:
        return self.matrix_item.get("region", "")
