"""Interface definitions for result sinks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable


class RowSink(ABC):
    """Receives rows produced by a query."""

    @abstractmethod
    def write(self, table_name: str, rows: Iterable[Dict[str, Any]]) -> int:
        """Persist rows and return how many were written."""

    def close(self) -> None:
        """Release any held resources."""
