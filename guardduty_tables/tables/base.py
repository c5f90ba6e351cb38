"""Registry of table descriptors exposed by the plugin."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List

from ..errors import UnknownTableError
from ..plugin import Table


@dataclass
class TableRegistry:
    """Name-keyed lookup of table descriptors."""

    tables: Dict[str, Table] = field(default_factory=dict)

    def register(self, table: Table) -> None:
        self.tables[table.name] = table

    def get(self, name: str) -> Table:
        try:
            return self.tables[name]
        except KeyError as exc:
            raise UnknownTableError(f"Unknown table: {name}") from exc

    def names(self) -> List[str]:
        return sorted(self.tables)


TableBuilder = Callable[[], Table]
