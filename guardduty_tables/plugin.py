"""Declarative table descriptors: columns, key columns and hydrate wiring."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Iterator, List, Optional

if TYPE_CHECKING:
    from .query import HydrateData, QueryData

HydrateFunc = Callable[["QueryData", "HydrateData"], Any]
ListFunc = Callable[["QueryData", "HydrateData"], Iterator[Any]]
MatrixFunc = Callable[["QueryData"], List[Dict[str, Any]]]
Transform = Callable[[Any, "TransformContext"], Any]


class ColumnType(str, Enum):
    STRING = "string"
    JSON = "json"
    INT = "int"
    BOOL = "bool"
    TIMESTAMP = "timestamp"


class ColumnSource(str, Enum):
    """Where a column's data comes from."""

    LIST_ITEM = "list_item"
    GET = "get"
    HYDRATE = "hydrate"


class Require(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class TransformContext:
    column_name: str
    matrix_item: Dict[str, Any]


@dataclass
class Column:
    name: str
    type: ColumnType
    description: str = ""
    hydrate: Optional[HydrateFunc] = None
    transform: Optional[Transform] = None


@dataclass(frozen=True)
class KeyColumn:
    name: str
    require: Require = Require.REQUIRED


def all_columns(names: Iterable[str]) -> List[KeyColumn]:
    return [KeyColumn(name=name, require=Require.REQUIRED) for name in names]


@dataclass
class IgnoreConfig:
    should_ignore_error: Optional[Callable[[BaseException], bool]] = None

    def should_ignore(self, exc: BaseException) -> bool:
        return bool(self.should_ignore_error and self.should_ignore_error(exc))


@dataclass
class GetConfig:
    key_columns: List[KeyColumn]
    hydrate: HydrateFunc
    ignore_config: IgnoreConfig = field(default_factory=IgnoreConfig)


@dataclass
class ListConfig:
    hydrate: ListFunc
    parent_hydrate: Optional[ListFunc] = None
    key_columns: List[KeyColumn] = field(default_factory=list)


@dataclass
class Table:
    name: str
    description: str
    columns: List[Column]
    get_config: Optional[GetConfig] = None
    list_config: Optional[ListConfig] = None
    get_matrix_item: Optional[MatrixFunc] = None

    def column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def column_source(self, column: Column) -> ColumnSource:
        if column.hydrate is None:
            return ColumnSource.LIST_ITEM
        if self.get_config is not None and column.hydrate is self.get_config.hydrate:
            return ColumnSource.GET
        return ColumnSource.HYDRATE

    def key_column_names(self) -> List[str]:
        names: List[str] = []
        for config in (self.get_config, self.list_config):
            if config is None:
                continue
            for key_column in config.key_columns:
                if key_column.name not in names:
                    names.append(key_column.name)
        return names
