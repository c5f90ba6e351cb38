"""Column transforms turning hydrate results into column values."""

from __future__ import annotations

from typing import Any

from .plugin import Transform, TransformContext

_MISSING = object()


def _lookup(value: Any, name: str) -> Any:
    if value is None:
        return _MISSING
    if isinstance(value, dict):
        return value.get(name, _MISSING)
    return getattr(value, name, _MISSING)


def from_field(*names: str) -> Transform:
    """Read the first of ``names`` present on the hydrate result."""

    def transform(value: Any, ctx: TransformContext) -> Any:
        for name in names:
            result = _lookup(value, name)
            if result is not _MISSING:
                return result
        return None

    return transform


def from_column_name(value: Any, ctx: TransformContext) -> Any:
    result = _lookup(value, ctx.column_name)
    return None if result is _MISSING else result


def from_value() -> Transform:
    def transform(value: Any, ctx: TransformContext) -> Any:
        return value

    return transform


def from_matrix_item(key: str) -> Transform:
    def transform(value: Any, ctx: TransformContext) -> Any:
        return ctx.matrix_item.get(key)

    return transform



def from_constant(constant: Any) -> Transform:
    def transform(value: Any, ctx: TransformContext) -> Any:
        return constant

    return transform
