"""Error types and AWS error classification helpers."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from botocore.exceptions import ClientError


class TablePluginError(Exception):
    """Base class for errors raised by the table layer itself."""


class UnknownTableError(TablePluginError):
    pass


class UnknownColumnError(TablePluginError):
    pass


class MissingKeyColumnError(TablePluginError):
    """A point lookup was attempted without all of its mandatory key columns."""


def error_code(exc: BaseException) -> Optional[str]:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def is_not_found_error(not_found_codes: Iterable[str]) -> Callable[[BaseException], bool]:
    """Build an ignore predicate matching the given AWS error codes."""
    codes = frozenset(not_found_codes)

    def should_ignore(exc: BaseException) -> bool:
        code = error_code(exc)
        return code is not None and code in codes

    return should_ignore
