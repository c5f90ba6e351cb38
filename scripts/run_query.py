"""CLI entrypoint to query plugin tables locally."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from guardduty_tables.config import AppConfig, DEFAULT_CONFIG
from guardduty_tables.errors import TablePluginError
from guardduty_tables.executor import Query, QueryExecutor
from guardduty_tables.query import QualValue
from guardduty_tables.service import AwsConnection
from guardduty_tables.sinks import build_sink
from guardduty_tables.tables import build_default_registry


def load_env_file(env_path: str = ".env") -> List[str]:
    """Export ``KEY=value`` lines (e.g. AWS_PROFILE) without overriding the environment.

    Relative paths resolve against the working directory. Returns the keys set.
    """
    env_file = Path(env_path)
    if not env_file.is_file():
        logging.debug("Environment file not found: %s", env_path)
        return []

    loaded: List[str] = []
    for line in env_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.removeprefix("export ").partition("=")
        key = key.strip()
        if not sep or key in os.environ:
            continue
        os.environ[key] = value.strip().strip("'\"")
        loaded.append(key)
    logging.info("Loaded %d variable(s) from %s", len(loaded), env_path)
    return loaded


def expand_env_vars(data: Any) -> Any:
    """Expand $VAR / ${VAR} in config strings; unknown variables are kept as written."""
    if isinstance(data, dict):
        return {key: expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    if isinstance(data, str):
        return os.path.expandvars(data)
    return data


def parse_where(clauses: List[str]) -> Dict[str, QualValue]:
    """Turn ``col=value`` / ``col=v1,v2`` into equality and list quals."""
    quals: Dict[str, QualValue] = {}
    for clause in clauses:
        if "=" not in clause:
            raise ValueError(f"Invalid --where clause (expected col=value): {clause}")
        name, raw_value = clause.split("=", 1)
        values = [v.strip() for v in raw_value.split(",")]
        quals[name.strip()] = values if len(values) > 1 else values[0]
    return quals


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query GuardDuty tables")
    parser.add_argument("--table", default="aws_guardduty_threat_intel_set", help="Table to query")
    parser.add_argument("--columns", help="Comma separated list of columns (default: all)")
    parser.add_argument(
        "--where",
        action="append",
        default=[],
        help="Equality filter col=value; col=v1,v2 matches any of the values. Repeatable.",
    )
    parser.add_argument("--limit", type=int, help="Maximum number of rows to return")
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional path to a JSON config file overriding defaults",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Verbosity for logging output",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env)",
    )
    parser.add_argument("--list-tables", action="store_true", help="List available tables and exit")
    parser.add_argument("--describe", action="store_true", help="Describe the table columns and exit")
    return parser.parse_args(argv)


def load_config(path: Path | None) -> AppConfig:
    if not path:
        return DEFAULT_CONFIG
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = json.load(f)

    expanded_config = expand_env_vars(raw_config)
    return AppConfig.from_dict(expanded_config)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    load_env_file(args.env_file)

    registry = build_default_registry()
    if args.list_tables:
        for name in registry.names():
            print(name)
        return 0

    try:
        if args.describe:
            table = registry.get(args.table)
            for column in table.columns:
                source = table.column_source(column).value
                print(f"{column.name}\t{column.type.value}\t{source}\t{column.description}")
            return 0

        config = load_config(args.config)
        columns = [c.strip() for c in args.columns.split(",")] if args.columns else None
        query = Query(table=args.table, columns=columns, quals=parse_where(args.where), limit=args.limit)

        executor = QueryExecutor(registry, AwsConnection(config.aws))
        sink = build_sink(config.sink, registry.tables)
        try:
            written = sink.write(query.table, executor.execute(query))
        finally:
            sink.close()
    except (TablePluginError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    logging.info("Query on %s wrote %d row(s)", query.table, written)
    return 0


if __name__ == "__main__":
    sys.exit(main())
