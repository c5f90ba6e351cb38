"""GuardDuty resources exposed as queryable tables."""

from .config import AppConfig
from .executor import Query, QueryExecutor
from .service import AwsConnection
from .tables import build_default_registry

__all__ = ["AppConfig", "AwsConnection", "Query", "QueryExecutor", "build_default_registry"]
