"""Configuration models and helpers for the table connector."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import json


@dataclass
class AwsConnectionConfig:
    """How to reach AWS. Credentials come from the standard boto3 chain."""

    profile: Optional[str] = None
    regions: List[str] = field(default_factory=list)
    endpoint_url: Optional[str] = None
    max_attempts: int = 8
    retry_mode: str = "adaptive"


@dataclass
class SinkConfig:
    """Where query results are written."""

    type: str = "jsonl"
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AppConfig:
    """Top-level configuration for running queries."""

    aws: AwsConnectionConfig = field(default_factory=AwsConnectionConfig)
    sink: SinkConfig = field(default_factory=SinkConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        aws_data = dict(data.get("aws", {}))
        regions = aws_data.get("regions", [])
        if isinstance(regions, str):
            aws_data["regions"] = [r.strip() for r in regions.split(",") if r.strip()]
        aws = AwsConnectionConfig(**aws_data)
        sink = SinkConfig(**data.get("sink", {}))
        return cls(aws=aws, sink=sink)

    @classmethod
    def from_json(cls, path: Path) -> "AppConfig":
        data = json.loads(path.read_text())
        return cls.from_dict(data)


DEFAULT_CONFIG = AppConfig(
    aws=AwsConnectionConfig(),
    sink=SinkConfig(type="jsonl", params={}),
)
