"""Table registry wiring every table this plugin ships."""

from __future__ import annotations

from typing import List

from .base import TableBuilder, TableRegistry
from .guardduty_threat_intel_set import table_aws_guardduty_threat_intel_set


def build_default_registry() -> TableRegistry:
    builders: List[TableBuilder] = [
        table_aws_guardduty_threat_intel_set,
    ]
    registry = TableRegistry()
    for builder in builders:
        registry.register(builder())
    return registry
