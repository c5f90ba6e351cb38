"""Columns and descriptions shared by every regional AWS table."""

from __future__ import annotations

from typing import List

from ..plugin import Column, ColumnType
from ..query import HydrateData, QueryData
from ..service import get_common_columns
from ..transforms import from_field, from_matrix_item

_RESOURCE_INTERFACE_DESCRIPTIONS = {
    "akas": "Array of globally unique identifier strings (also known as) for the resource.",
    "tags": "A map of tags for the resource.",
    "title": "Title of the resource.",
}


def resource_interface_description(name: str) -> str:
    return _RESOURCE_INTERFACE_DESCRIPTIONS.get(name, "")


def get_common_columns_cached(d: QueryData, h: HydrateData):
    return d.cached(get_common_columns, h)


def aws_regional_columns(columns: List[Column]) -> List[Column]:
    return columns + [
        Column(
            name="partition",
            type=ColumnType.STRING,
            description="The AWS partition in which the resource is located (aws, aws-cn, or aws-us-gov).",
            hydrate=get_common_columns_cached,
            transform=from_field("partition"),
        ),
        Column(
            name="region",
            type=ColumnType.STRING,
            description="The AWS Region in which the resource is located.",
            transform=from_matrix_item("region"),
        ),
        Column(
            name="account_id",
            type=ColumnType.STRING,
            description="The AWS Account ID in which the resource is located.",
            hydrate=get_common_columns_cached,
            transform=from_field("account_id"),
        ),
    ]
