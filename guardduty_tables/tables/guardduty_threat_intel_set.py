"""The ``aws_guardduty_threat_intel_set`` table.

Threat intel set IDs are listed per detector, then each row is hydrated with
``GetThreatIntelSet`` only when a detail column is requested.
"""

from __future__ import annotations

import logging
from typing import Iterator, List

from ..errors import is_not_found_error
from ..models import ThreatIntelSetDetail, ThreatIntelSetSummary
from ..plugin import (
    Column,
    ColumnType,
    GetConfig,
    IgnoreConfig,
    KeyColumn,
    ListConfig,
    Require,
    Table,
    all_columns,
)
from ..query import HydrateData, QueryData
from ..service import build_region_list, guardduty_service
from ..transforms import from_field, from_value
from .common import aws_regional_columns, get_common_columns_cached, resource_interface_description
from .guardduty_detector import list_guardduty_detectors

logger = logging.getLogger(__name__)

TABLE_NAME = "aws_guardduty_threat_intel_set"
PAGE_SIZE = 50
NOT_FOUND_CODES = ["InvalidInputException", "BadRequestException"]


def _detector_filter_excludes(d: QueryData, detector_id: str) -> bool:
    """True when the detector_id qual rules this detector out."""
    if "detector_id" not in d.key_column_quals:
        return False

    wanted = d.key_column_qual_string("detector_id")
    if wanted:
        return wanted != detector_id

    wanted_list = d.key_column_qual_list("detector_id")
    if wanted_list:
        # Substring match against the rendered list, e.g. "[d1 d2]".
        rendered = "[" + " ".join(wanted_list) + "]"
        return detector_id not in rendered
    return False


def list_guardduty_threat_intel_sets(d: QueryData, h: HydrateData) -> Iterator[ThreatIntelSetSummary]:
    detector_id = h.item.detector_id

    if _detector_filter_excludes(d, detector_id):
        logger.debug("Skipping detector %s, excluded by detector_id qual", detector_id)
        return

    svc = guardduty_service(d)
    paginator = svc.get_paginator("list_threat_intel_sets")
    pages = paginator.paginate(
        DetectorId=detector_id,
        PaginationConfig={"PageSize": PAGE_SIZE},
    )

    for page in pages:
        for threat_intel_set_id in page.get("ThreatIntelSetIds", []):
            yield ThreatIntelSetSummary(
                detector_id=detector_id,
                threat_intel_set_id=threat_intel_set_id,
            )

            # Stop paginating once the limit is reached or the query is cancelled
            if d.rows_remaining() == 0:
                return


def get_guardduty_threat_intel_set(d: QueryData, h: HydrateData) -> ThreatIntelSetDetail:
    logger.debug("get_guardduty_threat_intel_set")

    svc = guardduty_service(d)

    if h.item is not None:
        detector_id = h.item.detector_id
        threat_intel_set_id = h.item.threat_intel_set_id
    else:
        detector_id = d.key_column_qual_string("detector_id")
        threat_intel_set_id = d.key_column_qual_string("threat_intel_set_id")

    try:
        response = svc.get_threat_intel_set(
            DetectorId=detector_id,
            ThreatIntelSetId=threat_intel_set_id,
        )
    except Exception as e:
        logger.debug("get_guardduty_threat_intel_set error: %s", e)
        raise

    return ThreatIntelSetDetail.from_response(detector_id, threat_intel_set_id, response)


def threat_intel_set_aka(
    partition: str, region: str, account_id: str, detector_id: str, threat_intel_set_id: str
) -> str:
    return (
        f"arn:{partition}:guardduty:{region}:{account_id}:detector/{detector_id}"
        f"/threatintelset/{threat_intel_set_id}"
    )


def get_aws_guardduty_threat_intel_set_akas(d: QueryData, h: HydrateData) -> List[str]:
    logger.debug("get_aws_guardduty_threat_intel_set_akas")
    data = h.item
    common = get_common_columns_cached(d, h)
    aka = threat_intel_set_aka(
        common.partition,
        d.region,
        common.account_id,
        data.detector_id,
        data.threat_intel_set_id,
    )
    return [aka]


def table_aws_guardduty_threat_intel_set() -> Table:
    return Table(
        name=TABLE_NAME,
        description="AWS GuardDuty ThreatIntelSet",
        get_config=GetConfig(
            key_columns=all_columns(["detector_id", "threat_intel_set_id"]),
            ignore_config=IgnoreConfig(should_ignore_error=is_not_found_error(NOT_FOUND_CODES)),
            hydrate=get_guardduty_threat_intel_set,
        ),
        list_config=ListConfig(
            parent_hydrate=list_guardduty_detectors,
            hydrate=list_guardduty_threat_intel_sets,
            key_columns=[KeyColumn(name="detector_id", require=Require.OPTIONAL)],
        ),
        get_matrix_item=build_region_list,
        columns=aws_regional_columns(
            [
                Column(
                    name="name",
                    type=ColumnType.STRING,
                    description=(
                        "A ThreatIntelSet name displayed in all findings that are generated by "
                        "activity that involves IP addresses included in this ThreatIntelSet."
                    ),
                    hydrate=get_guardduty_threat_intel_set,
                ),
                Column(
                    name="threat_intel_set_id",
                    type=ColumnType.STRING,
                    description="The ID of the ThreatIntelSet.",
                ),
                Column(
                    name="detector_id",
                    type=ColumnType.STRING,
                    description="The ID of the detector.",
                    hydrate=get_guardduty_threat_intel_set,
                ),
                Column(
                    name="format",
                    type=ColumnType.STRING,
                    description="The format of the threatIntelSet.",
                    hydrate=get_guardduty_threat_intel_set,
                ),
                Column(
                    name="location",
                    type=ColumnType.STRING,
                    description="The URI of the file that contains the ThreatIntelSet.",
                    hydrate=get_guardduty_threat_intel_set,
                ),
                Column(
                    name="status",
                    type=ColumnType.STRING,
                    description="The status of threatIntelSet file uploaded.",
                    hydrate=get_guardduty_threat_intel_set,
                ),
                # Standard columns
                Column(
                    name="title",
                    type=ColumnType.STRING,
                    description=resource_interface_description("title"),
                    hydrate=get_guardduty_threat_intel_set,
                    transform=from_field("name"),
                ),
                Column(
                    name="tags",
                    type=ColumnType.JSON,
                    description=resource_interface_description("tags"),
                    hydrate=get_guardduty_threat_intel_set,
                ),
                Column(
                    name="akas",
                    type=ColumnType.JSON,
                    description=resource_interface_description("akas"),
                    hydrate=get_aws_guardduty_threat_intel_set_akas,
                    transform=from_value(),
                ),
            ]
        ),
    )
