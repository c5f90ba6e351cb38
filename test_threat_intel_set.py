"""Resolver-level tests for the aws_guardduty_threat_intel_set table."""

import pytest
from botocore.exceptions import ClientError

from conftest import ACCOUNT_ID, add_caller_identity, threat_intel_set_response
from guardduty_tables.models import Detector, ThreatIntelSetDetail, ThreatIntelSetSummary
from guardduty_tables.plugin import ColumnSource, TransformContext
from guardduty_tables.query import HydrateData, QueryData, QueryStatus
from guardduty_tables.service import get_common_columns
from guardduty_tables.tables.guardduty_detector import list_guardduty_detectors
from guardduty_tables.tables.guardduty_threat_intel_set import (
    get_aws_guardduty_threat_intel_set_akas,
    get_guardduty_threat_intel_set,
    list_guardduty_threat_intel_sets,
    table_aws_guardduty_threat_intel_set,
    threat_intel_set_aka,
)
from guardduty_tables.transforms import from_constant


def make_query_data(connection, quals=None, status=None):
    return QueryData(
        table=table_aws_guardduty_threat_intel_set(),
        connection=connection,
        key_column_quals=quals or {},
        matrix_item={"region": "us-east-1"},
        status=status or QueryStatus(),
    )


def test_single_value_filter_skips_other_detector(connection, stub):
    gd = stub("guardduty")
    d = make_query_data(connection, quals={"detector_id": "d2"})

    rows = list(list_guardduty_threat_intel_sets(d, HydrateData(item=Detector("d1"))))

    assert rows == []
    gd.assert_no_pending_responses()


def test_list_value_filter_skips_detector_not_in_list(connection, stub):
    stub("guardduty")
    d = make_query_data(connection, quals={"detector_id": ["d2", "d3"]})

    rows = list(list_guardduty_threat_intel_sets(d, HydrateData(item=Detector("d1"))))

    assert rows == []


def test_list_value_filter_matches_by_substring(connection, stub):
    # "d1" is contained in "[d10 d20]", so the detector is still listed
    gd = stub("guardduty")
    gd.add_response(
        "list_threat_intel_sets",
        {"ThreatIntelSetIds": ["t1"]},
        {"DetectorId": "d1", "MaxResults": 50},
    )
    d = make_query_data(connection, quals={"detector_id": ["d10", "d20"]})

    rows = list(list_guardduty_threat_intel_sets(d, HydrateData(item=Detector("d1"))))

    assert rows == [ThreatIntelSetSummary("d1", "t1")]


def test_matching_filter_lists_detector(connection, stub):
    gd = stub("guardduty")
    gd.add_response(
        "list_threat_intel_sets",
        {"ThreatIntelSetIds": ["t1", "t2"]},
        {"DetectorId": "d1", "MaxResults": 50},
    )
    d = make_query_data(connection, quals={"detector_id": "d1"})

    rows = list(list_guardduty_threat_intel_sets(d, HydrateData(item=Detector("d1"))))

    assert [r.threat_intel_set_id for r in rows] == ["t1", "t2"]
    gd.assert_no_pending_responses()


def test_pagination_emits_every_id_once_in_page_order(connection, stub):
    gd = stub("guardduty")
    pages = [
        [f"set-a-{i}" for i in range(50)],
        [f"set-b-{i}" for i in range(50)],
        [f"set-c-{i}" for i in range(7)],
    ]
    gd.add_response(
        "list_threat_intel_sets",
        {"ThreatIntelSetIds": pages[0], "NextToken": "token-1"},
        {"DetectorId": "d1", "MaxResults": 50},
    )
    gd.add_response(
        "list_threat_intel_sets",
        {"ThreatIntelSetIds": pages[1], "NextToken": "token-2"},
        {"DetectorId": "d1", "MaxResults": 50, "NextToken": "token-1"},
    )
    gd.add_response(
        "list_threat_intel_sets",
        {"ThreatIntelSetIds": pages[2]},
        {"DetectorId": "d1", "MaxResults": 50, "NextToken": "token-2"},
    )
    d = make_query_data(connection)

    rows = list(list_guardduty_threat_intel_sets(d, HydrateData(item=Detector("d1"))))

    expected = pages[0] + pages[1] + pages[2]
    assert len(rows) == 107
    assert [r.threat_intel_set_id for r in rows] == expected
    assert all(r.detector_id == "d1" for r in rows)
    gd.assert_no_pending_responses()


def test_stops_paginating_when_no_rows_remain(connection, stub):
    gd = stub("guardduty")
    gd.add_response(
        "list_threat_intel_sets",
        {"ThreatIntelSetIds": ["t1", "t2", "t3"], "NextToken": "token-1"},
        {"DetectorId": "d1", "MaxResults": 50},
    )
    status = QueryStatus(limit=2)
    d = make_query_data(connection, status=status)

    rows = []
    for summary in list_guardduty_threat_intel_sets(d, HydrateData(item=Detector("d1"))):
        rows.append(summary)
        status.row_streamed()

    assert [r.threat_intel_set_id for r in rows] == ["t1", "t2"]
    gd.assert_no_pending_responses()


def test_cancellation_stops_listing(connection, stub):
    gd = stub("guardduty")
    gd.add_response(
        "list_threat_intel_sets",
        {"ThreatIntelSetIds": ["t1", "t2"], "NextToken": "token-1"},
        {"DetectorId": "d1", "MaxResults": 50},
    )
    status = QueryStatus()
    d = make_query_data(connection, status=status)

    rows = []
    for summary in list_guardduty_threat_intel_sets(d, HydrateData(item=Detector("d1"))):
        rows.append(summary)
        status.cancel()

    assert len(rows) == 1


def test_list_error_propagates(connection, stub):
    gd = stub("guardduty")
    gd.add_client_error(
        "list_threat_intel_sets",
        service_error_code="AccessDeniedException",
        http_status_code=403,
    )
    d = make_query_data(connection)

    with pytest.raises(ClientError):
        list(list_guardduty_threat_intel_sets(d, HydrateData(item=Detector("d1"))))


def test_get_from_hydrated_list_item(connection, stub):
    gd = stub("guardduty")
    gd.add_response(
        "get_threat_intel_set",
        threat_intel_set_response(),
        {"DetectorId": "d1", "ThreatIntelSetId": "t1"},
    )
    d = make_query_data(connection)

    detail = get_guardduty_threat_intel_set(d, HydrateData(item=ThreatIntelSetSummary("d1", "t1")))

    assert (detail.detector_id, detail.threat_intel_set_id) == ("d1", "t1")
    assert detail.name == "blocklist"
    assert detail.format == "TXT"
    assert detail.status == "ACTIVE"
    assert detail.tags == {"team": "secops"}


def test_get_from_key_column_quals(connection, stub):
    gd = stub("guardduty")
    gd.add_response(
        "get_threat_intel_set",
        threat_intel_set_response(),
        {"DetectorId": "d1", "ThreatIntelSetId": "t1"},
    )
    d = make_query_data(connection, quals={"detector_id": "d1", "threat_intel_set_id": "t1"})

    detail = get_guardduty_threat_intel_set(d, HydrateData())

    assert (detail.detector_id, detail.threat_intel_set_id) == ("d1", "t1")


def test_get_error_is_returned_unchanged(connection, stub):
    gd = stub("guardduty")
    gd.add_client_error(
        "get_threat_intel_set",
        service_error_code="InvalidInputException",
        http_status_code=400,
    )
    d = make_query_data(connection)

    with pytest.raises(ClientError) as excinfo:
        get_guardduty_threat_intel_set(d, HydrateData(item=ThreatIntelSetSummary("d1", "nope")))

    assert excinfo.value.response["Error"]["Code"] == "InvalidInputException"


def test_aka_format():
    aka = threat_intel_set_aka("aws", "us-east-1", "123456789012", "d1", "t1")

    assert aka == "arn:aws:guardduty:us-east-1:123456789012:detector/d1/threatintelset/t1"


def test_akas_hydrate_uses_cached_common_columns(connection, stub):
    sts = stub("sts")
    add_caller_identity(sts)
    d = make_query_data(connection)

    first = get_aws_guardduty_threat_intel_set_akas(d, HydrateData(item=ThreatIntelSetSummary("d1", "t1")))
    second = get_aws_guardduty_threat_intel_set_akas(
        d, HydrateData(item=ThreatIntelSetDetail(detector_id="d1", threat_intel_set_id="t2"))
    )

    assert first == [f"arn:aws:guardduty:us-east-1:{ACCOUNT_ID}:detector/d1/threatintelset/t1"]
    assert second == [f"arn:aws:guardduty:us-east-1:{ACCOUNT_ID}:detector/d1/threatintelset/t2"]
    sts.assert_no_pending_responses()


def test_table_descriptor_columns():
    table = table_aws_guardduty_threat_intel_set()

    assert table.name == "aws_guardduty_threat_intel_set"
    assert table.column_names() == [
        "name",
        "threat_intel_set_id",
        "detector_id",
        "format",
        "location",
        "status",
        "title",
        "tags",
        "akas",
        "partition",
        "region",
        "account_id",
    ]
    assert [k.name for k in table.get_config.key_columns] == ["detector_id", "threat_intel_set_id"]
    assert [k.name for k in table.list_config.key_columns] == ["detector_id"]


def test_column_sources():
    table = table_aws_guardduty_threat_intel_set()
    sources = {column.name: table.column_source(column) for column in table.columns}

    assert sources["threat_intel_set_id"] == ColumnSource.LIST_ITEM
    assert sources["region"] == ColumnSource.LIST_ITEM
    assert sources["name"] == ColumnSource.GET
    assert sources["title"] == ColumnSource.GET
    assert sources["akas"] == ColumnSource.HYDRATE
    assert sources["account_id"] == ColumnSource.HYDRATE


def test_list_detectors_pages(connection, stub):
    gd = stub("guardduty")
    gd.add_response("list_detectors", {"DetectorIds": ["d1"], "NextToken": "next"}, {"MaxResults": 50})
    gd.add_response("list_detectors", {"DetectorIds": ["d2"]}, {"MaxResults": 50, "NextToken": "next"})
    d = make_query_data(connection)

    detectors = list(list_guardduty_detectors(d, HydrateData()))

    assert detectors == [Detector("d1"), Detector("d2")]


def test_common_columns_partition_from_caller_arn(connection, stub):
    sts = stub("sts")
    sts.add_response(
        "get_caller_identity",
        {
            "UserId": "AIDAEXAMPLE",
            "Account": "210987654321",
            "Arn": "arn:aws-us-gov:iam::210987654321:user/auditor",
        },
        {},
    )
    d = make_query_data(connection)

    common = get_common_columns(d, HydrateData())

    assert common.partition == "aws-us-gov"
    assert common.account_id == "210987654321"


def test_detail_without_tags_keeps_null_tags():
    response = threat_intel_set_response()
    del response["Tags"]

    detail = ThreatIntelSetDetail.from_response("d1", "t1", response)

    assert detail.tags is None
    assert detail.to_dict() == {
        "detector_id": "d1",
        "threat_intel_set_id": "t1",
        "name": "blocklist",
        "format": "TXT",
        "location": "https://s3.amazonaws.com/intel-bucket/blocklist.txt",
        "status": "ACTIVE",
        "tags": None,
    }


def test_from_constant_ignores_hydrate_result():
    transform = from_constant("guardduty")
    ctx = TransformContext(column_name="service", matrix_item={"region": "us-east-1"})

    assert transform(ThreatIntelSetSummary("d1", "t1"), ctx) == "guardduty"
    assert transform(None, ctx) == "guardduty"
