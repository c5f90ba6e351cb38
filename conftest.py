"""Shared fixtures: a real boto3 session whose clients are stubbed per test."""

from __future__ import annotations

import boto3
import pytest
from botocore.stub import Stubber

from guardduty_tables.config import AwsConnectionConfig
from guardduty_tables.service import AwsConnection

ACCOUNT_ID = "123456789012"
CALLER_ARN = f"arn:aws:sts::{ACCOUNT_ID}:assumed-role/auditor/session"


@pytest.fixture
def session():
    return boto3.Session(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name="us-east-1",
    )


@pytest.fixture
def connection(session):
    return AwsConnection(AwsConnectionConfig(regions=["us-east-1"]), session=session)


@pytest.fixture
def stub(session, connection):
    """Return a factory installing a stubbed client on the connection."""
    stubbers = []

    def _stub(service_name: str, region: str = "us-east-1") -> Stubber:
        client = session.client(service_name, region_name=region)
        connection.set_client(service_name, region, client)
        stubber = Stubber(client)
        stubber.activate()
        stubbers.append(stubber)
        return stubber

    yield _stub

    for stubber in stubbers:
        stubber.deactivate()


def add_caller_identity(stubber: Stubber) -> None:
    stubber.add_response(
        "get_caller_identity",
        {"UserId": "AROAEXAMPLE:session", "Account": ACCOUNT_ID, "Arn": CALLER_ARN},
        {},
    )


def threat_intel_set_response(name: str = "blocklist", status: str = "ACTIVE") -> dict:
    return {
        "Name": name,
        "Format": "TXT",
        "Location": f"https://s3.amazonaws.com/intel-bucket/{name}.txt",
        "Status": status,
        "Tags": {"team": "secops"},
    }
