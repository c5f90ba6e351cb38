"""AWS session, client cache and account-level lookups."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .config import AwsConnectionConfig
from .errors import error_code
from .models import CommonColumnData
from .query import HydrateData, QueryData

logger = logging.getLogger(__name__)

THROTTLING_CODES = frozenset({"Throttling", "ThrottlingException", "RequestLimitExceeded"})


class AwsConnection:
    """Owns the boto3 session and caches one client per (service, region)."""

    def __init__(self, config: AwsConnectionConfig, session: Optional[boto3.Session] = None) -> None:
        self._config = config
        self._session = session or boto3.Session(profile_name=config.profile)
        self._clients: Dict[Tuple[str, str], Any] = {}
        self._lock = threading.Lock()
        self._boto_config = BotoConfig(
            retries={"max_attempts": config.max_attempts, "mode": config.retry_mode},
        )

    @property
    def config(self) -> AwsConnectionConfig:
        return self._config

    def regions(self) -> List[str]:
        if self._config.regions:
            return list(self._config.regions)
        default_region = self._session.region_name or "us-east-1"
        return [default_region]

    def client(self, service_name: str, region: str) -> Any:
        key = (service_name, region)
        with self._lock:
            if key not in self._clients:
                logger.debug("Creating %s client for region %s", service_name, region)
                self._clients[key] = self._session.client(
                    service_name,
                    region_name=region,
                    endpoint_url=self._config.endpoint_url,
                    config=self._boto_config,
                )
            return self._clients[key]

    def set_client(self, service_name: str, region: str, client: Any) -> None:
        """Install a pre-built client, e.g. one wrapped in a botocore Stubber."""
        with self._lock:
            self._clients[(service_name, region)] = client


def guardduty_service(d: QueryData) -> Any:
    region = d.region or d.connection.regions()[0]
    return d.connection.client("guardduty", region)


def _is_throttling(exc: BaseException) -> bool:
    return isinstance(exc, ClientError) and error_code(exc) in THROTTLING_CODES


@retry(
    retry=retry_if_exception(_is_throttling),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)
def _get_caller_identity(sts_client: Any) -> Dict[str, Any]:
    return sts_client.get_caller_identity()


def get_common_columns(d: QueryData, h: HydrateData) -> CommonColumnData:
    """Resolve partition and account ID of the calling identity.

    Call through ``d.cached(get_common_columns, h)`` so the STS request is made
    once per query execution.
    """
    region = d.region or d.connection.regions()[0]
    sts_client = d.connection.client("sts", region)
    identity = _get_caller_identity(sts_client)

    # arn:<partition>:sts::<account>:assumed-role/...
    arn_parts = identity["Arn"].split(":")
    common = CommonColumnData(partition=arn_parts[1], account_id=identity["Account"])
    logger.debug("Resolved common columns: partition=%s account=%s", common.partition, common.account_id)
    return common


def build_region_list(d: QueryData) -> List[Dict[str, Any]]:
    """One matrix item per configured region, narrowed by a ``region`` qual."""
    regions = d.connection.regions()
    region_qual = d.key_column_quals.get("region")
    if isinstance(region_qual, str) and region_qual:
        regions = [r for r in regions if r == region_qual]
    elif isinstance(region_qual, list):
        regions = [r for r in regions if r in region_qual]
    return [{"region": region} for region in regions]
