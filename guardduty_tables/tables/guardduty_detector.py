"""Parent listing of GuardDuty detectors."""

from __future__ import annotations

import logging
from typing import Iterator

from ..models import Detector
from ..query import HydrateData, QueryData
from ..service import guardduty_service

logger = logging.getLogger(__name__)

PAGE_SIZE = 50


def list_guardduty_detectors(d: QueryData, h: HydrateData) -> Iterator[Detector]:
    svc = guardduty_service(d)
    paginator = svc.get_paginator("list_detectors")

    for page in paginator.paginate(PaginationConfig={"PageSize": PAGE_SIZE}):
        for detector_id in page.get("DetectorIds", []):
            yield Detector(detector_id=detector_id)

            if d.rows_remaining() == 0:
                return
