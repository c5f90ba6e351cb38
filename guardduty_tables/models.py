"""Domain models used throughout the GuardDuty table connector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Detector:
    detector_id: str


@dataclass(frozen=True)
class ThreatIntelSetSummary:
    detector_id: str
    threat_intel_set_id: str


@dataclass(frozen=True)
class ThreatIntelSetDetail:
    detector_id: str
    threat_intel_set_id: str
    name: Optional[str] = None
    format: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[Dict[str, str]] = None

    @classmethod
    def from_response(
        cls, detector_id: str, threat_intel_set_id: str, response: Dict[str, Any]
    ) -> "ThreatIntelSetDetail":
        return cls(
            detector_id=detector_id,
            threat_intel_set_id=threat_intel_set_id,
            name=response.get("Name"),
            format=response.get("Format"),
            location=response.get("Location"),
            status=response.get("Status"),
            tags=response.get("Tags"),
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "detector_id": self.detector_id,
            "threat_intel_set_id": self.threat_intel_set_id,
            "name": self.name,
            "format": self.format,
            "location": self.location,
            "status": self.status,
            "tags": dict(self.tags) if self.tags is not None else None,
        }


@dataclass(frozen=True)
class CommonColumnData:
    """Account context shared by every row of one query."""

    partition: str
    account_id: str
