# Record models - case reports, outbreaks and alerts
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, NamedTuple, Optional

UNKNOWN_LOCATION = "unknown"

CASE_STATUSES = ("reported", "confirmed", "resolved")
OUTBREAK_STATUSES = ("active", "contained", "resolved")
SEVERITIES = ("low", "medium", "high", "critical")


class ClusterKey(NamedTuple):
    """Composite (disease, location) key. Compared exactly, case-sensitive."""
    disease_name: str
    location: str


def normalize_location(location: Optional[str]) -> str:
    """Missing or empty location clusters under the 'unknown' sentinel."""
    return location if location else UNKNOWN_LOCATION


@dataclass
class CaseRecord:
    """A single reported disease occurrence"""
    id: str
    disease_name: str
    onset_date: date
    disease_category: str = "other"
    location: Optional[str] = None
    report_date: Optional[date] = None
    status: str = "reported"  # "reported" | "confirmed" | "resolved"
    patient_age: Optional[int] = None
    patient_gender: Optional[str] = None
    symptoms: List[str] = field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None

    def cluster_key(self) -> ClusterKey:
        return ClusterKey(self.disease_name, normalize_location(self.location))


@dataclass
class OutbreakRecord:
    """A detected cluster of cases sharing disease + location"""
    id: str
    disease_name: str
    location: str
    case_count: int
    severity: str  # "low" | "medium" | "high" | "critical"
    disease_category: str = "other"
    status: str = "active"  # "active" | "contained" | "resolved"
    detected_date: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def cluster_key(self) -> ClusterKey:
        return ClusterKey(self.disease_name, self.location)


@dataclass
class OutbreakDraft:
    """Outbreak fields decided by the detector, before the store assigns an id."""
    key: ClusterKey
    disease_category: str
    case_count: int
    severity: str
    detected_date: datetime
    status: str = "active"


@dataclass
class AlertRecord:
    """Audit/notification entry tied to a detection event"""
    id: str
    alert_type: str  # "new_outbreak" | "case_increase" | "severity_change"
    message: str
    outbreak_id: Optional[str] = None
    severity: Optional[str] = None
    is_read: bool = False
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class AlertDraft:
    alert_type: str
    message: str
    outbreak_id: Optional[str] = None
    severity: Optional[str] = None
    key: Optional[ClusterKey] = None  # cluster that triggered the alert, not persisted


@dataclass
class InsertOutcome:
    """
    Result of one item in a batch insert. Exactly one of record/error is set.
    `request` is the draft that was submitted, so callers pair results by
    identity instead of by position.
    """
    request: object
    record: Optional[object] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None
