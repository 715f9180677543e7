# Outbreak detection - clustering, severity banding and reconciliation against active outbreaks
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, DefaultDict, Dict, List, Optional

from models import (
    AlertDraft,
    CaseRecord,
    ClusterKey,
    InsertOutcome,
    OutbreakDraft,
    OutbreakRecord,
)
from stores import AlertStore, CaseStore, OutbreakStore, StoreError

logger = logging.getLogger(__name__)

WINDOW_DAYS = 30
OUTBREAK_THRESHOLD = 3

# Highest band first; first match wins
SEVERITY_BANDS = [
    (20, "critical"),
    (10, "high"),
    (5, "medium"),
]


class DetectionError(Exception):
    """The case window could not be read; the run was aborted before any write."""


def classify_severity(case_count: int) -> str:
    """Severity band for a cluster size: 3-4 low, 5-9 medium, 10-19 high, 20+ critical."""
    for minimum, severity in SEVERITY_BANDS:
        if case_count >= minimum:
            return severity
    return "low"


def cluster_cases(cases: List[CaseRecord]) -> Dict[ClusterKey, List[CaseRecord]]:
    """Group cases by exact (disease_name, location). Input order is kept within each cluster."""
    clusters: DefaultDict[ClusterKey, List[CaseRecord]] = defaultdict(list)
    for case in cases:
        if not case.disease_name or case.onset_date is None:
            continue
        clusters[case.cluster_key()].append(case)
    return dict(clusters)


def eligible_clusters(clusters: Dict[ClusterKey, List[CaseRecord]]) -> Dict[ClusterKey, List[CaseRecord]]:
    return {key: cases for key, cases in clusters.items() if len(cases) >= OUTBREAK_THRESHOLD}


def new_outbreak_message(key: ClusterKey, case_count: int) -> str:
    return f"New outbreak detected: {case_count} cases of {key.disease_name} in {key.location}"


def severity_change_message(key: ClusterKey, severity: str, previous: str, case_count: int) -> str:
    return (
        f"Outbreak severity changed from {previous} to {severity}: "
        f"{key.disease_name} in {key.location} ({case_count} cases)"
    )


def case_increase_message(key: ClusterKey, increase: int, case_count: int) -> str:
    return (
        f"+{increase} new cases reported for {key.disease_name} in {key.location} "
        f"({case_count} total)"
    )


@dataclass
class ClusterError:
    """A per-cluster store failure. The rest of the run carried on."""
    disease_name: str
    location: str
    stage: str  # "lookup" | "insert_outbreak" | "update_outbreak" | "insert_alert"
    error: str

    def to_dict(self) -> Dict:
        return {
            "diseaseName": self.disease_name,
            "location": self.location,
            "stage": self.stage,
            "error": self.error,
        }


@dataclass
class DetectionResult:
    outbreaks_created: int = 0
    outbreaks_updated: int = 0
    alerts_created: int = 0
    cases_analyzed: int = 0
    errors: List[ClusterError] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "success": True,
            "outbreaksDetected": self.outbreaks_created,
            "outbreaksUpdated": self.outbreaks_updated,
            "alertsCreated": self.alerts_created,
            "casesAnalyzed": self.cases_analyzed,
            "errors": [e.to_dict() for e in self.errors],
        }


class OutbreakDetector:
    """
    One detection run over the current 30-day case window.

    Stores are injected so the detector can run against any backend (or an
    in-memory fake). Callers serialize concurrent runs; the outbreak store
    rejects a second active outbreak for the same key.
    """

    def __init__(
        self,
        case_store: CaseStore,
        outbreak_store: OutbreakStore,
        alert_store: AlertStore,
        today: Optional[date] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.case_store = case_store
        self.outbreak_store = outbreak_store
        self.alert_store = alert_store
        self.today = today
        self.clock = clock

    def window_start(self) -> date:
        today = self.today or self.clock().date()
        return today - timedelta(days=WINDOW_DAYS)

    def load_window(self) -> List[CaseRecord]:
        start = self.window_start()
        try:
            return self.case_store.query_cases(onset_date_from=start)
        except Exception as e:
            logger.exception("Failed to read case window starting %s", start)
            raise DetectionError(f"Failed to read case window: {e}") from e

    def detect(self) -> DetectionResult:
        cases = self.load_window()
        result = DetectionResult(cases_analyzed=len(cases))
        if not cases:
            logger.info("No recent cases to analyze")
            return result

        clusters = eligible_clusters(cluster_cases(cases))
        logger.info("Analyzing %d cases: %d clusters at or above threshold", len(cases), len(clusters))

        drafts: List[OutbreakDraft] = []
        for key, cluster in clusters.items():
            try:
                existing = self.outbreak_store.find_active_outbreak(key.disease_name, key.location)
            except StoreError as e:
                self._record_error(result, key, "lookup", e)
                continue

            if existing is None:
                drafts.append(OutbreakDraft(
                    key=key,
                    disease_category=cluster[0].disease_category,
                    case_count=len(cluster),
                    severity=classify_severity(len(cluster)),
                    detected_date=self.clock(),
                ))
            elif len(cluster) > existing.case_count:
                self._apply_update(result, key, existing, len(cluster))
            # Cluster did not grow: nothing to write. Shrinkage is resolved externally.

        if drafts:
            self._create_outbreaks(result, drafts)

        logger.info(
            "Detection run complete: %d created, %d updated, %d alerts, %d errors",
            result.outbreaks_created, result.outbreaks_updated, result.alerts_created, len(result.errors),
        )
        return result

    def _apply_update(self, result: DetectionResult, key: ClusterKey, outbreak: OutbreakRecord, case_count: int):
        severity = classify_severity(case_count)
        severity_changed = severity != outbreak.severity
        fields = {"case_count": case_count, "updated_at": self.clock()}
        if severity_changed:
            fields["severity"] = severity

        try:
            self.outbreak_store.update_outbreak(outbreak.id, fields)
        except StoreError as e:
            self._record_error(result, key, "update_outbreak", e)
            return
        result.outbreaks_updated += 1

        # Exactly one alert per update
        if severity_changed:
            alert = AlertDraft(
                alert_type="severity_change",
                message=severity_change_message(key, severity, outbreak.severity, case_count),
                outbreak_id=outbreak.id,
                severity=severity,
                key=key,
            )
        else:
            alert = AlertDraft(
                alert_type="case_increase",
                message=case_increase_message(key, case_count - outbreak.case_count, case_count),
                outbreak_id=outbreak.id,
                key=key,
            )
        self._insert_alerts(result, [alert])

    def _create_outbreaks(self, result: DetectionResult, drafts: List[OutbreakDraft]):
        try:
            outcomes = self.outbreak_store.insert_outbreaks(drafts)
        except StoreError as e:
            for draft in drafts:
                self._record_error(result, draft.key, "insert_outbreak", e)
            return

        # Alerts are built from each outcome's own draft, never by list position
        alerts: List[AlertDraft] = []
        for outcome in outcomes:
            draft: OutbreakDraft = outcome.request
            if not outcome.ok:
                self._record_error(result, draft.key, "insert_outbreak", outcome.error)
                continue
            result.outbreaks_created += 1
            alerts.append(AlertDraft(
                alert_type="new_outbreak",
                message=new_outbreak_message(draft.key, draft.case_count),
                outbreak_id=outcome.record.id,
                severity=draft.severity,
                key=draft.key,
            ))

        if alerts:
            self._insert_alerts(result, alerts)

    def _insert_alerts(self, result: DetectionResult, alerts: List[AlertDraft]):
        try:
            outcomes: List[InsertOutcome] = self.alert_store.insert_alerts(alerts)
        except StoreError as e:
            for alert in alerts:
                self._record_error(result, alert.key, "insert_alert", e)
            return
        for outcome in outcomes:
            if outcome.ok:
                result.alerts_created += 1
            else:
                self._record_error(result, outcome.request.key, "insert_alert", outcome.error)

    def _record_error(self, result: DetectionResult, key: ClusterKey, stage: str, error):
        logger.error("Detection %s failed for %s in %s: %s", stage, key.disease_name, key.location, error)
        result.errors.append(ClusterError(key.disease_name, key.location, stage, str(error)))
