# Record stores - repository interfaces plus in-memory implementations
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol

from models import (
    OUTBREAK_STATUSES,
    AlertDraft,
    AlertRecord,
    CaseRecord,
    ClusterKey,
    InsertOutcome,
    OutbreakDraft,
    OutbreakRecord,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised by a store when a read or write cannot be completed."""


class CaseStore(Protocol):
    def query_cases(
        self,
        onset_date_from: Optional[date] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CaseRecord]: ...

    def insert_cases(self, records: Iterable[CaseRecord]) -> List[CaseRecord]: ...


class OutbreakStore(Protocol):
    def find_active_outbreak(self, disease_name: str, location: str) -> Optional[OutbreakRecord]: ...

    def insert_outbreaks(self, drafts: Iterable[OutbreakDraft]) -> List[InsertOutcome]: ...

    def update_outbreak(self, outbreak_id: str, fields: Dict) -> None: ...


class AlertStore(Protocol):
    def insert_alerts(self, drafts: Iterable[AlertDraft]) -> List[InsertOutcome]: ...


def _generate_id() -> str:
    return str(uuid.uuid4())


class InMemoryCaseStore:
    """Case records keyed by id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._cases: Dict[str, CaseRecord] = {}

    def query_cases(
        self,
        onset_date_from: Optional[date] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CaseRecord]:
        """Cases with onset on/after onset_date_from, most recent onset first."""
        with self._lock:
            cases = list(self._cases.values())
        if onset_date_from is not None:
            cases = [c for c in cases if c.onset_date >= onset_date_from]
        if status:
            cases = [c for c in cases if c.status == status]
        cases.sort(key=lambda c: c.onset_date, reverse=True)
        if limit is not None:
            cases = cases[:limit]
        return cases

    def insert_cases(self, records: Iterable[CaseRecord]) -> List[CaseRecord]:
        inserted = []
        with self._lock:
            for record in records:
                if not record.id:
                    record = replace(record, id=_generate_id())
                self._cases[record.id] = record
                inserted.append(record)
        return inserted

    def get_case(self, case_id: str) -> Optional[CaseRecord]:
        with self._lock:
            return self._cases.get(case_id)

    def clear(self):
        with self._lock:
            self._cases.clear()


class InMemoryOutbreakStore:
    """
    Outbreak records. Enforces the unique (disease_name, location) constraint
    over active outbreaks, the same way a partial unique index would.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._outbreaks: Dict[str, OutbreakRecord] = {}

    def _active_for(self, key: ClusterKey) -> Optional[OutbreakRecord]:
        for outbreak in self._outbreaks.values():
            if outbreak.status == "active" and outbreak.cluster_key() == key:
                return outbreak
        return None

    def find_active_outbreak(self, disease_name: str, location: str) -> Optional[OutbreakRecord]:
        with self._lock:
            found = self._active_for(ClusterKey(disease_name, location))
            return replace(found) if found else None

    def insert_outbreaks(self, drafts: Iterable[OutbreakDraft]) -> List[InsertOutcome]:
        """Insert each draft independently; a rejected draft does not affect the rest."""
        outcomes = []
        with self._lock:
            for draft in drafts:
                if draft.status == "active" and self._active_for(draft.key) is not None:
                    outcomes.append(InsertOutcome(
                        request=draft,
                        error=f"active outbreak already exists for {draft.key.disease_name} in {draft.key.location}",
                    ))
                    continue
                record = OutbreakRecord(
                    id=_generate_id(),
                    disease_name=draft.key.disease_name,
                    location=draft.key.location,
                    disease_category=draft.disease_category,
                    case_count=draft.case_count,
                    severity=draft.severity,
                    status=draft.status,
                    detected_date=draft.detected_date,
                    updated_at=draft.detected_date,
                )
                self._outbreaks[record.id] = record
                outcomes.append(InsertOutcome(request=draft, record=replace(record)))
        return outcomes

    def add(self, record: OutbreakRecord) -> OutbreakRecord:
        """Store a fully formed record (seed data). Unique constraint still applies."""
        with self._lock:
            if record.status == "active" and self._active_for(record.cluster_key()) is not None:
                raise StoreError(f"active outbreak already exists for {record.disease_name} in {record.location}")
            self._outbreaks[record.id] = record
        return record

    def update_outbreak(self, outbreak_id: str, fields: Dict) -> None:
        with self._lock:
            outbreak = self._outbreaks.get(outbreak_id)
            if outbreak is None:
                raise StoreError(f"Outbreak {outbreak_id} not found")
            if fields.get("status", outbreak.status) not in OUTBREAK_STATUSES:
                raise StoreError(f"Invalid outbreak status: {fields['status']}")
            if (
                fields.get("status") == "active"
                and outbreak.status != "active"
                and self._active_for(outbreak.cluster_key()) is not None
            ):
                raise StoreError(
                    f"active outbreak already exists for {outbreak.disease_name} in {outbreak.location}"
                )
            self._outbreaks[outbreak_id] = replace(outbreak, **fields)

    def get_outbreak(self, outbreak_id: str) -> Optional[OutbreakRecord]:
        with self._lock:
            found = self._outbreaks.get(outbreak_id)
            return replace(found) if found else None

    def list_outbreaks(self, status: Optional[str] = None) -> List[OutbreakRecord]:
        """Most recently detected first."""
        with self._lock:
            outbreaks = [replace(o) for o in self._outbreaks.values()]
        if status:
            outbreaks = [o for o in outbreaks if o.status == status]
        outbreaks.sort(key=lambda o: o.detected_date, reverse=True)
        return outbreaks

    def clear(self):
        with self._lock:
            self._outbreaks.clear()


class InMemoryAlertStore:
    """Alert records. Only the read flag changes after creation."""

    def __init__(self):
        self._lock = threading.Lock()
        self._alerts: Dict[str, AlertRecord] = {}

    def insert_alerts(self, drafts: Iterable[AlertDraft]) -> List[InsertOutcome]:
        outcomes = []
        with self._lock:
            for draft in drafts:
                record = AlertRecord(
                    id=_generate_id(),
                    alert_type=draft.alert_type,
                    message=draft.message,
                    outbreak_id=draft.outbreak_id,
                    severity=draft.severity,
                )
                self._alerts[record.id] = record
                outcomes.append(InsertOutcome(request=draft, record=record))
        return outcomes

    def add(self, record: AlertRecord) -> AlertRecord:
        with self._lock:
            self._alerts[record.id] = record
        return record

    def list_alerts(self, unread_only: bool = False, limit: Optional[int] = None) -> List[AlertRecord]:
        """Newest first."""
        with self._lock:
            alerts = list(self._alerts.values())
        if unread_only:
            alerts = [a for a in alerts if not a.is_read]
        alerts.sort(key=lambda a: a.created_at, reverse=True)
        if limit is not None:
            alerts = alerts[:limit]
        return alerts

    def mark_read(self, alert_id: str) -> AlertRecord:
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                raise StoreError(f"Alert {alert_id} not found")
            alert.is_read = True
            return alert

    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for a in self._alerts.values() if not a.is_read)

    def clear(self):
        with self._lock:
            self._alerts.clear()
