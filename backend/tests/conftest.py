"""
Shared pytest fixtures for outbreak detection and API tests.
"""
from datetime import date, datetime, timedelta
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

import main
from detection import OutbreakDetector
from models import CaseRecord, OutbreakRecord
from stores import InMemoryAlertStore, InMemoryCaseStore, InMemoryOutbreakStore

# Fixed clock for detector tests
TODAY = date(2025, 10, 25)
NOW = datetime(2025, 10, 25, 9, 30)

_counter = {"n": 0}


def make_cases(
    count: int,
    disease: str = "Influenza",
    location: Optional[str] = "New York, NY",
    days_ago: int = 1,
    category: str = "Respiratory",
    today: date = TODAY,
) -> List[CaseRecord]:
    """Build `count` case records sharing disease, location and onset date."""
    cases = []
    for _ in range(count):
        _counter["n"] += 1
        cases.append(CaseRecord(
            id=f"case-{_counter['n']}",
            disease_name=disease,
            disease_category=category,
            location=location,
            onset_date=today - timedelta(days=days_ago),
            status="reported",
        ))
    return cases


def make_outbreak(
    case_count: int,
    severity: str,
    disease: str = "Influenza",
    location: str = "New York, NY",
    status: str = "active",
    outbreak_id: str = "outbreak-existing",
) -> OutbreakRecord:
    return OutbreakRecord(
        id=outbreak_id,
        disease_name=disease,
        disease_category="Respiratory",
        location=location,
        case_count=case_count,
        severity=severity,
        status=status,
        detected_date=NOW - timedelta(days=3),
        updated_at=NOW - timedelta(days=3),
    )


@pytest.fixture
def case_store():
    return InMemoryCaseStore()


@pytest.fixture
def outbreak_store():
    return InMemoryOutbreakStore()


@pytest.fixture
def alert_store():
    return InMemoryAlertStore()


@pytest.fixture
def detector(case_store, outbreak_store, alert_store):
    """Detector wired to fresh in-memory stores with a fixed clock."""
    return OutbreakDetector(case_store, outbreak_store, alert_store, today=TODAY, clock=lambda: NOW)


@pytest.fixture
def client():
    """FastAPI TestClient."""
    return TestClient(main.app)


@pytest.fixture
def empty_stores():
    """Clear the app's stores; restore the seed dataset afterwards."""
    main.case_store.clear()
    main.outbreak_store.clear()
    main.alert_store.clear()
    yield
    main.seed_data(main.case_store, main.outbreak_store, main.alert_store)


@pytest.fixture
def seeded_stores():
    main.seed_data(main.case_store, main.outbreak_store, main.alert_store)
    yield
    main.seed_data(main.case_store, main.outbreak_store, main.alert_store)
