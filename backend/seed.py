# Seed data - demo cases, outbreaks and alerts dated relative to today
import logging
from datetime import date, datetime, timedelta

from models import AlertRecord, CaseRecord, OutbreakRecord

logger = logging.getLogger(__name__)

# (id, age, gender, disease, category, symptoms, onset days ago, status, location, lat, lon, notes)
SEED_CASES = [
    ("case-001", 35, "M", "Influenza", "Respiratory", ["fever", "cough", "fatigue"], 4, "confirmed",
     "New York, NY", 40.7128, -74.0060, "Patient hospitalized for 3 days"),
    ("case-002", 28, "F", "Influenza", "Respiratory", ["fever", "sore throat", "cough"], 3, "confirmed",
     "New York, NY", 40.7128, -74.0060, "Close contact with case 1"),
    ("case-003", 42, "M", "Influenza", "Respiratory", ["fever", "cough", "body aches"], 2, "confirmed",
     "New York, NY", 40.7128, -74.0060, "Healthcare worker"),
    ("case-004", 55, "F", "COVID-19", "Respiratory", ["fever", "cough", "shortness of breath"], 5, "confirmed",
     "New York, NY", 40.7128, -74.0060, "Severe case, ICU admission"),
    ("case-005", 31, "M", "Measles", "Viral", ["rash", "fever", "cough"], 6, "reported",
     "New York, NY", 40.7128, -74.0060, "Unvaccinated patient"),
    ("case-006", 5, "M", "Canine Distemper", "Viral", ["fever", "cough", "lethargy"], 4, "confirmed",
     "Los Angeles, CA", 34.0522, -118.2437, "Dog from local shelter"),
    ("case-007", 3, "F", "Canine Distemper", "Viral", ["fever", "nasal discharge"], 3, "confirmed",
     "Los Angeles, CA", 34.0522, -118.2437, "Contact with case 6"),
    ("case-008", 7, "M", "Feline Leukemia", "Viral", ["lethargy", "anorexia"], 9, "resolved",
     "Los Angeles, CA", 34.0522, -118.2437, "Treated successfully"),
    ("case-009", 45, "M", "Dengue Fever", "Viral", ["fever", "headache", "joint pain"], 7, "confirmed",
     "Houston, TX", 29.7604, -95.3698, "Recent travel to endemic area"),
    ("case-010", 38, "F", "Dengue Fever", "Viral", ["fever", "rash", "muscle pain"], 6, "confirmed",
     "Houston, TX", 29.7604, -95.3698, "Family member of case 9"),
]


def seed_data(case_store, outbreak_store, alert_store, today: date = None):
    """Reset all stores to the demo dataset."""
    today = today or date.today()
    now = datetime.combine(today, datetime.now().time())

    case_store.clear()
    outbreak_store.clear()
    alert_store.clear()

    cases = []
    for (case_id, age, gender, disease, category, symptoms, days_ago, status,
         location, lat, lon, notes) in SEED_CASES:
        onset = today - timedelta(days=days_ago)
        cases.append(CaseRecord(
            id=case_id,
            disease_name=disease,
            disease_category=category,
            onset_date=onset,
            report_date=onset + timedelta(days=1),
            status=status,
            location=location,
            patient_age=age,
            patient_gender=gender,
            symptoms=list(symptoms),
            latitude=lat,
            longitude=lon,
            notes=notes,
        ))
    case_store.insert_cases(cases)

    # Influenza cluster in New York already detected; COVID-19 contained
    influenza = outbreak_store.add(OutbreakRecord(
        id="outbreak-001",
        disease_name="Influenza",
        disease_category="Respiratory",
        location="New York, NY",
        case_count=3,
        severity="low",
        status="active",
        detected_date=now - timedelta(days=2),
        updated_at=now - timedelta(days=2),
    ))
    outbreak_store.add(OutbreakRecord(
        id="outbreak-002",
        disease_name="COVID-19",
        disease_category="Respiratory",
        location="New York, NY",
        case_count=3,
        severity="low",
        status="contained",
        detected_date=now - timedelta(days=10),
        updated_at=now - timedelta(days=4),
    ))

    alert_store.add(AlertRecord(
        id="alert-001",
        outbreak_id=influenza.id,
        alert_type="new_outbreak",
        message="New outbreak detected: 3 cases of Influenza in New York, NY",
        severity="low",
        created_at=now - timedelta(days=2),
    ))
    alert_store.add(AlertRecord(
        id="alert-002",
        outbreak_id="outbreak-002",
        alert_type="new_outbreak",
        message="New outbreak detected: 3 cases of COVID-19 in New York, NY",
        severity="low",
        is_read=True,
        created_at=now - timedelta(days=10),
    ))

    logger.info(
        "Seed data initialized: %d cases, %d outbreaks, %d alerts",
        len(cases), len(outbreak_store.list_outbreaks()), len(alert_store.list_alerts()),
    )
