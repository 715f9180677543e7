# Data quality - completeness metrics and potential-duplicate counts for case records
# Separate from outbreak detection: duplicates use a 7-day window and count pairs, not clusters.
from __future__ import annotations

from collections import defaultdict
from datetime import timedelta
from typing import DefaultDict, Dict, List

from models import CaseRecord, ClusterKey, normalize_location

DUPLICATE_WINDOW_DAYS = 7


def is_complete(case: CaseRecord) -> bool:
    return (
        case.patient_age is not None
        and bool(case.location)
        and bool(case.symptoms)
        and case.onset_date is not None
    )


def count_potential_duplicates(cases: List[CaseRecord]) -> int:
    """
    Cases whose disease + location match an earlier case with onset no more
    than 7 days before. The first case of each run is never counted.
    Cases without an onset date are left out.
    """
    by_key: DefaultDict[ClusterKey, List[CaseRecord]] = defaultdict(list)
    for case in cases:
        if case.onset_date is None:
            continue
        by_key[ClusterKey(case.disease_name, normalize_location(case.location))].append(case)

    duplicates = 0
    window = timedelta(days=DUPLICATE_WINDOW_DAYS)
    for group in by_key.values():
        group.sort(key=lambda c: c.onset_date)
        for previous, current in zip(group, group[1:]):
            if current.onset_date - previous.onset_date <= window:
                duplicates += 1
    return duplicates


def compute_quality_metrics(cases: List[CaseRecord]) -> Dict:
    total = len(cases)
    complete = sum(1 for c in cases if is_complete(c))
    missing_age = sum(1 for c in cases if c.patient_age is None)
    missing_location = sum(1 for c in cases if not c.location)
    missing_symptoms = sum(1 for c in cases if not c.symptoms)
    missing_onset = sum(1 for c in cases if c.onset_date is None)
    duplicates = count_potential_duplicates(cases)

    completeness = round(complete / total * 100) if total > 0 else 0
    accuracy = max(0.0, 100 - (duplicates / max(1, total)) * 10)

    issues: List[str] = []
    if missing_age:
        issues.append(f"{missing_age} cases missing patient age")
    if missing_location:
        issues.append(f"{missing_location} cases missing location")
    if missing_symptoms:
        issues.append(f"{missing_symptoms} cases missing symptoms")
    if missing_onset:
        issues.append(f"{missing_onset} cases missing onset date")
    if duplicates:
        issues.append(f"{duplicates} potential duplicate cases detected")

    return {
        "totalCases": total,
        "completeCases": complete,
        "incompleteCases": total - complete,
        "missingAgeCount": missing_age,
        "missingLocationCount": missing_location,
        "missingSymptomCount": missing_symptoms,
        "missingOnsetDateCount": missing_onset,
        "duplicateCases": duplicates,
        "completenessPercentage": completeness,
        "accuracyScore": round(accuracy),
        "consistencyScore": completeness,
        "issues": issues,
    }
