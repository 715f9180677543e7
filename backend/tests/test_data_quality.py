"""
Data quality metrics - completeness and the 7-day duplicate heuristic
"""
from dataclasses import replace
from datetime import date

from data_quality import compute_quality_metrics, count_potential_duplicates
from models import CaseRecord


def case(case_id, disease="Influenza", location="Delhi", onset=date(2025, 10, 1), **kwargs):
    base = CaseRecord(
        id=case_id,
        disease_name=disease,
        location=location,
        onset_date=onset,
        patient_age=30,
        symptoms=["fever"],
    )
    return replace(base, **kwargs)


class TestDuplicates:
    def test_same_disease_location_within_7_days(self):
        cases = [case("1", onset=date(2025, 10, 1)), case("2", onset=date(2025, 10, 8))]
        assert count_potential_duplicates(cases) == 1

    def test_more_than_7_days_apart_is_not_duplicate(self):
        cases = [case("1", onset=date(2025, 10, 1)), case("2", onset=date(2025, 10, 9))]
        assert count_potential_duplicates(cases) == 0

    def test_different_location_is_not_duplicate(self):
        cases = [case("1"), case("2", location="Mumbai")]
        assert count_potential_duplicates(cases) == 0

    def test_three_close_cases_count_two_duplicates(self):
        cases = [case("1"), case("2"), case("3")]
        assert count_potential_duplicates(cases) == 2


class TestQualityMetrics:
    def test_empty(self):
        metrics = compute_quality_metrics([])
        assert metrics["totalCases"] == 0
        assert metrics["completenessPercentage"] == 0
        assert metrics["accuracyScore"] == 100
        assert metrics["issues"] == []

    def test_missing_fields_reported(self):
        cases = [
            case("1"),
            case("2", disease="Malaria", patient_age=None),
            case("3", disease="Dengue", location=None, symptoms=[]),
            case("4", disease="Cholera"),
        ]
        metrics = compute_quality_metrics(cases)
        assert metrics["totalCases"] == 4
        assert metrics["completeCases"] == 2
        assert metrics["incompleteCases"] == 2
        assert metrics["missingAgeCount"] == 1
        assert metrics["missingLocationCount"] == 1
        assert metrics["missingSymptomCount"] == 1
        assert metrics["completenessPercentage"] == 50
        assert "1 cases missing patient age" in metrics["issues"]

    def test_duplicates_lower_accuracy(self):
        cases = [case("1"), case("2")]
        metrics = compute_quality_metrics(cases)
        assert metrics["duplicateCases"] == 1
        assert metrics["accuracyScore"] == 95
        assert "1 potential duplicate cases detected" in metrics["issues"]

    def test_missing_onset_date_reported(self):
        cases = [case("1"), case("2", onset=None), case("3", disease="Malaria")]
        metrics = compute_quality_metrics(cases)
        assert metrics["missingOnsetDateCount"] == 1
        assert metrics["completeCases"] == 2
        assert metrics["duplicateCases"] == 0
        assert "1 cases missing onset date" in metrics["issues"]
