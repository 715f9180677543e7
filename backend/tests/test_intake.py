"""
Case intake validation tests
"""
from datetime import date

import pytest

from intake import IntakeError, build_case, categorize_diseases, submit_cases
from stores import InMemoryCaseStore

TODAY = date(2025, 10, 25)


class TestBuildCase:
    """Single-row validation"""

    def test_minimal_row(self):
        case = build_case({"disease_name": " Influenza ", "onset_date": "2025-10-20"}, today=TODAY)
        assert case.disease_name == "Influenza"
        assert case.onset_date == date(2025, 10, 20)
        assert case.report_date == TODAY
        assert case.status == "reported"
        assert case.disease_category == "other"
        assert case.location is None

    @pytest.mark.parametrize("row", [
        {"onset_date": "2025-10-20"},
        {"disease_name": "", "onset_date": "2025-10-20"},
        {"disease_name": "Influenza"},
    ])
    def test_required_fields(self, row):
        with pytest.raises(IntakeError):
            build_case(row)

    def test_invalid_onset_date(self):
        with pytest.raises(IntakeError):
            build_case({"disease_name": "Influenza", "onset_date": "20/10/2025"})

    def test_invalid_status(self):
        with pytest.raises(IntakeError):
            build_case({"disease_name": "Influenza", "onset_date": "2025-10-20", "status": "suspected"})

    def test_out_of_range_coordinates_are_dropped(self):
        case = build_case({
            "disease_name": "Malaria",
            "onset_date": "2025-10-20",
            "latitude": "91.5",
            "longitude": "-74.006",
        })
        assert case.latitude is None
        assert case.longitude == -74.006

    def test_non_numeric_values_are_dropped(self):
        case = build_case({
            "disease_name": "Malaria",
            "onset_date": "2025-10-20",
            "latitude": "north",
            "patient_age": "unknown",
        })
        assert case.latitude is None
        assert case.patient_age is None

    def test_symptoms_from_comma_separated_string(self):
        case = build_case({
            "disease_name": "Dengue Fever",
            "onset_date": "2025-10-20",
            "symptoms": "high fever, headache , body ache",
        })
        assert case.symptoms == ["high fever", "headache", "body ache"]

    def test_blank_location_is_none(self):
        case = build_case({"disease_name": "Influenza", "onset_date": "2025-10-20", "location": "  "})
        assert case.location is None


class TestCategorizer:
    """Pluggable disease categorization"""

    def test_each_disease_categorized_once(self):
        calls = []

        def categorizer(name):
            calls.append(name)
            return "Infectious"

        categories = categorize_diseases(["Influenza", "Influenza", "Measles"], categorizer)
        assert categories == {"Influenza": "infectious", "Measles": "infectious"}
        assert calls == ["Influenza", "Measles"]

    def test_failing_categorizer_falls_back_to_other(self):
        def categorizer(name):
            raise RuntimeError("classifier unavailable")

        assert categorize_diseases(["Influenza"], categorizer) == {"Influenza": "other"}


class TestSubmitCases:
    """Batch intake"""

    def test_valid_and_invalid_rows(self):
        store = InMemoryCaseStore()
        rows = [
            {"disease_name": "Influenza", "onset_date": "2025-10-20", "location": "Delhi"},
            {"disease_name": "Influenza"},
            {"onset_date": "2025-10-21"},
            {"disease_name": "Malaria", "onset_date": "2025-10-22", "location": "Chennai"},
        ]
        result = submit_cases(rows, store, categorizer=lambda name: "infectious", today=TODAY)

        assert result.cases_processed == 4
        assert result.cases_created == 2
        assert [e["row"] for e in result.errors] == [2, 3]
        assert result.success is True
        assert result.message == "Successfully uploaded 2 cases"

        stored = store.query_cases()
        assert len(stored) == 2
        assert all(c.id for c in stored)
        assert {c.disease_category for c in stored} == {"infectious"}

    def test_no_valid_rows(self):
        store = InMemoryCaseStore()
        result = submit_cases([{"disease_name": "Influenza"}], store)
        assert result.cases_created == 0
        assert result.success is False
        assert result.message == "No valid cases found"
        assert store.query_cases() == []

    def test_explicit_category_is_kept(self):
        store = InMemoryCaseStore()
        submit_cases(
            [{"disease_name": "Influenza", "onset_date": "2025-10-20", "disease_category": "Respiratory"}],
            store,
        )
        assert store.query_cases()[0].disease_category == "Respiratory"

    def test_non_text_fields_are_row_errors(self):
        """Wrong JSON types are reported per row instead of aborting the batch"""
        store = InMemoryCaseStore()
        rows = [
            {"disease_name": 123, "onset_date": "2025-10-20"},
            {"disease_name": "Cholera", "onset_date": "2025-10-20", "location": 42},
            {"disease_name": "Dengue", "onset_date": "2025-10-20", "symptoms": 5},
            {"disease_name": "Malaria", "onset_date": "2025-10-22", "location": "Chennai"},
        ]
        result = submit_cases(rows, store, today=TODAY)

        assert result.cases_processed == 4
        assert result.cases_created == 1
        assert result.errors == [
            {"row": 1, "error": "Invalid disease_name: expected text, got int"},
            {"row": 2, "error": "Invalid location: expected text, got int"},
            {"row": 3, "error": "Invalid symptoms: expected text or a list of text"},
        ]
        assert [c.disease_name for c in store.query_cases()] == ["Malaria"]
