# Case intake - validation of submitted case rows before they reach the case store
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from models import CASE_STATUSES, CaseRecord
from stores import CaseStore

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "other"

Categorizer = Callable[[str], str]


class IntakeError(ValueError):
    """A submitted row cannot become a case record."""


def default_categorizer(disease_name: str) -> str:
    """Stand-in for the external text classifier."""
    return DEFAULT_CATEGORY


def categorize_diseases(diseases: Iterable[str], categorizer: Categorizer) -> Dict[str, str]:
    """Categorize each unique disease once. A failing categorizer falls back to 'other'."""
    categories: Dict[str, str] = {}
    for disease in dict.fromkeys(diseases):
        try:
            category = (categorizer(disease) or DEFAULT_CATEGORY).strip().lower()
        except Exception as e:
            logger.warning("Failed to categorize disease '%s': %s", disease, e)
            category = DEFAULT_CATEGORY
        categories[disease] = category
    return categories


def _parse_date(value, name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise IntakeError(f"Invalid {name}: {value!r} (expected YYYY-MM-DD)")


def _bounded(value, limit: float) -> Optional[float]:
    """Coordinate within [-limit, limit], otherwise None."""
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number < -limit or number > limit:
        return None
    return number


def _parse_age(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _text(row: Dict, name: str) -> Optional[str]:
    """Stripped string field, None when absent or blank. Non-text values are rejected."""
    value = row.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise IntakeError(f"Invalid {name}: expected text, got {type(value).__name__}")
    return value.strip() or None


def _parse_symptoms(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, (list, tuple)) or not all(isinstance(s, str) for s in value):
        raise IntakeError("Invalid symptoms: expected text or a list of text")
    return [s.strip() for s in value if s and s.strip()]


def build_case(row: Dict, category: str = DEFAULT_CATEGORY, today: Optional[date] = None) -> CaseRecord:
    """Validate one submitted row. disease_name and onset_date are required."""
    disease_name = _text(row, "disease_name")
    if not disease_name:
        raise IntakeError("Missing required field: disease_name")
    if not row.get("onset_date"):
        raise IntakeError("Missing required field: onset_date")

    status = _text(row, "status") or "reported"
    if status not in CASE_STATUSES:
        raise IntakeError(f"Invalid status: {status}")

    return CaseRecord(
        id=_text(row, "id") or "",
        disease_name=disease_name,
        disease_category=_text(row, "disease_category") or category,
        onset_date=_parse_date(row["onset_date"], "onset_date"),
        report_date=_parse_date(row["report_date"], "report_date") if row.get("report_date") else (today or date.today()),
        location=_text(row, "location"),
        status=status,
        patient_age=_parse_age(row.get("patient_age")),
        patient_gender=_text(row, "patient_gender"),
        symptoms=_parse_symptoms(row.get("symptoms")),
        latitude=_bounded(row.get("latitude"), 90),
        longitude=_bounded(row.get("longitude"), 180),
        notes=_text(row, "notes"),
    )


@dataclass
class IntakeResult:
    cases_processed: int = 0
    cases_created: int = 0
    errors: List[Dict] = field(default_factory=list)
    cases: List[CaseRecord] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.cases_created > 0

    @property
    def message(self) -> str:
        if self.cases_created == 0:
            return "No valid cases found"
        return f"Successfully uploaded {self.cases_created} cases"


def _category_key(row: Dict) -> str:
    name = row.get("disease_name")
    return name.strip() if isinstance(name, str) else ""


def submit_cases(
    rows: List[Dict],
    case_store: CaseStore,
    categorizer: Categorizer = default_categorizer,
    today: Optional[date] = None,
) -> IntakeResult:
    """
    Validate and insert a batch of rows. Invalid rows are reported by their
    1-based position and skipped; valid rows are inserted in one call.
    """
    result = IntakeResult(cases_processed=len(rows))
    categories = categorize_diseases(
        [_category_key(r) for r in rows if _category_key(r) and not r.get("disease_category")],
        categorizer,
    )

    valid: List[CaseRecord] = []
    for index, row in enumerate(rows, start=1):
        try:
            valid.append(build_case(row, categories.get(_category_key(row), DEFAULT_CATEGORY), today=today))
        except IntakeError as e:
            result.errors.append({"row": index, "error": str(e)})

    if valid:
        result.cases = case_store.insert_cases(valid)
        result.cases_created = len(result.cases)
    logger.info(
        "Case intake: %d processed, %d created, %d rejected",
        result.cases_processed, result.cases_created, len(result.errors),
    )
    return result
