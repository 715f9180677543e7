# Backend main entry point - disease surveillance API
import logging
import threading
from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from config import config, configure_logging
from data_quality import compute_quality_metrics
from detection import DetectionError, OutbreakDetector
from intake import IntakeError, build_case, categorize_diseases, default_categorizer, submit_cases
from seed import seed_data
from stores import InMemoryAlertStore, InMemoryCaseStore, InMemoryOutbreakStore, StoreError

configure_logging()
logger = logging.getLogger(__name__)

case_store = InMemoryCaseStore()
outbreak_store = InMemoryOutbreakStore()
alert_store = InMemoryAlertStore()

# Detection runs read-then-write per cluster; only one run at a time
_detection_lock = threading.Lock()

if config.SEED_ON_STARTUP:
    seed_data(case_store, outbreak_store, alert_store)

app = FastAPI(title="Disease Surveillance API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class CaseResponse(BaseModel):
    id: str
    disease_name: str
    disease_category: str
    location: Optional[str] = None
    onset_date: date
    report_date: Optional[date] = None
    status: str
    patient_age: Optional[int] = None
    patient_gender: Optional[str] = None
    symptoms: List[str] = []
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None


class CaseCreate(BaseModel):
    disease_name: str = Field(min_length=1)
    onset_date: date
    disease_category: Optional[str] = None
    location: Optional[str] = None
    report_date: Optional[date] = None
    status: Literal["reported", "confirmed", "resolved"] = "reported"
    patient_age: Optional[int] = Field(default=None, ge=0)
    patient_gender: Optional[str] = None
    symptoms: List[str] = []
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None


class CaseBatch(BaseModel):
    cases: List[Dict[str, Any]]


class OutbreakResponse(BaseModel):
    id: str
    disease_name: str
    disease_category: str
    location: str
    case_count: int
    severity: str
    status: str
    detected_date: datetime
    updated_at: datetime


class OutbreakStatusUpdate(BaseModel):
    status: Literal["active", "contained", "resolved"]


class AlertResponse(BaseModel):
    id: str
    outbreak_id: Optional[str] = None
    alert_type: str
    message: str
    severity: Optional[str] = None
    is_read: bool
    created_at: datetime


@app.get("/")
def read_root():
    return {"message": "Disease Surveillance API"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/cases", response_model=List[CaseResponse])
def list_cases(status: Optional[str] = None, limit: int = Query(10, ge=1, le=1000)):
    """Most recent onset first"""
    return [asdict(c) for c in case_store.query_cases(status=status, limit=limit)]


@app.post("/cases", response_model=CaseResponse, status_code=201)
def create_case(case: CaseCreate):
    row = case.model_dump()
    if not row.get("disease_category"):
        row["disease_category"] = categorize_diseases([case.disease_name], default_categorizer)[case.disease_name]
    try:
        record = build_case(row)
    except IntakeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    created = case_store.insert_cases([record])[0]
    return asdict(created)


@app.post("/cases/batch")
def upload_cases(batch: CaseBatch):
    """
    Bulk intake of already-parsed rows (e.g. from a CSV upload).
    Rows missing disease_name or onset_date are reported and skipped.
    """
    if not batch.cases:
        raise HTTPException(status_code=400, detail="No cases provided")
    result = submit_cases(batch.cases, case_store)
    return {
        "success": result.success,
        "message": result.message,
        "casesProcessed": result.cases_processed,
        "casesCreated": result.cases_created,
        "errors": result.errors,
    }


@app.get("/outbreaks", response_model=List[OutbreakResponse])
def list_outbreaks(status: Optional[str] = None):
    return [asdict(o) for o in outbreak_store.list_outbreaks(status=status)]


@app.post("/outbreaks/{outbreak_id}/status", response_model=OutbreakResponse)
def update_outbreak_status(outbreak_id: str, update: OutbreakStatusUpdate):
    """Containment/resolution is a user action; the detector never changes status."""
    if outbreak_store.get_outbreak(outbreak_id) is None:
        raise HTTPException(status_code=404, detail="Outbreak not found")
    try:
        outbreak_store.update_outbreak(outbreak_id, {"status": update.status, "updated_at": datetime.now()})
    except StoreError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return asdict(outbreak_store.get_outbreak(outbreak_id))


@app.get("/alerts", response_model=List[AlertResponse])
def list_alerts(unread_only: bool = Query(False, alias="unreadOnly"), limit: Optional[int] = Query(None, ge=1)):
    return [asdict(a) for a in alert_store.list_alerts(unread_only=unread_only, limit=limit)]


@app.get("/alerts/unread-count")
def unread_alert_count():
    return {"unreadCount": alert_store.unread_count()}


@app.post("/alerts/{alert_id}/read", response_model=AlertResponse)
def mark_alert_read(alert_id: str):
    try:
        return asdict(alert_store.mark_read(alert_id))
    except StoreError:
        raise HTTPException(status_code=404, detail="Alert not found")


@app.post("/detect-outbreaks")
def detect_outbreaks():
    """
    Run one detection pass over the last 30 days of cases.
    Zero counts are still a success; only a failed case-window read is an error.
    """
    with _detection_lock:
        try:
            result = OutbreakDetector(case_store, outbreak_store, alert_store).detect()
        except DetectionError as e:
            raise HTTPException(status_code=500, detail=str(e))

    response = result.to_dict()
    if result.cases_analyzed == 0:
        response["message"] = "No recent cases to analyze"
    return response


@app.get("/data-quality")
def data_quality():
    return compute_quality_metrics(case_store.query_cases())


@app.get("/demo/status")
def demo_status():
    """Returns whether demo mode is enabled. Only for frontend visibility gate."""
    return {"demoMode": config.is_demo_mode()}


@app.post("/demo/reset")
def demo_reset():
    """
    Reset to the seed dataset. Only available when DEMO_MODE=true.
    """
    if not config.is_demo_mode():
        raise HTTPException(status_code=404, detail="Demo reset not available")
    with _detection_lock:
        seed_data(case_store, outbreak_store, alert_store)
    logger.info("Demo data reset")
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
