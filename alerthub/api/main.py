"""
AlertHub - REST API

FastAPI application for submitting danger reports, browsing them per
culture and triaging them as a civil protection operator.

Run with: uvicorn alerthub.api.main:app --reload
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from alerthub.core.config import settings
from alerthub.core.constants import ROLE_HEADER
from alerthub.core.exceptions import (
    ReportCreationError,
    ReportNotFoundError,
    SubmissionValidationError,
    TriageError,
)
from alerthub.core.logging import setup_logging
from alerthub.crowdsource.image_storage import LocalImageStorage
from alerthub.crowdsource.queries import ReportQueries
from alerthub.crowdsource.report_handler import ImageUpload, ReportHandler
from alerthub.crowdsource.validation import disaster_type_from_index
from alerthub.database.connection import DatabaseConnection, init_db
from alerthub.ingestion.nominatim_client import NominatimClient
from alerthub.worker.enrichment import EnrichmentJob
from alerthub.worker.runner import EnrichmentWorker

setup_logging()
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# FastAPI app
app = FastAPI(
    title="AlertHub",
    description="Crowdsourced danger reports with multi-culture place names and operator triage",
    version=API_VERSION,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount(
    settings.images_mount_path,
    StaticFiles(directory=settings.images_dir, check_dir=False),
    name="report-images",
)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    timestamp: str
    database: bool
    worker_running: bool


class ReportCreatedResponse(BaseModel):
    danger_report_id: int


class ReportResponse(BaseModel):
    """Danger report as shown to citizens."""
    id: int
    disaster_type: str
    longitude: float
    latitude: float
    created_at: str
    image_url: Optional[str]
    description: Optional[str]
    status: str
    culture: str
    country: str
    municipality: str
    user_id: str


class ArchivedReportResponse(BaseModel):
    id: int
    disaster_type: str
    longitude: float
    latitude: float
    created_at: str
    country: str
    municipality: str


class ArchivedReportListResponse(BaseModel):
    """One page of approved or rejected reports."""
    total_pages: int
    danger_reports: List[ArchivedReportResponse]


class OperatorReportResponse(BaseModel):
    id: int
    disaster_type: str
    longitude: float
    latitude: float
    created_at: str
    image_url: Optional[str]
    description: Optional[str]


class ImportanceGroupResponse(BaseModel):
    """Active reports sharing a place and disaster type."""
    disaster_type: str
    disaster_type_index: int
    country: str
    municipality: str
    importance: int


class ImportanceListResponse(BaseModel):
    total_pages: int
    danger_reports: List[ImportanceGroupResponse]


class TriageResponse(BaseModel):
    """Number of reports moved out of the active set."""
    transitioned: int


# ============================================================================
# Services
# ============================================================================

_db: Optional[DatabaseConnection] = None
_worker: Optional[EnrichmentWorker] = None
_report_handler: Optional[ReportHandler] = None
_report_queries: Optional[ReportQueries] = None


def init_services(database_url: Optional[str] = None) -> None:
    """Create the database connection, worker and report services."""
    global _db, _worker, _report_handler, _report_queries

    _db = init_db(database_url)
    _db.enable_postgis()
    _db.create_tables()

    job = EnrichmentJob(_db, NominatimClient())
    _worker = EnrichmentWorker(_db, job)
    _report_handler = ReportHandler(_db, LocalImageStorage(), worker=_worker)
    _report_queries = ReportQueries(_db, images_url=settings.images_mount_path)


def get_report_handler() -> ReportHandler:
    if _report_handler is None:
        init_services()
    return _report_handler


def get_report_queries() -> ReportQueries:
    if _report_queries is None:
        init_services()
    return _report_queries


def require_operator(x_user_role: Optional[str] = Header(None, alias=ROLE_HEADER)) -> str:
    """Allow only the civil protection role set by the gateway."""
    if x_user_role != settings.operator_role:
        raise HTTPException(status_code=403, detail="Operator role required")
    return x_user_role


@app.on_event("startup")
def startup_event():
    if _report_handler is None:
        init_services()
    _worker.start()
    logger.info("AlertHub API started")


@app.on_event("shutdown")
def shutdown_event():
    if _worker is not None:
        _worker.stop()
        _worker.job.geocoder.close()
    if _report_handler is not None:
        _report_handler.close()
    if _db is not None:
        _db.close()
    logger.info("AlertHub API stopped")


@app.exception_handler(SubmissionValidationError)
def submission_validation_error_handler(request, exc: SubmissionValidationError):
    return JSONResponse(status_code=400, content={"errors": exc.errors})


# ============================================================================
# System Routes
# ============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
def health_check():
    """Check API health and database reachability."""
    database_ok = _db.check_connection() if _db is not None else False

    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        version=API_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        database=database_ok,
        worker_running=bool(_worker and _worker.is_running),
    )


# ============================================================================
# Report Routes
# ============================================================================

@app.post("/api/v1/reports", response_model=ReportCreatedResponse, tags=["Reports"])
def create_report(
    disaster_type: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    latitude: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    culture: Optional[str] = Form(None),
    user_id: Optional[str] = Form(None),
    image_file: Optional[UploadFile] = File(None),
    handler: ReportHandler = Depends(get_report_handler),
):
    """
    Submit a danger report.

    The photo is optional; without one the report points at the
    placeholder image. Place names are filled in shortly after by the
    enrichment worker.
    """
    image = None
    if image_file is not None and image_file.filename:
        image = ImageUpload(
            content_type=image_file.content_type or "",
            stream=image_file.file,
            filename=image_file.filename,
        )

    try:
        report_id = handler.create_report(
            disaster_type=disaster_type,
            longitude=longitude,
            latitude=latitude,
            culture=culture,
            user_id=user_id,
            description=description,
            image=image,
        )
    except ReportCreationError:
        raise HTTPException(status_code=400, detail="Could not create danger report")

    return ReportCreatedResponse(danger_report_id=report_id)


@app.get("/api/v1/reports/active", response_model=List[ReportResponse], tags=["Reports"])
def list_active_reports(
    page_number: int = Query(1),
    items_per_page: int = Query(10),
    culture: str = Query(settings.default_culture),
    queries: ReportQueries = Depends(get_report_queries),
):
    """Active reports, newest first."""
    reports = queries.active_reports(page_number, items_per_page, culture)
    return [report.to_dict() for report in reports]


@app.get("/api/v1/reports/importance", response_model=ImportanceListResponse, tags=["Triage"])
def list_by_importance(
    page_number: int = Query(1),
    items_per_page: int = Query(10),
    culture: str = Query(settings.default_culture),
    queries: ReportQueries = Depends(get_report_queries),
    _role: str = Depends(require_operator),
):
    """Places and disaster types with the most active reports first."""
    return queries.importance_ranking(page_number, items_per_page, culture).to_dict()


@app.get(
    "/api/v1/reports/active/by-disaster-and-municipality",
    response_model=List[OperatorReportResponse],
    tags=["Triage"],
)
def list_active_by_disaster_and_municipality(
    disaster_index: int = Query(...),
    municipality: str = Query(...),
    culture: str = Query(settings.default_culture),
    queries: ReportQueries = Depends(get_report_queries),
    _role: str = Depends(require_operator),
):
    """Active reports behind one importance group."""
    disaster_type = disaster_type_from_index(disaster_index)
    reports = queries.active_reports_by_disaster_and_municipality(
        disaster_type, municipality, culture
    )
    return [report.to_dict() for report in reports]


@app.get("/api/v1/reports/approved", response_model=ArchivedReportListResponse, tags=["Triage"])
def list_approved_reports(
    page_number: int = Query(1),
    items_per_page: int = Query(10),
    culture: str = Query(settings.default_culture),
    queries: ReportQueries = Depends(get_report_queries),
    _role: str = Depends(require_operator),
):
    return queries.approved_reports(page_number, items_per_page, culture).to_dict()


@app.get("/api/v1/reports/rejected", response_model=ArchivedReportListResponse, tags=["Triage"])
def list_rejected_reports(
    page_number: int = Query(1),
    items_per_page: int = Query(10),
    culture: str = Query(settings.default_culture),
    queries: ReportQueries = Depends(get_report_queries),
    _role: str = Depends(require_operator),
):
    return queries.rejected_reports(page_number, items_per_page, culture).to_dict()


@app.post("/api/v1/reports/approve", response_model=TriageResponse, tags=["Triage"])
def approve_reports(
    disaster_index: int = Query(...),
    municipality: str = Query(...),
    handler: ReportHandler = Depends(get_report_handler),
    _role: str = Depends(require_operator),
):
    """Approve every active report of a disaster type in a municipality."""
    try:
        transitioned = handler.approve(disaster_index, municipality)
    except TriageError:
        raise HTTPException(status_code=400, detail="Could not approve danger reports")
    return TriageResponse(transitioned=transitioned)


@app.post("/api/v1/reports/reject", response_model=TriageResponse, tags=["Triage"])
def reject_reports(
    disaster_index: int = Query(...),
    municipality: str = Query(...),
    handler: ReportHandler = Depends(get_report_handler),
    _role: str = Depends(require_operator),
):
    """Reject every active report of a disaster type in a municipality."""
    try:
        transitioned = handler.reject(disaster_index, municipality)
    except TriageError:
        raise HTTPException(status_code=400, detail="Could not reject danger reports")
    return TriageResponse(transitioned=transitioned)


@app.get("/api/v1/reports/{report_id}", response_model=ReportResponse, tags=["Reports"])
def get_report(
    report_id: int,
    culture: str = Query(settings.default_culture),
    queries: ReportQueries = Depends(get_report_queries),
):
    """Get one danger report in the requested culture."""
    try:
        report = queries.get_report(report_id, culture)
    except ReportNotFoundError:
        raise HTTPException(status_code=404, detail="Danger report not found")
    return report.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
