"""
Test configuration and fixtures.

The portal API is faked with a small FastAPI app served in-process through
``httpx.ASGITransport``, so the client runs its real HTTP stack end to end.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from dental_portal.core.config import Settings
from dental_portal.core.session import Session, TokenStore
from dental_portal.schemas.auth import User
from dental_portal.services.api_client import ApiClient

VALID_TOKEN = "valid-token"
PASSWORD = "password123"

PATIENT = {
    "id": 7,
    "email": "patient@example.com",
    "first_name": "Ivan",
    "last_name": "Petrov",
    "role": "patient",
}

PUBLIC_PATHS = {"/api/login", "/api/register"}


def make_study(study_id: int, orthanc_study_id: str = "", **extra) -> Dict[str, Any]:
    study = {
        "id": study_id,
        "patient_id": PATIENT["id"],
        "orthanc_study_id": orthanc_study_id,
        "description": f"scan_{study_id}.dcm",
        "status": "uploaded",
        "file_size": 2048,
        "created_at": "2024-03-01T10:00:00Z",
    }
    study.update(extra)
    return study


def make_analysis(
    analysis_id: int, study_id: int, complete: bool = False, **extra
) -> Dict[str, Any]:
    analysis = {
        "id": analysis_id,
        "study_id": study_id,
        "status": "complete" if complete else "processing",
        "complete": complete,
        "started": True,
        "analysis_type": "CBCT",
        "diagnoses": {"diagnoses": None},
        "created_at": "2024-03-01T10:05:00Z",
    }
    analysis.update(extra)
    return analysis


class FakePortal:
    """Server-side state of the fake portal, inspectable from tests."""

    def __init__(self):
        self.token = VALID_TOKEN
        self.studies: List[Dict[str, Any]] = []
        self.analyses: List[Dict[str, Any]] = []
        self.calls: List[Tuple[str, str]] = []
        self.failures: Dict[str, Tuple[int, Dict[str, Any]]] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.refresh_updates: Dict[int, Dict[str, Any]] = {}
        self.uploads: List[Dict[str, Any]] = []
        self.registrations: List[Dict[str, Any]] = []
        self.send_returns_analysis = True
        self.rejected_studies = set()
        self._next_id = 100

    def next_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def count(self, method: str, path: str) -> int:
        return self.calls.count((method, path))

    def fail(self, path: str, status: int, body: Optional[Dict[str, Any]] = None):
        self.failures[path] = (status, body if body is not None else {})

    def gate(self, path: str) -> asyncio.Event:
        """Hold requests to ``path`` until the returned event is set."""
        event = asyncio.Event()
        self.gates[path] = event
        return event


def create_fake_app(portal: FakePortal) -> FastAPI:
    app = FastAPI()

    @app.middleware("http")
    async def guard(request: Request, call_next):
        path = request.url.path
        portal.calls.append((request.method, path))

        gate = portal.gates.get(path)
        if gate is not None:
            await gate.wait()

        if path in portal.failures:
            status, body = portal.failures[path]
            return JSONResponse(body, status_code=status)

        if path not in PUBLIC_PATHS:
            if request.headers.get("Authorization") != f"Bearer {portal.token}":
                return JSONResponse({"error": "Unauthorized"}, status_code=401)

        return await call_next(request)

    @app.post("/api/login")
    async def login(payload: Dict[str, Any]):
        if payload.get("password") != PASSWORD:
            return JSONResponse({"error": "Invalid credentials"}, status_code=401)
        return {"token": portal.token, "user": PATIENT}

    @app.post("/api/register")
    async def register(payload: Dict[str, Any]):
        portal.registrations.append(payload)
        user = dict(PATIENT, email=payload["email"])
        return {"token": portal.token, "user": user}

    @app.get("/api/me")
    async def me():
        return {"user": PATIENT}

    @app.post("/api/patient/upload")
    async def upload(file: UploadFile = File(...), destination: str = Form("diagnocat")):
        content = await file.read()
        portal.uploads.append(
            {
                "filename": file.filename,
                "destination": destination,
                "size": len(content),
                "content": content,
            }
        )
        archive_id = f"orthanc-{portal.next_id()}" if destination == "orthanc" else ""
        study = make_study(
            portal.next_id(),
            orthanc_study_id=archive_id,
            description=file.filename,
            file_size=len(content),
        )
        portal.studies.insert(0, study)
        body = {"message": "ok", "study": study}
        if destination == "diagnocat":
            analysis = make_analysis(portal.next_id(), study["id"])
            portal.analyses.insert(0, analysis)
            body["analysis"] = analysis
        return body

    @app.get("/api/patient/studies")
    async def studies():
        return {"studies": portal.studies, "count": len(portal.studies)}

    @app.get("/api/patient/diagnocat/analyses")
    async def analyses():
        return {"analyses": portal.analyses, "count": len(portal.analyses)}

    @app.post("/api/patient/diagnocat/send")
    async def send(payload: Dict[str, Any]):
        if payload["study_id"] in portal.rejected_studies:
            return JSONResponse({"error": "Study not found"}, status_code=404)
        analysis = make_analysis(portal.next_id(), payload["study_id"], status="uploading")
        portal.analyses.insert(0, analysis)
        if portal.send_returns_analysis:
            return {"message": "Study sent to Diagnocat for analysis", "analysis": analysis}
        return {"message": "Study sent to Diagnocat for analysis"}

    @app.get("/api/patient/diagnocat/analyses/{analysis_id}/refresh")
    async def refresh(analysis_id: int):
        for analysis in portal.analyses:
            if analysis["id"] == analysis_id:
                analysis.update(portal.refresh_updates.get(analysis_id, {}))
                return {"analysis": analysis}
        return JSONResponse({"error": "Analysis not found"}, status_code=404)

    return app


@pytest.fixture
def portal():
    """Fake portal state."""
    return FakePortal()


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at the fake portal with an isolated session file."""
    return Settings(api_url="http://portal.test", session_file=tmp_path / "session.json")


@pytest.fixture
def session(settings):
    """Signed-in session."""
    session = Session(TokenStore(settings.session_file))
    session.set_credentials(VALID_TOKEN, User.model_validate(PATIENT))
    return session


@pytest.fixture
def connect(portal, settings, session):
    """Factory for API clients served by the fake portal."""

    def _connect(for_session: Optional[Session] = None) -> ApiClient:
        transport = httpx.ASGITransport(app=create_fake_app(portal))
        return ApiClient(for_session or session, settings, transport=transport)

    return _connect
