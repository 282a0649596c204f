"""
Schemas package initialization.
"""

from dental_portal.schemas.auth import User, LoginRequest, RegisterRequest, AuthResponse
from dental_portal.schemas.study import Study, StudyStatus
from dental_portal.schemas.analysis import (
    Analysis,
    AnalysisStatus,
    AttributeData,
    PeriodontalStatus,
    RootMeasurement,
    SiteMeasurement,
    ToothDiagnosis,
)
from dental_portal.schemas.upload import (
    DicomFile,
    UploadDestination,
    UploadProgress,
    UploadResponse,
)
from dental_portal.schemas.results import Outcome

__all__ = [
    "User",
    "LoginRequest",
    "RegisterRequest",
    "AuthResponse",
    "Study",
    "StudyStatus",
    "Analysis",
    "AnalysisStatus",
    "AttributeData",
    "PeriodontalStatus",
    "RootMeasurement",
    "SiteMeasurement",
    "ToothDiagnosis",
    "DicomFile",
    "UploadDestination",
    "UploadProgress",
    "UploadResponse",
    "Outcome",
]
