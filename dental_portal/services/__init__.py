"""
Services package initialization.
"""

from dental_portal.services.api_client import ApiClient, SessionAuth
from dental_portal.services.auth_service import AuthService
from dental_portal.services.study_repository import StudyRepository
from dental_portal.services.analysis_repository import AnalysisRepository
from dental_portal.services.upload_coordinator import UploadCoordinator

__all__ = [
    "ApiClient",
    "SessionAuth",
    "AuthService",
    "StudyRepository",
    "AnalysisRepository",
    "UploadCoordinator",
]
