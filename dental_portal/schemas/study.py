"""
Pydantic schemas for stored scans.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator
from typing_extensions import assert_never


class StudyStatus(str, Enum):
    """Server-side processing state of a scan."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    ANALYZED = "analyzed"
    FAILED = "failed"

    def badge(self) -> Tuple[str, str]:
        """Return ``(label, variant)`` for display."""
        if self is StudyStatus.UPLOADED:
            return "Uploaded", "primary"
        elif self is StudyStatus.PROCESSING:
            return "Processing", "warning"
        elif self is StudyStatus.ANALYZED:
            return "Analyzed", "success"
        elif self is StudyStatus.FAILED:
            return "Failed", "danger"
        else:
            assert_never(self)


class Study(BaseModel):
    """One uploaded scan."""

    id: int
    description: Optional[str] = None
    status: StudyStatus = StudyStatus.UPLOADED
    file_size: int = 0
    created_at: Optional[datetime] = None
    orthanc_study_id: Optional[str] = None

    patient_id: Optional[int] = None
    study_date: Optional[datetime] = None
    num_instances: Optional[int] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("orthanc_study_id", mode="before")
    @classmethod
    def blank_archive_id_is_absent(cls, v):
        """The server serializes a missing archive id as an empty string."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def has_archive_copy(self) -> bool:
        return self.orthanc_study_id is not None

    @property
    def display_name(self) -> str:
        return self.description or "Untitled"

    def viewer_url(self, archive_viewer_url: str) -> Optional[str]:
        """Link to the archive viewer for this scan, if it has a local copy."""
        if not self.has_archive_copy:
            return None
        base = archive_viewer_url.rstrip("/")
        return f"{base}/app/explorer.html#study?uuid={self.orthanc_study_id}"
