"""
Pydantic schemas for AI analysis jobs and their tooth-level findings.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import assert_never


# ============================================================
# ENUMS
# ============================================================


class AnalysisStatus(str, Enum):
    """Lifecycle of one AI analysis job."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"

    def badge(self) -> Tuple[str, str]:
        """Return ``(label, variant)`` for display."""
        if self is AnalysisStatus.UPLOADING:
            return "Uploading", "info"
        elif self is AnalysisStatus.PROCESSING:
            return "Processing", "warning"
        elif self is AnalysisStatus.COMPLETE:
            return "Complete", "success"
        elif self is AnalysisStatus.FAILED:
            return "Failed", "danger"
        else:
            assert_never(self)


def _none_to_list(v):
    return [] if v is None else v


# ============================================================
# DIAGNOSES
# ============================================================


class AttributeData(BaseModel):
    """One detected pathology attribute and the clinician's decision on it."""

    attribute_id: int
    model_positive: bool = False
    user_decision: bool = False
    user_positive: bool = False


class RootMeasurement(BaseModel):
    root: str = ""
    measurements: Dict[str, Any] = Field(default_factory=dict)


class SiteMeasurement(BaseModel):
    site: str = ""
    measurements: Dict[str, Any] = Field(default_factory=dict)


class PeriodontalStatus(BaseModel):
    """Periodontal measurements for one tooth."""

    roots: List[RootMeasurement] = Field(default_factory=list)
    sites: List[SiteMeasurement] = Field(default_factory=list)

    @field_validator("roots", "sites", mode="before")
    @classmethod
    def null_lists_are_empty(cls, v):
        return _none_to_list(v)


class ToothDiagnosis(BaseModel):
    """Findings for a single tooth."""

    tooth_number: int
    attributes: List[AttributeData] = Field(default_factory=list)
    periodontal_status: Optional[PeriodontalStatus] = None
    text_comment: Optional[str] = None

    @field_validator("attributes", mode="before")
    @classmethod
    def null_attributes_are_empty(cls, v):
        return _none_to_list(v)

    @property
    def has_periodontal_data(self) -> bool:
        return bool(self.periodontal_status and self.periodontal_status.roots)

    @property
    def has_comment(self) -> bool:
        return bool(self.text_comment)


# ============================================================
# ANALYSIS
# ============================================================


class Analysis(BaseModel):
    """One AI diagnostic job tied to a study."""

    id: int
    study_id: int
    status: AnalysisStatus = AnalysisStatus.PROCESSING
    complete: bool = False
    analysis_type: Optional[str] = None
    diagnoses: Optional[List[ToothDiagnosis]] = None
    pdf_url: Optional[str] = None
    webpage_url: Optional[str] = None
    preview_url: Optional[str] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None

    started: bool = False
    analysis_uid: Optional[str] = None
    ortho_measurements: Optional[Dict[str, Any]] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("diagnoses", mode="before")
    @classmethod
    def unwrap_diagnoses(cls, v):
        """Accept both ``{"diagnoses": [...]}`` and a bare list."""
        if isinstance(v, dict):
            return v.get("diagnoses")
        return v

    @field_validator(
        "analysis_type", "pdf_url", "webpage_url", "preview_url", "error", mode="before"
    )
    @classmethod
    def blank_is_absent(cls, v):
        if isinstance(v, str) and not v:
            return None
        return v

    @property
    def report_links(self) -> Dict[str, str]:
        links = {
            "pdf": self.pdf_url,
            "webpage": self.webpage_url,
            "preview": self.preview_url,
        }
        return {name: url for name, url in links.items() if url}
