"""
Pydantic schemas for DICOM uploads.
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from dental_portal.schemas.analysis import Analysis
from dental_portal.schemas.study import Study


class UploadDestination(str, Enum):
    """Backend that receives an uploaded scan."""

    DIAGNOCAT = "diagnocat"
    ORTHANC = "orthanc"


class DicomFile(BaseModel):
    """A chosen file: the name as supplied and its binary content."""

    name: str
    content: bytes

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "DicomFile":
        path = Path(path)
        return cls(name=path.name, content=path.read_bytes())

    @property
    def size(self) -> int:
        return len(self.content)


class UploadProgress(BaseModel):
    """One transport progress tick."""

    loaded: int
    total: Optional[int] = None

    @property
    def percent(self) -> Optional[int]:
        """Whole percent sent, or None when the total is zero or unknown."""
        if self.total is None or self.total == 0:
            return None
        return max(0, min(100, self.loaded * 100 // self.total))


class UploadResponse(BaseModel):
    """What the server created for an accepted upload."""

    study: Optional[Study] = None
    analysis: Optional[Analysis] = None
    message: Optional[str] = None

    model_config = ConfigDict(extra="ignore")
