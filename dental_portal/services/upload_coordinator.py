"""
Upload coordinator: validates a scan, submits it with a destination tag,
reports progress, and refreshes both collections afterwards.
"""

import asyncio
import io
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from typing_extensions import assert_never

from dental_portal.core.config import Settings
from dental_portal.core.exceptions import PortalError, ValidationError
from dental_portal.schemas.results import Outcome
from dental_portal.schemas.upload import (
    DicomFile,
    UploadDestination,
    UploadProgress,
    UploadResponse,
)
from dental_portal.services.analysis_repository import AnalysisRepository
from dental_portal.services.api_client import ApiClient
from dental_portal.services.repository import parse_model
from dental_portal.services.study_repository import StudyRepository
from dental_portal.utils.file_utils import format_file_size, has_allowed_extension

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/patient/upload"
UPLOAD_FAILED = "Failed to upload the file"
NOT_DICOM_MESSAGE = "Please choose a DICOM file (.dcm)"
DICOM_CONTENT_TYPE = "application/dicom"

ProgressCallback = Callable[[int], None]


def success_message(destination: UploadDestination) -> str:
    if destination is UploadDestination.DIAGNOCAT:
        return "File uploaded and sent for AI analysis"
    elif destination is UploadDestination.ORTHANC:
        return "File uploaded to the image archive"
    else:
        assert_never(destination)


class UploadCoordinator:
    """
    Submits one DICOM file at a time.

    ``uploading`` and ``progress`` are the state a front end binds its
    upload control to; while ``uploading`` is set further submissions are
    ignored.
    """

    def __init__(
        self,
        api: ApiClient,
        studies: StudyRepository,
        analyses: AnalysisRepository,
        settings: Settings,
    ):
        self.api = api
        self.studies = studies
        self.analyses = analyses
        self.settings = settings
        self.uploading = False
        self.progress = 0

    async def submit(
        self,
        file: Union[DicomFile, str, Path],
        destination: Union[UploadDestination, str] = UploadDestination.DIAGNOCAT,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Outcome[UploadResponse]:
        """
        Validate and upload a scan.

        Args:
            file: The chosen file, or a path to read it from
            destination: Backend to route the scan to
            on_progress: Receives whole percents while the body is sent

        Returns:
            Outcome carrying what the server created, or no value if the
            server accepted the file but its reply could not be read. Both
            collections are re-fetched after any accepted upload. A file whose
            name does not end in ``.dcm`` fails before any request is made.
        """
        if self.uploading:
            return Outcome.skipped("An upload is already in progress")

        name = file.name if isinstance(file, DicomFile) else Path(file).name
        if not has_allowed_extension(name, self.settings.allowed_extensions):
            return Outcome.fail(ValidationError(NOT_DICOM_MESSAGE))

        try:
            destination = UploadDestination(destination)
        except ValueError:
            return Outcome.fail(
                ValidationError(f"Unknown upload destination: {destination}")
            )

        self.uploading = True
        self.progress = 0
        try:
            dicom = file if isinstance(file, DicomFile) else self._read(file)
            logger.info(
                f"Uploading {dicom.name} ({format_file_size(dicom.size)}) "
                f"to {destination.value}"
            )
            body = await self.api.post_multipart(
                UPLOAD_PATH,
                data={"destination": destination.value},
                files={
                    "file": (dicom.name, io.BytesIO(dicom.content), DICOM_CONTENT_TYPE)
                },
                fallback=UPLOAD_FAILED,
                on_progress=lambda tick: self._on_tick(tick, on_progress),
            )
        except PortalError as e:
            logger.error(f"❌ Upload of {name} failed: {e.message}")
            return Outcome.fail(e)
        finally:
            self.uploading = False
            self.progress = 0

        logger.info(f"✓ Upload of {name} accepted")
        response: Optional[UploadResponse] = None
        try:
            response = parse_model(UploadResponse, body, UPLOAD_FAILED)
        except PortalError as e:
            logger.error(f"❌ Could not read the upload response for {name}: {e.message}")

        await asyncio.gather(self.studies.list_studies(), self.analyses.list_analyses())
        return Outcome.ok(response, message=success_message(destination))

    def _on_tick(
        self, tick: UploadProgress, on_progress: Optional[ProgressCallback]
    ) -> None:
        percent = tick.percent
        if percent is None:
            return
        self.progress = percent
        if on_progress is not None:
            on_progress(percent)

    @staticmethod
    def _read(path: Union[str, Path]) -> DicomFile:
        try:
            return DicomFile.from_path(path)
        except OSError as e:
            raise ValidationError(f"Could not read {path}: {e.strerror}") from e
