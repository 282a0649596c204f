"""
Patient dashboard: owns the two repositories and the upload coordinator for
one view and exposes the reconciled rows.
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional, Union

from dental_portal.core.config import Settings
from dental_portal.schemas.results import Outcome
from dental_portal.schemas.upload import DicomFile, UploadDestination
from dental_portal.services.analysis_repository import AnalysisRepository
from dental_portal.services.api_client import ApiClient
from dental_portal.services.study_repository import StudyRepository
from dental_portal.services.upload_coordinator import ProgressCallback, UploadCoordinator
from dental_portal.viewmodels.analysis_detail import AnalysisSummary, summarize_analysis
from dental_portal.viewmodels.reconciliation import DashboardRow, build_rows

logger = logging.getLogger(__name__)


class PatientDashboard:
    """
    State behind the patient's scan list.

    ``rows`` is derived on every read from the current collections and
    in-flight sets. ``on_change`` fires whenever a collection changes or an
    action finishes, until ``close()`` is called; completions landing after
    that still update the repositories but never reach the closed view.
    """

    def __init__(
        self,
        api: ApiClient,
        settings: Settings,
        on_change: Optional[Callable[[List[DashboardRow]], None]] = None,
    ):
        self.settings = settings
        self.studies = StudyRepository(api)
        self.analyses = AnalysisRepository(api)
        self.uploader = UploadCoordinator(api, self.studies, self.analyses, settings)
        self.message: Optional[str] = None
        self.closed = False
        self._on_change = on_change
        self._unsubscribers = [
            self.studies.subscribe(self._changed),
            self.analyses.subscribe(self._changed),
        ]

    @property
    def rows(self) -> List[DashboardRow]:
        return build_rows(
            self.studies.studies,
            self.analyses.analyses,
            sending=self.analyses.sending.snapshot(),
            refreshing=self.analyses.refreshing.snapshot(),
        )

    @property
    def loaded(self) -> bool:
        """True once both collections have been fetched successfully."""
        return self.studies.loaded and self.analyses.loaded

    async def load(self) -> List[Outcome]:
        """Fetch both collections concurrently."""
        outcomes = await asyncio.gather(
            self.studies.list_studies(), self.analyses.list_analyses()
        )
        for outcome in outcomes:
            if not outcome.success:
                self._report(outcome)
        return list(outcomes)

    async def upload(
        self,
        file: Union[DicomFile, str, Path],
        destination: Union[UploadDestination, str] = UploadDestination.DIAGNOCAT,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Outcome:
        outcome = await self.uploader.submit(file, destination, on_progress)
        return self._report(outcome)

    async def send_to_ai(self, study_id: int) -> Outcome:
        outcome = await self.analyses.send_study_to_analysis(study_id)
        return self._report(outcome)

    async def refresh(self, analysis_id: int) -> Outcome:
        outcome = await self.analyses.refresh_analysis(analysis_id)
        return self._report(outcome)

    def summary(self, analysis_id: int) -> Optional[AnalysisSummary]:
        """Detail summary for a held analysis, or None if it is not complete."""
        for analysis in self.analyses.analyses:
            if analysis.id == analysis_id:
                return summarize_analysis(analysis) if analysis.complete else None
        return None

    def close(self) -> None:
        """Detach from the repositories. Safe to call more than once."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        if not self.closed:
            logger.debug("Dashboard closed; late completions will not be shown")
        self.closed = True

    def _report(self, outcome: Outcome) -> Outcome:
        if self.closed:
            return outcome
        if outcome.message:
            self.message = outcome.message
        self._changed()
        return outcome

    def _changed(self) -> None:
        if self.closed or self._on_change is None:
            return
        self._on_change(self.rows)
