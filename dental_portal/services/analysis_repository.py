"""
Repository for AI analysis jobs: listing, sending a study, and polling one job.
"""

import logging
from typing import Dict, List, Optional

from dental_portal.core.exceptions import PortalError, ValidationError
from dental_portal.core.inflight import BusySet
from dental_portal.schemas.analysis import Analysis
from dental_portal.schemas.results import Outcome
from dental_portal.services.api_client import ApiClient
from dental_portal.services.repository import Repository, parse_model, parse_models

logger = logging.getLogger(__name__)

ANALYSES_PATH = "/api/patient/diagnocat/analyses"
SEND_PATH = "/api/patient/diagnocat/send"
REFRESH_PATH = "/api/patient/diagnocat/analyses/{analysis_id}/refresh"

LOAD_ANALYSES_FAILED = "Failed to load analyses"
SEND_FAILED = "Failed to send the study for AI analysis"
REFRESH_FAILED = "Failed to refresh the analysis"


def _warn_duplicates(analyses: List[Analysis]) -> None:
    by_study: Dict[int, List[int]] = {}
    for analysis in analyses:
        by_study.setdefault(analysis.study_id, []).append(analysis.id)
    for study_id, ids in by_study.items():
        if len(ids) > 1:
            logger.warning(
                f"Study {study_id} has {len(ids)} analyses; "
                f"using {ids[0]}, ignoring {ids[1:]}"
            )


class AnalysisRepository(Repository):
    """
    Fetches and holds the analysis collection.

    ``sending`` is keyed by study id and ``refreshing`` by analysis id. A
    second request for an id that is already pending is ignored; different
    ids never wait on each other.
    """

    def __init__(self, api: ApiClient):
        super().__init__()
        self.api = api
        self.analyses: List[Analysis] = []
        self.loaded = False
        self.sending = BusySet()
        self.refreshing = BusySet()

    async def list_analyses(self) -> Outcome[List[Analysis]]:
        """Re-fetch the full analysis collection, replacing the held one."""
        try:
            body = await self.api.get_json(ANALYSES_PATH, fallback=LOAD_ANALYSES_FAILED)
            analyses = parse_models(
                Analysis, body.get("analyses"), LOAD_ANALYSES_FAILED
            )
        except PortalError as e:
            return Outcome.fail(e)

        self.analyses = analyses
        self.loaded = True
        logger.info(f"✓ Loaded {len(analyses)} analyses")
        _warn_duplicates(analyses)
        self._notify()
        return Outcome.ok(analyses)

    def find_for_study(self, study_id: int) -> Optional[Analysis]:
        """First analysis whose ``study_id`` matches, as the join treats it."""
        for analysis in self.analyses:
            if analysis.study_id == study_id:
                return analysis
        return None

    async def send_study_to_analysis(self, study_id: int) -> Outcome[None]:
        """
        Ask the server to start an AI analysis for an archived study.

        Args:
            study_id: Study to send

        Returns:
            Outcome with no value. Ignored if a send for this study is
            already pending; fails without a request if the study already
            has an analysis in the held collection.
        """
        if study_id in self.sending:
            logger.debug(f"Send for study {study_id} already in flight")
            return Outcome.skipped("This study is already being sent for analysis")

        if self.find_for_study(study_id) is not None:
            return Outcome.fail(
                ValidationError("This study has already been sent for AI analysis")
            )

        # no await between the membership check and here
        self.sending.acquire(study_id)
        with self.sending.hold(study_id):
            try:
                body = await self.api.post_json(
                    SEND_PATH, {"study_id": study_id}, fallback=SEND_FAILED
                )
                raw = body.get("analysis")
                analysis = parse_model(Analysis, raw, SEND_FAILED) if raw else None
            except PortalError as e:
                return Outcome.fail(e)

            if analysis is not None:
                self._upsert(analysis)
            else:
                await self.list_analyses()

        logger.info(f"✓ Study {study_id} sent for AI analysis")
        return Outcome.ok(message="Study sent for AI analysis")

    async def refresh_analysis(self, analysis_id: int) -> Outcome[Analysis]:
        """
        Poll one analysis and swap the returned record into the collection.

        Only the entry with the returned id is replaced; every other entry
        and the order of the collection are kept. A failed refresh leaves
        the entry untouched.
        """
        if not self.refreshing.acquire(analysis_id):
            logger.debug(f"Refresh for analysis {analysis_id} already in flight")
            return Outcome.skipped("This analysis is already being refreshed")

        with self.refreshing.hold(analysis_id):
            try:
                body = await self.api.get_json(
                    REFRESH_PATH.format(analysis_id=analysis_id),
                    fallback=REFRESH_FAILED,
                )
                analysis = parse_model(Analysis, body.get("analysis"), REFRESH_FAILED)
            except PortalError as e:
                return Outcome.fail(e)

            self._replace(analysis)

        if analysis.complete:
            message = "Analysis complete"
        else:
            message = "Analysis is still processing"
        return Outcome.ok(analysis, message=message)

    def _replace(self, updated: Analysis) -> None:
        if not any(a.id == updated.id for a in self.analyses):
            logger.info(f"Analysis {updated.id} no longer in collection, skipping update")
            return
        self.analyses = [updated if a.id == updated.id else a for a in self.analyses]
        self._notify()

    def _upsert(self, analysis: Analysis) -> None:
        if any(a.id == analysis.id for a in self.analyses):
            self._replace(analysis)
            return
        self.analyses = [analysis] + self.analyses
        self._notify()
