"""
Repository for the patient's scan collection.
"""

import logging
from typing import List, Optional

from dental_portal.core.exceptions import PortalError
from dental_portal.schemas.results import Outcome
from dental_portal.schemas.study import Study
from dental_portal.services.api_client import ApiClient
from dental_portal.services.repository import Repository, parse_models

logger = logging.getLogger(__name__)

STUDIES_PATH = "/api/patient/studies"
LOAD_STUDIES_FAILED = "Failed to load studies"


class StudyRepository(Repository):
    """Fetches and holds the studies of the signed-in patient."""

    def __init__(self, api: ApiClient):
        super().__init__()
        self.api = api
        self.studies: List[Study] = []
        self.loaded = False

    async def list_studies(self) -> Outcome[List[Study]]:
        """
        Re-fetch the full study collection.

        On success the held collection is replaced wholesale. On failure it
        is left as it was.
        """
        try:
            body = await self.api.get_json(STUDIES_PATH, fallback=LOAD_STUDIES_FAILED)
            studies = parse_models(Study, body.get("studies"), LOAD_STUDIES_FAILED)
        except PortalError as e:
            return Outcome.fail(e)

        self.studies = studies
        self.loaded = True
        logger.info(f"✓ Loaded {len(studies)} studies")
        self._notify()
        return Outcome.ok(studies)

    def get(self, study_id: int) -> Optional[Study]:
        for study in self.studies:
            if study.id == study_id:
                return study
        return None
