"""
Join of the study and analysis collections into per-scan action state.

NO NETWORK OR REPOSITORY ACCESS IN THIS MODULE.

Everything here is derived fresh from the two collections each time either
changes. In-flight state is passed in, never stored.
"""

from enum import Enum
from typing import AbstractSet, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from dental_portal.schemas.analysis import Analysis
from dental_portal.schemas.study import Study


class RowActionKind(str, Enum):
    NONE = "none"
    SEND_TO_AI = "send_to_ai"
    REFRESH = "refresh"
    VIEW_RESULTS = "view_results"


class RowAction(BaseModel):
    """The one action currently valid for a scan."""

    kind: RowActionKind
    analysis_id: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def none(cls) -> "RowAction":
        return cls(kind=RowActionKind.NONE)

    @classmethod
    def send_to_ai(cls) -> "RowAction":
        return cls(kind=RowActionKind.SEND_TO_AI)

    @classmethod
    def refresh(cls, analysis_id: int) -> "RowAction":
        return cls(kind=RowActionKind.REFRESH, analysis_id=analysis_id)

    @classmethod
    def view_results(cls, analysis_id: int) -> "RowAction":
        return cls(kind=RowActionKind.VIEW_RESULTS, analysis_id=analysis_id)


class DashboardRow(BaseModel):
    """One scan with its matched analysis and the derived action."""

    study: Study
    analysis: Optional[Analysis] = None
    action: RowAction
    duplicate_analysis_ids: List[int] = Field(default_factory=list)
    busy: bool = False

    @property
    def has_anomaly(self) -> bool:
        return bool(self.duplicate_analysis_ids)


def analyses_for_study(study: Study, analyses: Iterable[Analysis]) -> List[Analysis]:
    """All analyses joined to ``study``, in collection order."""
    return [analysis for analysis in analyses if analysis.study_id == study.id]


def derive_row_state(study: Study, analyses: Sequence[Analysis]) -> RowAction:
    """
    Decide which action is valid for ``study``.

    The first analysis whose ``study_id`` matches is the study's analysis.
    Rules, in order:
      1. matched and complete      -> view results
      2. matched, not complete     -> refresh
      3. archived, no analysis     -> send to AI
      4. otherwise                 -> no action
    """
    for analysis in analyses:
        if analysis.study_id != study.id:
            continue
        if analysis.complete:
            return RowAction.view_results(analysis.id)
        return RowAction.refresh(analysis.id)

    if study.orthanc_study_id is not None:
        return RowAction.send_to_ai()
    return RowAction.none()


def _is_busy(
    study: Study,
    action: RowAction,
    sending: AbstractSet[int],
    refreshing: AbstractSet[int],
) -> bool:
    if action.kind is RowActionKind.SEND_TO_AI:
        return study.id in sending
    if action.kind is RowActionKind.REFRESH:
        return action.analysis_id in refreshing
    return False


def build_rows(
    studies: Sequence[Study],
    analyses: Sequence[Analysis],
    sending: AbstractSet[int] = frozenset(),
    refreshing: AbstractSet[int] = frozenset(),
) -> List[DashboardRow]:
    """
    Build one row per study, in study order.

    Args:
        studies: Current study collection
        analyses: Current analysis collection
        sending: Study ids with a send-to-AI request in flight
        refreshing: Analysis ids with a refresh in flight

    Returns:
        Rows carrying the derived action. Studies joined to more than one
        analysis keep the first and list the others as an anomaly.
    """
    rows = []
    for study in studies:
        matched = analyses_for_study(study, analyses)
        action = derive_row_state(study, analyses)
        duplicates = [a.id for a in matched[1:]]
        rows.append(
            DashboardRow(
                study=study,
                analysis=matched[0] if matched else None,
                action=action,
                duplicate_analysis_ids=duplicates,
                busy=_is_busy(study, action, sending, refreshing),
            )
        )
    return rows
