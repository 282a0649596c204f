"""
Summary of one completed analysis: aggregate counters and a per-tooth breakdown.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from dental_portal.schemas.analysis import Analysis, AttributeData, ToothDiagnosis


class AttributeDecision(str, Enum):
    """Clinician review state of one detected attribute."""

    UNDECIDED = "undecided"
    CONFIRMED_POSITIVE = "confirmed_positive"
    CONFIRMED_NEGATIVE = "confirmed_negative"


def attribute_decision(attribute: AttributeData) -> AttributeDecision:
    if not attribute.user_decision:
        return AttributeDecision.UNDECIDED
    if attribute.user_positive:
        return AttributeDecision.CONFIRMED_POSITIVE
    return AttributeDecision.CONFIRMED_NEGATIVE


class AttributeFinding(BaseModel):
    attribute_id: int
    model_positive: bool
    decision: AttributeDecision


class ToothBreakdown(BaseModel):
    tooth_number: int
    findings: List[AttributeFinding]
    root_count: int = 0
    text_comment: Optional[str] = None


class AnalysisSummary(BaseModel):
    analysis_id: int
    analysis_type: Optional[str] = None
    affected_tooth_count: int
    total_pathology_count: int
    periodontal_data_count: int
    commented_count: int
    teeth: List[ToothBreakdown]
    report_links: Dict[str, str]


def _breakdown(diagnosis: ToothDiagnosis) -> ToothBreakdown:
    roots = diagnosis.periodontal_status.roots if diagnosis.periodontal_status else []
    return ToothBreakdown(
        tooth_number=diagnosis.tooth_number,
        findings=[
            AttributeFinding(
                attribute_id=attribute.attribute_id,
                model_positive=attribute.model_positive,
                decision=attribute_decision(attribute),
            )
            for attribute in diagnosis.attributes
        ],
        root_count=len(roots),
        text_comment=diagnosis.text_comment or None,
    )


def summarize_analysis(analysis: Analysis) -> AnalysisSummary:
    """
    Expand an analysis into counters and per-tooth rows.

    An analysis without diagnoses yields zero counts and no rows.
    """
    diagnoses = analysis.diagnoses or []
    return AnalysisSummary(
        analysis_id=analysis.id,
        analysis_type=analysis.analysis_type,
        affected_tooth_count=len(diagnoses),
        total_pathology_count=sum(len(d.attributes) for d in diagnoses),
        periodontal_data_count=sum(1 for d in diagnoses if d.has_periodontal_data),
        commented_count=sum(1 for d in diagnoses if d.has_comment),
        teeth=[_breakdown(d) for d in diagnoses],
        report_links=analysis.report_links,
    )
