"""
View-model package initialization.
"""

from dental_portal.viewmodels.reconciliation import (
    RowAction,
    RowActionKind,
    DashboardRow,
    derive_row_state,
    build_rows,
)
from dental_portal.viewmodels.analysis_detail import (
    AttributeDecision,
    AnalysisSummary,
    attribute_decision,
    summarize_analysis,
)

__all__ = [
    "RowAction",
    "RowActionKind",
    "DashboardRow",
    "derive_row_state",
    "build_rows",
    "AttributeDecision",
    "AnalysisSummary",
    "attribute_decision",
    "summarize_analysis",
]
