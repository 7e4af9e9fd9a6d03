"""Report analysis — recommendations and overall status."""

from slo_calc.analysis.recommendations import (
    DEFAULT_RULES,
    RecommendationEngine,
    ReportStatus,
    Rule,
    evaluate_status,
)

__all__ = [
    "DEFAULT_RULES",
    "RecommendationEngine",
    "ReportStatus",
    "Rule",
    "evaluate_status",
]
