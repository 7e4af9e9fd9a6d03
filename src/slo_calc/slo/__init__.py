"""SLO Engine — error budgets, burn-rate thresholds and report aggregation."""

from slo_calc.slo.budget import ErrorBudget, ErrorBudgetCalculator
from slo_calc.slo.burn_rate import (
    DetectionThresholds,
    LabelledThresholds,
    WindowPair,
    WindowThreshold,
    detection_thresholds,
    error_rate_thresholds,
    multiwindow_thresholds,
    multiwindow_thresholds_from_labels,
    recommended_multiplier,
)
from slo_calc.slo.report import DailySLI, ReportPeriod, SLOReport, SLOReportBuilder

__all__ = [
    "ErrorBudget",
    "ErrorBudgetCalculator",
    "DetectionThresholds",
    "LabelledThresholds",
    "WindowPair",
    "WindowThreshold",
    "detection_thresholds",
    "error_rate_thresholds",
    "multiwindow_thresholds",
    "multiwindow_thresholds_from_labels",
    "recommended_multiplier",
    "DailySLI",
    "ReportPeriod",
    "SLOReport",
    "SLOReportBuilder",
]
