"""Rule-based recommendations for SLO reports.

Rules are plain data: a predicate over the report and the messages it emits.
They are evaluated in table order. Rules that share a ``ladder`` form a
threshold ladder where only the first matching rule fires, so "below 10%"
and "below 20%" never both appear.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence, Union

from slo_calc.slo.budget import ErrorBudgetCalculator
from slo_calc.slo.report import DailySLI, SLOReport

logger = logging.getLogger(__name__)

Message = Union[str, Callable[[SLOReport], str]]

TREND_DAYS = 7


class ReportStatus(Enum):
    """Overall health of an SLO report."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def emoji(self) -> str:
        return {"healthy": "🟢", "warning": "🟡", "critical": "🔴"}[self.value]

    @property
    def label(self) -> str:
        return self.value.upper()

    @property
    def action_required(self) -> bool:
        return self is not ReportStatus.HEALTHY


@dataclass(frozen=True)
class Rule:
    """A single recommendation rule."""

    name: str
    predicate: Callable[[SLOReport], bool]
    messages: tuple[Message, ...]
    ladder: str = ""

    def matches(self, report: SLOReport) -> bool:
        return self.predicate(report)

    def render(self, report: SLOReport) -> list[str]:
        return [m(report) if callable(m) else m for m in self.messages]


# ---------------------------------------------------------------------------
# Report measures
# ---------------------------------------------------------------------------


def excluded_ratio(report: SLOReport) -> float:
    """Percentage of days in the window with excluded (external) failures."""
    if not report.daily:
        return 0.0
    return len(report.excluded_days) / len(report.daily) * 100.0


def max_consecutive_excluded(daily: Sequence[DailySLI]) -> int:
    longest = current = 0
    for day in daily:
        current = current + 1 if day.excluded else 0
        longest = max(longest, current)
    return longest


def trend_percent(daily: Sequence[DailySLI], days: int = TREND_DAYS) -> float | None:
    """Change of the last *days* average adjusted SLI against the *days* before.

    ``None`` when there is not enough history or the earlier average is zero.
    """
    if len(daily) < days * 2:
        return None
    recent = daily[-days:]
    older = daily[-days * 2:-days]
    recent_avg = sum(d.adjusted_sli for d in recent) / days
    older_avg = sum(d.adjusted_sli for d in older) / days
    if older_avg == 0:
        return None
    return (recent_avg - older_avg) / older_avg * 100.0


def weekend_gap(daily: Sequence[DailySLI]) -> tuple[float, float] | None:
    """(weekend average, overall average) adjusted SLI, or ``None`` without weekend days."""
    weekend = [d for d in daily if d.date.weekday() >= 5]
    if not weekend:
        return None
    weekend_avg = sum(d.adjusted_sli for d in weekend) / len(weekend)
    overall_avg = sum(d.adjusted_sli for d in daily) / len(daily)
    return weekend_avg, overall_avg


def _declining(report: SLOReport) -> bool:
    trend = trend_percent(report.daily)
    return trend is not None and trend < -1


def _improving(report: SLOReport) -> bool:
    trend = trend_percent(report.daily)
    return trend is not None and trend > 1


def _weekend_dip(report: SLOReport) -> bool:
    gap = weekend_gap(report.daily)
    return gap is not None and gap[0] < gap[1] * 0.98


def _performance_gap(report: SLOReport) -> str:
    gap = (report.config.target - report.adjusted_sli) * 100
    return f"📉 **Performance Gap**: {gap:.3f}% improvement needed to meet SLO target."


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule(
        "budget_critical",
        lambda r: r.error_budget.remaining_percentage < 10,
        ("🚨 **Critical**: Error budget is below 10%. Immediate action required. "
         "Consider emergency response procedures.",),
        ladder="budget",
    ),
    Rule(
        "budget_warning",
        lambda r: r.error_budget.remaining_percentage < 20,
        ("⚠️ **Warning**: Error budget is below 20%. Freeze non-critical deployments "
         "and focus on stability.",),
        ladder="budget",
    ),
    Rule(
        "budget_caution",
        lambda r: r.error_budget.remaining_percentage < 50,
        ("📊 **Caution**: Error budget below 50%. Review deployment practices and "
         "increase monitoring.",),
        ladder="budget",
    ),
    Rule(
        "burn_rate_high",
        lambda r: r.error_budget.burn_rate > 2,
        ("🔥 **High Burn Rate**: Current burn rate exceeds 2%/day. At this rate, "
         "budget will be exhausted before window end.",),
        ladder="burn_rate",
    ),
    Rule(
        "burn_rate_elevated",
        lambda r: r.error_budget.burn_rate > 1,
        ("📈 **Elevated Burn Rate**: Monitor closely - current trajectory may lead "
         "to budget exhaustion.",),
        ladder="burn_rate",
    ),
    Rule(
        "slo_violation",
        lambda r: r.adjusted_sli < r.config.target,
        ("❌ **SLO Violation**: Even after excluding external issues, SLO target is "
         "not met. Internal reliability improvements needed.",
         _performance_gap),
    ),
    Rule(
        "significant_miss",
        lambda r: r.raw_sli < r.config.target * 0.95,
        ("🎯 **Significant Miss**: Raw SLI is >5% below target. Consider comprehensive "
         "reliability review.",),
    ),
    Rule(
        "external_high",
        lambda r: excluded_ratio(r) > 20,
        ("🔄 **High External Impact**: >20% of days affected by external services. "
         "Critical dependency on third parties.",
         "💡 Consider: Multi-vendor strategy, circuit breakers, or bringing critical "
         "services in-house."),
        ladder="external",
    ),
    Rule(
        "external_moderate",
        lambda r: excluded_ratio(r) > 10,
        ("🔄 **External Dependencies**: >10% of days affected. Review redundancy and "
         "fallback strategies.",),
        ladder="external",
    ),
    Rule(
        "external_prolonged",
        lambda r: max_consecutive_excluded(r.daily) >= 3,
        (lambda r: f"⚠️ **Prolonged External Issues**: {max_consecutive_excluded(r.daily)} "
                   "consecutive days with external impacts. Review vendor SLAs.",),
    ),
    Rule(
        "trend_declining",
        _declining,
        (lambda r: f"📉 **Declining Performance**: {abs(trend_percent(r.daily) or 0.0):.1f}% "
                   "decrease in recent 7-day average.",),
        ladder="trend",
    ),
    Rule(
        "trend_improving",
        _improving,
        (lambda r: f"📈 **Improving Performance**: {trend_percent(r.daily) or 0.0:.1f}% "
                   "increase in recent 7-day average.",),
        ladder="trend",
    ),
    Rule(
        "weekend_dip",
        _weekend_dip,
        ("📅 **Weekend Performance**: Lower SLI on weekends detected. Consider "
         "weekend-specific capacity planning.",),
    ),
)


def evaluate_status(report: SLOReport) -> ReportStatus:
    budget = report.error_budget
    target = report.config.target
    if budget.remaining_percentage < 10 or report.adjusted_sli < target * 0.95:
        return ReportStatus.CRITICAL
    if budget.remaining_percentage < 30 or report.adjusted_sli < target:
        return ReportStatus.WARNING
    return ReportStatus.HEALTHY


class RecommendationEngine:
    """Evaluates a rule table against a report."""

    def __init__(
        self,
        rules: Sequence[Rule] = DEFAULT_RULES,
        calculator: ErrorBudgetCalculator | None = None,
    ) -> None:
        self.rules = tuple(rules)
        self._calculator = calculator or ErrorBudgetCalculator()

    def matching_rules(self, report: SLOReport) -> list[Rule]:
        fired_ladders: set[str] = set()
        matched: list[Rule] = []
        for rule in self.rules:
            if rule.ladder and rule.ladder in fired_ladders:
                continue
            if rule.matches(report):
                matched.append(rule)
                if rule.ladder:
                    fired_ladders.add(rule.ladder)
        return matched

    def analyze(self, report: SLOReport) -> list[str]:
        recommendations: list[str] = []
        for rule in self.matching_rules(report):
            logger.debug("Rule %s matched for %s", rule.name, report.config.name)
            recommendations.extend(rule.render(report))
        return recommendations

    def action_items(self, report: SLOReport) -> list[str]:
        actions: list[str] = []
        if report.error_budget.remaining_percentage < 20:
            actions.extend([
                "1. **Immediate**: Freeze non-critical deployments",
                "2. **Today**: Review recent changes and rollback if necessary",
                "3. **This week**: Conduct incident review for root cause analysis",
            ])
        if not report.meets_target:
            actions.extend([
                "- Schedule reliability improvement sprint",
                "- Review and update alerting thresholds",
            ])
        return actions

    def executive_summary(self, report: SLOReport) -> str:
        status = evaluate_status(report)
        exhaustion = self._calculator.projected_exhaustion(
            report.error_budget, report.config.window
        )
        lines = [
            "## Executive Summary",
            "",
            f"**Overall Status**: {status.emoji} {status.value.title()}",
            "",
            "**Key Metrics**:",
            f"- Adjusted SLI: {report.adjusted_sli * 100:.2f}% "
            f"(Target: {report.config.target * 100:.1f}%)",
            f"- Error Budget Remaining: {report.error_budget.remaining:.2f}%",
            f"- Days Until Budget Exhaustion: {exhaustion if exhaustion else 'N/A'}",
            "",
            f"**Immediate Actions Required**: {'Yes' if status.action_required else 'No'}",
        ]
        return "\n".join(lines)
