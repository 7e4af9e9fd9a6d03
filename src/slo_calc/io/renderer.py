"""Markdown and JSON rendering of SLO reports."""

from __future__ import annotations

import datetime as dt
import json
import logging
from collections import Counter
from enum import Enum
from pathlib import Path

from slo_calc.analysis.recommendations import RecommendationEngine
from slo_calc.config import CalcSettings
from slo_calc.slo.report import SLOReport

logger = logging.getLogger(__name__)


class ReportFormat(str, Enum):
    MARKDOWN = "markdown"
    JSON = "json"

    @property
    def extension(self) -> str:
        return "md" if self is ReportFormat.MARKDOWN else "json"


def report_filename(report: SLOReport, fmt: ReportFormat, generated: dt.date) -> str:
    return f"slo-report-{report.config.name}-{generated.isoformat()}.{fmt.extension}"


class ReportRenderer:
    """Turns an :class:`SLOReport` into a report artifact."""

    def __init__(
        self,
        engine: RecommendationEngine | None = None,
        settings: CalcSettings | None = None,
    ) -> None:
        self.engine = engine or RecommendationEngine()
        self.settings = settings or CalcSettings()

    def render(self, report: SLOReport, fmt: ReportFormat, generated_at: dt.datetime | None = None) -> str:
        if fmt is ReportFormat.JSON:
            return self.to_json(report)
        return self.to_markdown(report, generated_at)

    def to_json(self, report: SLOReport) -> str:
        return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)

    def to_markdown(self, report: SLOReport, generated_at: dt.datetime | None = None) -> str:
        generated_at = generated_at or dt.datetime.now(dt.timezone.utc)
        config = report.config
        budget = report.error_budget
        recommendations = self.engine.analyze(report)

        lines = [
            f"# SLO Report: {config.name}",
            "",
            "## Summary",
            f"- **Period**: {report.period.start} to {report.period.end} ({config.window} days)",
            f"- **Target SLO**: {config.target * 100:.2f}%",
            f"- **Raw SLI**: {report.raw_sli * 100:.3f}%",
            f"- **Adjusted SLI**: {report.adjusted_sli * 100:.3f}% (external impacts excluded)",
            "",
            "## Error Budget",
            f"- **Total Budget**: {budget.total:.3f}%",
            f"- **Consumed**: {budget.consumed:.3f}%",
            f"- **Remaining**: {budget.remaining:.3f}% ({budget.remaining_percentage:.1f}%)",
            f"- **Daily Burn Rate**: {budget.burn_rate:.4f}%",
            "",
            "## Daily Breakdown",
            "| Date | Raw SLI | Adjusted SLI | External Issues |",
            "|------|---------|--------------|-----------------|",
        ]
        for day in report.daily:
            lines.append(
                f"| {day.date} | {day.sli * 100:.3f}% | {day.adjusted_sli * 100:.3f}% "
                f"| {'✓' if day.excluded else '-'} |"
            )

        lines.extend(["", "## External Dependencies Impact"])
        lines.extend(self._external_impact(report))

        lines.extend(["", "## Recommendations"])
        if recommendations:
            lines.extend(f"- {r}" for r in recommendations)
        else:
            lines.append("✅ All metrics within acceptable ranges.")

        actions = self.engine.action_items(report)
        lines.extend(["", "## Action Items"])
        lines.extend(actions or ["No immediate actions required."])

        lines.extend([
            "",
            "---",
            f"*Report generated on {generated_at.isoformat()}*",
            "",
        ])
        return "\n".join(lines)

    def _external_impact(self, report: SLOReport) -> list[str]:
        excluded = report.excluded_days
        if not excluded:
            return ["No external service impacts recorded during this period."]

        share = len(excluded) / len(report.daily) * 100
        improvement = (report.adjusted_sli - report.raw_sli) * 100
        lines = [
            f"- **Days with external impacts**: {len(excluded)} ({share:.1f}%)",
            f"- **Total SLI improvement from adjustments**: {improvement:.3f}%",
            f"- **Most recent incident**: {excluded[-1].date}",
        ]

        attributed = Counter(
            self.settings.attribute_reason(d.reason) or "Unattributed"
            for d in excluded
        )
        if self.settings.external_services:
            lines.append("- **By external service**:")
            for name, count in sorted(attributed.items(), key=lambda kv: (-kv[1], kv[0])):
                lines.append(f"  - {name}: {count} day(s)")
        return lines

    def write(
        self,
        report: SLOReport,
        fmt: ReportFormat,
        reports_dir: str | Path,
        generated_at: dt.datetime | None = None,
    ) -> Path:
        generated_at = generated_at or dt.datetime.now(dt.timezone.utc)
        reports_dir = Path(reports_dir)
        reports_dir.mkdir(parents=True, exist_ok=True)
        path = reports_dir / report_filename(report, fmt, generated_at.date())
        path.write_text(self.render(report, fmt, generated_at), encoding="utf-8")
        logger.info("Report written to %s", path)
        return path
