"""SLO report aggregation over a window of daily records."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from slo_calc.errors import MissingDataError
from slo_calc.records import DailyRecord, SLOConfig
from slo_calc.slo.budget import ErrorBudget, ErrorBudgetCalculator
from slo_calc.validator import validate_config, validate_date_range, validate_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailySLI:
    """Raw and adjusted SLI for one day of the report window."""

    date: dt.date
    sli: float
    adjusted_sli: float
    excluded: bool
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "sli": self.sli,
            "adjusted_sli": self.adjusted_sli,
            "excluded": self.excluded,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ReportPeriod:
    start: dt.date
    end: dt.date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class SLOReport:
    """Aggregated SLO result for one window.

    ``daily`` is in chronological order and is the only input to trend and
    external-impact analysis.
    """

    config: SLOConfig
    period: ReportPeriod
    raw_sli: float
    adjusted_sli: float
    error_budget: ErrorBudget
    daily: tuple[DailySLI, ...] = field(default_factory=tuple)

    @property
    def meets_target(self) -> bool:
        return self.adjusted_sli >= self.config.target

    @property
    def excluded_days(self) -> list[DailySLI]:
        return [d for d in self.daily if d.excluded]

    def to_dict(self) -> dict[str, Any]:
        return {
            "slo_config": self.config.to_dict(),
            "period": self.period.to_dict(),
            "raw_sli": self.raw_sli,
            "adjusted_sli": self.adjusted_sli,
            "error_budget": self.error_budget.to_dict(),
            "daily_data": [d.to_dict() for d in self.daily],
        }


@dataclass(frozen=True)
class _Totals:
    total_requests: int
    successful: int
    adjusted_successful: int

    @property
    def raw_sli(self) -> float:
        return self.successful / self.total_requests if self.total_requests > 0 else 0.0

    @property
    def adjusted_sli(self) -> float:
        if self.total_requests <= 0:
            return 0.0
        return self.adjusted_successful / self.total_requests


class SLOReportBuilder:
    """Builds :class:`SLOReport` objects from daily records.

    The whole series is validated before anything is aggregated.
    """

    def __init__(self, calculator: ErrorBudgetCalculator | None = None) -> None:
        self._calculator = calculator or ErrorBudgetCalculator()

    @staticmethod
    def window(records: Sequence[DailyRecord], days: int) -> list[DailyRecord]:
        """The most recent *days* records in chronological order."""
        ordered = sorted(records, key=lambda r: r.date)
        return ordered[-days:] if days > 0 else []

    @staticmethod
    def aggregate(records: Sequence[DailyRecord]) -> tuple[_Totals, tuple[DailySLI, ...]]:
        total_requests = 0
        successful = 0
        adjusted_successful = 0
        daily: list[DailySLI] = []

        for record in records:
            total_requests += record.total_requests
            successful += record.successful_requests
            adjusted_successful += record.successful_requests + record.excluded_failures
            daily.append(DailySLI(
                date=record.date,
                sli=record.sli,
                adjusted_sli=record.adjusted_sli,
                excluded=record.excluded_failures > 0,
                reason=record.reason,
            ))

        return _Totals(total_requests, successful, adjusted_successful), tuple(daily)

    def build(self, records: Sequence[DailyRecord], config: SLOConfig) -> SLOReport:
        validate_config(config)
        window = self.window(records, config.window)
        if not window:
            raise MissingDataError("No data available for the specified window")
        validate_records(records)

        totals, daily = self.aggregate(window)
        period = ReportPeriod(start=window[0].date, end=window[-1].date)
        validate_date_range(period.start, period.end)

        budget = self._calculator.calculate(totals.adjusted_sli, config.target, config.window)
        logger.debug(
            "SLO %s: %d days, raw=%.6f adjusted=%.6f remaining=%.1f%%",
            config.name, len(window), totals.raw_sli, totals.adjusted_sli,
            budget.remaining_percentage,
        )

        return SLOReport(
            config=config,
            period=period,
            raw_sli=totals.raw_sli,
            adjusted_sli=totals.adjusted_sli,
            error_budget=budget,
            daily=daily,
        )
