"""Tests for SLO report aggregation."""

import datetime as dt

import pytest

from slo_calc.errors import ConfigurationError, DataValidationError, MissingDataError
from slo_calc.records import DailyRecord, SLOConfig
from slo_calc.slo.report import SLOReportBuilder


def rec(day: int, total: int, successful: int, excluded: int = 0, reason: str = "") -> DailyRecord:
    return DailyRecord(
        date=dt.date(2024, 1, 1) + dt.timedelta(days=day),
        total_requests=total,
        successful_requests=successful,
        excluded_failures=excluded,
        reason=reason,
    )


class TestAggregation:
    def test_adjusted_sli_credits_excluded_failures(self) -> None:
        records = [
            rec(0, 1000, 990),
            rec(1, 1000, 980, excluded=20, reason="AWS outage"),
            rec(2, 1000, 1000),
        ]
        report = SLOReportBuilder().build(records, SLOConfig("api", 0.99, 30))
        assert report.raw_sli == pytest.approx(2970 / 3000)
        assert report.adjusted_sli == pytest.approx(2990 / 3000)
        assert report.adjusted_sli > report.raw_sli

    def test_no_exclusions_means_equal_slis(self) -> None:
        records = [rec(0, 1000, 990), rec(1, 1000, 995), rec(2, 1000, 1000)]
        report = SLOReportBuilder().build(records, SLOConfig("api", 0.99, 30))
        assert report.adjusted_sli == report.raw_sli
        assert report.excluded_days == []

    def test_daily_entries(self) -> None:
        records = [rec(1, 1000, 980, excluded=20, reason="Stripe"), rec(0, 200, 100)]
        report = SLOReportBuilder().build(records, SLOConfig("api", 0.99, 30))
        first, second = report.daily
        assert first.date == dt.date(2024, 1, 1)
        assert first.sli == 0.5
        assert first.excluded is False
        assert second.excluded is True
        assert second.adjusted_sli == 1.0
        assert second.reason == "Stripe"

    def test_zero_traffic_day(self) -> None:
        report = SLOReportBuilder().build([rec(0, 0, 0)], SLOConfig("api", 0.99, 30))
        assert report.raw_sli == 0.0
        assert report.adjusted_sli == 0.0
        assert report.daily[0].sli == 0.0


class TestWindowing:
    def test_keeps_most_recent_days_in_order(self) -> None:
        records = [rec(d, 100, 100) for d in (4, 0, 2, 3, 1)]
        report = SLOReportBuilder().build(records, SLOConfig("api", 0.99, 3))
        assert [d.date.day for d in report.daily] == [3, 4, 5]
        assert report.period.start == dt.date(2024, 1, 3)
        assert report.period.end == dt.date(2024, 1, 5)
        assert report.period.days == 3

    def test_empty_window(self) -> None:
        with pytest.raises(MissingDataError, match="No data available"):
            SLOReportBuilder().build([], SLOConfig("api", 0.999, 30))

    def test_invalid_target_rejected_before_computation(self) -> None:
        with pytest.raises(ConfigurationError):
            SLOReportBuilder().build([rec(0, 10, 10)], SLOConfig("api", 1.5, 30))
        with pytest.raises(ConfigurationError):
            SLOReportBuilder().build([rec(0, 10, 10)], SLOConfig("api", 0.0, 30))

    def test_invalid_window_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            SLOReportBuilder().build([rec(0, 10, 10)], SLOConfig("api", 0.99, 366))
        with pytest.raises(ConfigurationError):
            SLOReportBuilder().build([rec(0, 10, 10)], SLOConfig("api", 0.99, 0))


class TestRecordValidation:
    def test_duplicate_date_is_rejected(self) -> None:
        records = [rec(0, 1000, 1000), rec(0, 1000, 500)]
        with pytest.raises(DataValidationError, match="Duplicate date found: 2024-01-01"):
            SLOReportBuilder().build(records, SLOConfig("api", 0.99, 30))

    def test_successful_above_total_is_rejected(self) -> None:
        with pytest.raises(DataValidationError, match="cannot exceed 'totalRequests'"):
            SLOReportBuilder().build([rec(0, 100, 200)], SLOConfig("api", 0.99, 30))

    def test_invalid_record_outside_window_is_rejected(self) -> None:
        records = [rec(0, 100, 200)] + [rec(d, 100, 100) for d in range(1, 4)]
        with pytest.raises(DataValidationError):
            SLOReportBuilder().build(records, SLOConfig("api", 0.99, 3))


class TestScenarios:
    def test_thirty_days_above_target(self) -> None:
        records = [rec(d, 100000, 99950) for d in range(30)]
        report = SLOReportBuilder().build(records, SLOConfig.from_percent("api", 99.9, 30))
        assert report.raw_sli == 0.9995
        assert report.adjusted_sli == 0.9995
        assert report.meets_target is True
        assert report.error_budget.consumed == 0.0
        assert report.error_budget.remaining_percentage == 100.0
        assert report.error_budget.burn_rate == 0.0

    def test_rebuilding_is_idempotent(self) -> None:
        records = [rec(d, 5000 + d, 4990 - d, excluded=d % 3, reason="x") for d in range(20)]
        config = SLOConfig("api", 0.998, 14)
        builder = SLOReportBuilder()
        first = builder.build(records, config)
        second = builder.build(records, config)
        assert first.error_budget == second.error_budget
        assert first == second

    def test_to_dict(self) -> None:
        report = SLOReportBuilder().build([rec(0, 10, 9)], SLOConfig("api", 0.9, 7))
        d = report.to_dict()
        assert d["slo_config"] == {"name": "api", "target": 0.9, "window": 7}
        assert d["period"] == {"start": "2024-01-01", "end": "2024-01-01"}
        assert d["daily_data"][0]["sli"] == 0.9
        assert "remaining_percentage" in d["error_budget"]
