"""Tests for record and configuration validation."""

import datetime as dt
import logging

import pytest

from slo_calc.errors import ConfigurationError, DataValidationError
from slo_calc.records import DailyRecord, SLOConfig, parse_date
from slo_calc.validator import (
    find_data_issues,
    validate_config,
    validate_date_range,
    validate_record,
    validate_records,
    validate_target,
    validate_window,
)


def rec(day: int, total: int = 1000, successful: int = 999, excluded: int = 0, reason: str = "") -> DailyRecord:
    return DailyRecord(
        date=dt.date(2024, 3, 1) + dt.timedelta(days=day),
        total_requests=total,
        successful_requests=successful,
        excluded_failures=excluded,
        reason=reason,
    )


class TestFromDict:
    def test_camel_case_fields(self) -> None:
        record = DailyRecord.from_dict({
            "date": "2024-03-01",
            "totalRequests": 1000,
            "successfulRequests": 990,
            "excludedFailures": 5,
            "reason": " AWS outage ",
        })
        assert record.date == dt.date(2024, 3, 1)
        assert record.failures == 10
        assert record.reason == "AWS outage"

    def test_excluded_defaults_to_zero(self) -> None:
        record = DailyRecord.from_dict(
            {"date": "2024-03-01", "totalRequests": "10", "successfulRequests": 10.0}
        )
        assert record.excluded_failures == 0
        assert record.total_requests == 10

    def test_non_numeric_count(self) -> None:
        with pytest.raises(DataValidationError, match="'totalRequests' must be a number"):
            DailyRecord.from_dict(
                {"date": "2024-03-01", "totalRequests": "many", "successfulRequests": 1}, index=2
            )

    def test_bool_is_not_a_count(self) -> None:
        with pytest.raises(DataValidationError):
            DailyRecord.from_dict(
                {"date": "2024-03-01", "totalRequests": True, "successfulRequests": 1}
            )

    def test_round_trip(self) -> None:
        record = rec(0, excluded=1, reason="Stripe")
        assert DailyRecord.from_dict(record.to_dict()) == record


class TestParseDate:
    def test_missing(self) -> None:
        with pytest.raises(DataValidationError, match="'date' is required"):
            parse_date(None, 0)

    def test_wrong_format(self) -> None:
        with pytest.raises(DataValidationError, match="Use YYYY-MM-DD") as exc_info:
            parse_date("03/01/2024", 4)
        assert str(exc_info.value).startswith("Data item at index 4: ")
        assert exc_info.value.field == "date"

    def test_impossible_date(self) -> None:
        with pytest.raises(DataValidationError, match="Invalid date value: 2024-02-30"):
            parse_date("2024-02-30")


class TestValidateRecord:
    def test_valid(self) -> None:
        validate_record(rec(0))

    @pytest.mark.parametrize(
        "total,successful,excluded,fragment",
        [
            (-1, 0, 0, "'totalRequests' cannot be negative"),
            (10, -1, 0, "'successfulRequests' cannot be negative"),
            (10, 11, 0, "'successfulRequests' cannot exceed 'totalRequests'"),
            (10, 5, -1, "'excludedFailures' cannot be negative"),
            (10, 5, 6, "'excludedFailures' cannot exceed total failures"),
        ],
    )
    def test_rejects(self, total: int, successful: int, excluded: int, fragment: str) -> None:
        with pytest.raises(DataValidationError) as exc_info:
            validate_record(rec(0, total, successful, excluded, "x"), index=3)
        assert fragment in str(exc_info.value)
        assert exc_info.value.index == 3

    def test_all_failures_excluded_is_valid(self) -> None:
        validate_record(rec(0, 10, 5, 5, "AWS"))

    def test_missing_reason_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="slo_calc.validator"):
            validate_record(rec(0, 10, 5, 2), index=1)
        assert "'reason' should be provided" in caplog.text


class TestValidateRecords:
    def test_empty(self) -> None:
        with pytest.raises(DataValidationError, match="Data array cannot be empty"):
            validate_records([])

    def test_duplicate_date(self) -> None:
        with pytest.raises(DataValidationError, match="Duplicate date found: 2024-03-01"):
            validate_records([rec(0), rec(1), rec(0)])

    def test_valid_series(self) -> None:
        validate_records([rec(0), rec(1), rec(2)])


class TestConfig:
    @pytest.mark.parametrize("target", [0, -0.1, 1.0001, 99.9])
    def test_target_out_of_range(self, target: float) -> None:
        with pytest.raises(ConfigurationError):
            validate_target(target)

    def test_full_target_allowed(self) -> None:
        validate_target(1.0)

    def test_low_target_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="slo_calc.validator"):
            validate_target(0.4)
        assert "below 50%" in caplog.text

    @pytest.mark.parametrize("window", [0, 366, -5, 7.5])
    def test_window_out_of_range(self, window: int) -> None:
        with pytest.raises(ConfigurationError):
            validate_window(window)

    def test_long_window_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="slo_calc.validator"):
            validate_window(120)
        assert "Window exceeds 90 days" in caplog.text

    def test_blank_name(self) -> None:
        with pytest.raises(ConfigurationError, match="name"):
            validate_config(SLOConfig(" ", 0.99, 30))


class TestDateRange:
    def test_inverted(self) -> None:
        with pytest.raises(DataValidationError):
            validate_date_range(dt.date(2024, 2, 1), dt.date(2024, 1, 1))

    def test_over_a_year_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="slo_calc.validator"):
            validate_date_range(dt.date(2023, 1, 1), dt.date(2024, 6, 1))
        assert "exceeds one year" in caplog.text


class TestDataIssues:
    def test_clean_series(self) -> None:
        assert find_data_issues([rec(0), rec(1), rec(2)]) == []

    def test_reports_each_kind(self) -> None:
        records = [
            rec(0),
            rec(3, total=500, successful=500),
            rec(4, total=2000, successful=0, excluded=10),
        ]
        issues = {issue.kind: issue for issue in find_data_issues(records)}
        assert set(issues) == {"missing_days", "low_traffic", "zero_success", "missing_reason"}
        assert issues["missing_days"].count == 2
        assert issues["missing_days"].message == "2 missing days in the date range"
        assert issues["low_traffic"].count == 1
        assert issues["zero_success"].count == 1
        assert issues["missing_reason"].count == 1
