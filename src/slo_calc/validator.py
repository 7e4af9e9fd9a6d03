"""Validation of daily records and SLO configuration.

Hard failures raise :class:`~slo_calc.errors.DataValidationError` or
:class:`~slo_calc.errors.ConfigurationError`. Soft problems (unusually low
targets, long windows, missing exclusion reasons) are logged as warnings.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Sequence

from pydantic import BaseModel, Field

from slo_calc.errors import ConfigurationError, DataValidationError
from slo_calc.records import DailyRecord, SLOConfig

logger = logging.getLogger(__name__)

MAX_WINDOW_DAYS = 365
LONG_WINDOW_DAYS = 90
LOW_TARGET = 0.5
LOW_TRAFFIC_REQUESTS = 1000


class DataIssue(BaseModel):
    """An advisory finding about a record series."""

    kind: str
    message: str
    count: int = Field(default=0, ge=0)
    severity: str = Field(default="warning")


def validate_record(record: DailyRecord, index: int | None = None) -> None:
    """Check the logical integrity of a single record."""
    if record.total_requests < 0:
        raise DataValidationError(
            "'totalRequests' cannot be negative", index=index, field="totalRequests"
        )
    if record.successful_requests < 0:
        raise DataValidationError(
            "'successfulRequests' cannot be negative", index=index, field="successfulRequests"
        )
    if record.successful_requests > record.total_requests:
        raise DataValidationError(
            "'successfulRequests' cannot exceed 'totalRequests'",
            index=index,
            field="successfulRequests",
        )
    if record.excluded_failures < 0:
        raise DataValidationError(
            "'excludedFailures' cannot be negative", index=index, field="excludedFailures"
        )
    if record.excluded_failures > record.failures:
        raise DataValidationError(
            "'excludedFailures' cannot exceed total failures",
            index=index,
            field="excludedFailures",
        )
    if record.excluded_failures > 0 and not record.reason:
        prefix = f"Data item at index {index}: " if index is not None else ""
        logger.warning(
            "%s'reason' should be provided when 'excludedFailures' is greater than 0",
            prefix,
        )


def validate_records(records: Sequence[DailyRecord]) -> None:
    """Validate a record series: non-empty, logically sound, one record per date."""
    if not records:
        raise DataValidationError("Data array cannot be empty")

    seen: set[dt.date] = set()
    for index, record in enumerate(records):
        validate_record(record, index)
        if record.date in seen:
            raise DataValidationError(
                f"Duplicate date found: {record.date.isoformat()}", field="date"
            )
        seen.add(record.date)


def validate_target(target: float) -> None:
    """SLO target must be a fraction in (0, 1]."""
    if isinstance(target, bool) or not isinstance(target, (int, float)):
        raise ConfigurationError("SLO target must be a number")
    if target <= 0 or target > 1:
        raise ConfigurationError(
            "SLO target must be between 0 and 100% (exclusive of 0, inclusive of 100)"
        )
    if target < LOW_TARGET:
        logger.warning("SLO target is below 50%. This is unusually low for most services.")


def validate_window(window: int) -> None:
    """Window must be an integer number of days in [1, 365]."""
    if isinstance(window, bool) or not isinstance(window, int):
        raise ConfigurationError("Window must be an integer")
    if window < 1 or window > MAX_WINDOW_DAYS:
        raise ConfigurationError(f"Window must be between 1 and {MAX_WINDOW_DAYS} days")
    if window > LONG_WINDOW_DAYS:
        logger.warning(
            "Window exceeds %d days. Consider using a shorter window for more "
            "actionable insights.",
            LONG_WINDOW_DAYS,
        )


def validate_config(config: SLOConfig) -> None:
    if not config.name or not config.name.strip():
        raise ConfigurationError("SLO name must be non-empty")
    validate_target(config.target)
    validate_window(config.window)


def validate_date_range(start: dt.date, end: dt.date) -> None:
    """Reject inverted ranges and warn about ranges longer than a year."""
    if start > end:
        raise DataValidationError("Start date cannot be after end date")
    if (end - start).days > 365:
        logger.warning("Date range exceeds one year. This may impact performance.")


def find_data_issues(records: Sequence[DailyRecord]) -> list[DataIssue]:
    """Collect advisory issues about a series that is otherwise valid."""
    issues: list[DataIssue] = []
    dates = sorted(r.date for r in records)

    missing = sum(
        (later - earlier).days - 1
        for earlier, later in zip(dates, dates[1:])
        if (later - earlier).days > 1
    )
    if missing > 0:
        issues.append(DataIssue(
            kind="missing_days",
            message=f"{missing} missing days in the date range",
            count=missing,
        ))

    low_traffic = sum(1 for r in records if r.total_requests < LOW_TRAFFIC_REQUESTS)
    if low_traffic:
        issues.append(DataIssue(
            kind="low_traffic",
            message=f"{low_traffic} days with less than {LOW_TRAFFIC_REQUESTS} requests",
            count=low_traffic,
        ))

    total_failure = sum(1 for r in records if r.successful_requests == 0)
    if total_failure:
        issues.append(DataIssue(
            kind="zero_success",
            message=f"{total_failure} days with 0% success rate",
            count=total_failure,
        ))

    missing_reasons = sum(1 for r in records if r.excluded_failures > 0 and not r.reason)
    if missing_reasons:
        issues.append(DataIssue(
            kind="missing_reason",
            message=(
                f"{missing_reasons} days with excluded failures but no reason provided"
            ),
            count=missing_reasons,
        ))

    return issues
