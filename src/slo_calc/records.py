"""Daily reliability records and SLO configuration."""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Any, Mapping

from slo_calc.errors import DataValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value: Any, index: int | None = None) -> dt.date:
    """Parse a ``YYYY-MM-DD`` string (or pass through a date)."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not value:
        raise DataValidationError("'date' is required", index=index, field="date")
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise DataValidationError(
            "Invalid date format. Use YYYY-MM-DD", index=index, field="date"
        )
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise DataValidationError(
            f"Invalid date value: {value}", index=index, field="date"
        ) from None


def _count(item: Mapping[str, Any], key: str, index: int | None, default: int | None = None) -> int:
    value = item.get(key)
    if value is None or value == "":
        if default is not None:
            return default
        raise DataValidationError(f"'{key}' must be a number", index=index, field=key)
    if isinstance(value, bool):
        raise DataValidationError(f"'{key}' must be a number", index=index, field=key)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise DataValidationError(f"'{key}' must be a number", index=index, field=key)


@dataclass(frozen=True)
class DailyRecord:
    """Request counters for a single calendar day.

    ``excluded_failures`` are failures attributed to an external dependency
    (a cloud provider outage, a payment gateway, ...). They are credited back
    when computing the adjusted SLI.
    """

    date: dt.date
    total_requests: int
    successful_requests: int
    excluded_failures: int = 0
    reason: str = ""

    @property
    def failures(self) -> int:
        return self.total_requests - self.successful_requests

    @property
    def sli(self) -> float:
        if self.total_requests <= 0:
            return 0.0
        return self.successful_requests / self.total_requests

    @property
    def adjusted_sli(self) -> float:
        if self.total_requests <= 0:
            return 0.0
        return (self.successful_requests + self.excluded_failures) / self.total_requests

    @classmethod
    def from_dict(cls, item: Mapping[str, Any], index: int | None = None) -> DailyRecord:
        """Build a record from its file representation (camelCase keys)."""
        if not isinstance(item, Mapping):
            raise DataValidationError("record must be an object", index=index)
        reason = item.get("reason") or ""
        return cls(
            date=parse_date(item.get("date"), index),
            total_requests=_count(item, "totalRequests", index),
            successful_requests=_count(item, "successfulRequests", index),
            excluded_failures=_count(item, "excludedFailures", index, default=0),
            reason=str(reason).strip(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "totalRequests": self.total_requests,
            "successfulRequests": self.successful_requests,
            "excludedFailures": self.excluded_failures,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class SLOConfig:
    """Target and rolling window for one SLO.

    ``target`` is a fraction (``0.999`` for 99.9%), ``window`` a number of days.
    """

    name: str
    target: float = 0.999
    window: int = 30

    @classmethod
    def from_percent(cls, name: str, target_percent: float, window: int) -> SLOConfig:
        return cls(name=name, target=target_percent / 100.0, window=window)

    @property
    def target_percent(self) -> float:
        return self.target * 100.0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "target": self.target, "window": self.window}
