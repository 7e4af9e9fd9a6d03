"""Burn-rate alert thresholds.

A burn rate of N means the error budget is being consumed N times faster
than the rate that would exactly exhaust it at the end of the SLO window.
Three calculators live here:

* :func:`error_rate_thresholds` - single window, multiplier -> absolute error rate.
* :func:`multiwindow_thresholds` - long/short window pairs for
  multi-window, multi-burn-rate alerting.
* :func:`detection_thresholds` - derives the multiplier that spends a given
  share of the budget within one time window.

Example::

    pairs = [WindowPair(1, 5, 14.4), WindowPair(6, 30, 6.0)]
    for t in multiwindow_thresholds(99.9, 30, pairs):
        print(t.label, t.long_error_rate, t.short_error_rate)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from slo_calc.errors import ConfigurationError, ThresholdLabelError

MINUTES_PER_DAY = 24 * 60


def _error_allowance(slo_percent: float) -> float:
    if slo_percent <= 0 or slo_percent > 100:
        raise ConfigurationError(f"SLO percent must be in (0, 100], got {slo_percent}")
    return 1.0 - slo_percent / 100.0


# ---------------------------------------------------------------------------
# Single window
# ---------------------------------------------------------------------------


def error_rate_thresholds(slo_percent: float, multipliers: Mapping[str, float]) -> dict[str, float]:
    """Map each labelled burn-rate multiplier to an absolute error rate.

    A multiplier of 1.0 yields exactly the nominal allowed failure fraction.
    """
    allowance = _error_allowance(slo_percent)
    return {label: multiplier * allowance for label, multiplier in multipliers.items()}


# ---------------------------------------------------------------------------
# Dual window
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WindowPair:
    """A long/short alert window pair sharing one burn-rate multiplier."""

    long_window_hours: float
    short_window_minutes: float
    multiplier: float

    @property
    def label(self) -> str:
        return f"{_fmt(self.long_window_hours)}_{_fmt(self.short_window_minutes)}"


@dataclass(frozen=True)
class WindowThreshold:
    """Error-rate thresholds computed for one :class:`WindowPair`."""

    pair: WindowPair
    allowed_long: float
    allowed_short: float

    @property
    def label(self) -> str:
        return self.pair.label

    @property
    def long_error_rate(self) -> float:
        return self.pair.multiplier * self.allowed_long

    @property
    def short_error_rate(self) -> float:
        return self.pair.multiplier * self.allowed_short

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "long_window_hours": self.pair.long_window_hours,
            "short_window_minutes": self.pair.short_window_minutes,
            "multiplier": self.pair.multiplier,
            "long": self.long_error_rate,
            "short": self.short_error_rate,
        }


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def multiwindow_thresholds(
    slo_percent: float,
    slo_window_days: float,
    pairs: Iterable[WindowPair],
) -> list[WindowThreshold]:
    """Pro-rate the error budget onto each long and short window.

    Each window's allowance is the budget scaled by that window's share of
    the whole SLO period; the threshold is the allowance times the multiplier.
    """
    if slo_window_days <= 0:
        raise ConfigurationError("SLO window must be a positive number of days")
    allowance = _error_allowance(slo_percent)
    total_minutes = slo_window_days * MINUTES_PER_DAY

    return [
        WindowThreshold(
            pair=pair,
            allowed_long=allowance * (pair.long_window_hours * 60 / total_minutes),
            allowed_short=allowance * (pair.short_window_minutes / total_minutes),
        )
        for pair in pairs
    ]


def parse_window_label(label: str) -> tuple[float, float]:
    """Parse ``"<longHours>_<shortMinutes>"`` into ``(hours, minutes)``."""
    parts = label.split("_")
    if len(parts) != 2:
        raise ThresholdLabelError(label, "expected exactly two '_'-separated parts")
    try:
        long_hours, short_minutes = float(parts[0]), float(parts[1])
    except ValueError:
        raise ThresholdLabelError(label, "window lengths must be numeric") from None
    if not (math.isfinite(long_hours) and math.isfinite(short_minutes)):
        raise ThresholdLabelError(label, "window lengths must be finite")
    if long_hours <= 0 or short_minutes <= 0:
        raise ThresholdLabelError(label, "window lengths must be positive")
    return long_hours, short_minutes


@dataclass
class LabelError:
    """A label that could not be turned into a :class:`WindowPair`."""

    label: str
    reason: str


@dataclass
class LabelledThresholds:
    """Result of :func:`multiwindow_thresholds_from_labels`."""

    thresholds: dict[str, WindowThreshold] = field(default_factory=dict)
    errors: list[LabelError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "thresholds": {
                label: {"long": t.long_error_rate, "short": t.short_error_rate}
                for label, t in self.thresholds.items()
            },
            "errors": [{"label": e.label, "reason": e.reason} for e in self.errors],
        }


def multiwindow_thresholds_from_labels(
    slo_percent: float,
    slo_window_days: float,
    burn_rate_alerts: Mapping[str, float],
) -> LabelledThresholds:
    """Compute dual-window thresholds from ``{"1_5": 14.4, ...}`` style maps.

    Malformed labels are reported in ``errors`` and do not stop the others.
    """
    result = LabelledThresholds()
    pairs: dict[str, WindowPair] = {}
    for label, multiplier in burn_rate_alerts.items():
        try:
            long_hours, short_minutes = parse_window_label(label)
        except ThresholdLabelError as e:
            result.errors.append(LabelError(label=label, reason=e.reason))
            continue
        pairs[label] = WindowPair(long_hours, short_minutes, multiplier)

    computed = multiwindow_thresholds(slo_percent, slo_window_days, pairs.values())
    result.thresholds = dict(zip(pairs.keys(), computed))
    return result


# ---------------------------------------------------------------------------
# Multiplier / detection
# ---------------------------------------------------------------------------


def recommended_multiplier(
    time_window_hours: float,
    slo_window_days: float,
    budget_consumption_percent: float,
) -> float:
    """Burn rate that spends *budget_consumption_percent* of the budget in *time_window_hours*.

    For a 30 day window, 2% of budget in 1 hour: ``30 * 24 * 2 / (1 * 100) = 14.4``.
    """
    if time_window_hours <= 0:
        raise ConfigurationError("Time window must be a positive number of hours")
    return (slo_window_days * 24 * budget_consumption_percent) / (time_window_hours * 100)


@dataclass(frozen=True)
class DetectionThresholds:
    """Alerting figures for one time window.

    ``max_burn_rate_threshold`` is the burn rate at which the whole budget
    burns within the window; no multiplier should realistically exceed it.
    """

    error_budget: float
    allowed_error_rate: float
    burn_rate_threshold: float
    detection_error_rate: float
    max_burn_rate_threshold: float
    detection_time_hours: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_budget": self.error_budget,
            "allowed_error_rate": self.allowed_error_rate,
            "burn_rate_threshold": self.burn_rate_threshold,
            "detection_error_rate": self.detection_error_rate,
            # unbounded at a 100% target; JSON has no infinity
            "max_burn_rate_threshold": (
                self.max_burn_rate_threshold
                if math.isfinite(self.max_burn_rate_threshold) else None
            ),
            "detection_time_hours": self.detection_time_hours,
        }


def detection_thresholds(
    target_percent: float,
    window_days: float,
    time_window_hours: float,
    budget_percent: float,
) -> DetectionThresholds:
    if window_days <= 0:
        raise ConfigurationError("SLO window must be a positive number of days")
    error_budget = _error_allowance(target_percent)
    allowed_error_rate = error_budget * (time_window_hours / (window_days * 24))
    burn_rate_threshold = recommended_multiplier(time_window_hours, window_days, budget_percent)
    max_burn_rate = 1.0 / error_budget if error_budget > 0 else float("inf")

    return DetectionThresholds(
        error_budget=error_budget,
        allowed_error_rate=allowed_error_rate,
        burn_rate_threshold=burn_rate_threshold,
        detection_error_rate=allowed_error_rate * burn_rate_threshold,
        max_burn_rate_threshold=max_burn_rate,
        detection_time_hours=time_window_hours,
    )
