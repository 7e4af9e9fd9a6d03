"""Error Budget engine.

Budgets are expressed in percentage points of requests over the SLO window:

    total     = (1 - target) * 100
    consumed  = max(0, (target - SLI) * 100)
    remaining = total - consumed
    burn rate = consumed / window days   (average %/day, not instantaneous)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from typing import Any


def _quantize(value: float, decimals: int) -> Decimal:
    exact = Decimal(repr(value))
    # ties go towards +inf for negatives too, so -12.25 -> -12.2
    rounding = ROUND_HALF_UP if exact >= 0 else ROUND_HALF_DOWN
    return exact.quantize(Decimal(1).scaleb(-decimals), rounding=rounding)


def round_half_up(value: float, decimals: int) -> float:
    """Round half towards positive infinity on the decimal representation of *value*."""
    return float(_quantize(value, decimals))


@dataclass(frozen=True)
class ErrorBudget:
    """Error budget figures for one SLO window.

    ``total``, ``consumed`` and ``remaining`` are percentage points of
    requests, ``remaining_percentage`` is the share of ``total`` still
    available and ``burn_rate`` is percentage points per day.
    """

    total: float
    consumed: float
    remaining: float
    remaining_percentage: float
    burn_rate: float

    @property
    def is_exhausted(self) -> bool:
        return self.remaining <= 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "consumed": self.consumed,
            "remaining": self.remaining,
            "remaining_percentage": self.remaining_percentage,
            "burn_rate": self.burn_rate,
            "is_exhausted": self.is_exhausted,
        }


class ErrorBudgetCalculator:
    """Converts (SLI, target, window) into :class:`ErrorBudget` figures."""

    TOTAL_DECIMALS = 3
    PERCENTAGE_DECIMALS = 1
    BURN_RATE_DECIMALS = 4

    def calculate(self, current_sli: float, target_slo: float, window_days: int) -> ErrorBudget:
        total = (1.0 - target_slo) * 100.0
        consumed = max(0.0, (target_slo - current_sli) * 100.0)
        remaining = total - consumed
        remaining_percentage = remaining / total * 100.0 if total > 0 else 0.0
        burn_rate = consumed / window_days if window_days > 0 else 0.0

        # remaining is derived from the rounded parts so total - consumed == remaining
        total_d = _quantize(total, self.TOTAL_DECIMALS)
        consumed_d = _quantize(consumed, self.TOTAL_DECIMALS)

        return ErrorBudget(
            total=float(total_d),
            consumed=float(consumed_d),
            remaining=float(total_d - consumed_d),
            remaining_percentage=round_half_up(remaining_percentage, self.PERCENTAGE_DECIMALS),
            burn_rate=round_half_up(burn_rate, self.BURN_RATE_DECIMALS),
        )

    def projected_exhaustion(self, budget: ErrorBudget, window_days: int | None = None) -> int | None:
        """Whole days until the remaining budget is gone at the current burn rate.

        Returns ``None`` when there is no burn or the budget is already spent.
        """
        if budget.burn_rate <= 0 or budget.remaining <= 0:
            return None
        return math.floor(budget.remaining / budget.burn_rate)

    def required_sli(self, target_slo: float, remaining_days: int, budget: ErrorBudget) -> float:
        """SLI needed for the rest of the window to stay within budget."""
        if remaining_days <= 0:
            return target_slo
        max_failure_rate = (budget.total - budget.consumed) / 100.0 / remaining_days
        return min(1.0, max(0.0, 1.0 - max_failure_rate))
