"""Tests for the error budget engine."""

from decimal import Decimal

import pytest

from slo_calc.slo.budget import ErrorBudget, ErrorBudgetCalculator, round_half_up


def _exact(value: float) -> Decimal:
    return Decimal(str(value))


class TestRounding:
    def test_half_up(self) -> None:
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(0.0125, 3) == 0.013
        assert round_half_up(2.5, 0) == 3.0

    def test_no_change_when_precise_enough(self) -> None:
        assert round_half_up(0.1, 3) == 0.1

    def test_negative_ties_round_towards_positive_infinity(self) -> None:
        assert round_half_up(-12.25, 1) == -12.2
        assert round_half_up(-0.0125, 3) == -0.012
        assert round_half_up(-12.26, 1) == -12.3


class TestCalculate:
    def test_meeting_target_consumes_nothing(self) -> None:
        budget = ErrorBudgetCalculator().calculate(0.9995, 0.999, 30)
        assert budget.total == 0.1
        assert budget.consumed == 0.0
        assert budget.remaining == 0.1
        assert budget.remaining_percentage == 100.0
        assert budget.burn_rate == 0.0
        assert budget.is_exhausted is False

    def test_exceeding_target_never_goes_negative(self) -> None:
        budget = ErrorBudgetCalculator().calculate(1.0, 0.99, 30)
        assert budget.consumed == 0.0
        assert budget.remaining == budget.total

    def test_partial_consumption(self) -> None:
        budget = ErrorBudgetCalculator().calculate(0.9985, 0.999, 30)
        assert budget.total == 0.1
        assert budget.consumed == 0.05
        assert budget.remaining == 0.05
        assert budget.remaining_percentage == 50.0
        assert budget.burn_rate == 0.0017

    def test_remaining_is_exactly_total_minus_consumed(self) -> None:
        calc = ErrorBudgetCalculator()
        for sli in (0.9, 0.95, 0.98765, 0.99875, 0.9991, 0.99999):
            budget = calc.calculate(sli, 0.999, 30)
            assert _exact(budget.total) - _exact(budget.consumed) == _exact(budget.remaining)

    def test_full_target_has_zero_budget(self) -> None:
        budget = ErrorBudgetCalculator().calculate(0.999, 1.0, 30)
        assert budget.total == 0.0
        assert budget.remaining_percentage == 0.0
        assert budget.consumed == 0.1
        assert budget.remaining == -0.1
        assert budget.is_exhausted is True

    def test_full_target_and_perfect_sli(self) -> None:
        budget = ErrorBudgetCalculator().calculate(1.0, 1.0, 30)
        assert budget.total == 0.0
        assert budget.remaining_percentage == 0.0

    def test_zero_window_has_no_burn_rate(self) -> None:
        budget = ErrorBudgetCalculator().calculate(0.99, 0.999, 0)
        assert budget.burn_rate == 0.0
        assert budget.consumed > 0

    def test_overspent_budget(self) -> None:
        budget = ErrorBudgetCalculator().calculate(0.99, 0.999, 30)
        assert budget.consumed == 0.9
        assert budget.remaining == pytest.approx(-0.8)
        assert budget.remaining_percentage == -800.0
        assert budget.burn_rate == 0.03

    def test_idempotent(self) -> None:
        calc = ErrorBudgetCalculator()
        assert calc.calculate(0.99871, 0.999, 28) == calc.calculate(0.99871, 0.999, 28)

    def test_to_dict(self) -> None:
        d = ErrorBudgetCalculator().calculate(0.9995, 0.999, 30).to_dict()
        assert set(d) == {
            "total", "consumed", "remaining", "remaining_percentage",
            "burn_rate", "is_exhausted",
        }


def _budget(remaining: float, burn_rate: float, total: float = 0.1) -> ErrorBudget:
    return ErrorBudget(
        total=total,
        consumed=total - remaining,
        remaining=remaining,
        remaining_percentage=remaining / total * 100 if total else 0.0,
        burn_rate=burn_rate,
    )


class TestProjectedExhaustion:
    def test_floor_of_days(self) -> None:
        calc = ErrorBudgetCalculator()
        assert calc.projected_exhaustion(_budget(0.05, 0.0017), 30) == 29

    def test_no_burn(self) -> None:
        assert ErrorBudgetCalculator().projected_exhaustion(_budget(0.1, 0.0), 30) is None

    def test_already_exhausted(self) -> None:
        calc = ErrorBudgetCalculator()
        assert calc.projected_exhaustion(_budget(0.0, 0.01), 30) is None
        assert calc.projected_exhaustion(_budget(-0.2, 0.01), 30) is None


class TestRequiredSLI:
    def test_no_days_left_returns_target(self) -> None:
        calc = ErrorBudgetCalculator()
        assert calc.required_sli(0.999, 0, _budget(0.05, 0.001)) == 0.999
        assert calc.required_sli(0.999, -3, _budget(0.05, 0.001)) == 0.999

    def test_spreads_remaining_budget(self) -> None:
        required = ErrorBudgetCalculator().required_sli(0.999, 10, _budget(0.05, 0.001))
        assert required == pytest.approx(1 - 0.05 / 100 / 10)

    def test_clamped_to_unit_interval(self) -> None:
        calc = ErrorBudgetCalculator()
        overspent = ErrorBudget(total=0.0, consumed=50.0, remaining=-50.0,
                                remaining_percentage=0.0, burn_rate=1.0)
        assert calc.required_sli(1.0, 1, overspent) == 1.0
        huge = ErrorBudget(total=300.0, consumed=0.0, remaining=300.0,
                           remaining_percentage=100.0, burn_rate=0.0)
        assert calc.required_sli(0.5, 1, huge) == 0.0
