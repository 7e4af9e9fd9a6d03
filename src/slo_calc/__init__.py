"""slo-calc — SLO compliance and error budgets from daily request counters.

slo-calc turns daily reliability counters into SLO reports:

Core concepts
-------------
* **SLI (Service Level Indicator)** — the measured success ratio,
  ``successful / total`` requests over the window.

* **Adjusted SLI** — the SLI after crediting back failures attributed to
  external dependencies (``excludedFailures`` with a ``reason``).

* **Error Budget** — the tolerable amount of unreliability
  (``1 − SLO target``), tracked in percentage points of requests.
  Burn-rate thresholds surface problems before the budget is spent.

Quick start::

    from slo_calc import DataImporter, SLOConfig, SLOReportBuilder

    records = DataImporter().import_file("sli.csv")
    report = SLOReportBuilder().build(records, SLOConfig("api", 0.999, 30))
    print(report.error_budget.remaining_percentage)
"""

from slo_calc.io.importer import DataImporter
from slo_calc.records import DailyRecord, SLOConfig
from slo_calc.slo.budget import ErrorBudget, ErrorBudgetCalculator
from slo_calc.slo.report import SLOReport, SLOReportBuilder

__all__ = [
    "DailyRecord",
    "DataImporter",
    "ErrorBudget",
    "ErrorBudgetCalculator",
    "SLOConfig",
    "SLOReport",
    "SLOReportBuilder",
]

__version__ = "0.1.0"
