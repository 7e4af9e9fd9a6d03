"""File import, storage and report rendering."""

from slo_calc.io.importer import DataImporter, normalize_date
from slo_calc.io.renderer import ReportFormat, ReportRenderer, report_filename
from slo_calc.io.store import DataStore

__all__ = [
    "DataImporter",
    "DataStore",
    "ReportFormat",
    "ReportRenderer",
    "normalize_date",
    "report_filename",
]
