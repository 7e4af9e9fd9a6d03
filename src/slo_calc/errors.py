"""Exception hierarchy for slo-calc.

Every error raised on purpose derives from :class:`SLOCalcError` so the CLI
can stop a command with a single ``except`` at its boundary.
"""

from __future__ import annotations


class SLOCalcError(Exception):
    """Base class for all slo-calc errors."""


class DataValidationError(SLOCalcError):
    """A daily record or record series failed structural or logical checks."""

    def __init__(self, message: str, index: int | None = None, field: str = "") -> None:
        if index is not None:
            message = f"Data item at index {index}: {message}"
        super().__init__(message)
        self.index = index
        self.field = field


class DataImportError(SLOCalcError):
    """An input file could not be read or parsed."""


class ConfigurationError(SLOCalcError):
    """SLO target, window or config file is out of range or malformed."""


class MissingDataError(SLOCalcError):
    """No data is available for the requested SLO or window."""


class NotificationError(SLOCalcError):
    """A webhook notification could not be delivered."""


class ThresholdLabelError(SLOCalcError):
    """A ``<longHours>_<shortMinutes>`` window label could not be parsed."""

    def __init__(self, label: str, reason: str) -> None:
        super().__init__(f"Invalid window label '{label}': {reason}")
        self.label = label
        self.reason = reason
