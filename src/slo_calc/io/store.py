"""Flat-file storage for record series and reports.

Layout::

    <data_dir>/
        input/<slo-name>.json   record series, camelCase JSON array
        reports/                generated reports
        archive/                reports moved out by ``archive_old_reports``
"""

from __future__ import annotations

import json
import logging
import shutil
import time
from pathlib import Path
from typing import Sequence

from slo_calc.errors import ConfigurationError, DataImportError, MissingDataError
from slo_calc.records import DailyRecord
from slo_calc.validator import validate_records

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "./slo-data"
DEFAULT_RETENTION_DAYS = 90


class DataStore:
    """Reads and writes the slo-calc data directory."""

    def __init__(self, data_dir: str | Path = DEFAULT_DATA_DIR) -> None:
        self.data_dir = Path(data_dir)

    @property
    def input_dir(self) -> Path:
        return self.data_dir / "input"

    @property
    def reports_dir(self) -> Path:
        return self.data_dir / "reports"

    @property
    def archive_dir(self) -> Path:
        return self.data_dir / "archive"

    def init(self) -> None:
        for directory in (self.input_dir, self.reports_dir, self.archive_dir):
            directory.mkdir(parents=True, exist_ok=True)
        logger.debug("Initialised data directory %s", self.data_dir)

    def data_path(self, slo_name: str) -> Path:
        if not slo_name or "/" in slo_name or "\\" in slo_name or slo_name.startswith("."):
            raise ConfigurationError(f"Invalid SLO name: '{slo_name}'")
        return self.input_dir / f"{slo_name}.json"

    def exists(self, slo_name: str) -> bool:
        return self.data_path(slo_name).exists()

    def load(self, slo_name: str, validate: bool = True) -> list[DailyRecord]:
        path = self.data_path(slo_name)
        if not path.exists():
            raise MissingDataError(f"No data found for SLO '{slo_name}' ({path})")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise DataImportError(f"Corrupt data file {path}: {e}") from e
        if not isinstance(data, list):
            raise DataImportError(f"Corrupt data file {path}: expected a JSON array")

        records = [DailyRecord.from_dict(item, index) for index, item in enumerate(data)]
        if validate:
            validate_records(records)
        return records

    def save(self, slo_name: str, records: Sequence[DailyRecord]) -> Path:
        path = self.data_path(slo_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.to_dict() for r in sorted(records, key=lambda r: r.date)]
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.debug("Saved %d records to %s", len(payload), path)
        return path

    def archive_old_reports(
        self,
        days_to_keep: int = DEFAULT_RETENTION_DAYS,
        now: float | None = None,
    ) -> list[Path]:
        """Move reports whose mtime is older than *days_to_keep* into the archive."""
        if days_to_keep < 0:
            raise ConfigurationError("Days to keep cannot be negative")
        if not self.reports_dir.exists():
            raise MissingDataError(
                f"Reports directory {self.reports_dir} does not exist. Run 'slo-calc init' first."
            )
        self.archive_dir.mkdir(parents=True, exist_ok=True)
        cutoff = (now if now is not None else time.time()) - days_to_keep * 86400

        moved: list[Path] = []
        for path in sorted(self.reports_dir.iterdir()):
            if not path.is_file() or path.stat().st_mtime >= cutoff:
                continue
            target = self.archive_dir / path.name
            shutil.move(str(path), str(target))
            logger.info("Archived %s", path.name)
            moved.append(target)
        return moved
