"""Import daily records from CSV or JSON files."""

from __future__ import annotations

import csv
import datetime as dt
import io
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from slo_calc.errors import DataImportError, DataValidationError
from slo_calc.records import DailyRecord
from slo_calc.validator import validate_records

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["date", "totalRequests", "successfulRequests", "excludedFailures", "reason"]
COUNT_COLUMNS = ("totalRequests", "successfulRequests", "excludedFailures")


def normalize_date(value: Any, index: int | None = None) -> str:
    """Normalise a date or ISO timestamp to ``YYYY-MM-DD`` (UTC for aware timestamps)."""
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        return value.isoformat()
    elif isinstance(value, str) and value.strip():
        text = value.strip().replace("/", "-")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            raise DataValidationError(
                f"Invalid date format: {value}", index=index, field="date"
            ) from None
    else:
        raise DataValidationError("'date' is required", index=index, field="date")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc)
    return parsed.date().isoformat()


class DataImporter:
    """Reads record files and merges them into existing series."""

    def import_file(self, path: str | Path, validate: bool = True) -> list[DailyRecord]:
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise DataImportError(f"Cannot read {path}: {e}") from e

        ext = path.suffix.lower()
        if ext == ".csv":
            items = self.parse_csv(content)
        elif ext == ".json":
            items = self.parse_json(content)
        else:
            raise DataImportError(f"Unsupported file format: {ext or path.name}. Use CSV or JSON.")

        records = [DailyRecord.from_dict(item, index) for index, item in enumerate(items)]
        if validate:
            validate_records(records)
        logger.info("Imported %d records from %s", len(records), path)
        return records

    def parse_csv(self, content: str) -> list[dict[str, Any]]:
        reader = csv.DictReader(io.StringIO(content), skipinitialspace=True)
        if reader.fieldnames is None:
            return []
        missing = {"date", "totalRequests", "successfulRequests"} - {
            (f or "").strip() for f in reader.fieldnames
        }
        if missing:
            raise DataImportError(f"Failed to parse CSV: missing columns {sorted(missing)}")

        items: list[dict[str, Any]] = []
        for index, row in enumerate(reader):
            row = {(k or "").strip(): (v or "").strip() for k, v in row.items()}
            if not any(row.values()):
                continue
            item: dict[str, Any] = {"date": normalize_date(row.get("date"), index)}
            for column in COUNT_COLUMNS:
                raw = row.get(column, "")
                try:
                    item[column] = int(raw) if raw else 0
                except ValueError:
                    raise DataImportError(
                        f"Failed to parse CSV: row {index + 1} has non-integer {column} '{raw}'"
                    ) from None
            item["reason"] = row.get("reason", "")
            items.append(item)
        return items

    def parse_json(self, content: str) -> list[dict[str, Any]]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise DataImportError(f"Failed to parse JSON: {e}") from e
        if not isinstance(data, list):
            raise DataImportError("Failed to parse JSON: JSON must contain an array of SLI data")

        items: list[dict[str, Any]] = []
        for index, item in enumerate(data):
            if not isinstance(item, dict):
                raise DataValidationError("record must be an object", index=index)
            items.append({**item, "date": normalize_date(item.get("date"), index)})
        return items

    @staticmethod
    def merge(new: Iterable[DailyRecord], existing: Iterable[DailyRecord]) -> list[DailyRecord]:
        """Merge by date; records in *new* replace existing ones for the same day."""
        by_date = {r.date: r for r in existing}
        by_date.update({r.date: r for r in new})
        return sorted(by_date.values(), key=lambda r: r.date)
