"""Starter files: sample record data, a config file and a Datadog fetch script."""

from __future__ import annotations

import csv
import datetime as dt
import io
import json
import random
from enum import Enum
from pathlib import Path

import yaml

from slo_calc.config import default_settings_document
from slo_calc.io.importer import CSV_COLUMNS
from slo_calc.records import DailyRecord


class TemplateType(str, Enum):
    CSV = "csv"
    JSON = "json"
    CONFIG = "config"
    DATADOG = "datadog"

    @property
    def default_output(self) -> str:
        return {
            "csv": "./sli-template.csv",
            "json": "./sli-template.json",
            "config": "./slo-config.yaml",
            "datadog": "./fetch-datadog.sh",
        }[self.value]


# (days ago, excluded failures, reason)
_SAMPLE_EXCLUSIONS = {
    4: (50, "AWS us-east-1 outage"),
    1: (100, "SORACOM API timeout spike"),
}


def sample_records(
    days: int = 7,
    today: dt.date | None = None,
    seed: int | None = None,
) -> list[DailyRecord]:
    """Realistic-looking records ending today, with two externally caused incidents."""
    today = today or dt.date.today()
    rng = random.Random(seed)
    records: list[DailyRecord] = []

    for days_ago in range(days - 1, -1, -1):
        total = 100000 + rng.randrange(20000)
        successful = int(total * (0.998 + rng.random() * 0.002))
        excluded, reason = _SAMPLE_EXCLUSIONS.get(days_ago, (0, ""))
        excluded = min(excluded, total - successful)
        records.append(DailyRecord(
            date=today - dt.timedelta(days=days_ago),
            total_requests=total,
            successful_requests=successful,
            excluded_failures=excluded,
            reason=reason if excluded else "",
        ))
    return records


def csv_template(records: list[DailyRecord]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow(record.to_dict())
    return buf.getvalue()


def json_template(records: list[DailyRecord]) -> str:
    return json.dumps([r.to_dict() for r in records], indent=2)


def config_template() -> str:
    return yaml.dump(default_settings_document(), default_flow_style=False, sort_keys=False)


DATADOG_SCRIPT = """#!/bin/bash
# Datadog SLI Fetcher Script
# Usage: ./fetch-datadog.sh <service-name> [date]

set -euo pipefail

API_KEY="${DD_API_KEY:-}"
APP_KEY="${DD_APP_KEY:-}"
SERVICE_NAME="${1:-api-service}"
DATE="${2:-$(date -d 'yesterday' +%Y-%m-%d)}"

if [[ -z "$API_KEY" ]] || [[ -z "$APP_KEY" ]]; then
    echo "Error: DD_API_KEY and DD_APP_KEY environment variables must be set"
    exit 1
fi

START_TS=$(date -d "$DATE 00:00:00" +%s)
END_TS=$(date -d "$DATE 23:59:59" +%s)

echo "Fetching SLI data for $SERVICE_NAME on $DATE..."

query() {
    curl -s -X GET \\
        "https://api.datadoghq.com/api/v1/query?from=${START_TS}&to=${END_TS}&query=$1" \\
        -H "DD-API-KEY: ${API_KEY}" \\
        -H "DD-APPLICATION-KEY: ${APP_KEY}" \\
        | jq -r '.series[0].pointlist[-1][1] // 0'
}

TOTAL_REQUESTS=$(query "sum:service.requests.count{service:${SERVICE_NAME}}.as_count()")
SUCCESSFUL_REQUESTS=$(query "sum:service.requests.success{service:${SERVICE_NAME}}.as_count()")

OUT="sli-${SERVICE_NAME}-${DATE}.csv"
echo "date,totalRequests,successfulRequests,excludedFailures,reason" > "$OUT"
echo "${DATE},${TOTAL_REQUESTS%.*},${SUCCESSFUL_REQUESTS%.*},0," >> "$OUT"

echo "Data saved to $OUT"
echo "Total Requests: ${TOTAL_REQUESTS}"
echo "Successful Requests: ${SUCCESSFUL_REQUESTS}"
"""


def generate_template(
    template_type: TemplateType,
    output: str | Path | None = None,
    today: dt.date | None = None,
    seed: int | None = None,
) -> Path:
    """Write a template file and return its path."""
    path = Path(output or template_type.default_output)
    if template_type is TemplateType.CSV:
        content = csv_template(sample_records(today=today, seed=seed))
    elif template_type is TemplateType.JSON:
        content = json_template(sample_records(today=today, seed=seed))
    elif template_type is TemplateType.CONFIG:
        content = config_template()
    else:
        content = DATADOG_SCRIPT

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if template_type is TemplateType.DATADOG:
        path.chmod(0o755)
    return path
