"""Tests for starter template generation."""

import datetime as dt
import os
from pathlib import Path

import pytest

from slo_calc.config import CalcSettings
from slo_calc.io.importer import DataImporter
from slo_calc.templates import (
    DATADOG_SCRIPT,
    TemplateType,
    generate_template,
    sample_records,
)
from slo_calc.validator import validate_records

TODAY = dt.date(2024, 5, 10)


class TestSampleRecords:
    def test_seven_days_ending_today(self):
        records = sample_records(today=TODAY, seed=7)
        assert len(records) == 7
        assert records[0].date == dt.date(2024, 5, 4)
        assert records[-1].date == TODAY

    def test_records_are_valid(self):
        records = sample_records(days=30, today=TODAY, seed=3)
        validate_records(records)
        for record in records:
            assert 100000 <= record.total_requests < 120000
            assert record.excluded_failures <= record.failures

    def test_exclusions_have_reasons(self):
        records = sample_records(today=TODAY, seed=11)
        for record in records:
            if record.excluded_failures:
                assert record.reason
        excluded_days = {r.date for r in records if r.reason}
        assert excluded_days <= {dt.date(2024, 5, 6), dt.date(2024, 5, 9)}

    def test_seed_is_deterministic(self):
        assert sample_records(today=TODAY, seed=5) == sample_records(today=TODAY, seed=5)


class TestGenerate:
    @pytest.mark.parametrize("template_type", [TemplateType.CSV, TemplateType.JSON])
    def test_data_templates_import_cleanly(self, tmp_path: Path, template_type):
        out = tmp_path / f"sli.{template_type.value}"
        path = generate_template(template_type, out, today=TODAY, seed=1)
        assert path == out
        records = DataImporter().import_file(path)
        assert len(records) == 7

    def test_csv_header(self, tmp_path: Path):
        path = generate_template(TemplateType.CSV, tmp_path / "sli.csv", today=TODAY, seed=1)
        header = path.read_text().splitlines()[0]
        assert header == "date,totalRequests,successfulRequests,excludedFailures,reason"

    def test_config_template_is_loadable(self, tmp_path: Path):
        path = generate_template(TemplateType.CONFIG, tmp_path / "slo-config.yaml")
        settings = CalcSettings.from_yaml(path)
        assert settings.service("api-service") is not None
        assert settings.attribute_reason("SORACOM API timeout spike") == "SORACOM"

    def test_datadog_script_is_executable(self, tmp_path: Path):
        path = generate_template(TemplateType.DATADOG, tmp_path / "fetch.sh")
        assert path.read_text() == DATADOG_SCRIPT
        assert DATADOG_SCRIPT.startswith("#!/bin/bash")
        assert os.access(path, os.X_OK)

    def test_creates_parent_directories(self, tmp_path: Path):
        path = generate_template(TemplateType.CONFIG, tmp_path / "nested" / "dir" / "c.yaml")
        assert path.exists()

    def test_default_outputs(self):
        assert TemplateType.CSV.default_output == "./sli-template.csv"
        assert TemplateType.CONFIG.default_output == "./slo-config.yaml"
