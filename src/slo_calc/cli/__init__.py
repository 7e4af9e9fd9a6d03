"""Command-line interface for slo-calc."""

from slo_calc.cli.main import cli, main

__all__ = ["cli", "main"]
