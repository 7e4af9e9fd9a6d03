"""SLO-as-code configuration file.

Example ``slo-config.yaml``::

    services:
      - name: api-service
        target: 0.999
        window: 30
        alerting:
          channels: ["#sre-alerts"]
          error_budget_remaining: 20
          burn_rate: 2
    external_services:
      - name: AWS
        patterns: [AWS, CloudFront, S3]
    notifications:
      format: slack
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from slo_calc.errors import ConfigurationError
from slo_calc.records import SLOConfig

CONFIG_FILENAME = "slo-config.yaml"
WEBHOOK_ENV_VAR = "SLACK_WEBHOOK_URL"


class AlertingPolicy(BaseModel):
    """Where to alert and at which budget/burn-rate levels."""

    channels: list[str] = Field(default_factory=list)
    error_budget_remaining: float = Field(default=20.0, ge=0, le=100)
    burn_rate: float = Field(default=2.0, gt=0)


class ServiceSLO(BaseModel):
    """SLO defaults for one service."""

    name: str = Field(..., min_length=1)
    target: float = Field(default=0.999, gt=0, le=1, description="Target fraction")
    window: int = Field(default=30, ge=1, le=365, description="Window in days")
    alerting: AlertingPolicy = Field(default_factory=AlertingPolicy)

    def to_slo_config(self) -> SLOConfig:
        return SLOConfig(name=self.name, target=self.target, window=self.window)


class ExternalService(BaseModel):
    """A third-party dependency recognised by keywords in exclusion reasons."""

    name: str
    patterns: list[str] = Field(default_factory=list)

    def matches(self, reason: str) -> bool:
        lowered = reason.lower()
        return any(p.lower() in lowered for p in self.patterns)


class NotificationSettings(BaseModel):
    webhook_url: str = Field(default="")
    format: str = Field(default="slack", pattern="^(slack|generic)$")
    timeout_seconds: float = Field(default=10.0, gt=0)


class CalcSettings(BaseModel):
    """Top-level configuration document."""

    services: list[ServiceSLO] = Field(default_factory=list)
    external_services: list[ExternalService] = Field(default_factory=list)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> CalcSettings:
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e

    def to_yaml(self, path: str | Path) -> None:
        data = self.model_dump(mode="json")
        with open(Path(path), "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def service(self, name: str) -> ServiceSLO | None:
        for svc in self.services:
            if svc.name == name:
                return svc
        return None

    def attribute_reason(self, reason: str) -> str | None:
        """Name of the first external service whose patterns match *reason*."""
        if not reason:
            return None
        for ext in self.external_services:
            if ext.matches(reason):
                return ext.name
        return None

    def webhook_url(self) -> str:
        return self.notifications.webhook_url or os.environ.get(WEBHOOK_ENV_VAR, "")


def load_settings(path: str | Path | None = None, data_dir: str | Path | None = None) -> CalcSettings:
    """Load settings from *path*, or ``<data_dir>/slo-config.yaml`` if it exists.

    An explicit *path* that does not exist is an error; a missing default
    file just yields empty settings.
    """
    if path is not None:
        if not Path(path).exists():
            raise ConfigurationError(f"Config file not found: {path}")
        return CalcSettings.from_yaml(path)
    if data_dir is not None:
        default = Path(data_dir) / CONFIG_FILENAME
        if default.exists():
            return CalcSettings.from_yaml(default)
    return CalcSettings()


def default_settings_document() -> dict[str, Any]:
    """The sample configuration written by ``slo-calc template --type config``."""
    return CalcSettings(
        services=[
            ServiceSLO(
                name="api-service",
                target=0.999,
                window=30,
                alerting=AlertingPolicy(
                    channels=["#sre-alerts"], error_budget_remaining=20, burn_rate=2
                ),
            ),
            ServiceSLO(
                name="mobile-app",
                target=0.995,
                window=30,
                alerting=AlertingPolicy(
                    channels=["#mobile-alerts"], error_budget_remaining=30, burn_rate=1.5
                ),
            ),
        ],
        external_services=[
            ExternalService(name="AWS", patterns=["AWS", "CloudFront", "S3"]),
            ExternalService(name="SORACOM", patterns=["SORACOM", "SIM", "cellular"]),
            ExternalService(name="Stripe", patterns=["Stripe", "payment", "checkout"]),
            ExternalService(name="Google Maps", patterns=["Maps API", "geocoding", "directions"]),
        ],
    ).model_dump(mode="json")
