"""
Webhook notifications for SLO reports.

Posts a summary of a report (status, period, adjusted SLI, remaining
budget, burn rate and required actions) to a Slack incoming webhook or a
generic JSON endpoint.

No external dependencies; uses urllib for HTTP calls. Delivery never
raises: the outcome is returned as a :class:`DeliveryResult`.
"""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from slo_calc.analysis.recommendations import ReportStatus, evaluate_status
from slo_calc.errors import NotificationError
from slo_calc.slo.budget import ErrorBudgetCalculator
from slo_calc.slo.report import SLOReport

logger = logging.getLogger(__name__)


class WebhookFormat(Enum):
    """Supported payload shapes."""

    SLACK = "slack"
    GENERIC = "generic"
    CALLBACK = "callback"  # In-process callback (for testing)


@dataclass
class DeliveryResult:
    """Result of attempting to deliver a notification."""

    channel_name: str
    success: bool
    status_code: int = 0
    error: str = ""
    timestamp: float = field(default_factory=time.time)

    def raise_for_status(self) -> None:
        if not self.success:
            raise NotificationError(f"Notification to {self.channel_name} failed: {self.error}")


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

_SLACK_COLOR = {
    ReportStatus.HEALTHY: "good",
    ReportStatus.WARNING: "warning",
    ReportStatus.CRITICAL: "danger",
}


def required_actions(report: SLOReport) -> List[str]:
    """Short action list used in notification payloads."""
    budget = report.error_budget
    actions: List[str] = []

    if budget.remaining_percentage < 20:
        actions.append("🚨 *Freeze all non-critical deployments immediately*")
        actions.append("📋 Schedule emergency SRE review")

    if not report.meets_target:
        actions.append("❌ *SLO target not met* - reliability improvements required")

    if budget.burn_rate > 2:
        days = ErrorBudgetCalculator().projected_exhaustion(budget)
        if days is None:
            actions.append("🔥 *High burn rate* - budget already exhausted")
        else:
            actions.append(f"🔥 *High burn rate* - budget exhaustion in {days} days")

    return actions


def format_slack(report: SLOReport) -> Dict[str, Any]:
    """Format report as Slack incoming webhook payload."""
    status = evaluate_status(report)
    config = report.config
    budget = report.error_budget
    actions = required_actions(report)
    action_text = (
        "*Required Actions:*\n" + "\n".join(f"• {a}" for a in actions)
        if actions else "✅ No immediate actions required"
    )

    fields = [
        {"type": "mrkdwn", "text": f"*Status*\n{status.label}"},
        {"type": "mrkdwn", "text": f"*Period*\n{report.period.start} to {report.period.end}"},
        {"type": "mrkdwn", "text": f"*Adjusted SLI*\n{report.adjusted_sli * 100:.3f}%"},
        {"type": "mrkdwn", "text": f"*Target SLO*\n{config.target * 100:.2f}%"},
        {
            "type": "mrkdwn",
            "text": (
                f"*Error Budget Remaining*\n{budget.remaining:.3f}% "
                f"({budget.remaining_percentage:.1f}%)"
            ),
        },
        {"type": "mrkdwn", "text": f"*Burn Rate*\n{budget.burn_rate:.4f}%/day"},
    ]

    return {
        "text": f"SLO Report: {config.name}",
        "attachments": [
            {
                "color": _SLACK_COLOR[status],
                "blocks": [
                    {
                        "type": "header",
                        "text": {
                            "type": "plain_text",
                            "text": f"{status.emoji} {config.name} SLO Report",
                        },
                    },
                    {"type": "section", "fields": fields},
                    {"type": "divider"},
                    {"type": "section", "text": {"type": "mrkdwn", "text": action_text}},
                ],
            }
        ],
    }


def format_generic(report: SLOReport) -> Dict[str, Any]:
    """Format report as generic JSON webhook payload."""
    budget = report.error_budget
    return {
        "slo_name": report.config.name,
        "status": evaluate_status(report).value,
        "period": report.period.to_dict(),
        "adjusted_sli": report.adjusted_sli,
        "target": report.config.target,
        "error_budget_remaining": budget.remaining,
        "error_budget_remaining_percentage": budget.remaining_percentage,
        "burn_rate": budget.burn_rate,
        "actions": required_actions(report),
        "timestamp": time.time(),
    }


# ---------------------------------------------------------------------------
# Notifier
# ---------------------------------------------------------------------------


class WebhookNotifier:
    """
    Sends report summaries to a webhook.

    Usage:
        notifier = WebhookNotifier(url="https://hooks.slack.com/services/...")
        result = notifier.send_report(report)
        result.raise_for_status()  # NotificationError on failure
    """

    def __init__(
        self,
        url: str = "",
        fmt: WebhookFormat = WebhookFormat.SLACK,
        name: str = "slack",
        timeout: float = 10.0,
        callback: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> None:
        self.url = url
        self.fmt = fmt
        self.name = name
        self.timeout = timeout
        self._callback = callback
        self._history: List[DeliveryResult] = []
        self._formatters = {
            WebhookFormat.SLACK: format_slack,
            WebhookFormat.GENERIC: format_generic,
            WebhookFormat.CALLBACK: format_generic,
        }

    def send_report(self, report: SLOReport) -> DeliveryResult:
        result = self._deliver(report)
        self._history.append(result)
        logger.debug("Delivery to %s: success=%s", self.name, result.success)
        return result

    def _deliver(self, report: SLOReport) -> DeliveryResult:
        try:
            payload = self._formatters[self.fmt](report)
            if self.fmt == WebhookFormat.CALLBACK:
                if self._callback:
                    self._callback(payload)
                return DeliveryResult(channel_name=self.name, success=True)
            return self._http_post(self.url, payload)
        except Exception as e:
            return DeliveryResult(channel_name=self.name, success=False, error=str(e))

    def _http_post(self, url: str, payload: Dict[str, Any]) -> DeliveryResult:
        """Send HTTP POST. Isolated for testability."""
        if not url:
            return DeliveryResult(
                channel_name=self.name,
                success=False,
                error="No webhook URL configured (set SLACK_WEBHOOK_URL)",
            )

        try:
            data = json.dumps(payload).encode("utf-8")
            req = urllib.request.Request(
                url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return DeliveryResult(
                    channel_name=self.name,
                    success=True,
                    status_code=resp.status,
                )
        except urllib.error.HTTPError as e:
            return DeliveryResult(
                channel_name=self.name,
                success=False,
                status_code=e.code,
                error=str(e),
            )
        except Exception as e:
            return DeliveryResult(
                channel_name=self.name,
                success=False,
                error=str(e),
            )

    @property
    def history(self) -> List[DeliveryResult]:
        return list(self._history)
