"""
Alert sink: forwards a one-line summary to a Slack incoming webhook.

Delivery is best-effort. A failed POST is logged and dropped, never retried
and never raised to the pipeline caller.
"""

import logging

import requests

from config import DEFAULT_ALERT_TIMEOUT, Settings
from metrics import MetricsReport

logger = logging.getLogger(__name__)


def should_alert(report: MetricsReport) -> bool:
    return bool(report.anomalies) or report.overdue_count > 0


def build_alert_message(report: MetricsReport) -> str:
    period_from = report.period_start.isoformat() if report.period_start else "n/a"
    period_to = report.period_end.isoformat() if report.period_end else "n/a"
    return (
        f"BizPulse Alert: {len(report.anomalies)} anomalies; "
        f"{report.overdue_count} overdue (${report.overdue_total:.2f}). "
        f"Period {period_from}→{period_to}. Rev ${report.total_revenue:.2f}."
    )


class SlackAlertSink:
    def __init__(
        self,
        webhook_url: str,
        *,
        timeout: float = DEFAULT_ALERT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self._timeout = timeout
        self._session = session or requests.Session()

    def __call__(self, message: str) -> bool:
        """POST `message` to the webhook. Returns True on a 2xx response."""
        try:
            response = self._session.post(
                self.webhook_url,
                json={"text": message},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Slack alert delivery failed: %s", exc)
            return False
        logger.info("Slack alert delivered status=%s", response.status_code)
        return True


def build_alert_sink(settings: Settings) -> SlackAlertSink | None:
    if not settings.slack_webhook:
        return None
    return SlackAlertSink(settings.slack_webhook, timeout=settings.alert_timeout)
