"""
End-to-end run: CSV input -> MetricsReport -> markdown, with optional
narrative summary and alert delivery.

The narrator and alert sink are injected callables so the pipeline can run
without network access. Their failures are logged at WARNING and never
reach the caller; only IngestionError does.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Callable

from alerts import build_alert_message, should_alert
from ingest import parse_sales_csv
from metrics import MetricsReport, compute_metrics, with_exec_summary
from template_report import generate_template_report, report_to_structured

logger = logging.getLogger(__name__)

Narrator = Callable[[MetricsReport], str]
AlertSink = Callable[[str], Any]


@dataclass(frozen=True)
class PipelineResult:
    report: MetricsReport
    markdown: str
    alert_message: str | None = None

    def to_structured(self) -> dict[str, Any]:
        return report_to_structured(self.report)


def attach_exec_summary(report: MetricsReport, narrator: Narrator | None) -> MetricsReport:
    if narrator is None:
        return report
    try:
        summary = narrator(report)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Narrative summary failed: %s", exc)
        return report
    if not summary:
        return report
    return with_exec_summary(report, summary)


def dispatch_alert(report: MetricsReport, alert_sink: AlertSink | None) -> str | None:
    """Send an alert when anomalies or overdue invoices exist; return the message."""
    if not should_alert(report):
        return None
    message = build_alert_message(report)
    if alert_sink is None:
        return message
    try:
        alert_sink(message)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Alert delivery failed: %s", exc)
    return message


def run_pipeline(
    source: str | bytes | Path | IO,
    *,
    narrator: Narrator | None = None,
    alert_sink: AlertSink | None = None,
) -> PipelineResult:
    records = parse_sales_csv(source)
    report = compute_metrics(records)
    report = attach_exec_summary(report, narrator)
    alert_message = dispatch_alert(report, alert_sink)
    return PipelineResult(
        report=report,
        markdown=generate_template_report(report),
        alert_message=alert_message,
    )
