"""
Prompt design for the optional executive summary.

The LLM only receives the scalar fields of an already computed report. It
restates them; it never decides anything the rule engine has not already
decided.
"""

from decision_engine import format_entries
from metrics import MetricsReport


SYSTEM_PROMPT = "You write concise executive summaries for business performance."


def build_kpi_summary(report: MetricsReport) -> str:
    """Scalar report fields, one per line, as handed to the LLM."""
    period_from = report.period_start.isoformat() if report.period_start else "n/a"
    period_to = report.period_end.isoformat() if report.period_end else "n/a"
    lines = [
        f"From:{period_from} To:{period_to}",
        f"Revenue: {report.total_revenue:.2f}",
        f"Orders: {report.orders}",
        f"AOV: {report.avg_order_value:.2f}",
        f"Retention: {report.retention_rate:.2f}",
        f"TopCustomers: {format_entries(report.top_customers)}",
        f"TopProducts: {format_entries(report.top_products)}",
        f"Overdue: {report.overdue_count} (${report.overdue_total:.2f})",
        f"Forecast7: {report.forecast_next_7_days_total:.2f}",
    ]
    return "\n".join(lines)


def build_user_prompt(report: MetricsReport) -> str:
    return (
        "Summarize these KPIs in 4 sentences, include 1-2 risks and 1-2 actionable next steps.\n"
        + build_kpi_summary(report)
    )
