"""
Template-based report rendering: markdown text and a JSON-ready structure.
"""

from typing import Any

from metrics import MetricsReport


def _fmt_day(d) -> str:
    return d.isoformat() if d is not None else "n/a"


def generate_template_report(report: MetricsReport) -> str:
    sections = []

    sections.append(
        f"# BizPulse Report ({_fmt_day(report.period_start)} → {_fmt_day(report.period_end)})"
    )
    sections.append("")
    sections.append(f"- **Revenue:** ${report.total_revenue:.2f}")
    sections.append(f"- **Orders:** {report.orders}")
    sections.append(f"- **AOV:** ${report.avg_order_value:.2f}")
    sections.append(f"- **Unique Customers:** {report.unique_customers}")
    sections.append(f"- **Retention:** {report.retention_rate * 100:.1f}%")
    sections.append(f"- **Forecast (7d):** ${report.forecast_next_7_days_total:.2f}")
    sections.append("")

    if report.top_customers:
        sections.append("## Top Customers")
        for e in report.top_customers:
            sections.append(f"- {e.key}: ${e.value:.2f}")
        sections.append("")

    if report.top_products:
        sections.append("## Top Products")
        for e in report.top_products:
            sections.append(f"- {e.key}: ${e.value:.2f}")
        sections.append("")

    if report.anomalies:
        sections.append("## Anomalies")
        for a in report.anomalies:
            sections.append(f"- {a.day.isoformat()}: ${a.value:.2f} (z={a.z_score:.2f})")
        sections.append("")

    if report.overdue_count > 0:
        sections.append("## Overdue / Unpaid")
        sections.append(f"- Count: {report.overdue_count}")
        sections.append(f"- Total: ${report.overdue_total:.2f}")
        sections.append("")

    if report.suggestions:
        sections.append("## Recommendations")
        for s in report.suggestions:
            sections.append(f"- {s}")
        sections.append("")

    if report.exec_summary:
        sections.append("## Executive Summary (AI)")
        sections.append(report.exec_summary)
        sections.append("")

    return "\n".join(sections)


def report_to_structured(report: MetricsReport) -> dict[str, Any]:
    """JSON-serializable view of the report with stable camelCase keys."""
    out: dict[str, Any] = {
        "from": _fmt_day(report.period_start) if report.period_start else None,
        "to": _fmt_day(report.period_end) if report.period_end else None,
        "totalRevenue": report.total_revenue,
        "avgOrderValue": report.avg_order_value,
        "orders": report.orders,
        "uniqueCustomers": report.unique_customers,
        "retentionRate": report.retention_rate,
        "forecastNext7DaysTotal": report.forecast_next_7_days_total,
        "topCustomers": [{"key": e.key, "value": e.value} for e in report.top_customers],
        "topProducts": [{"key": e.key, "value": e.value} for e in report.top_products],
        "dailyRevenue": [
            {"day": p.day.isoformat(), "value": p.total} for p in report.daily_revenue
        ],
        "anomalies": [
            {"day": a.day.isoformat(), "value": a.value, "z": a.z_score}
            for a in report.anomalies
        ],
        "overdueCount": report.overdue_count,
        "overdueTotal": report.overdue_total,
        "suggestions": list(report.suggestions),
    }
    if report.exec_summary:
        out["execSummary"] = report.exec_summary
    return out
