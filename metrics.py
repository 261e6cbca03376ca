"""
Metrics assembly: records -> one immutable MetricsReport.

compute_metrics is a pure function of its input. Each call recomputes every
aggregate from scratch; nothing is cached between runs.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Sequence

from decision_engine import run_decision_engine
from ingest import Record
from kpi import (
    Anomaly,
    DailyPoint,
    RankedEntry,
    aggregate_records,
    detect_anomalies,
    forecast_next_7_days,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricsReport:
    period_start: date | None = None
    period_end: date | None = None
    total_revenue: float = 0.0
    orders: int = 0
    avg_order_value: float = 0.0
    unique_customers: int = 0
    top_customers: tuple[RankedEntry, ...] = ()
    top_products: tuple[RankedEntry, ...] = ()
    daily_revenue: tuple[DailyPoint, ...] = ()
    retention_rate: float = 0.0
    forecast_next_7_days_total: float = 0.0
    anomalies: tuple[Anomaly, ...] = ()
    overdue_count: int = 0
    overdue_total: float = 0.0
    suggestions: tuple[str, ...] = ()
    # Filled in by an optional narrative generator; blank otherwise.
    exec_summary: str = ""


def compute_metrics(records: Sequence[Record]) -> MetricsReport:
    kpis = aggregate_records(records)
    anomalies = detect_anomalies(kpis.daily_revenue)
    forecast = forecast_next_7_days(kpis.daily_revenue)
    decision = run_decision_engine(kpis, anomalies)

    logger.info(
        "Computed metrics orders=%d days=%d anomalies=%d overdue=%d rules=%s",
        kpis.orders,
        len(kpis.daily_revenue),
        len(anomalies),
        kpis.overdue_count,
        ",".join(decision.fired_rule_ids) or "-",
    )

    return MetricsReport(
        period_start=kpis.period_start,
        period_end=kpis.period_end,
        total_revenue=kpis.total_revenue,
        orders=kpis.orders,
        avg_order_value=kpis.avg_order_value,
        unique_customers=kpis.unique_customers,
        top_customers=kpis.top_customers,
        top_products=kpis.top_products,
        daily_revenue=kpis.daily_revenue,
        retention_rate=kpis.retention_rate,
        forecast_next_7_days_total=forecast,
        anomalies=tuple(anomalies),
        overdue_count=kpis.overdue_count,
        overdue_total=kpis.overdue_total,
        suggestions=tuple(decision.recommendations),
    )


def with_exec_summary(report: MetricsReport, summary: str) -> MetricsReport:
    """Return a copy of `report` carrying the narrative summary."""
    return replace(report, exec_summary=(summary or "").strip())
