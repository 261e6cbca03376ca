from dataclasses import dataclass
from datetime import date
from typing import Sequence

import numpy as np
import pandas as pd

from ingest import Record

TOP_N = 5
OVERDUE_MARKERS = ("overdue", "unpaid", "due")
ANOMALY_MIN_POINTS = 7
ANOMALY_Z_THRESHOLD = 2.0
FORECAST_WINDOW_DAYS = 7
FORECAST_HORIZON_DAYS = 7


@dataclass(frozen=True)
class DailyPoint:
    day: date
    total: float


@dataclass(frozen=True)
class RankedEntry:
    key: str
    value: float


@dataclass(frozen=True)
class Anomaly:
    day: date
    value: float
    z_score: float


@dataclass(frozen=True)
class KPIAggregate:
    """Revenue, order, customer and product aggregates for one record set."""
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
    overdue_count: int = 0
    overdue_total: float = 0.0


def is_overdue_status(status: str) -> bool:
    s = (status or "").lower()
    return any(marker in s for marker in OVERDUE_MARKERS)


def _top_n(totals: pd.Series, n: int = TOP_N) -> tuple[RankedEntry, ...]:
    # Revenue descending, then name ascending for equal revenue.
    ranked = (
        totals.rename_axis("key")
        .reset_index(name="value")
        .sort_values(["value", "key"], ascending=[False, True])
        .head(n)
    )
    return tuple(
        RankedEntry(key=str(row.key), value=float(row.value))
        for row in ranked.itertuples(index=False)
    )


def _retention_rate(df: pd.DataFrame) -> float:
    weeks = df["date"].map(lambda d: "%04d-W%02d" % tuple(d.isocalendar()[:2]))
    weeks_per_customer = weeks.groupby(df["customer"]).nunique()
    if weeks_per_customer.empty:
        return 0.0
    retained = int((weeks_per_customer >= 2).sum())
    return retained / len(weeks_per_customer)


def aggregate_records(records: Sequence[Record]) -> KPIAggregate:
    if not records:
        return KPIAggregate()

    df = pd.DataFrame(records, columns=["date", "customer", "product", "amount", "status"])
    df = df.sort_values("date", kind="stable").reset_index(drop=True)

    total_revenue = float(df["amount"].sum())
    orders = len(df)
    avg_order_value = total_revenue / orders if orders else 0.0

    daily = df.groupby("date", sort=True)["amount"].sum()
    daily_revenue = tuple(
        DailyPoint(day=d, total=float(v)) for d, v in daily.items()
    )

    overdue = df["status"].map(is_overdue_status).astype(bool)

    return KPIAggregate(
        period_start=df["date"].iloc[0],
        period_end=df["date"].iloc[-1],
        total_revenue=total_revenue,
        orders=orders,
        avg_order_value=avg_order_value,
        unique_customers=int(df["customer"].nunique()),
        top_customers=_top_n(df.groupby("customer")["amount"].sum()),
        top_products=_top_n(df.groupby("product")["amount"].sum()),
        daily_revenue=daily_revenue,
        retention_rate=_retention_rate(df),
        overdue_count=int(overdue.sum()),
        overdue_total=float(df.loc[overdue, "amount"].sum()),
    )


def detect_anomalies(daily_revenue: Sequence[DailyPoint]) -> list[Anomaly]:
    """
    Flag days whose population z-score over the whole series is at least
    ANOMALY_Z_THRESHOLD in magnitude. Fewer than ANOMALY_MIN_POINTS days, or a
    flat series, yields no anomalies.
    """
    if len(daily_revenue) < ANOMALY_MIN_POINTS:
        return []
    values = np.array([p.total for p in daily_revenue], dtype=float)
    mean_v = np.mean(values)
    std_v = np.std(values)
    if std_v == 0:
        return []
    z_scores = (values - mean_v) / std_v
    return [
        Anomaly(day=p.day, value=p.total, z_score=float(z))
        for p, z in zip(daily_revenue, z_scores)
        if abs(z) >= ANOMALY_Z_THRESHOLD
    ]


def forecast_next_7_days(daily_revenue: Sequence[DailyPoint]) -> float:
    """Trailing moving average of up to 7 days, projected over the next 7 days."""
    if not daily_revenue:
        return 0.0
    window = min(FORECAST_WINDOW_DAYS, len(daily_revenue))
    tail = [p.total for p in daily_revenue[-window:]]
    return sum(tail) / window * FORECAST_HORIZON_DAYS
