from __future__ import annotations

from datetime import date, timedelta

import pytest

from ingest import Record

SAMPLE_CSV = """date,customer,product,amount,status
2025-07-01,Acme,WidgetA,199,paid
2025-07-01,Acme,WidgetB,89,paid
2025-07-02,Zen,WidgetA,199,unpaid
2025-07-03,Atlas,WidgetC,349,paid
2025-07-04,Zen,WidgetA,199,overdue
2025-07-05,Acme,WidgetA,199,paid
"""


@pytest.fixture()
def sample_csv() -> str:
    return SAMPLE_CSV


def make_record(
    day: date,
    amount: float,
    customer: str = "Acme",
    product: str = "WidgetA",
    status: str = "paid",
) -> Record:
    return Record(date=day, customer=customer, product=product, amount=amount, status=status)


def daily_records(amounts: list[float], start: date = date(2025, 7, 1)) -> list[Record]:
    """One paid record per consecutive day."""
    return [make_record(start + timedelta(days=i), amount) for i, amount in enumerate(amounts)]
