"""
CSV ingestion: raw tabular text -> typed sales records.

Column matching and date parsing follow fixed, ordered rules:

- A logical field resolves to the FIRST header column (left to right) whose
  lower-cased name contains the field token, e.g. "Invoice Date" -> date.
- Dates are tried against DATE_FORMATS in order and the first format that
  parses wins. Day-first comes before month-first, so "01/02/2006" is
  1 February 2006 and "02/13/2006" falls through to 13 February 2006.

Row-level problems are tolerated: a row with a missing or unparsable date is
dropped, an unparsable amount becomes 0.0, a blank customer or product
becomes "Unknown". Input that is not tabular at all, has no data rows, or
has a row whose field count differs from the header raises IngestionError.
"""

import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import IO

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

FIELDS = ("date", "customer", "product", "amount", "status")
UNKNOWN = "Unknown"

DATE_FORMATS = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m",
)


class IngestionError(ValueError):
    """Raised when the input cannot be read as a CSV with at least one data row."""


@dataclass(frozen=True)
class Record:
    date: date
    customer: str
    product: str
    amount: float
    status: str


def parse_date_flexible(text: str) -> date | None:
    """Return the date for the first matching format in DATE_FORMATS, else None."""
    s = (text or "").strip()
    if not s:
        return None
    for fmt in DATE_FORMATS:
        try:
            # Aware timestamps keep the calendar day of their own offset.
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def resolve_columns(header: list[str]) -> dict[str, int | None]:
    """Map each logical field to the first header index whose name contains it."""
    names = [str(h).strip().lower() for h in header]
    resolved: dict[str, int | None] = {}
    for field_name in FIELDS:
        resolved[field_name] = next(
            (i for i, name in enumerate(names) if field_name in name), None
        )
    return resolved


def read_rows(source: str | bytes | Path | IO) -> list[list[str]]:
    """
    Read CSV input into a list of string rows (header included).

    `source` may be CSV text, raw bytes, a Path or a file-like object.
    Every row must have as many fields as the header.
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    elif isinstance(source, str):
        source = io.StringIO(source)
    try:
        frame = pd.read_csv(
            source,
            header=None,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise IngestionError("csv has no data rows") from exc
    except pd.errors.ParserError as exc:
        raise IngestionError(f"csv read: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise IngestionError("csv must be UTF-8 encoded") from exc
    short = frame.isna().any(axis=1)
    if short.any():
        row = int(short.idxmax()) + 1
        raise IngestionError(f"csv read: row {row}: wrong number of fields")
    return frame.values.tolist()


def normalize_rows(header: list[str], rows: list[list[str]]) -> list[Record]:
    """Coerce data rows into Records, dropping rows without a parsable date."""
    columns = resolve_columns(header)
    width = len(header)
    frame = pd.DataFrame([list(r) + [""] * (width - len(r)) for r in rows])

    def column(field_name: str) -> pd.Series:
        idx = columns[field_name]
        if idx is None or frame.empty:
            return pd.Series([""] * len(frame), dtype=object)
        return frame[idx].astype(str).str.strip()

    dates = column("date").map(parse_date_flexible)
    amounts = pd.to_numeric(column("amount").str.replace(",", "", regex=False), errors="coerce")
    amounts = amounts.replace([np.inf, -np.inf], np.nan).fillna(0.0).astype(float)
    customers = column("customer").replace("", UNKNOWN)
    products = column("product").replace("", UNKNOWN)
    statuses = column("status").str.lower()

    records = [
        Record(date=d, customer=c, product=p, amount=float(a), status=s)
        for d, c, p, a, s in zip(dates, customers, products, amounts, statuses)
        if isinstance(d, date)
    ]
    dropped = len(frame) - len(records)
    if dropped:
        logger.debug("Dropped %d row(s) with missing or unparsable date", dropped)
    return records


def parse_sales_csv(source: str | bytes | Path | IO) -> list[Record]:
    """Read and normalize a sales CSV. Raises IngestionError on unusable input."""
    rows = read_rows(source)
    if len(rows) < 2:
        raise IngestionError("csv has no data rows")
    records = normalize_rows(rows[0], rows[1:])
    logger.info("Parsed %d record(s) from %d data row(s)", len(records), len(rows) - 1)
    return records
