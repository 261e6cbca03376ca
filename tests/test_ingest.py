"""
tests/test_ingest.py

CSV -> Record normalization: fuzzy header matching, ordered date formats,
row-level tolerance and ingestion-level failures.
"""

from __future__ import annotations

from datetime import date

import pytest

from ingest import (
    UNKNOWN,
    IngestionError,
    normalize_rows,
    parse_date_flexible,
    parse_sales_csv,
    read_rows,
    resolve_columns,
)


# ---------------------------------------------------------------------------
# Date parsing
# ---------------------------------------------------------------------------


class TestParseDateFlexible:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("2025-07-01", date(2025, 7, 1)),
            ("2006/01/02", date(2006, 1, 2)),
            ("2006.01.02", date(2006, 1, 2)),
            ("2025-07-01T10:15:00Z", date(2025, 7, 1)),
            ("2025-07-01T23:30:00-05:00", date(2025, 7, 1)),
            ("2025-07-01T08:00:00.250+02:00", date(2025, 7, 1)),
            ("2025-07", date(2025, 7, 1)),
            ("  2025-07-01  ", date(2025, 7, 1)),
        ],
    )
    def test_supported_formats(self, text: str, expected: date) -> None:
        assert parse_date_flexible(text) == expected

    def test_day_first_wins_for_ambiguous_slash_dates(self) -> None:
        assert parse_date_flexible("01/02/2006") == date(2006, 2, 1)

    def test_month_first_used_when_day_first_is_impossible(self) -> None:
        assert parse_date_flexible("02/13/2006") == date(2006, 2, 13)

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1/2/2006", date(2006, 2, 1)),
            ("2025-7-1", date(2025, 7, 1)),
            ("2006/1/2", date(2006, 1, 2)),
        ],
    )
    def test_single_digit_day_and_month_are_accepted(self, text: str, expected: date) -> None:
        assert parse_date_flexible(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "July 1st", "2025-13-45", "yesterday"])
    def test_unparsable_returns_none(self, text: str) -> None:
        assert parse_date_flexible(text) is None


# ---------------------------------------------------------------------------
# Header matching
# ---------------------------------------------------------------------------


class TestResolveColumns:
    def test_substring_case_insensitive_match(self) -> None:
        header = ["Invoice Date", "Customer Name", "Product SKU", "Amount (USD)", "Payment Status"]
        assert resolve_columns(header) == {
            "date": 0,
            "customer": 1,
            "product": 2,
            "amount": 3,
            "status": 4,
        }

    def test_first_matching_column_wins(self) -> None:
        header = ["due_date", "order_date", "customer", "product", "amount", "status"]
        assert resolve_columns(header)["date"] == 0

    def test_missing_field_resolves_to_none(self) -> None:
        assert resolve_columns(["date", "amount"])["customer"] is None


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------


class TestNormalizeRows:
    HEADER = ["date", "customer", "product", "amount", "status"]

    def test_thousands_separator_is_stripped(self) -> None:
        records = normalize_rows(self.HEADER, [["2025-07-01", "Acme", "A", "1,234.50", "paid"]])
        assert records[0].amount == pytest.approx(1234.5)

    def test_malformed_amount_becomes_zero_and_row_is_kept(self) -> None:
        records = normalize_rows(self.HEADER, [["2025-07-01", "Acme", "A", "n/a", "paid"]])
        assert len(records) == 1
        assert records[0].amount == 0.0

    def test_negative_amount_is_preserved(self) -> None:
        records = normalize_rows(self.HEADER, [["2025-07-01", "Acme", "A", "-50", "refund"]])
        assert records[0].amount == pytest.approx(-50.0)

    def test_unparsable_date_drops_row(self) -> None:
        rows = [
            ["2025-07-01", "Acme", "A", "10", "paid"],
            ["not a date", "Zen", "B", "20", "paid"],
            ["", "Zen", "B", "30", "paid"],
        ]
        records = normalize_rows(self.HEADER, rows)
        assert [r.customer for r in records] == ["Acme"]

    def test_blank_customer_and_product_default_to_unknown(self) -> None:
        records = normalize_rows(self.HEADER, [["2025-07-01", "  ", "", "10", "paid"]])
        assert records[0].customer == UNKNOWN
        assert records[0].product == UNKNOWN

    def test_status_is_lower_cased(self) -> None:
        records = normalize_rows(self.HEADER, [["2025-07-01", "Acme", "A", "10", "OVERDUE"]])
        assert records[0].status == "overdue"

    def test_short_row_passed_directly_is_padded(self) -> None:
        records = normalize_rows(self.HEADER, [["2025-07-01", "Acme"]])
        assert records[0].product == UNKNOWN
        assert records[0].amount == 0.0
        assert records[0].status == ""

    def test_record_is_frozen(self) -> None:
        record = normalize_rows(self.HEADER, [["2025-07-01", "Acme", "A", "10", "paid"]])[0]
        with pytest.raises((AttributeError, TypeError)):
            record.amount = 99.0  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Whole-input parsing
# ---------------------------------------------------------------------------


class TestParseSalesCSV:
    def test_sample_input(self, sample_csv: str) -> None:
        records = parse_sales_csv(sample_csv)
        assert len(records) == 6
        assert records[0].date == date(2025, 7, 1)
        assert records[2].status == "unpaid"

    def test_accepts_bytes(self, sample_csv: str) -> None:
        assert len(parse_sales_csv(sample_csv.encode("utf-8"))) == 6

    def test_accepts_path(self, sample_csv: str, tmp_path) -> None:
        path = tmp_path / "sales.csv"
        path.write_text(sample_csv, encoding="utf-8")
        assert len(parse_sales_csv(path)) == 6

    def test_quoted_amount_with_comma(self) -> None:
        text = 'date,customer,product,amount,status\n2025-07-01,Acme,A,"1,500.00",paid\n'
        assert parse_sales_csv(text)[0].amount == pytest.approx(1500.0)

    def test_header_only_is_an_ingestion_error(self) -> None:
        with pytest.raises(IngestionError):
            parse_sales_csv("date,customer,product,amount,status\n")

    def test_empty_input_is_an_ingestion_error(self) -> None:
        with pytest.raises(IngestionError):
            parse_sales_csv("")

    def test_row_with_extra_fields_is_an_ingestion_error(self) -> None:
        text = "date,customer,product,amount,status\n2025-07-01,Acme,A,10,paid,extra,more\n"
        with pytest.raises(IngestionError):
            read_rows(text)

    @pytest.mark.parametrize(
        "body",
        [
            "2025-07-01,Acme\n2025-07-02,Zen,A,10,paid\n",
            "2025-07-02,Zen,A,10,paid\n2025-07-01,Acme,A,10\n",
        ],
    )
    def test_row_with_missing_fields_is_an_ingestion_error(self, body: str) -> None:
        text = "date,customer,product,amount,status\n" + body
        with pytest.raises(IngestionError, match="wrong number of fields"):
            parse_sales_csv(text)

    def test_trailing_empty_field_is_not_missing(self) -> None:
        text = "date,customer,product,amount,status\n2025-07-01,Acme,A,10,\n"
        assert parse_sales_csv(text)[0].status == ""

    def test_all_rows_dropped_is_not_an_error(self) -> None:
        text = "date,customer,product,amount,status\nbad,Acme,A,10,paid\n"
        assert parse_sales_csv(text) == []
