# =============================================================================
# tests/test_csv_parsing.py - Stock Sheet Parser Tests
# =============================================================================
# This module contains tests for:
# - CSV line tokenizing (quotes, embedded commas, trimming)
# - Date, price, weight and balance cell parsers
# - Decoding and fetching CSV sources
# =============================================================================

import httpx
import pytest

from app.exceptions import CsvFetchError
from lib.csv_parsing import (
    BalanceReading,
    WeightReading,
    format_csv_date,
    parse_balance,
    parse_price,
    parse_weight,
    split_csv_line,
    split_csv_lines,
)
from lib.csv_source import decode_csv_bytes, fetch_csv_text


# =============================================================================
# Tokenizer Tests
# =============================================================================

class TestSplitCsvLine:
    """Test splitting one line into fields."""

    def test_embedded_comma_in_quotes(self):
        assert split_csv_line('RUB-009, Ruby ,"Oval, heated"') == ["RUB-009", "Ruby", "Oval, heated"]

    def test_fields_are_trimmed(self):
        """No field starts or ends with whitespace."""
        fields = split_csv_line('  a ,  "b"  ,c  ,  ')
        assert fields == ["a", "b", "c", ""]
        assert all(f == f.strip() for f in fields)

    def test_empty_fields_are_kept(self):
        assert split_csv_line("a,,c,") == ["a", "", "c", ""]

    def test_doubled_quote_is_literal(self):
        assert split_csv_line('a,"say ""hi""",b') == ["a", 'say "hi"', "b"]

    def test_escaped_quotes_at_field_edges_are_kept(self):
        assert split_csv_line('RUB-009,"""Pigeon Blood""",x') == ["RUB-009", '"Pigeon Blood"', "x"]

    def test_escaped_quote_at_one_edge(self):
        assert split_csv_line('"""Royal"" Blue",SAP-008') == ['"Royal" Blue', "SAP-008"]

    @pytest.mark.parametrize("line", [
        "RUB-009,Ruby,2.5,2,Oval,1200",
        " DIA-007 , Diamond ,1.25 , 1 ,Round",
        "SAP-008,,8.6,4,,800,,10/02/2024,,",
        "RUB-001,หมด,คืน",
        "single",
    ])
    def test_rejoining_reproduces_trimmed_fields(self, line):
        expected = ",".join(part.strip() for part in line.split(","))
        assert ",".join(split_csv_line(line)) == expected

    def test_quoted_template_row(self):
        line = '"DIA-007","Diamond","1.25","1"'
        assert split_csv_line(line) == ["DIA-007", "Diamond", "1.25", "1"]

    def test_thai_text_survives(self):
        assert split_csv_line("RUB-001,หมด,คืน") == ["RUB-001", "หมด", "คืน"]


class TestSplitCsvLines:
    """Test splitting text into numbered lines."""

    def test_blank_lines_dropped_and_numbers_kept(self):
        lines = split_csv_lines("h1,h2\r\n\r\na,b\n   \nc,d\n")
        assert lines == [(1, "h1,h2"), (3, "a,b"), (5, "c,d")]

    def test_empty_text(self):
        assert split_csv_lines("") == []


# =============================================================================
# Cell Parser Tests
# =============================================================================

class TestFormatCsvDate:
    """Test day-first date normalization."""

    @pytest.mark.parametrize("value,expected", [
        ("15/03/24", "2024-03-15"),
        ("1/2/2023", "2023-02-01"),
        ("10/02/2024", "2024-02-10"),
        (" 5/11/99 ", "2099-11-05"),
    ])
    def test_valid_dates(self, value, expected):
        assert format_csv_date(value) == expected

    @pytest.mark.parametrize("value", [
        "",
        None,
        "2024-03-15",
        "March 15",
        "15/03/124",
        "31/02/24",
        "15/13/2024",
    ])
    def test_invalid_dates_give_none(self, value):
        assert format_csv_date(value) is None


class TestParsePrice:
    """Test price cells with symbols and separators."""

    def test_currency_and_thousands_separator(self):
        assert parse_price("฿5,500.00") == 5500.0

    def test_spaces_removed(self):
        assert parse_price("1 200") == 1200.0

    def test_plain_number(self):
        assert parse_price("800") == 800.0

    def test_garbage(self):
        assert parse_price("abc") is None
        assert parse_price("") is None
        assert parse_price(None) is None


class TestParseWeight:
    """Test weight / pieces cells."""

    def test_combined_form(self):
        assert parse_weight("13.15 ct / 12") == WeightReading(weight=13.15, pieces=12)

    def test_pieces_only(self):
        assert parse_weight("4pc.") == WeightReading(weight=None, pieces=4)

    def test_carats_only(self):
        assert parse_weight("2.5ct") == WeightReading(weight=2.5, pieces=None)

    def test_case_insensitive(self):
        assert parse_weight("3 PCS 1.2 CT") == WeightReading(weight=1.2, pieces=3)

    def test_empty(self):
        assert parse_weight("") == WeightReading()
        assert parse_weight(None) == WeightReading()


class TestParseBalance:
    """Test balance cells."""

    @pytest.mark.parametrize("value", ["หมด", "คืน", "คืนร้าน 3pc", "", "   ", None])
    def test_used_up_or_empty_is_zero(self, value):
        assert parse_balance(value) == BalanceReading(pieces=0, ct=0.0)

    def test_units_read_independently(self):
        assert parse_balance("7pc. 8.75ct") == BalanceReading(pieces=7, ct=8.75)
        assert parse_balance("2ct") == BalanceReading(pieces=None, ct=2.0)

    def test_plain_number_is_not_stated(self):
        assert parse_balance("3") == BalanceReading(pieces=None, ct=None)


# =============================================================================
# CSV Source Tests
# =============================================================================

class TestDecodeCsvBytes:
    """Test encoding detection."""

    def test_utf8_bom_stripped(self):
        assert decode_csv_bytes("\ufeffCode,Type".encode("utf-8")) == "Code,Type"

    def test_thai_windows_encoding(self):
        assert decode_csv_bytes("RUB-001,หมด".encode("cp874")) == "RUB-001,หมด"


class TestFetchCsvText:
    """Test downloading CSVs over HTTP."""

    def test_success(self, csv_client):
        client = csv_client("Code,Type\nRUB-009,Ruby")
        assert fetch_csv_text("https://example.com/stock.csv", client=client) == "Code,Type\nRUB-009,Ruby"

    def test_non_2xx_raises(self, csv_client):
        client = csv_client("missing", status_code=404)

        with pytest.raises(CsvFetchError) as exc_info:
            fetch_csv_text("https://example.com/stock.csv", client=client)

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Failed to fetch CSV: Not Found"
        assert exc_info.value.details == {"csv_url": "https://example.com/stock.csv"}

    def test_network_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))

        with pytest.raises(CsvFetchError) as exc_info:
            fetch_csv_text("https://example.com/stock.csv", client=client)

        assert "connection refused" in exc_info.value.message
