# =============================================================================
# lib/csv_parsing.py - Stock Spreadsheet Cell Parsers
# =============================================================================
# The gemstone stock sheet is maintained by hand, so its cells mix formats:
#
#   - quoted fields with embedded commas ("Oval, heated")
#   - day-first dates with 2 or 4 digit years (15/03/24, 15/03/2024)
#   - prices with currency symbols and thousands separators (฿5,500.00)
#   - combined weight/piece cells (13.15 ct / 12, 4pc., 2.5ct)
#   - balance cells with Thai "used up" markers (หมด = sold out, คืน = returned)
#
# Every parser here is lenient: bad input gives None, never an exception.
# =============================================================================

import logging
import re
from dataclasses import dataclass
from datetime import date

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

QUOTE = '"'

# Balance cells containing any of these mean the lot is fully consumed
USED_UP_MARKERS = ("หมด", "คืน")

_NUMBER = r"\d+(?:\.\d+)?|\.\d+"

PATTERNS = {
    "date_dmy": re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$"),
    "leading_float": re.compile(rf"^\s*({_NUMBER})"),
    "leading_int": re.compile(r"^\s*(\d+)"),
    "ct_per_pieces": re.compile(rf"({_NUMBER})\s*ct\s*/\s*(\d+)", re.IGNORECASE),
    "pieces": re.compile(r"(\d+)\s*pc", re.IGNORECASE),
    "carats": re.compile(rf"({_NUMBER})\s*ct", re.IGNORECASE),
}


# =============================================================================
# Parsed Cell Types
# =============================================================================

@dataclass(frozen=True)
class WeightReading:
    """Weight and piece count read from one weight cell."""
    weight: float | None = None
    pieces: int | None = None


@dataclass(frozen=True)
class BalanceReading:
    """Remaining stock read from one balance cell."""
    pieces: int | None = None
    ct: float | None = None


# =============================================================================
# Line Tokenizer
# =============================================================================

def split_csv_line(line: str, delimiter: str = ",") -> list[str]:
    """
    Split one CSV line into trimmed field values.

    A double quote toggles "inside quotes"; the delimiter only separates
    fields outside quotes. Inside a quoted field a doubled quote ("") is a
    literal quote character. Toggling quotes are never kept, so the quotes
    wrapping a field disappear during the scan; each field is then
    whitespace-trimmed.

    Example:
        split_csv_line('RUB-009, Ruby ,"Oval, heated"')
        # -> ["RUB-009", "Ruby", "Oval, heated"]
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]

        if char == QUOTE:
            if in_quotes and line[i + 1:i + 2] == QUOTE:
                current.append(QUOTE)
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append(_clean_field(current))
            current = []
        else:
            current.append(char)

        i += 1

    fields.append(_clean_field(current))
    return fields


def _clean_field(chars: list[str]) -> str:
    return "".join(chars).strip()


def split_csv_lines(text: str) -> list[tuple[int, str]]:
    """
    Split CSV text into (line_number, line) pairs, dropping blank lines.

    Line numbers are 1-based positions in the source text, so they match
    the row numbers an operator sees in the spreadsheet.
    """
    return [
        (number, line)
        for number, line in enumerate(re.split(r"\r?\n", text), start=1)
        if line.strip()
    ]


# =============================================================================
# Cell Parsers
# =============================================================================

def format_csv_date(value: str | None) -> str | None:
    """
    Convert a day-first date cell to ISO YYYY-MM-DD.

    Accepts D/M/YY and D/M/YYYY. Two digit years are read as 20YY.
    Returns None for any other format and for impossible dates (31/02/24).

    Example:
        format_csv_date("15/03/24")    # -> "2024-03-15"
        format_csv_date("not-a-date")  # -> None
    """
    if not value or not value.strip():
        return None

    match = PATTERNS["date_dmy"].match(value.strip())
    if not match:
        logger.debug(f"Could not parse date: {value!r}")
        return None

    day, month, year = match.groups()
    if len(year) == 2:
        year = f"20{year}"

    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        logger.debug(f"Date out of range: {value!r}")
        return None


def parse_price(value: str | None) -> float | None:
    """
    Read a price cell, ignoring currency symbols, separators and spaces.

    Example:
        parse_price("฿5,500.00")  # -> 5500.0
        parse_price("abc")        # -> None
    """
    if not value or not value.strip():
        return None

    cleaned = re.sub(r"[^\d.]", "", value)
    return parse_leading_float(cleaned)


def parse_weight(value: str | None) -> WeightReading:
    """
    Read carat weight and piece count from a weight cell.

    The combined "<ct> ct / <pieces>" form wins when present so that weight
    and pieces come from the same statement. Otherwise "<n>pc" and "<n>ct"
    are looked up independently.

    Example:
        parse_weight("13.15 ct / 12")  # -> WeightReading(weight=13.15, pieces=12)
        parse_weight("4pc.")           # -> WeightReading(weight=None, pieces=4)
        parse_weight("2.5ct")          # -> WeightReading(weight=2.5, pieces=None)
    """
    if not value or not value.strip():
        return WeightReading()

    combined = PATTERNS["ct_per_pieces"].search(value)
    if combined:
        return WeightReading(weight=float(combined.group(1)), pieces=int(combined.group(2)))

    pieces_match = PATTERNS["pieces"].search(value)
    weight_match = PATTERNS["carats"].search(value)

    return WeightReading(
        weight=float(weight_match.group(1)) if weight_match else None,
        pieces=int(pieces_match.group(1)) if pieces_match else None,
    )


def is_used_up(value: str | None) -> bool:
    """True if a balance cell carries a sold-out / returned marker."""
    return bool(value) and any(marker in value for marker in USED_UP_MARKERS)


def parse_balance(value: str | None) -> BalanceReading:
    """
    Read remaining pieces and carats from a balance cell.

    An empty cell or a used-up marker means nothing is left: both values
    are 0, not None. None means the quantity isn't stated in the cell.

    Example:
        parse_balance("หมด")          # -> BalanceReading(pieces=0, ct=0.0)
        parse_balance("7pc. 8.75ct")  # -> BalanceReading(pieces=7, ct=8.75)
    """
    if not value or not value.strip() or is_used_up(value):
        return BalanceReading(pieces=0, ct=0.0)

    pieces_match = PATTERNS["pieces"].search(value)
    ct_match = PATTERNS["carats"].search(value)

    return BalanceReading(
        pieces=int(pieces_match.group(1)) if pieces_match else None,
        ct=float(ct_match.group(1)) if ct_match else None,
    )


# =============================================================================
# Number Helpers
# =============================================================================

def parse_leading_float(value: str | None) -> float | None:
    """Parse the number at the start of a cell ("1.25ct" -> 1.25)."""
    if not value:
        return None
    match = PATTERNS["leading_float"].match(value)
    return float(match.group(1)) if match else None


def parse_leading_int(value: str | None) -> int | None:
    """Parse the integer at the start of a cell ("4pc." -> 4)."""
    if not value:
        return None
    match = PATTERNS["leading_int"].match(value)
    return int(match.group(1)) if match else None
