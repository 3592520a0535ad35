# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - csv_parsing.py: Tokenizer and cell normalizers for stock-sheet CSVs
# - csv_source.py: Fetching and decoding CSV bytes
# - supabase_client.py: Typed Supabase wrapper for database and storage
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.csv_parsing import (
    BalanceReading,
    WeightReading,
    format_csv_date,
    parse_balance,
    parse_price,
    parse_weight,
    split_csv_line,
)
from lib.csv_source import decode_csv_bytes, fetch_csv_text

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # CSV parsing
    "BalanceReading",
    "WeightReading",
    "format_csv_date",
    "parse_balance",
    "parse_price",
    "parse_weight",
    "split_csv_line",
    # CSV sources
    "decode_csv_bytes",
    "fetch_csv_text",
]
