# =============================================================================
# core/services/import_service.py - Gemstone Stock CSV Import
# =============================================================================
# Turns the hand-maintained stock spreadsheet into gemstone lots:
#
#   1. Fetch (URL) or decode (upload) the CSV text
#   2. Resolve import columns from the header row
#   3. Map each data row to a GemstoneRecord, recording skipped rows
#   4. Write records in fixed-size batches
#
# A failing batch stops the import. Batches written before it stay in the
# database; the error says how many rows made it in.
# =============================================================================

import csv
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

import httpx
import pandas as pd

from app.exceptions import (
    BatchInsertError,
    DuplicateCodeError,
    EmptyCsvError,
    MissingColumnsError,
    NoValidRowsError,
)
from core.models import (
    GemstoneRecord,
    ImportMode,
    ImportResult,
    RowWarning,
    SkippedRow,
    SkipReason,
)
from lib.csv_parsing import (
    format_csv_date,
    is_used_up,
    parse_balance,
    parse_leading_float,
    parse_leading_int,
    parse_price,
    parse_weight,
    split_csv_line,
    split_csv_lines,
)
from lib.csv_source import decode_csv_bytes, fetch_csv_text
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

GEMSTONES_TABLE = "gemstones"
DEFAULT_BATCH_SIZE = 100

# Rows with fewer cells than this (or than the header, if narrower) are skipped
MIN_ROW_CELLS = 6

ColumnMappingStrategy = Literal["header", "positional"]


# =============================================================================
# Column Contract
# =============================================================================

@dataclass(frozen=True)
class ImportColumn:
    """One importable column and the header names it may appear under."""
    field: str
    label: str
    aliases: tuple[str, ...]
    required: bool = False


# Listed in legacy positional order; columns after the tenth are ignored
GEMSTONE_IMPORT_COLUMNS: tuple[ImportColumn, ...] = (
    ImportColumn("code", "Code", ("code", "gemstone code", "lot code"), required=True),
    ImportColumn("type", "Type", ("type", "gemstone type", "stone")),
    ImportColumn("weight", "Weight (ct)", ("weight (ct)", "weight", "ct", "carats")),
    ImportColumn("pieces", "Pieces", ("pieces", "pcs", "pc", "qty")),
    ImportColumn("shape", "Shape", ("shape", "cut")),
    ImportColumn("price_per_ct", "Price/CT", ("price / ct.", "price/ct", "price per ct", "price per carat", "price_ct")),
    ImportColumn("price_per_piece", "Price/Piece", ("price / piece", "price/piece", "price per piece", "price_piece")),
    ImportColumn("buying_date", "Buying Date", ("buying date", "buying_date", "purchase date", "date")),
    ImportColumn("balance_pieces", "Balance Pieces", ("balance pieces", "balance pcs", "balance_pcs", "balance pc")),
    ImportColumn("balance_ct", "Balance Weight (ct)", ("balance weight (ct)", "balance ct", "balance_ct", "balance weight", "balance")),
)

# Extra manual-entry columns carried by the template but not imported
TEMPLATE_EXTRA_COLUMNS = ("Color", "Clarity", "Origin", "Supplier", "Certificate", "Notes")


def normalize_header(name: str) -> str:
    """Lower-case a header and drop spaces and punctuation ("PRICE / CT." -> "pricect")."""
    return re.sub(r"[\W_]+", "", name.casefold())


def resolve_columns(
    headers: list[str],
    strategy: ColumnMappingStrategy = "header",
) -> dict[str, int]:
    """
    Map import fields to cell indexes.

    Args:
        headers: Cells of the header row
        strategy: "header" matches header names; "positional" uses the
            fixed legacy order and ignores header names

    Returns:
        Dict of field name -> column index (optional columns may be absent)

    Raises:
        MissingColumnsError: If a required column has no matching header
    """
    if strategy == "positional":
        return {column.field: index for index, column in enumerate(GEMSTONE_IMPORT_COLUMNS)}

    normalized = [normalize_header(h) for h in headers]
    resolved: dict[str, int] = {}
    missing: list[str] = []

    for column in GEMSTONE_IMPORT_COLUMNS:
        wanted = {normalize_header(alias) for alias in column.aliases}
        index = next(
            (i for i, name in enumerate(normalized) if name in wanted and i not in resolved.values()),
            None,
        )
        if index is not None:
            resolved[column.field] = index
        elif column.required:
            missing.append(column.label)

    if missing:
        raise MissingColumnsError(missing, headers)

    logger.debug(f"Resolved import columns: {resolved}")
    return resolved


# =============================================================================
# Row Mapping
# =============================================================================

@dataclass
class ParsedStockSheet:
    """Records ready to write, plus what was left out or partly read."""
    records: list[GemstoneRecord] = field(default_factory=list)
    skipped: list[SkippedRow] = field(default_factory=list)
    warnings: list[RowWarning] = field(default_factory=list)


def _first(*values):
    return next((v for v in values if v is not None), None)


def resolve_balance(
    pieces_cell: str,
    ct_cell: str,
    pieces: int,
    weight: float,
) -> tuple[int, float]:
    """
    Work out the remaining (pieces, carats) of a lot.

    - an empty balance cell means nothing was used: inherit pieces / weight
    - a used-up marker in either cell means nothing is left: (0, 0.0)
    - otherwise read "7pc" / "8.75ct" units from either cell, or a plain
      number from the matching cell; an unreadable cell counts as 0
    """
    pieces_cell = pieces_cell.strip()
    ct_cell = ct_cell.strip()

    if is_used_up(pieces_cell) or is_used_up(ct_cell):
        return 0, 0.0

    pieces_units = parse_balance(pieces_cell) if pieces_cell else None
    ct_units = parse_balance(ct_cell) if ct_cell else None

    def has_units(reading) -> bool:
        return reading is not None and (reading.pieces is not None or reading.ct is not None)

    stated_pieces = _first(
        pieces_units.pieces if pieces_units else None,
        ct_units.pieces if ct_units else None,
        None if has_units(pieces_units) else parse_leading_int(pieces_cell),
    )
    stated_ct = _first(
        ct_units.ct if ct_units else None,
        pieces_units.ct if pieces_units else None,
        None if has_units(ct_units) else parse_leading_float(ct_cell),
    )

    if stated_pieces is None:
        stated_pieces = 0 if pieces_cell else pieces
    if stated_ct is None:
        stated_ct = 0.0 if ct_cell else weight

    return stated_pieces, float(stated_ct)


def _read_quantities(weight_cell: str, pieces_cell: str) -> tuple[float, int]:
    """Read purchased (weight, pieces) from the weight and pieces cells."""
    reading = parse_weight(weight_cell)

    if reading.weight is not None or reading.pieces is not None:
        weight = reading.weight or 0.0
    else:
        weight = parse_leading_float(weight_cell) or 0.0

    pieces = _first(
        parse_leading_int(pieces_cell),
        parse_weight(pieces_cell).pieces,
        reading.pieces,
        0,
    )
    return float(weight), pieces


def parse_stock_csv(
    text: str,
    strategy: ColumnMappingStrategy = "header",
    now: datetime | None = None,
) -> ParsedStockSheet:
    """
    Parse stock CSV text into gemstone records.

    The first non-blank line is the header. Data rows are skipped (and
    reported) when they are too short, have no code, or repeat a code
    seen earlier in the file.

    Args:
        text: CSV text; lines may end in \\n or \\r\\n
        strategy: Column resolution strategy (see resolve_columns)
        now: Timestamp for created_at / updated_at (defaults to current UTC)

    Returns:
        ParsedStockSheet with records, skipped rows and warnings

    Raises:
        EmptyCsvError: If the text has no non-blank lines
        MissingColumnsError: If the header lacks a required column
    """
    lines = split_csv_lines(text)
    logger.info(f"Total lines after filtering: {len(lines)}")

    if not lines:
        raise EmptyCsvError()

    headers = split_csv_line(lines[0][1])
    logger.info(f"Headers found: {headers}")

    columns = resolve_columns(headers, strategy)
    min_cells = min(MIN_ROW_CELLS, len(headers))
    timestamp = (now or datetime.now(timezone.utc)).isoformat()

    def cell(values: list[str], name: str) -> str:
        index = columns.get(name)
        if index is None or index >= len(values):
            return ""
        return values[index]

    sheet = ParsedStockSheet()
    first_seen: dict[str, int] = {}

    for row_number, line in lines[1:]:
        values = split_csv_line(line)

        if len(values) < min_cells:
            logger.debug(f"Skipping row {row_number} - insufficient data")
            sheet.skipped.append(SkippedRow(
                row=row_number,
                reason=SkipReason.INSUFFICIENT_COLUMNS,
                detail=f"{len(values)} of {min_cells} columns",
            ))
            continue

        code = cell(values, "code").strip()
        if not code:
            logger.debug(f"Skipping row {row_number} - empty code")
            sheet.skipped.append(SkippedRow(row=row_number, reason=SkipReason.MISSING_CODE))
            continue

        if code in first_seen:
            sheet.skipped.append(SkippedRow(
                row=row_number,
                reason=SkipReason.DUPLICATE_CODE,
                detail=f"{code} already on row {first_seen[code]}",
            ))
            continue
        first_seen[code] = row_number

        weight, pieces = _read_quantities(cell(values, "weight"), cell(values, "pieces"))

        date_cell = cell(values, "buying_date")
        buying_date = format_csv_date(date_cell)
        if date_cell.strip() and buying_date is None:
            sheet.warnings.append(RowWarning(
                row=row_number,
                field="buying_date",
                value=date_cell,
                message="Unrecognized date (expected D/M/YY or D/M/YYYY); left empty",
            ))

        balance_pcs, balance_ct = resolve_balance(
            cell(values, "balance_pieces"),
            cell(values, "balance_ct"),
            pieces,
            weight,
        )

        sheet.records.append(GemstoneRecord(
            code=code,
            type=cell(values, "type") or None,
            weight=weight,
            pcs=pieces,
            shape=cell(values, "shape") or None,
            price_ct=parse_price(cell(values, "price_per_ct")),
            price_piece=parse_price(cell(values, "price_per_piece")),
            buying_date=buying_date,
            balance_pcs=balance_pcs,
            balance_ct=balance_ct,
            created_at=timestamp,
            updated_at=timestamp,
            source_row=row_number,
        ))

    logger.info(
        f"Parsed {len(sheet.records)} gemstones, skipped {len(sheet.skipped)} rows, "
        f"{len(sheet.warnings)} warnings"
    )
    return sheet


# =============================================================================
# Import Service
# =============================================================================

class GemstoneImportService:
    """
    Bulk-load gemstone lots from a stock CSV.

    Example:
        importer = GemstoneImportService(db, batch_size=100)
        result = importer.import_from_url("https://.../stock.csv", ImportMode.UPSERT)
        print(result.count, [s.row for s in result.skipped])
    """

    def __init__(
        self,
        db: SupabaseClient,
        batch_size: int = DEFAULT_BATCH_SIZE,
        column_mapping: ColumnMappingStrategy = "header",
        http_client: httpx.Client | None = None,
        fetch_timeout: float = 30.0,
    ):
        self.db = db
        self.batch_size = batch_size
        self.column_mapping = column_mapping
        self.http_client = http_client
        self.fetch_timeout = fetch_timeout

    def import_from_url(
        self,
        csv_url: str,
        mode: ImportMode = ImportMode.INSERT,
    ) -> ImportResult:
        """
        Fetch a CSV over HTTP and import it.

        Raises:
            CsvFetchError: If the CSV can't be downloaded (nothing is parsed)
            plus everything import_text raises
        """
        text = fetch_csv_text(csv_url, client=self.http_client, timeout=self.fetch_timeout)
        return self.import_text(text, mode)

    def import_bytes(
        self,
        content: bytes,
        mode: ImportMode = ImportMode.INSERT,
    ) -> ImportResult:
        """Import an uploaded CSV file."""
        return self.import_text(decode_csv_bytes(content), mode)

    def parse(self, text: str) -> ParsedStockSheet:
        return parse_stock_csv(text, strategy=self.column_mapping)

    def import_text(
        self,
        text: str,
        mode: ImportMode = ImportMode.INSERT,
    ) -> ImportResult:
        """
        Parse CSV text and write every valid row.

        Returns:
            ImportResult with the written count, skipped rows and warnings

        Raises:
            EmptyCsvError: If the CSV has no lines
            MissingColumnsError: If the header lacks the code column
            NoValidRowsError: If no data row survived parsing
            DuplicateCodeError: If a batch hit an existing code (insert mode)
            BatchInsertError: If a batch write failed for any other reason
        """
        sheet = self.parse(text)

        if not sheet.records:
            raise NoValidRowsError([s.model_dump(mode="json") for s in sheet.skipped])

        inserted, batch_count = self._write_batches(sheet.records, mode)

        return ImportResult(
            message=f"Successfully imported {inserted} gemstones",
            count=inserted,
            batch_count=batch_count,
            mode=mode,
            skipped=sheet.skipped,
            warnings=sheet.warnings,
        )

    def _write_batches(
        self,
        records: list[GemstoneRecord],
        mode: ImportMode,
    ) -> tuple[int, int]:
        """Write records batch by batch; returns (rows written, batches written)."""
        inserted = 0
        batch_count = 0

        for offset in range(0, len(records), self.batch_size):
            batch = records[offset:offset + self.batch_size]
            batch_number = offset // self.batch_size + 1
            rows = [record.to_row() for record in batch]

            logger.info(f"Inserting batch: {batch_number} with {len(batch)} items")

            try:
                if mode == ImportMode.UPSERT:
                    self.db.upsert_rows(GEMSTONES_TABLE, rows, on_conflict="code")
                else:
                    self.db.insert_rows(GEMSTONES_TABLE, rows)
            except SupabaseClientError as e:
                details = {
                    "batch": batch_number,
                    "row_offset": offset,
                    "first_row": batch[0].source_row,
                    "last_row": batch[-1].source_row,
                    "inserted_count": inserted,
                }
                logger.error(f"Error inserting batch {batch_number}: {e.db_message}")
                if e.is_unique_violation:
                    raise DuplicateCodeError(e.db_message, details)
                raise BatchInsertError(e.db_message, details)

            inserted += len(batch)
            batch_count += 1
            logger.info(f"Successfully inserted batch, total so far: {inserted}")

        return inserted, batch_count


# =============================================================================
# Import Template
# =============================================================================

TEMPLATE_SAMPLE_ROWS = [
    ["DIA-007", "Diamond", "1.25", "1", "Round Brilliant", "5500", "6875", "15/03/2024", "1", "1.25",
     "G", "VS2", "Canada", "Northern Diamonds", "GIA-1234567890", "Beautiful diamond for engagement ring"],
    ["SAP-008", "Sapphire", "8.60", "4", "Oval", "800", "1720", "20/03/2024", "4", "8.60",
     "Royal Blue", "VVS", "Sri Lanka", "Ceylon Gems", "SSEF-S2024020", "Exceptional Ceylon sapphire lot - nothing used yet"],
    ["RUB-009", "Ruby", "12.50", "10", "Oval", "1200", "1500", "10/02/2024", "7", "8.75",
     "Pigeon Blood", "VS", "Myanmar", "Burma Gems", "GRS-2024001", "Used 3 pieces (3.75ct) for custom order"],
]


def build_import_template() -> str:
    """
    CSV template for stock sheets: import columns, manual-entry extras and
    three sample lots. Every cell is quoted.
    """
    headers = [column.label for column in GEMSTONE_IMPORT_COLUMNS] + list(TEMPLATE_EXTRA_COLUMNS)
    df = pd.DataFrame(TEMPLATE_SAMPLE_ROWS, columns=headers)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
