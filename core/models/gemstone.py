# =============================================================================
# core/models/gemstone.py - Gemstone Lot Schemas
# =============================================================================
# A gemstone lot is a batch of co-acquired stones identified by a unique code.
# Quantities are tracked twice: what was bought (weight / pcs) and what is
# left after manufacturing (balance_ct / balance_pcs).
#
# Field names follow the gemstones table columns.
# =============================================================================

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class StockStatus(str, Enum):
    """Inventory filter buckets based on the carat balance."""
    ALL = "all"
    AVAILABLE = "available"
    LOW_STOCK = "low-stock"
    SOLD_OUT = "sold-out"


class GemstoneBase(BaseModel):
    """Descriptive fields shared by create and update payloads."""

    type: str | None = Field(default=None, max_length=100, examples=["Sapphire"])
    shape: str | None = Field(default=None, max_length=100, examples=["Oval"])
    color: str | None = Field(default=None, max_length=100)
    clarity: str | None = Field(default=None, max_length=50)
    origin: str | None = Field(default=None, max_length=100)
    supplier: str | None = Field(default=None, max_length=255)
    certificate: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    buying_date: date | None = None


class GemstoneCreate(GemstoneBase):
    """
    Schema for entering one lot by hand.

    Rules:
    - code is required (whitespace is trimmed)
    - at least one of price_ct / price_piece must be positive
    - a per-carat price needs a positive carat balance
    - a per-piece price needs a positive piece balance

    Balances default to the purchased weight / pieces (nothing used yet).

    Example:
        {
            "code": "SAP-008",
            "type": "Sapphire",
            "weight": 8.6,
            "pcs": 4,
            "price_ct": 800
        }
    """

    code: str = Field(..., min_length=1, max_length=100, description="Unique lot code")
    weight: float = Field(default=0.0, ge=0, description="Purchased weight in carats")
    pcs: int = Field(default=0, ge=0, description="Purchased piece count")
    price_ct: float | None = Field(default=None, ge=0, description="Price per carat")
    price_piece: float | None = Field(default=None, ge=0, description="Price per piece")
    balance_pcs: int | None = Field(default=None, ge=0)
    balance_ct: float | None = Field(default=None, ge=0)

    @field_validator("code")
    @classmethod
    def code_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Code is required")
        return value

    @model_validator(mode="after")
    def check_pricing(self) -> "GemstoneCreate":
        if self.balance_pcs is None:
            self.balance_pcs = self.pcs
        if self.balance_ct is None:
            self.balance_ct = self.weight

        has_price_ct = bool(self.price_ct and self.price_ct > 0)
        has_price_piece = bool(self.price_piece and self.price_piece > 0)

        if not has_price_ct and not has_price_piece:
            raise ValueError("Either Price per Carat or Price per Piece is required")
        if has_price_ct and self.balance_ct <= 0:
            raise ValueError("Balance in Carats (ct) is required when using Price per Carat")
        if has_price_piece and self.balance_pcs <= 0:
            raise ValueError("Balance in Pieces (pcs) is required when using Price per Piece")
        return self


class GemstoneUpdate(GemstoneBase):
    """
    Schema for editing a lot. Only fields present in the request are written.

    Used for direct corrections and for recording manual consumption
    (lowering balance_ct / balance_pcs after a piece is made).
    """

    code: str | None = Field(default=None, min_length=1, max_length=100)
    weight: float | None = Field(default=None, ge=0)
    pcs: int | None = Field(default=None, ge=0)
    price_ct: float | None = Field(default=None, ge=0)
    price_piece: float | None = Field(default=None, ge=0)
    balance_pcs: int | None = Field(default=None, ge=0)
    balance_ct: float | None = Field(default=None, ge=0)

    @field_validator("code")
    @classmethod
    def code_not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Code cannot be blank")
        return value


class GemstoneRecord(BaseModel):
    """
    One normalized lot ready to be written to the gemstones table.

    Produced by the CSV importer; `to_row()` gives the insert payload.
    """

    code: str
    type: str | None = None
    weight: float = 0.0
    pcs: int = 0
    shape: str | None = None
    price_ct: float | None = None
    price_piece: float | None = None
    buying_date: str | None = None
    balance_pcs: int = 0
    balance_ct: float = 0.0
    created_at: str
    updated_at: str

    # Source line in the CSV (not persisted)
    source_row: int = Field(default=0, exclude=True)

    def to_row(self) -> dict:
        return self.model_dump()
