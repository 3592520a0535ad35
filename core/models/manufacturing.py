# =============================================================================
# core/models/manufacturing.py - Manufacturing Project Schemas
# =============================================================================
# A manufacturing project is one jewelry piece moving through the workshop.
# It consumes gemstone lots (usages), collects costs, and ends up sold.
#
# Flow:
#   approved -> sent_to_craftsman -> internal_setting_qc -> diamond_sorting
#   -> stone_setting -> plating -> final_piece_qc -> complete_piece
#   -> ready_for_sale -> sold
# =============================================================================

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from .customer import CustomerCreate


class ProjectStatus(str, Enum):
    """Workshop stages of a piece, in order."""
    APPROVED = "approved"
    SENT_TO_CRAFTSMAN = "sent_to_craftsman"
    INTERNAL_SETTING_QC = "internal_setting_qc"
    DIAMOND_SORTING = "diamond_sorting"
    STONE_SETTING = "stone_setting"
    PLATING = "plating"
    FINAL_PIECE_QC = "final_piece_qc"
    COMPLETE_PIECE = "complete_piece"
    READY_FOR_SALE = "ready_for_sale"
    SOLD = "sold"


class ProjectFilter(str, Enum):
    """List filters. in_production is everything not yet for sale or sold."""
    IN_PRODUCTION = "in_production"
    READY_FOR_SALE = "ready_for_sale"
    SOLD = "sold"


class GemstoneUsage(BaseModel):
    """Stones taken from one lot for a project."""

    code: str = Field(default="", description="Gemstone lot code")
    type: str | None = None
    notes: str | None = None
    pieces_used: int = Field(default=1, ge=0)
    weight_used: float = Field(default=0.0, ge=0)

    def to_row(self, project_id: str | int) -> dict:
        return {
            "project_id": project_id,
            "gemstone_code": self.code.strip(),
            "gemstone_type": self.type,
            "gemstone_details": self.notes,
            "pieces_used": self.pieces_used,
            "weight_used": self.weight_used,
        }


class ProjectBase(BaseModel):
    manufacturing_code: str | None = Field(default=None, max_length=100)
    piece_type: str | None = Field(default=None, max_length=100, examples=["Ring"])
    design_date: date | None = None
    designer_name: str | None = None
    craftsman_name: str | None = None
    setting_cost: float | None = Field(default=None, ge=0)
    diamond_cost: float | None = Field(default=None, ge=0)
    estimated_value: float | None = Field(default=None, ge=0, description="Asking price")
    metal_plating: str | None = None
    plating_notes: str | None = None
    usage_notes: str | None = None
    photos: list[str] | None = None


class ProjectCreate(ProjectBase):
    """
    Schema for starting a new piece.

    Example:
        {
            "project_name": "Sapphire halo ring",
            "status": "approved",
            "setting_cost": 3500,
            "gemstones": [{"code": "SAP-008", "pieces_used": 1, "weight_used": 2.1}]
        }
    """

    project_name: str = Field(..., min_length=1, max_length=255)
    status: ProjectStatus = ProjectStatus.APPROVED
    gemstones: list[GemstoneUsage] = Field(default_factory=list)


class ProjectUpdate(ProjectBase):
    """
    Partial update of a piece.

    When `gemstones` is present it replaces every existing usage.
    Selling fields are only written when status becomes sold.
    """

    project_name: str | None = Field(default=None, min_length=1, max_length=255)
    status: ProjectStatus | None = None
    gemstones: list[GemstoneUsage] | None = None
    customer_id: str | None = None
    selling_price: float | None = Field(default=None, ge=0)
    sold_at: datetime | None = None


class SaleRequest(BaseModel):
    """
    Point-of-sale request for a ready_for_sale piece.

    The buyer is either an existing customer (customer_id) or a new one
    created on the spot (new_customer), never both.
    """

    selling_price: float = Field(..., gt=0)
    customer_id: str | None = None
    new_customer: CustomerCreate | None = None
    sold_at: datetime | None = None

    @model_validator(mode="after")
    def one_buyer(self) -> "SaleRequest":
        if bool(self.customer_id) == bool(self.new_customer):
            raise ValueError("Provide either customer_id or new_customer")
        return self
