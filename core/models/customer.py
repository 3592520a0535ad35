# =============================================================================
# core/models/customer.py - Customer (CRM) Schemas
# =============================================================================

from datetime import date

from pydantic import BaseModel, Field, field_validator


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class CustomerCreate(BaseModel):
    """
    Schema for creating or replacing a customer.

    Optional text fields are trimmed; blank strings are stored as null.

    Example:
        {
            "name": "Khun Ploy",
            "phone": "081-234-5678",
            "customer_since": "2021-06-01"
        }
    """

    name: str = Field(..., min_length=1, max_length=255)
    nickname: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None
    notes: str | None = None
    photo_url: str | None = None
    customer_since: date | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Customer name is required")
        return value

    @field_validator("nickname", "email", "phone", "address", "notes", "photo_url")
    @classmethod
    def strip_optional(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    def to_row(self) -> dict:
        row = self.model_dump(mode="json")
        # Keep the column default when no date is given
        if row["customer_since"] is None:
            row.pop("customer_since")
        return row


class CustomerNoteCreate(BaseModel):
    """A note appended to the customer's running notes."""

    note: str = Field(..., min_length=1)

    @field_validator("note")
    @classmethod
    def note_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Note content is required")
        return value
