# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the Pydantic models to ensure:
# - Valid data is accepted and normalized
# - Invalid data raises ValidationError with a usable message
# - Rows sent to the database have the expected shape
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

import pytest
from pydantic import ValidationError

from core.models import (
    CustomerCreate,
    CustomerNoteCreate,
    GemstoneCreate,
    GemstoneRecord,
    GemstoneUpdate,
    GemstoneUsage,
    ProjectCreate,
    ProjectStatus,
    SaleRequest,
)


# =============================================================================
# Gemstone Model Tests
# =============================================================================

class TestGemstoneCreate:
    """Tests for manual lot entry."""

    def test_valid_per_carat_lot(self):
        """Balances default to the purchased quantities."""
        gem = GemstoneCreate(code="  SAP-008 ", type="Sapphire", weight=8.6, pcs=4, price_ct=800)

        assert gem.code == "SAP-008"
        assert gem.balance_ct == 8.6
        assert gem.balance_pcs == 4

    def test_blank_code_rejected(self):
        with pytest.raises(ValidationError, match="Code is required"):
            GemstoneCreate(code="   ", weight=1, pcs=1, price_ct=100)

    def test_a_price_is_required(self):
        with pytest.raises(ValidationError, match="Either Price per Carat or Price per Piece is required"):
            GemstoneCreate(code="RUB-001", weight=1, pcs=1)

    def test_zero_prices_count_as_missing(self):
        with pytest.raises(ValidationError, match="Either Price per Carat"):
            GemstoneCreate(code="RUB-001", weight=1, pcs=1, price_ct=0, price_piece=0)

    def test_per_carat_price_needs_carat_balance(self):
        with pytest.raises(ValidationError, match=r"Balance in Carats \(ct\) is required"):
            GemstoneCreate(code="RUB-001", weight=1, pcs=1, price_ct=100, balance_ct=0)

    def test_per_piece_price_needs_piece_balance(self):
        with pytest.raises(ValidationError, match=r"Balance in Pieces \(pcs\) is required"):
            GemstoneCreate(code="RUB-001", weight=1, pcs=0, price_piece=100)

    def test_both_prices(self):
        gem = GemstoneCreate(code="DIA-007", weight=1.25, pcs=1, price_ct=5500, price_piece=6875)
        assert gem.price_piece == 6875


class TestGemstoneUpdate:
    """Tests for partial edits."""

    def test_only_sent_fields_are_dumped(self):
        update = GemstoneUpdate(balance_ct=2.5)
        assert update.model_dump(exclude_unset=True) == {"balance_ct": 2.5}

    def test_blank_code_rejected(self):
        with pytest.raises(ValidationError):
            GemstoneUpdate(code="  ")


class TestGemstoneRecord:
    """Tests for import records."""

    def test_source_row_not_persisted(self):
        record = GemstoneRecord(
            code="RUB-009",
            created_at="2025-03-15T00:00:00+00:00",
            updated_at="2025-03-15T00:00:00+00:00",
            source_row=4,
        )
        row = record.to_row()

        assert "source_row" not in row
        assert row["code"] == "RUB-009"
        assert row["balance_ct"] == 0.0


# =============================================================================
# Customer Model Tests
# =============================================================================

class TestCustomerCreate:
    """Tests for customer records."""

    def test_optional_fields_trimmed_and_blank_to_null(self):
        customer = CustomerCreate(name="  Khun Ploy ", email="  ", phone=" 081-234-5678 ")

        assert customer.name == "Khun Ploy"
        assert customer.email is None
        assert customer.phone == "081-234-5678"

    def test_name_required(self):
        with pytest.raises(ValidationError, match="Customer name is required"):
            CustomerCreate(name="   ")

    def test_row_omits_missing_customer_since(self):
        row = CustomerCreate(name="Nok").to_row()
        assert "customer_since" not in row

    def test_row_serializes_customer_since(self):
        row = CustomerCreate(name="Nok", customer_since="2021-06-01").to_row()
        assert row["customer_since"] == "2021-06-01"


class TestCustomerNoteCreate:
    def test_blank_note_rejected(self):
        with pytest.raises(ValidationError, match="Note content is required"):
            CustomerNoteCreate(note="  \n ")


# =============================================================================
# Manufacturing Model Tests
# =============================================================================

class TestGemstoneUsage:
    """Tests for gemstone usage rows."""

    def test_defaults(self):
        usage = GemstoneUsage(code="SAP-008")
        assert usage.pieces_used == 1
        assert usage.weight_used == 0.0

    def test_to_row(self):
        usage = GemstoneUsage(code=" SAP-008 ", type="Sapphire", notes="center stone", weight_used=2.1)

        assert usage.to_row("p1") == {
            "project_id": "p1",
            "gemstone_code": "SAP-008",
            "gemstone_type": "Sapphire",
            "gemstone_details": "center stone",
            "pieces_used": 1,
            "weight_used": 2.1,
        }


class TestProjectCreate:
    def test_status_defaults_to_approved(self):
        project = ProjectCreate(project_name="Sapphire halo ring")
        assert project.status == ProjectStatus.APPROVED
        assert project.gemstones == []

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            ProjectCreate(project_name="Ring", status="polishing")


class TestSaleRequest:
    """Tests for point-of-sale requests."""

    def test_existing_customer(self):
        sale = SaleRequest(selling_price=45000, customer_id="c1")
        assert sale.new_customer is None

    def test_new_customer(self):
        sale = SaleRequest(selling_price=45000, new_customer={"name": "Nok"})
        assert sale.new_customer.name == "Nok"

    def test_needs_exactly_one_buyer(self):
        with pytest.raises(ValidationError, match="Provide either customer_id or new_customer"):
            SaleRequest(selling_price=45000)
        with pytest.raises(ValidationError, match="Provide either customer_id or new_customer"):
            SaleRequest(selling_price=45000, customer_id="c1", new_customer={"name": "Nok"})

    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            SaleRequest(selling_price=0, customer_id="c1")
