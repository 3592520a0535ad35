# =============================================================================
# core/services/customer_service.py - Customer (CRM) Business Logic
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any

from app.exceptions import CustomerNotFoundError, DatastoreError
from core.models import CustomerCreate
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

TABLE = "customers"


def format_note(note: str, timestamp: str) -> str:
    return f"[{timestamp}] {note}"


def append_note(existing: str | None, note: str, timestamp: str) -> str:
    """
    Append a timestamped note to a customer's running notes.

    Entries are separated by a blank line, oldest first.
    """
    entry = format_note(note, timestamp)
    return f"{existing}\n\n{entry}" if existing else entry


class CustomerService:
    """Service for customer management operations."""

    def __init__(self, db: SupabaseClient):
        self.db = db

    def list_customers(self) -> list[dict[str, Any]]:
        """List all customers, newest first."""
        query = self.db.table(TABLE).select("*").order("created_at", desc=True)
        try:
            return self.db.run(query, "fetch customers")
        except SupabaseClientError as e:
            raise DatastoreError("Failed to fetch customers", {"error": e.db_message})

    def get_customer(self, customer_id: str) -> dict[str, Any]:
        """
        Get a customer by id.

        Raises:
            CustomerNotFoundError: If no customer has this id
        """
        customer = self.db.fetch_by_id(TABLE, customer_id)
        if not customer:
            raise CustomerNotFoundError(customer_id)
        return customer

    def create_customer(self, data: CustomerCreate) -> dict[str, Any]:
        try:
            created = self.db.insert_rows(TABLE, [data.to_row()])
        except SupabaseClientError as e:
            raise DatastoreError("Failed to create customer", {"error": e.db_message})

        if not created:
            raise DatastoreError("Failed to create customer", {"error": "Insert returned no data"})

        logger.info(f"Created customer: {created[0].get('id')}")
        return created[0]

    def update_customer(self, customer_id: str, data: CustomerCreate) -> dict[str, Any]:
        """
        Replace a customer's details.

        Raises:
            CustomerNotFoundError: If no customer has this id
        """
        changes = data.to_row()
        changes["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            updated = self.db.update_by_id(TABLE, customer_id, changes)
        except SupabaseClientError as e:
            raise DatastoreError(e.db_message or "Failed to update customer", {"id": customer_id})

        if updated is None:
            raise CustomerNotFoundError(customer_id)
        return updated

    def delete_customer(self, customer_id: str) -> None:
        self.get_customer(customer_id)
        try:
            self.db.delete_by_id(TABLE, customer_id)
        except SupabaseClientError as e:
            raise DatastoreError("Failed to delete customer", {"error": e.db_message})
        logger.info(f"Deleted customer: {customer_id}")

    def add_note(self, customer_id: str, note: str) -> dict[str, Any]:
        """
        Append a timestamped note.

        Returns:
            The updated customer

        Raises:
            CustomerNotFoundError: If no customer has this id
        """
        customer = self.db.fetch_by_id(TABLE, customer_id, columns="id, notes")
        if not customer:
            raise CustomerNotFoundError(customer_id)

        timestamp = datetime.now(timezone.utc).isoformat()
        notes = append_note(customer.get("notes"), note, timestamp)

        try:
            updated = self.db.update_by_id(TABLE, customer_id, {"notes": notes, "updated_at": timestamp})
        except SupabaseClientError as e:
            raise DatastoreError("Failed to update customer notes", {"error": e.db_message})

        if updated is None:
            raise CustomerNotFoundError(customer_id)
        return updated

    def list_activity(self, customer_id: str) -> list[dict[str, Any]]:
        """Manufacturing activity on every project of this customer, newest first."""
        query = (
            self.db.table("manufacturing_activity_log")
            .select("*, manufacturing_projects!inner(customer_id, project_name)")
            .eq("manufacturing_projects.customer_id", customer_id)
            .order("created_at", desc=True)
        )
        try:
            return self.db.run(query, "fetch customer activity", {"customer_id": customer_id})
        except SupabaseClientError as e:
            raise DatastoreError("Failed to fetch customer activity", {"error": e.db_message})
