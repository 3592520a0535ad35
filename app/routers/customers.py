# =============================================================================
# app/routers/customers.py - Customer CRM Endpoints
# =============================================================================

from typing import Annotated, Any

from fastapi import APIRouter, Path

from app.dependencies import CustomerServiceDep
from core.models import CustomerCreate, CustomerNoteCreate

router = APIRouter()

CustomerId = Annotated[str, Path(description="Customer id")]


@router.get("")
def list_customers(service: CustomerServiceDep) -> list[dict[str, Any]]:
    """List customers, newest first."""
    return service.list_customers()


@router.post("", status_code=201)
def create_customer(data: CustomerCreate, service: CustomerServiceDep) -> dict[str, Any]:
    return service.create_customer(data)


@router.get("/{customer_id}")
def get_customer(customer_id: CustomerId, service: CustomerServiceDep) -> dict[str, Any]:
    return service.get_customer(customer_id)


@router.put("/{customer_id}")
def update_customer(
    customer_id: CustomerId,
    data: CustomerCreate,
    service: CustomerServiceDep,
) -> dict[str, Any]:
    return service.update_customer(customer_id, data)


@router.delete("/{customer_id}")
def delete_customer(customer_id: CustomerId, service: CustomerServiceDep) -> dict[str, Any]:
    service.delete_customer(customer_id)
    return {"success": True}


@router.post("/{customer_id}/notes")
def add_customer_note(
    customer_id: CustomerId,
    data: CustomerNoteCreate,
    service: CustomerServiceDep,
) -> dict[str, Any]:
    """
    Append a note to the customer's notes.

    Each note is stored as "[<ISO timestamp>] <note>", separated from the
    previous one by a blank line.
    """
    return service.add_note(customer_id, data.note)


@router.get("/{customer_id}/activity")
def get_customer_activity(customer_id: CustomerId, service: CustomerServiceDep) -> list[dict[str, Any]]:
    """Workshop activity on this customer's pieces, newest first."""
    return service.list_activity(customer_id)
