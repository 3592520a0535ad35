# =============================================================================
# app/routers/manufacturing.py - Manufacturing Project Endpoints
# =============================================================================
# Workshop pieces, their gemstone usage, status history and point of sale.
# =============================================================================

from typing import Annotated, Any

from fastapi import APIRouter, Path, Query

from app.dependencies import ManufacturingServiceDep
from core.models import ProjectCreate, ProjectFilter, ProjectUpdate, SaleRequest

router = APIRouter()

ProjectId = Annotated[str, Path(description="Manufacturing project id")]


@router.get("")
def list_projects(
    service: ManufacturingServiceDep,
    status: Annotated[ProjectFilter | None, Query(description="in_production, ready_for_sale or sold")] = None,
    customer_id: Annotated[str | None, Query(description="Only pieces of this customer")] = None,
) -> list[dict[str, Any]]:
    """List pieces with their gemstones and activity, newest first."""
    return service.list_projects(status_filter=status, customer_id=customer_id)


@router.post("", status_code=201)
def create_project(data: ProjectCreate, service: ManufacturingServiceDep) -> dict[str, Any]:
    """
    Start a new piece.

    Gemstone usages with a blank code are ignored. gemstone_cost and
    total_cost are computed from the lots' prices.
    """
    return service.create_project(data)


@router.delete("/gemstones/{usage_id}")
def delete_gemstone_usage(
    usage_id: Annotated[str, Path(description="Gemstone usage id")],
    service: ManufacturingServiceDep,
) -> dict[str, Any]:
    """Remove one gemstone from a piece."""
    service.delete_usage(usage_id)
    return {"success": True}


@router.get("/{project_id}")
def get_project(project_id: ProjectId, service: ManufacturingServiceDep) -> dict[str, Any]:
    """Piece detail with gemstone usage (and lot prices) and activity log."""
    return service.get_project(project_id)


@router.put("/{project_id}")
def update_project(
    project_id: ProjectId,
    data: ProjectUpdate,
    service: ManufacturingServiceDep,
) -> dict[str, Any]:
    """
    Update a piece.

    Sending `gemstones` replaces every existing usage. A status change is
    recorded in the activity log.
    """
    return service.update_project(project_id, data)


@router.post("/{project_id}/sell")
def sell_project(
    project_id: ProjectId,
    sale: SaleRequest,
    service: ManufacturingServiceDep,
) -> dict[str, Any]:
    """
    Mark a ready_for_sale piece as sold.

    The buyer is an existing customer (customer_id) or a new one
    (new_customer).
    """
    return service.mark_as_sold(project_id, sale)


@router.delete("/{project_id}")
def delete_project(project_id: ProjectId, service: ManufacturingServiceDep) -> dict[str, Any]:
    service.delete_project(project_id)
    return {"success": True}
