"""
MRP (Material Requirements Planning) API Endpoints

Endpoints for:
- Running MRP calculations
- Browsing runs and their requirement/shortage rows
- Deleting finished runs and recovering stale ones
- Previewing a BOM explosion
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.v1.deps import get_current_user_id, get_mrp_service, get_pagination_params
from app.models import MRPRequirement
from app.schemas.common import ErrorResponse, ListResponse, PaginationMeta, PaginationParams
from app.schemas.mrp import (
    MRPRunRequest, MRPRunResponse,
    MRPRequirementResponse, MRPRequirementListResponse,
    BOMExplosionResponse, ExplodedComponentResponse,
    MRPRunDeleteResponse, ReconcileResponse,
)
from app.services.mrp import MRPService

router = APIRouter(prefix="/mrp", tags=["MRP"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def _requirement_response(req: MRPRequirement) -> MRPRequirementResponse:
    item = req.item
    return MRPRequirementResponse(
        id=req.id,
        mrp_run_id=req.mrp_run_id,
        production_order_id=req.production_order_id,
        item_id=req.item_id,
        item_code=item.item_code if item else None,
        item_name=item.item_name if item else None,
        required_quantity=req.required_quantity,
        available_quantity=req.available_quantity,
        shortage_quantity=req.shortage_quantity,
        required_date=req.required_date,
        status=req.status,
    )


# ============================================================================
# MRP Run Endpoints
# ============================================================================

@router.post("/runs", response_model=MRPRunResponse, status_code=201, responses=ERROR_RESPONSES)
async def run_mrp(
    request: MRPRunRequest,
    user_id: Optional[int] = Depends(get_current_user_id),
    service: MRPService = Depends(get_mrp_service),
):
    """
    Run MRP calculation.

    This will:
    1. Load released production orders due within the planning horizon
    2. Explode BOMs to calculate component requirements
    3. Record one requirement row per order and component
    4. Flag rows without enough available stock as shortages

    A failed calculation leaves the run in 'failed' state with the error in notes.

    planning_horizon_days must be between 1 and MRP_MAX_HORIZON_DAYS (365 by
    default); anything else is rejected with 400 before a run is created.
    """
    horizon = request.planning_horizon_days
    if horizon is None:
        horizon = service.settings.MRP_DEFAULT_HORIZON_DAYS

    run_id = service.execute_run(planning_horizon_days=horizon, user_id=user_id)
    return service.get_run(run_id)


@router.get("/runs", response_model=ListResponse[MRPRunResponse], responses=ERROR_RESPONSES)
async def list_mrp_runs(
    status: Optional[str] = Query(None, description="Filter by status (running, completed, failed)"),
    from_date: Optional[date] = Query(None, description="Runs on or after this date"),
    to_date: Optional[date] = Query(None, description="Runs on or before this date"),
    pagination: PaginationParams = Depends(get_pagination_params),
    service: MRPService = Depends(get_mrp_service),
):
    """List MRP runs, newest first"""
    runs, total = service.list_runs(
        status=status,
        from_date=from_date,
        to_date=to_date,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ListResponse[MRPRunResponse](
        items=[MRPRunResponse.model_validate(run) for run in runs],
        pagination=PaginationMeta(
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            returned=len(runs),
        ),
    )


@router.post("/runs/reconcile", response_model=ReconcileResponse)
async def reconcile_stale_runs(
    user_id: Optional[int] = Depends(get_current_user_id),
    service: MRPService = Depends(get_mrp_service),
):
    """Mark runs stuck in 'running' past the stale threshold as failed"""
    run_ids = service.reconcile_stale_runs(user_id=user_id)
    return ReconcileResponse(reconciled_run_ids=run_ids, count=len(run_ids))


@router.get("/runs/{run_id}", response_model=MRPRunResponse, responses=ERROR_RESPONSES)
async def get_mrp_run(
    run_id: int,
    service: MRPService = Depends(get_mrp_service),
):
    """Get details of a specific MRP run"""
    return service.get_run(run_id)


@router.get(
    "/runs/{run_id}/requirements",
    response_model=MRPRequirementListResponse,
    responses=ERROR_RESPONSES,
)
async def get_mrp_requirements(
    run_id: int,
    service: MRPService = Depends(get_mrp_service),
):
    """All requirement rows of a run, ordered by required date and item"""
    run = service.get_run(run_id)
    rows = service.list_requirements(run_id)
    return MRPRequirementListResponse(
        mrp_run_id=run.id,
        run_number=run.run_number,
        items=[_requirement_response(r) for r in rows],
        total=len(rows),
    )


@router.get(
    "/runs/{run_id}/shortages",
    response_model=MRPRequirementListResponse,
    responses=ERROR_RESPONSES,
)
async def get_mrp_shortages(
    run_id: int,
    service: MRPService = Depends(get_mrp_service),
):
    """Only the requirement rows in shortage"""
    run = service.get_run(run_id)
    rows = service.list_shortages(run_id)
    return MRPRequirementListResponse(
        mrp_run_id=run.id,
        run_number=run.run_number,
        items=[_requirement_response(r) for r in rows],
        total=len(rows),
    )


@router.delete("/runs/{run_id}", response_model=MRPRunDeleteResponse, responses=ERROR_RESPONSES)
async def delete_mrp_run(
    run_id: int,
    user_id: Optional[int] = Depends(get_current_user_id),
    service: MRPService = Depends(get_mrp_service),
):
    """Delete a completed or failed run together with its requirement rows"""
    removed = service.delete_run(run_id, user_id=user_id)
    return MRPRunDeleteResponse(
        message=f"MRP run {removed['run_number']} deleted",
        run_number=removed["run_number"],
        requirements_deleted=removed["requirements_deleted"],
    )


# ============================================================================
# Explosion Preview
# ============================================================================

@router.get("/explode/{item_id}", response_model=BOMExplosionResponse, responses=ERROR_RESPONSES)
async def explode_item(
    item_id: int,
    quantity: Decimal = Query(Decimal("1"), ge=0, description="Quantity of the item to build"),
    service: MRPService = Depends(get_mrp_service),
):
    """Flattened component requirements for building `quantity` of an item"""
    components = service.explode_item(item_id, quantity)
    return BOMExplosionResponse(
        item_id=item_id,
        quantity=quantity,
        components=[ExplodedComponentResponse.model_validate(c) for c in components],
    )
