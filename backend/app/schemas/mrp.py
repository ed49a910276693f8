"""
MRP (Material Requirements Planning) Pydantic Schemas

Schemas for:
- MRP run requests and responses
- Requirement rows
- Explosion preview
- Run maintenance (delete, reconcile)
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal


# ============================================================================
# MRP Run Schemas
# ============================================================================

class MRPRunRequest(BaseModel):
    """Request to run MRP calculation"""
    planning_horizon_days: Optional[int] = Field(
        None, description="Days to look ahead (defaults to MRP_DEFAULT_HORIZON_DAYS)"
    )


class MRPRunResponse(BaseModel):
    """An MRP run header"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    run_number: str
    run_date: datetime
    planning_horizon_days: int
    status: str
    total_requirements: int = 0
    total_shortages: int = 0
    notes: Optional[str] = None
    created_by: Optional[int] = None
    completed_at: Optional[datetime] = None


# ============================================================================
# Requirement Schemas
# ============================================================================

class MRPRequirementResponse(BaseModel):
    """A requirement row, with the component's descriptive fields"""
    id: int
    mrp_run_id: int
    production_order_id: int
    item_id: int
    item_code: Optional[str] = None
    item_name: Optional[str] = None
    required_quantity: Decimal
    available_quantity: Decimal
    shortage_quantity: Decimal
    required_date: date
    status: str


class MRPRequirementListResponse(BaseModel):
    """All requirement rows of one run"""
    mrp_run_id: int
    run_number: str
    items: List[MRPRequirementResponse]
    total: int


# ============================================================================
# Explosion Preview
# ============================================================================

class ExplodedComponentResponse(BaseModel):
    """One flattened component of an explosion preview"""
    model_config = ConfigDict(from_attributes=True)

    item_id: int
    item_code: Optional[str] = None
    item_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: Decimal


class BOMExplosionResponse(BaseModel):
    """Flattened BOM of an item at a given quantity"""
    item_id: int
    quantity: Decimal
    components: List[ExplodedComponentResponse]


# ============================================================================
# Run Maintenance
# ============================================================================

class MRPRunDeleteResponse(BaseModel):
    """Result of deleting a run"""
    message: str
    run_number: str
    requirements_deleted: int


class ReconcileResponse(BaseModel):
    """Runs marked failed by stale-run reconciliation"""
    reconciled_run_ids: List[int] = Field(default_factory=list)
    count: int = 0
