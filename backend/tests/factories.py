"""
Test data factories for PlantOps.

Provides functions to create test entities with sensible defaults.

Usage:
    from tests.factories import create_test_item, create_test_bom

    def test_something(db_session):
        bike = create_test_item(db_session, item_name="Bicycle")
        wheel = create_test_item(db_session, item_type="component")
        create_test_bom(db_session, bike, [(wheel, "2")])
"""
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from sqlalchemy.orm import Session

from app.core.settings import Settings, get_settings


# =============================================================================
# SEQUENCE MANAGEMENT
# =============================================================================

_sequences: Dict[str, int] = {}


def reset_sequences():
    """Reset all sequences. Call between tests for predictable codes."""
    global _sequences
    _sequences = {}


def _next(name: str) -> int:
    """Get next sequence number for a given entity type."""
    _sequences[name] = _sequences.get(name, 0) + 1
    return _sequences[name]


def _code(prefix: str, name: str) -> str:
    """Generate a code like PO-2025-0001."""
    seq = _next(name)
    return f"{prefix}-{datetime.now().year}-{seq:04d}"


# =============================================================================
# SETTINGS
# =============================================================================

MRP_DEFAULTS = {
    "MRP_DEFAULT_HORIZON_DAYS": 30,
    "MRP_MAX_HORIZON_DAYS": 365,
    "MRP_MAX_BOM_DEPTH": 50,
    "MRP_NET_AGAINST_INVENTORY": False,
    "MRP_UNRESOLVED_ITEM_POLICY": "skip",
    "MRP_SINGLE_FLIGHT": True,
    "MRP_STALE_RUN_MINUTES": 60,
}


def make_settings(**overrides) -> Settings:
    """Application settings with MRP defaults, plus overrides."""
    values = dict(MRP_DEFAULTS)
    values.update(overrides)
    return get_settings().model_copy(update=values)


# =============================================================================
# ITEM FACTORY
# =============================================================================

def create_test_item(
    db: Session,
    item_code: Optional[str] = None,
    item_name: Optional[str] = None,
    item_type: str = "raw_material",
    unit: str = "EA",
    **overrides
) -> "Item":
    """
    Create a test item.

    Args:
        db: Database session
        item_code: Unique code (auto-generated if not provided)
        item_name: Display name (auto-generated if not provided)
        item_type: 'finished_good', 'component' or 'raw_material'
        unit: Unit of measure
        **overrides: Additional field overrides

    Returns:
        Created Item instance
    """
    from app.models.item import Item

    seq = _next("item")
    item = Item(
        item_code=item_code or f"ITM-{seq:04d}",
        item_name=item_name or f"Test Item {seq}",
        item_type=item_type,
        unit=unit,
        is_active=True,
        **overrides
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


# =============================================================================
# BOM FACTORY
# =============================================================================

def create_test_bom(
    db: Session,
    item: "Item",
    lines: Sequence[Tuple],
    version: int = 1,
    is_active: bool = True,
) -> "BOM":
    """
    Create a BOM for item.

    Each entry in lines is (component, quantity_per_unit) or
    (component, quantity_per_unit, scrap_percentage). component may be an
    Item or a bare item id.
    """
    from app.models.bom import BOM, BOMLine

    bom = BOM(
        item_id=item.id,
        bom_code=f"BOM-{item.item_code}-V{version}",
        version=version,
        is_active=is_active,
    )
    db.add(bom)
    db.flush()

    for number, entry in enumerate(lines, start=1):
        component, quantity = entry[0], entry[1]
        scrap = entry[2] if len(entry) > 2 else "0"
        db.add(BOMLine(
            bom_id=bom.id,
            line_number=number,
            component_item_id=getattr(component, "id", component),
            quantity_per_unit=Decimal(str(quantity)),
            scrap_percentage=Decimal(str(scrap)),
        ))

    db.commit()
    db.refresh(bom)
    return bom


# =============================================================================
# PRODUCTION ORDER FACTORY
# =============================================================================

def create_test_production_order(
    db: Session,
    item: "Item",
    quantity: str = "10",
    status: str = "released",
    required_date: Optional[date] = None,
    quantity_produced: str = "0",
    **overrides
) -> "ProductionOrder":
    """
    Create a production order for item.

    Defaults to a released order due in 7 days.
    """
    from app.models.production_order import ProductionOrder

    order = ProductionOrder(
        order_number=_code("PO", "production_order"),
        item_id=item.id,
        quantity_ordered=Decimal(str(quantity)),
        quantity_produced=Decimal(str(quantity_produced)),
        status=status,
        required_date=required_date or date.today() + timedelta(days=7),
        **overrides
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


# =============================================================================
# INVENTORY FACTORY
# =============================================================================

def create_test_inventory(
    db: Session,
    item: "Item",
    on_hand: str = "0",
    reserved: str = "0",
    warehouse_code: str = "MAIN",
) -> "InventoryBalance":
    """Create an inventory balance for item in one warehouse."""
    from app.models.inventory import InventoryBalance

    balance = InventoryBalance(
        item_id=item.id,
        warehouse_code=warehouse_code,
        quantity_on_hand=Decimal(str(on_hand)),
        quantity_reserved=Decimal(str(reserved)),
    )
    db.add(balance)
    db.commit()
    db.refresh(balance)
    return balance


# =============================================================================
# MRP RUN FACTORY
# =============================================================================

def create_test_mrp_run(
    db: Session,
    status: str = "completed",
    run_date: Optional[datetime] = None,
    **overrides
) -> "MRPRun":
    """Create an MRP run header directly, bypassing the engine."""
    from app.models.mrp import MRPRun

    seq = _next("mrp_run")
    run = MRPRun(
        run_number=f"MRP-TEST-{seq:04d}",
        run_date=run_date or datetime.utcnow(),
        planning_horizon_days=30,
        status=status,
        total_requirements=0,
        total_shortages=0,
        **overrides
    )
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def requirement_quantities(rows: List) -> Dict[Tuple[int, int], Decimal]:
    """Map (production_order_id, item_id) -> required_quantity for assertions."""
    return {(r.production_order_id, r.item_id): Decimal(str(r.required_quantity)) for r in rows}
