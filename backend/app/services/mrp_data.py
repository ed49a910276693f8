"""
MRP data access

The MRP engine talks to the database only through the handle defined here.
MRPDataAccess groups the readers and the run ledger the engine needs:

- catalog:   items and active BOMs (read-only)
- demand:    released production orders (read-only)
- inventory: available on-hand quantities (read-only, used for netting)
- ledger:    MRP runs and their requirement rows
- audit:     append-only audit log

SqlMRPDataAccess is the SQLAlchemy implementation used by the API. Tests
substitute in-memory implementations of the same interface.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.core.status_config import MRP_DEMAND_STATUSES, MRPRequirementStatus, MRPRunStatus
from app.models import BOM, InventoryBalance, Item, MRPRequirement, MRPRun, ProductionOrder
from app.logging_config import get_logger
from app.services.audit_service import AuditService

logger = get_logger(__name__)


# ============================================================================
# Read models
# ============================================================================

@dataclass
class ItemRecord:
    """Descriptive fields of an item"""
    id: int
    item_code: str
    item_name: str
    unit: str = "EA"
    item_type: str = "component"


@dataclass
class BOMLineRecord:
    """One component line, quantities per unit of the parent"""
    component_item_id: int
    quantity_per_unit: Decimal
    scrap_percentage: Decimal = Decimal("0")
    line_number: int = 1


@dataclass
class BOMRecord:
    """Active BOM of an item"""
    id: int
    item_id: int
    version: int = 1
    lines: List[BOMLineRecord] = field(default_factory=list)


@dataclass
class DemandRecord:
    """A released production order as seen by MRP"""
    production_order_id: int
    order_number: str
    item_id: int
    quantity_ordered: Decimal
    quantity_produced: Decimal
    required_date: date

    @property
    def quantity_outstanding(self) -> Decimal:
        return self.quantity_ordered - self.quantity_produced


# ============================================================================
# Contracts
# ============================================================================

class CatalogReader(Protocol):
    def find_active_bom(self, item_id: int) -> Optional[BOMRecord]: ...

    def find_item(self, item_id: int) -> Optional[ItemRecord]: ...


class DemandReader(Protocol):
    def find_released_demand(self, before_date: date) -> List[DemandRecord]: ...


class InventoryReader(Protocol):
    def available_quantities(self, item_ids: Iterable[int]) -> Dict[int, Decimal]: ...


class RunLedger(Protocol):
    def create_run(self, run_number: str, planning_horizon_days: int,
                   created_by: Optional[int] = None) -> MRPRun: ...

    def get_run(self, run_id: int) -> Optional[MRPRun]: ...

    def update_run(self, run: MRPRun, **values) -> MRPRun: ...

    def find_running_runs(self) -> List[MRPRun]: ...

    def list_runs(self, status: Optional[str] = None, from_date: Optional[date] = None,
                  to_date: Optional[date] = None, offset: int = 0,
                  limit: int = 50) -> Tuple[List[MRPRun], int]: ...

    def create_requirement(self, **values) -> MRPRequirement: ...

    def list_requirements(self, run_id: int) -> List[MRPRequirement]: ...

    def list_shortages(self, run_id: int) -> List[MRPRequirement]: ...

    def delete_requirements(self, run_id: int) -> int: ...

    def delete_run(self, run_id: int) -> None: ...


class AuditRecorder(Protocol):
    def record(self, action: str, module: str, record_type: str,
               record_id: Optional[int] = None, user_id: Optional[int] = None,
               old_values: Optional[dict] = None, new_values: Optional[dict] = None) -> None: ...


class MRPDataAccess(Protocol):
    catalog: CatalogReader
    demand: DemandReader
    inventory: InventoryReader
    ledger: RunLedger
    audit: AuditRecorder

    def commit(self) -> None: ...

    def recover(self, error: Exception) -> None: ...


# ============================================================================
# SQLAlchemy implementations
# ============================================================================

class SqlCatalogReader:
    """Items and BOMs from the relational store"""

    def __init__(self, db: Session):
        self.db = db

    def find_active_bom(self, item_id: int) -> Optional[BOMRecord]:
        bom = (
            self.db.query(BOM)
            .options(joinedload(BOM.lines))
            .filter(BOM.item_id == item_id, BOM.is_active.is_(True))
            .order_by(BOM.version.desc(), BOM.id.desc())
            .first()
        )
        if not bom:
            return None

        return BOMRecord(
            id=bom.id,
            item_id=bom.item_id,
            version=bom.version,
            lines=[
                BOMLineRecord(
                    component_item_id=line.component_item_id,
                    quantity_per_unit=Decimal(str(line.quantity_per_unit)),
                    scrap_percentage=Decimal(str(line.scrap_percentage or 0)),
                    line_number=line.line_number,
                )
                for line in bom.lines
            ],
        )

    def find_item(self, item_id: int) -> Optional[ItemRecord]:
        item = self.db.query(Item).filter(Item.id == item_id).first()
        if not item:
            return None
        return ItemRecord(
            id=item.id,
            item_code=item.item_code,
            item_name=item.item_name,
            unit=item.unit,
            item_type=item.item_type,
        )


class SqlDemandReader:
    """Released production orders due on or before a cutoff"""

    def __init__(self, db: Session):
        self.db = db

    def find_released_demand(self, before_date: date) -> List[DemandRecord]:
        orders = (
            self.db.query(ProductionOrder)
            .filter(
                ProductionOrder.status.in_(MRP_DEMAND_STATUSES),
                ProductionOrder.required_date <= before_date,
            )
            .order_by(ProductionOrder.required_date, ProductionOrder.id)
            .all()
        )
        return [
            DemandRecord(
                production_order_id=po.id,
                order_number=po.order_number,
                item_id=po.item_id,
                quantity_ordered=Decimal(str(po.quantity_ordered or 0)),
                quantity_produced=Decimal(str(po.quantity_produced or 0)),
                required_date=po.required_date,
            )
            for po in orders
        ]


class SqlInventoryReader:
    """Available quantity per item, summed across warehouses"""

    def __init__(self, db: Session):
        self.db = db

    def available_quantities(self, item_ids: Iterable[int]) -> Dict[int, Decimal]:
        item_ids = list(item_ids)
        if not item_ids:
            return {}

        rows = self.db.query(
            InventoryBalance.item_id,
            func.sum(InventoryBalance.quantity_on_hand).label("on_hand"),
            func.sum(InventoryBalance.quantity_reserved).label("reserved"),
        ).filter(
            InventoryBalance.item_id.in_(item_ids)
        ).group_by(InventoryBalance.item_id).all()

        result = {}
        for row in rows:
            available = Decimal(str(row.on_hand or 0)) - Decimal(str(row.reserved or 0))
            result[row.item_id] = max(Decimal("0"), available)
        return result


class SqlRunLedger:
    """Persistence for MRP runs and requirement rows"""

    def __init__(self, db: Session):
        self.db = db

    def create_run(self, run_number: str, planning_horizon_days: int,
                   created_by: Optional[int] = None) -> MRPRun:
        run = MRPRun(
            run_number=run_number,
            run_date=datetime.utcnow(),
            planning_horizon_days=planning_horizon_days,
            status=MRPRunStatus.RUNNING.value,
            total_requirements=0,
            total_shortages=0,
            created_by=created_by,
        )
        self.db.add(run)
        self.db.flush()
        return run

    def get_run(self, run_id: int) -> Optional[MRPRun]:
        return self.db.query(MRPRun).filter(MRPRun.id == run_id).first()

    def update_run(self, run: MRPRun, **values) -> MRPRun:
        for key, value in values.items():
            setattr(run, key, value)
        self.db.flush()
        return run

    def find_running_runs(self) -> List[MRPRun]:
        return (
            self.db.query(MRPRun)
            .filter(MRPRun.status == MRPRunStatus.RUNNING.value)
            .order_by(MRPRun.run_date)
            .all()
        )

    def list_runs(self, status: Optional[str] = None, from_date: Optional[date] = None,
                  to_date: Optional[date] = None, offset: int = 0,
                  limit: int = 50) -> Tuple[List[MRPRun], int]:
        query = self.db.query(MRPRun)

        if status:
            query = query.filter(MRPRun.status == status)
        if from_date:
            query = query.filter(MRPRun.run_date >= datetime.combine(from_date, datetime.min.time()))
        if to_date:
            query = query.filter(MRPRun.run_date <= datetime.combine(to_date, datetime.max.time()))

        total = query.count()
        runs = query.order_by(MRPRun.run_date.desc(), MRPRun.id.desc()).offset(offset).limit(limit).all()
        return runs, total

    def create_requirement(self, **values) -> MRPRequirement:
        requirement = MRPRequirement(**values)
        self.db.add(requirement)
        self.db.flush()
        return requirement

    def _requirements_query(self, run_id: int):
        return (
            self.db.query(MRPRequirement)
            .options(joinedload(MRPRequirement.item))
            .filter(MRPRequirement.mrp_run_id == run_id)
        )

    def list_requirements(self, run_id: int) -> List[MRPRequirement]:
        return self._requirements_query(run_id).order_by(
            MRPRequirement.required_date, MRPRequirement.item_id, MRPRequirement.id
        ).all()

    def list_shortages(self, run_id: int) -> List[MRPRequirement]:
        return self._requirements_query(run_id).filter(
            MRPRequirement.status == MRPRequirementStatus.SHORTAGE.value
        ).order_by(
            MRPRequirement.required_date, MRPRequirement.item_id, MRPRequirement.id
        ).all()

    def delete_requirements(self, run_id: int) -> int:
        deleted = self.db.query(MRPRequirement).filter(
            MRPRequirement.mrp_run_id == run_id
        ).delete(synchronize_session=False)
        self.db.flush()
        return deleted

    def delete_run(self, run_id: int) -> None:
        self.db.query(MRPRun).filter(MRPRun.id == run_id).delete(synchronize_session=False)
        self.db.flush()


class SqlMRPDataAccess:
    """All MRP collaborators bound to one SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = SqlCatalogReader(db)
        self.demand = SqlDemandReader(db)
        self.inventory = SqlInventoryReader(db)
        self.ledger = SqlRunLedger(db)
        self.audit = AuditService(db)

    def commit(self) -> None:
        self.db.commit()

    def recover(self, error: Exception) -> None:
        """Roll back when a database error left the session unusable."""
        if isinstance(error, SQLAlchemyError) or not self.db.is_active:
            logger.warning(
                "Rolling back MRP session after database error",
                extra={"error_type": type(error).__name__},
            )
            self.db.rollback()
