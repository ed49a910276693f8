"""
MRP (Material Requirements Planning) Service

Core MRP run logic:
1. Demand - load released production orders due within the planning horizon
2. BOM Explosion - flatten each order's BOM into component requirements
3. Requirements - write one requirement row per (order, component), with
   shortage = required - available
4. Ledger - finalize the run header and record an audit entry

A run is created as 'running' and committed before any work starts, so it is
visible while executing. It ends 'completed' or 'failed'; a failed run keeps
its error text in notes and the original exception reaches the caller.
"""
import secrets
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from app.core.settings import Settings, get_settings
from app.core.status_config import (
    MRPRequirementStatus,
    MRPRunStatus,
    get_allowed_mrp_run_transitions,
    is_valid_mrp_run_transition,
)
from app.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models import MRPRequirement, MRPRun
from app.services.bom_explosion import BOMExplosionEngine, to_decimal
from app.services.mrp_data import DemandRecord, ItemRecord, MRPDataAccess

logger = get_logger(__name__)

AUDIT_MODULE = "MRP"
AUDIT_RECORD_TYPE = "mrp_run"

QUANTITY_PLACES = Decimal("0.0001")
ZERO = Decimal("0")

NO_DEMAND_NOTE = "No released production orders found in planning horizon"


def generate_run_number(now: Optional[datetime] = None) -> str:
    """
    Build a run number like MRP-20250114-0930-4F1A2B.

    The random suffix keeps runs started within the same minute distinct.
    """
    now = now or datetime.utcnow()
    return f"MRP-{now:%Y%m%d-%H%M}-{secrets.token_hex(3).upper()}"


def quantize_quantity(quantity: Decimal) -> Decimal:
    """Round a quantity to the 4 decimal places stored on requirement rows"""
    return quantity.quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


# ============================================================================
# Data Classes for MRP Calculations
# ============================================================================

@dataclass
class ExplodedComponent:
    """One line of an explosion preview"""
    item_id: int
    item_code: Optional[str]
    item_name: Optional[str]
    unit: Optional[str]
    quantity: Decimal


@dataclass
class RunTotals:
    """Counters accumulated while writing requirement rows"""
    orders_processed: int = 0
    total_requirements: int = 0
    total_shortages: int = 0
    unresolved_item_ids: List[int] = field(default_factory=list)

    def notes(self) -> Optional[str]:
        if not self.orders_processed:
            return NO_DEMAND_NOTE
        if not self.unresolved_item_ids:
            return None
        ids = ", ".join(str(item_id) for item_id in self.unresolved_item_ids)
        return f"Skipped {len(self.unresolved_item_ids)} unresolved component item(s): {ids}"


class InventoryPool:
    """
    Available stock for one run.

    Each allocation draws the pool down, so quantity handed to one
    requirement row is never offered to another.
    """

    def __init__(self, available: Dict[int, Decimal]):
        self._remaining = {item_id: max(ZERO, qty) for item_id, qty in available.items()}

    def allocate(self, item_id: int, required: Decimal) -> Decimal:
        remaining = self._remaining.get(item_id, ZERO)
        allocated = min(remaining, required)
        self._remaining[item_id] = remaining - allocated
        return allocated

    def remaining(self, item_id: int) -> Decimal:
        return self._remaining.get(item_id, ZERO)


# ============================================================================
# MRP Service
# ============================================================================

class MRPService:
    """Material Requirements Planning service"""

    def __init__(self, data: MRPDataAccess, settings: Optional[Settings] = None):
        self.data = data
        self.settings = settings or get_settings()
        self.engine = BOMExplosionEngine(data.catalog, max_depth=self.settings.MRP_MAX_BOM_DEPTH)

    # ========================================================================
    # Run execution
    # ========================================================================

    def execute_run(
        self,
        planning_horizon_days: int,
        user_id: Optional[int] = None,
    ) -> int:
        """
        Run MRP for all released demand due within the planning horizon.

        Args:
            planning_horizon_days: Days ahead of the run date (UTC) to include demand for,
                at most MRP_MAX_HORIZON_DAYS
            user_id: User starting the run (recorded on the run and in the audit log)

        Returns:
            ID of the MRP run

        Raises:
            ValidationError: horizon is not a positive integer within the limit
            ConflictError: another run is still in progress
            Any error raised while calculating, after the run is marked failed
        """
        horizon = self._validate_horizon(planning_horizon_days)

        if self.settings.MRP_SINGLE_FLIGHT:
            self._ensure_no_active_run()

        run = self.data.ledger.create_run(
            run_number=generate_run_number(),
            planning_horizon_days=horizon,
            created_by=user_id,
        )
        self.data.commit()
        run_id = int(run.id)
        run_number = run.run_number
        run_date = run.run_date

        logger.info(
            f"MRP run {run_number} started",
            extra={"mrp_run_id": run_id, "planning_horizon_days": horizon, "user_id": user_id},
        )

        try:
            totals = self._calculate(run_id, horizon, run_date)

            run = self.data.ledger.get_run(run_id)
            self._transition(
                run,
                MRPRunStatus.COMPLETED,
                total_requirements=totals.total_requirements,
                total_shortages=totals.total_shortages,
                notes=totals.notes(),
                completed_at=datetime.utcnow(),
            )
            self.data.audit.record(
                action="EXECUTE_MRP",
                module=AUDIT_MODULE,
                record_type=AUDIT_RECORD_TYPE,
                record_id=run_id,
                user_id=user_id,
                new_values={
                    "run_number": run_number,
                    "status": MRPRunStatus.COMPLETED.value,
                    "total_requirements": totals.total_requirements,
                    "total_shortages": totals.total_shortages,
                    "planning_horizon_days": horizon,
                },
            )
            self.data.commit()

        except Exception as e:
            logger.error(
                f"MRP run {run_number} failed: {e}",
                exc_info=True,
                extra={"mrp_run_id": run_id, "error_type": type(e).__name__},
            )
            self._fail_run(run_id, run_number, e, user_id)
            raise

        logger.info(
            f"MRP run {run_number} completed",
            extra={
                "mrp_run_id": run_id,
                "total_requirements": totals.total_requirements,
                "total_shortages": totals.total_shortages,
            },
        )
        return run_id

    def _validate_horizon(self, planning_horizon_days) -> int:
        if isinstance(planning_horizon_days, bool) or not isinstance(planning_horizon_days, int):
            raise ValidationError(
                "Planning horizon must be a whole number of days",
                field="planning_horizon_days",
                value=planning_horizon_days,
            )
        if planning_horizon_days <= 0:
            raise ValidationError(
                "Planning horizon must be greater than zero",
                field="planning_horizon_days",
                value=planning_horizon_days,
            )
        if planning_horizon_days > self.settings.MRP_MAX_HORIZON_DAYS:
            raise ValidationError(
                f"Planning horizon cannot exceed {self.settings.MRP_MAX_HORIZON_DAYS} days",
                field="planning_horizon_days",
                value=planning_horizon_days,
            )
        return planning_horizon_days

    def _ensure_no_active_run(self) -> None:
        now = datetime.utcnow()
        active = [r for r in self.data.ledger.find_running_runs() if not self._is_stale(r, now)]
        if active:
            current = active[0]
            raise ConflictError(
                f"MRP run {current.run_number} is still running",
                details={"mrp_run_id": current.id, "run_number": current.run_number},
            )

    def _is_stale(self, run: MRPRun, now: datetime) -> bool:
        cutoff = now - timedelta(minutes=self.settings.MRP_STALE_RUN_MINUTES)
        return run.run_date is not None and run.run_date < cutoff

    def _calculate(self, run_id: int, horizon: int, run_date: datetime) -> RunTotals:
        """Explode released demand and write requirement rows for the run"""
        totals = RunTotals()

        # Horizon counts from the run date so both use the same UTC clock
        cutoff = run_date.date() + timedelta(days=horizon)
        demand = self._load_demand(cutoff)
        if not demand:
            logger.info(
                "No released demand in planning horizon",
                extra={"mrp_run_id": run_id, "cutoff_date": cutoff.isoformat()},
            )
            return totals
        totals.orders_processed = len(demand)

        # Explode everything first so inventory can be fetched in one pass
        exploded: List[Tuple[DemandRecord, Dict[int, Decimal]]] = []
        for record in demand:
            exploded.append((record, self.engine.explode(record.item_id, record.quantity_outstanding)))

        pool = None
        if self.settings.MRP_NET_AGAINST_INVENTORY:
            component_ids = {item_id for _, components in exploded for item_id in components}
            pool = InventoryPool(self.data.inventory.available_quantities(sorted(component_ids)))

        items: Dict[int, Optional[ItemRecord]] = {}
        for record, components in exploded:
            for component_id, quantity in components.items():
                if component_id not in items:
                    items[component_id] = self.data.catalog.find_item(component_id)
                if items[component_id] is None:
                    self._handle_unresolved_item(run_id, record, component_id, totals)
                    continue

                requirement = self._write_requirement(run_id, record, component_id, quantity, pool)
                totals.total_requirements += 1
                if requirement.status == MRPRequirementStatus.SHORTAGE.value:
                    totals.total_shortages += 1

        return totals

    def _load_demand(self, cutoff: date) -> List[DemandRecord]:
        demand = []
        for record in self.data.demand.find_released_demand(cutoff):
            if record.quantity_outstanding <= 0:
                logger.debug(
                    f"Skipping production order {record.order_number} with nothing outstanding",
                    extra={"production_order_id": record.production_order_id},
                )
                continue
            demand.append(record)
        return demand

    def _handle_unresolved_item(
        self,
        run_id: int,
        record: DemandRecord,
        component_id: int,
        totals: RunTotals,
    ) -> None:
        if self.settings.MRP_UNRESOLVED_ITEM_POLICY == "fail":
            raise NotFoundError("Item", component_id)

        logger.warning(
            f"Component item {component_id} not found, requirement skipped",
            extra={
                "mrp_run_id": run_id,
                "production_order_id": record.production_order_id,
                "item_id": component_id,
            },
        )
        if component_id not in totals.unresolved_item_ids:
            totals.unresolved_item_ids.append(component_id)

    def _write_requirement(
        self,
        run_id: int,
        record: DemandRecord,
        component_id: int,
        quantity: Decimal,
        pool: Optional[InventoryPool],
    ) -> MRPRequirement:
        required = quantize_quantity(quantity)
        available = pool.allocate(component_id, required) if pool else ZERO
        shortage = max(ZERO, required - available)
        status = MRPRequirementStatus.SHORTAGE if shortage > 0 else MRPRequirementStatus.SUFFICIENT

        return self.data.ledger.create_requirement(
            mrp_run_id=run_id,
            production_order_id=record.production_order_id,
            item_id=component_id,
            required_quantity=required,
            available_quantity=available,
            shortage_quantity=shortage,
            required_date=record.required_date,
            status=status.value,
        )

    def _transition(self, run: MRPRun, new_status: MRPRunStatus, **values) -> MRPRun:
        if not is_valid_mrp_run_transition(run.status, new_status.value):
            raise InvalidStateError(
                f"MRP run {run.run_number} cannot move from '{run.status}' to '{new_status.value}'",
                current_state=run.status,
                allowed_states=get_allowed_mrp_run_transitions(run.status),
            )
        return self.data.ledger.update_run(run, status=new_status.value, **values)

    def _fail_run(self, run_id: int, run_number: str, error: Exception, user_id: Optional[int]) -> None:
        """Mark the run failed and audit it. The caller re-raises the original error."""
        try:
            self.data.recover(error)
            run = self.data.ledger.get_run(run_id)
            if run is None:
                return
            if run.status == MRPRunStatus.COMPLETED.value:
                # Completion is only committed after the audit entry, so it never took effect
                self.data.ledger.update_run(
                    run,
                    status=MRPRunStatus.RUNNING.value,
                    total_requirements=0,
                    total_shortages=0,
                    completed_at=None,
                )
            if run.status != MRPRunStatus.RUNNING.value:
                return

            message = str(error) or type(error).__name__
            self._transition(run, MRPRunStatus.FAILED, notes=message, completed_at=datetime.utcnow())
            self.data.audit.record(
                action="EXECUTE_MRP_FAILED",
                module=AUDIT_MODULE,
                record_type=AUDIT_RECORD_TYPE,
                record_id=run_id,
                user_id=user_id,
                new_values={
                    "run_number": run_number,
                    "status": MRPRunStatus.FAILED.value,
                    "error": message,
                },
            )
            self.data.commit()
        except Exception:
            logger.exception(
                f"Could not record failure of MRP run {run_number}",
                extra={"mrp_run_id": run_id},
            )

    # ========================================================================
    # Run maintenance
    # ========================================================================

    def delete_run(self, run_id: int, user_id: Optional[int] = None) -> Dict[str, object]:
        """
        Delete a finished run and its requirement rows.

        Raises:
            NotFoundError: run does not exist
            InvalidStateError: run is still running
        """
        run = self.data.ledger.get_run(run_id)
        if not run:
            raise NotFoundError("MRP run", run_id)
        if run.status == MRPRunStatus.RUNNING.value:
            raise InvalidStateError(
                "Cannot delete a running MRP run",
                current_state=run.status,
                allowed_states=[MRPRunStatus.COMPLETED.value, MRPRunStatus.FAILED.value],
            )

        old_values = {
            "run_number": run.run_number,
            "status": run.status,
            "total_requirements": run.total_requirements,
            "total_shortages": run.total_shortages,
        }

        # Requirement rows first, they reference the header
        deleted = self.data.ledger.delete_requirements(run_id)
        self.data.ledger.delete_run(run_id)
        old_values["requirements_deleted"] = deleted

        self.data.audit.record(
            action="DELETE",
            module=AUDIT_MODULE,
            record_type=AUDIT_RECORD_TYPE,
            record_id=run_id,
            user_id=user_id,
            old_values=old_values,
        )
        self.data.commit()

        logger.info(
            f"MRP run {old_values['run_number']} deleted",
            extra={"mrp_run_id": run_id, "requirements_deleted": deleted, "user_id": user_id},
        )
        return old_values

    def reconcile_stale_runs(self, user_id: Optional[int] = None) -> List[int]:
        """
        Mark runs stuck in 'running' longer than MRP_STALE_RUN_MINUTES as failed.

        Returns:
            IDs of the runs that were marked failed
        """
        now = datetime.utcnow()
        minutes = self.settings.MRP_STALE_RUN_MINUTES
        reconciled = []

        for run in self.data.ledger.find_running_runs():
            if not self._is_stale(run, now):
                continue

            note = f"Marked failed by reconciliation: still running after {minutes} minutes"
            self._transition(run, MRPRunStatus.FAILED, notes=note, completed_at=now)
            self.data.audit.record(
                action="RECONCILE_STALE_MRP",
                module=AUDIT_MODULE,
                record_type=AUDIT_RECORD_TYPE,
                record_id=run.id,
                user_id=user_id,
                old_values={"status": MRPRunStatus.RUNNING.value},
                new_values={"run_number": run.run_number, "status": MRPRunStatus.FAILED.value},
            )
            reconciled.append(int(run.id))

        if reconciled:
            self.data.commit()
            logger.warning(
                f"Reconciled {len(reconciled)} stale MRP run(s)",
                extra={"mrp_run_ids": reconciled, "stale_after_minutes": minutes},
            )
        return reconciled

    # ========================================================================
    # Reads
    # ========================================================================

    def get_run(self, run_id: int) -> MRPRun:
        run = self.data.ledger.get_run(run_id)
        if not run:
            raise NotFoundError("MRP run", run_id)
        return run

    def list_runs(
        self,
        status: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[MRPRun], int]:
        """List runs newest first. Returns (runs, total matching)."""
        if status and status not in {s.value for s in MRPRunStatus}:
            raise ValidationError(f"Unknown MRP run status '{status}'", field="status", value=status)
        if from_date and to_date and from_date > to_date:
            raise ValidationError("from_date must be on or before to_date", field="from_date", value=from_date)
        if page < 1 or page_size < 1:
            raise ValidationError("page and page_size must be positive", field="page")

        return self.data.ledger.list_runs(
            status=status,
            from_date=from_date,
            to_date=to_date,
            offset=(page - 1) * page_size,
            limit=page_size,
        )

    def list_requirements(self, run_id: int) -> List[MRPRequirement]:
        self.get_run(run_id)
        return self.data.ledger.list_requirements(run_id)

    def list_shortages(self, run_id: int) -> List[MRPRequirement]:
        self.get_run(run_id)
        return self.data.ledger.list_shortages(run_id)

    def explode_item(self, item_id: int, quantity=Decimal("1")) -> List[ExplodedComponent]:
        """Explosion preview for one item, without creating a run"""
        if self.data.catalog.find_item(item_id) is None:
            raise NotFoundError("Item", item_id)

        components = []
        for component_id, required in self.engine.explode(item_id, to_decimal(quantity)).items():
            item = self.data.catalog.find_item(component_id)
            components.append(ExplodedComponent(
                item_id=component_id,
                item_code=item.item_code if item else None,
                item_name=item.item_name if item else None,
                unit=item.unit if item else None,
                quantity=quantize_quantity(required),
            ))
        return components
