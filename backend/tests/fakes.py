"""
In-memory implementations of the MRP data access contracts.

Used to exercise the explosion engine and run orchestration without a
database. Run and requirement objects are plain, session-less ORM instances.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set, Tuple

from app.models.mrp import MRPRequirement, MRPRun
from app.services.mrp_data import BOMLineRecord, BOMRecord, DemandRecord, ItemRecord


class FakeCatalog:
    """Items and BOMs held in dictionaries"""

    def __init__(self):
        self.items: Dict[int, ItemRecord] = {}
        self.boms: Dict[int, BOMRecord] = {}
        self.broken_item_ids: Set[int] = set()
        self.bom_lookups: List[int] = []

    def add_item(self, item_id: int, item_code: Optional[str] = None, unit: str = "EA") -> ItemRecord:
        item = ItemRecord(
            id=item_id,
            item_code=item_code or f"ITM-{item_id}",
            item_name=f"Item {item_id}",
            unit=unit,
        )
        self.items[item_id] = item
        return item

    def add_bom(self, item_id: int, *lines: Tuple) -> BOMRecord:
        """lines are (component_id, quantity_per_unit[, scrap_percentage])"""
        bom = BOMRecord(id=len(self.boms) + 1, item_id=item_id)
        for number, entry in enumerate(lines, start=1):
            bom.lines.append(BOMLineRecord(
                component_item_id=entry[0],
                quantity_per_unit=Decimal(str(entry[1])),
                scrap_percentage=Decimal(str(entry[2])) if len(entry) > 2 else Decimal("0"),
                line_number=number,
            ))
        self.boms[item_id] = bom
        for component_id in [item_id] + [entry[0] for entry in lines]:
            if component_id not in self.items:
                self.add_item(component_id)
        return bom

    def find_active_bom(self, item_id: int) -> Optional[BOMRecord]:
        self.bom_lookups.append(item_id)
        return self.boms.get(item_id)

    def find_item(self, item_id: int) -> Optional[ItemRecord]:
        if item_id in self.broken_item_ids:
            raise LookupError(f"Item lookup failed for {item_id}")
        return self.items.get(item_id)


class FakeDemand:
    """Released demand filtered by required date"""

    def __init__(self):
        self.records: List[DemandRecord] = []
        self.cutoffs: List[date] = []

    def add(self, production_order_id: int, item_id: int, quantity, required_date: date,
            quantity_produced="0") -> DemandRecord:
        record = DemandRecord(
            production_order_id=production_order_id,
            order_number=f"PO-{production_order_id:04d}",
            item_id=item_id,
            quantity_ordered=Decimal(str(quantity)),
            quantity_produced=Decimal(str(quantity_produced)),
            required_date=required_date,
        )
        self.records.append(record)
        return record

    def find_released_demand(self, before_date: date) -> List[DemandRecord]:
        self.cutoffs.append(before_date)
        return sorted(
            (r for r in self.records if r.required_date <= before_date),
            key=lambda r: (r.required_date, r.production_order_id),
        )


class FakeInventory:
    def __init__(self, available: Optional[Dict[int, Decimal]] = None):
        self.available = {k: Decimal(str(v)) for k, v in (available or {}).items()}
        self.requests: List[List[int]] = []

    def available_quantities(self, item_ids: Iterable[int]) -> Dict[int, Decimal]:
        item_ids = list(item_ids)
        self.requests.append(item_ids)
        return {i: self.available[i] for i in item_ids if i in self.available}


class FakeLedger:
    """Runs and requirement rows kept in lists"""

    def __init__(self):
        self.runs: Dict[int, MRPRun] = {}
        self.requirements: List[MRPRequirement] = []
        self.fail_on_requirement: Optional[int] = None
        self.next_run_date: Optional[datetime] = None
        self._run_seq = 0
        self._req_seq = 0

    def create_run(self, run_number: str, planning_horizon_days: int,
                   created_by: Optional[int] = None) -> MRPRun:
        self._run_seq += 1
        run = MRPRun(
            id=self._run_seq,
            run_number=run_number,
            run_date=self.next_run_date or datetime.utcnow(),
            planning_horizon_days=planning_horizon_days,
            status="running",
            total_requirements=0,
            total_shortages=0,
            created_by=created_by,
        )
        self.runs[run.id] = run
        return run

    def add_run(self, status: str, run_date: datetime) -> MRPRun:
        run = self.create_run(f"MRP-FAKE-{self._run_seq + 1:04d}", 30)
        run.status = status
        run.run_date = run_date
        return run

    def get_run(self, run_id: int) -> Optional[MRPRun]:
        return self.runs.get(run_id)

    def update_run(self, run: MRPRun, **values) -> MRPRun:
        for key, value in values.items():
            setattr(run, key, value)
        return run

    def find_running_runs(self) -> List[MRPRun]:
        return [r for r in self.runs.values() if r.status == "running"]

    def list_runs(self, status=None, from_date=None, to_date=None, offset=0, limit=50):
        runs = [
            r for r in self.runs.values()
            if (not status or r.status == status)
            and (not from_date or r.run_date.date() >= from_date)
            and (not to_date or r.run_date.date() <= to_date)
        ]
        runs.sort(key=lambda r: (r.run_date, r.id), reverse=True)
        return runs[offset:offset + limit], len(runs)

    def create_requirement(self, **values) -> MRPRequirement:
        if self.fail_on_requirement is not None and len(self.requirements) + 1 == self.fail_on_requirement:
            raise RuntimeError("Requirement store unavailable")
        self._req_seq += 1
        requirement = MRPRequirement(id=self._req_seq, **values)
        self.requirements.append(requirement)
        return requirement

    def _rows(self, run_id: int) -> List[MRPRequirement]:
        rows = [r for r in self.requirements if r.mrp_run_id == run_id]
        return sorted(rows, key=lambda r: (r.required_date, r.item_id, r.id))

    def list_requirements(self, run_id: int) -> List[MRPRequirement]:
        return self._rows(run_id)

    def list_shortages(self, run_id: int) -> List[MRPRequirement]:
        return [r for r in self._rows(run_id) if r.status == "shortage"]

    def delete_requirements(self, run_id: int) -> int:
        before = len(self.requirements)
        self.requirements = [r for r in self.requirements if r.mrp_run_id != run_id]
        return before - len(self.requirements)

    def delete_run(self, run_id: int) -> None:
        if any(r.mrp_run_id == run_id for r in self.requirements):
            raise AssertionError("requirement rows must be deleted before their run")
        self.runs.pop(run_id, None)


class FakeAudit:
    def __init__(self):
        self.entries: List[dict] = []
        self.fail_on_action: Optional[str] = None

    def record(self, action, module, record_type, record_id=None, user_id=None,
               old_values=None, new_values=None):
        if action == self.fail_on_action:
            raise ValueError(f"Audit store rejected {action}")
        self.entries.append({
            "action": action,
            "module": module,
            "record_type": record_type,
            "record_id": record_id,
            "user_id": user_id,
            "old_values": old_values,
            "new_values": new_values,
        })

    def actions(self) -> List[str]:
        return [e["action"] for e in self.entries]


class FakeDataAccess:
    def __init__(self):
        self.catalog = FakeCatalog()
        self.demand = FakeDemand()
        self.inventory = FakeInventory()
        self.ledger = FakeLedger()
        self.audit = FakeAudit()
        self.commits = 0
        self.recovered: List[Exception] = []

    def commit(self) -> None:
        self.commits += 1

    def recover(self, error: Exception) -> None:
        self.recovered.append(error)
