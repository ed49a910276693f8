"""
MRP (Material Requirements Planning) models.

- MRPRun: Audit trail of MRP calculation runs
- MRPRequirement: One component requirement per (run, production order, item)
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class MRPRun(Base):
    """
    One execution of the MRP engine.

    Lifecycle: running → completed | failed. Both end states are terminal.
    """
    __tablename__ = "mrp_runs"

    id = Column(Integer, primary_key=True, index=True)
    run_number = Column(String(50), unique=True, nullable=False, index=True)
    run_date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    planning_horizon_days = Column(Integer, default=30, nullable=False)

    # Status: running, completed, failed
    status = Column(String(20), default="running", nullable=False, index=True)

    # Results
    total_requirements = Column(Integer, default=0, nullable=False)
    total_shortages = Column(Integer, default=0, nullable=False)

    # Failure reason or informational note
    notes = Column(Text, nullable=True)

    # Audit
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    requirements = relationship("MRPRequirement", back_populates="mrp_run")

    def __repr__(self):
        return f"<MRPRun {self.run_number}: {self.status} ({self.total_shortages}/{self.total_requirements} short)>"


class MRPRequirement(Base):
    """
    A flattened component requirement produced by a run.

    Rows are written once and never updated; they are removed only when
    their run is deleted.
    """
    __tablename__ = "mrp_requirements"

    id = Column(Integer, primary_key=True, index=True)
    mrp_run_id = Column(Integer, ForeignKey("mrp_runs.id"), nullable=False, index=True)
    production_order_id = Column(Integer, ForeignKey("production_orders.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)

    # Quantities
    required_quantity = Column(Numeric(18, 4), nullable=False)
    available_quantity = Column(Numeric(18, 4), default=0, nullable=False)
    shortage_quantity = Column(Numeric(18, 4), default=0, nullable=False)

    required_date = Column(Date, nullable=False)

    # Status: shortage, sufficient
    status = Column(String(20), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    mrp_run = relationship("MRPRun", back_populates="requirements")
    production_order = relationship("ProductionOrder")
    item = relationship("Item")

    def __repr__(self):
        return f"<MRPRequirement run {self.mrp_run_id} item {self.item_id}: {self.status}>"
