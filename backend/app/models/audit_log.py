"""
Audit Log Model

Append-only record of who executed what. The MRP engine writes an entry
when a run finishes (completed or failed) and when a run is deleted.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from datetime import datetime

from app.db.base import Base


class AuditLog(Base):
    """Audit Log - one entry per audited action"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, nullable=True, index=True)

    # EXECUTE_MRP, EXECUTE_MRP_FAILED, DELETE, RECONCILE_STALE_MRP
    action = Column(String(50), nullable=False, index=True)
    module = Column(String(50), nullable=False)

    # What was touched
    record_type = Column(String(50), nullable=False)
    record_id = Column(Integer, nullable=True, index=True)

    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.record_type}#{self.record_id}>"
