"""
Audit Service

Appends entries to the audit log. Entries are added to the caller's session
and become durable with the caller's next commit, so an audit row is never
written for work that was rolled back.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.logging_config import get_logger

logger = get_logger(__name__)


class AuditService:
    """Append-only writer and reader for the audit log"""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        action: str,
        module: str,
        record_type: str,
        record_id: Optional[int] = None,
        user_id: Optional[int] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            action=action,
            module=module,
            record_type=record_type,
            record_id=record_id,
            user_id=user_id,
            old_values=old_values,
            new_values=new_values,
        )
        self.db.add(entry)
        self.db.flush()

        logger.info(
            f"Audit: {action} {record_type}#{record_id}",
            extra={"audit_action": action, "record_type": record_type, "record_id": record_id, "user_id": user_id},
        )
        return entry

    def list_for_record(self, record_type: str, record_id: int) -> List[AuditLog]:
        """Entries for one record, oldest first"""
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.record_type == record_type, AuditLog.record_id == record_id)
            .order_by(AuditLog.created_at, AuditLog.id)
            .all()
        )
