"""Audit service: append-only audit trail for role assignments."""

import json
import logging
from typing import Optional, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hrms.models.audit_log import AuditLog

logger = logging.getLogger("hrms.audit")


class AuditService:
    """Records immutable audit log entries for system events."""

    @staticmethod
    def log(
        db: Session,
        actor_id: Optional[int],
        action: str,
        resource_type: str,
        resource_id: Optional[Any] = None,
        reason: Optional[str] = None,
        old_value: Optional[Any] = None,
        new_value: Optional[Any] = None,
    ) -> AuditLog:
        """Write a single audit log record.

        Args:
            action: e.g. "role.assigned", "role.auto_assigned"
            resource_type: user, role, task

        This method commits immediately to ensure audit is never lost.
        """
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            reason=reason,
            old_value_json=json.dumps(old_value, default=str) if old_value else None,
            new_value_json=json.dumps(new_value, default=str) if new_value else None,
        )
        db.add(entry)
        db.commit()
        return entry

    @staticmethod
    def query_logs(
        db: Session,
        actor_id: Optional[int] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ):
        """Query audit logs with filters and pagination."""
        query = db.query(AuditLog)

        if actor_id:
            query = query.filter(AuditLog.actor_id == actor_id)
        if action:
            query = query.filter(AuditLog.action.ilike(f"%{action}%"))
        if resource_type:
            query = query.filter(AuditLog.resource_type == resource_type)

        total = query.count()
        logs = (
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        return {
            "logs": logs,
            "total": total,
            "page": page,
            "page_size": page_size,
        }


class SqlAuditSink:
    """Fire-and-forget audit sink bound to one session.

    A failed audit write is logged and rolled back; it never reaches the
    caller, so an unavailable audit table cannot fail an access decision.
    """

    def __init__(self, db: Session):
        self.db = db

    def record_role_assignment(
        self,
        user_id: int,
        role_name: str,
        reason: str,
        actor_id: Optional[int] = None,
    ) -> None:
        try:
            AuditService.log(
                self.db,
                actor_id=actor_id,
                action="role.assigned",
                resource_type="user",
                resource_id=user_id,
                reason=reason,
                new_value={"role": role_name},
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Audit write for user %s (%s) dropped: %s", user_id, role_name, e)


audit_service = AuditService()
