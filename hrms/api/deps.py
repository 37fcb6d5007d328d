"""Request-scoped dependencies wiring the access services to a DB session."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from hrms.core.security import get_current_user_id
from hrms.db.session import get_db
from hrms.schemas.access import AccessContext
from hrms.services.audit_service import SqlAuditSink
from hrms.services.role_service import RoleService
from hrms.services.stores import SqlOrgDirectory, SqlUserRoleStore


def get_role_service(db: Session = Depends(get_db)) -> RoleService:
    return RoleService(
        store=SqlUserRoleStore(db),
        directory=SqlOrgDirectory(db),
        audit=SqlAuditSink(db),
    )


def get_access_context(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    roles: RoleService = Depends(get_role_service),
) -> AccessContext:
    """The caller's context, built fresh for this request."""
    request.state.user_id = user_id
    ctx = roles.resolve_active_role(user_id)
    request.state.role_name = ctx.role_name
    return ctx
