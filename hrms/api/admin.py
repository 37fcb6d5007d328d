"""Admin / Audit API router."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hrms.api.deps import get_access_context, get_role_service
from hrms.core.exceptions import forbidden, not_found, service_unavailable
from hrms.db.session import get_db
from hrms.schemas.access import AccessContext
from hrms.schemas.schemas import AuditLogOut, RoleOut, RoleAssignRequest, UserRoleOut
from hrms.services.audit_service import audit_service
from hrms.services.permission_service import permission_evaluator
from hrms.services.role_registry import get_registry
from hrms.services.role_service import RoleService

router = APIRouter(prefix="/admin", tags=["admin"])


def _require(ctx: AccessContext, permission: str) -> None:
    if not permission_evaluator.has_permission(ctx, permission):
        raise forbidden(f"Requires '{permission}'")


@router.get("/roles", response_model=list[RoleOut])
async def list_roles(ctx: AccessContext = Depends(get_access_context)):
    """Registered roles, lowest level first."""
    return [
        RoleOut(
            name=r.name,
            level=r.level,
            permissions=sorted(r.permissions),
            description=r.description,
        )
        for r in get_registry().roles()
    ]


@router.get("/users/{user_id}/roles", response_model=list[UserRoleOut])
async def user_role_history(
    user_id: int,
    ctx: AccessContext = Depends(get_access_context),
    roles: RoleService = Depends(get_role_service),
):
    """Every role the user has held, newest first."""
    _require(ctx, "roles.manage")
    return [UserRoleOut.model_validate(r) for r in roles.role_history(user_id)]


@router.put("/users/{user_id}/role")
async def assign_user_role(
    user_id: int,
    body: RoleAssignRequest,
    ctx: AccessContext = Depends(get_access_context),
    roles: RoleService = Depends(get_role_service),
):
    """Replace a user's active role (requires roles.assign)."""
    _require(ctx, "roles.assign")
    registry = get_registry()
    if not registry.contains(body.role_name):
        raise not_found(f"Role '{body.role_name}' not found")
    if registry.level_of(body.role_name) > ctx.hierarchy_level:
        raise forbidden("Cannot grant a role above your own level")
    updated = roles.assign_role(user_id, body.role_name, assigned_by=ctx.user_id)
    return {
        "user_id": updated.user_id,
        "role_name": updated.role_name,
        "hierarchy_level": updated.hierarchy_level,
    }


@router.get("/audit")
async def get_audit_logs(
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    actor_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_access_context),
):
    """Query audit logs (requires audit.read)."""
    _require(ctx, "audit.read")
    result = audit_service.query_logs(db, actor_id, action, resource_type, page, page_size)
    return {
        "logs": [AuditLogOut.model_validate(log) for log in result["logs"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Database reachability."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        raise service_unavailable("Database unavailable")
    return {"database": "ok", "status": "healthy"}
