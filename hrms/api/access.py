"""Access API router: caller context, role healing, permission checks."""

from fastapi import APIRouter, Depends, HTTPException

from hrms.api.deps import get_access_context, get_role_service
from hrms.core.exceptions import AuthorizationError
from hrms.core.security import get_current_user_id
from hrms.schemas.access import AccessContext, PermissionRequest
from hrms.schemas.schemas import (
    AccessContextOut, EnsureRoleOut,
    PermissionCheckRequest, PermissionCheckResponse,
    AssignmentCheckRequest, AssignmentCheckResponse,
)
from hrms.services.assignment_service import AssignmentAuthorizer
from hrms.services.permission_service import permission_evaluator, permission_for
from hrms.services.role_service import RoleService

router = APIRouter(prefix="/access", tags=["access"])


def context_out(ctx: AccessContext) -> AccessContextOut:
    return AccessContextOut(
        user_id=ctx.user_id,
        role_name=ctx.role_name,
        hierarchy_level=ctx.hierarchy_level,
        permissions=sorted(ctx.permissions),
        department_id=ctx.department_id,
        manager_id=ctx.manager_id,
    )


@router.get("/me", response_model=AccessContextOut)
async def get_my_access(ctx: AccessContext = Depends(get_access_context)):
    """Current user's active role, level, permissions and org placement."""
    return context_out(ctx)


@router.post("/ensure-role", response_model=EnsureRoleOut)
async def ensure_role(
    user_id: int = Depends(get_current_user_id),
    roles: RoleService = Depends(get_role_service),
):
    """Assign the default role if the caller has none. Safe to call repeatedly."""
    result = roles.ensure_role(user_id)
    return EnsureRoleOut(**result.model_dump())


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    body: PermissionCheckRequest,
    ctx: AccessContext = Depends(get_access_context),
):
    """Would the caller be allowed ``resource.action``?"""
    try:
        request = PermissionRequest(resource=body.resource, action=body.action, allow_self=body.allow_self)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    allowed = permission_evaluator.is_allowed(ctx.for_subject(body.subject_user_id), request)
    return PermissionCheckResponse(
        allowed=allowed,
        permission=permission_for(request.resource, request.action),
    )


@router.post("/can-assign", response_model=AssignmentCheckResponse)
async def can_assign(
    body: AssignmentCheckRequest,
    ctx: AccessContext = Depends(get_access_context),
    roles: RoleService = Depends(get_role_service),
):
    """Would the caller be allowed to assign work to ``target_user_id``?"""
    target = roles.target_context(body.target_user_id)
    try:
        rule = AssignmentAuthorizer().check(ctx, target)
    except AuthorizationError as e:
        return AssignmentCheckResponse(allowed=False, detail=e.message)
    return AssignmentCheckResponse(allowed=True, rule=rule.value)
