"""Tasks API router: assignment authority checks."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hrms.api.deps import get_access_context, get_role_service
from hrms.db.session import get_db
from hrms.schemas.access import AccessContext
from hrms.schemas.schemas import AssignmentCheckRequest, AssignmentCheckResponse, AssignableUserOut
from hrms.services.assignment_service import AssignmentAuthorizer
from hrms.services.role_service import RoleService
from hrms.services.stores import SqlOrgDirectory

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("/assignments/validate", response_model=AssignmentCheckResponse)
async def validate_assignment(
    body: AssignmentCheckRequest,
    ctx: AccessContext = Depends(get_access_context),
    roles: RoleService = Depends(get_role_service),
):
    """Run before committing an assignment; 403 when the caller lacks authority."""
    target = roles.target_context(body.target_user_id)
    rule = AssignmentAuthorizer().check(ctx, target)
    return AssignmentCheckResponse(allowed=True, rule=rule.value)


@router.get("/assignable-users", response_model=list[AssignableUserOut])
async def assignable_users(
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_access_context),
    roles: RoleService = Depends(get_role_service),
):
    """Active users the caller may assign tasks to."""
    candidates = []
    for user_id in SqlOrgDirectory(db).list_active_user_ids():
        target = roles.peek_context(user_id)
        if target is not None:
            candidates.append(target)

    return [
        AssignableUserOut(
            user_id=t.user_id,
            role_name=t.role_name,
            hierarchy_level=t.hierarchy_level,
            department_id=t.department_id,
        )
        for t in AssignmentAuthorizer().assignable_users(ctx, candidates)
    ]
