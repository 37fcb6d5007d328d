"""Employees API router: records projected per viewer."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrms.api.deps import get_access_context
from hrms.core.exceptions import not_found
from hrms.db.session import get_db
from hrms.models.employee import Employee
from hrms.schemas.access import AccessContext, Action, PermissionRequest
from hrms.services.permission_service import permission_evaluator
from hrms.services.visibility_service import EMPLOYEE_POLICY, visibility_filter

router = APIRouter(prefix="/employees", tags=["employees"])

READ_ANY = PermissionRequest(resource=EMPLOYEE_POLICY.resource, action=Action.read)
READ_OWN = PermissionRequest(resource=EMPLOYEE_POLICY.resource, action=Action.read, allow_self=True)


@router.get("/")
async def list_employees(
    department_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_access_context),
):
    """List employees, each record projected for the caller."""
    permission_evaluator.require(ctx, READ_ANY)

    query = db.query(Employee)
    if department_id:
        query = query.filter(Employee.department_id == department_id)
    total = query.count()
    employees = (
        query.order_by(Employee.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "employees": visibility_filter.project_many(
            (e.to_dict() for e in employees),
            lambda record: ctx.for_subject(record.get("user_id")),
        ),
        "total": total,
        "page": page,
    }


@router.get("/{employee_id}")
async def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_access_context),
):
    """Fetch one employee record; anyone may read their own."""
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise not_found(f"Employee {employee_id} not found")

    viewer = ctx.for_subject(employee.user_id)
    permission_evaluator.require(viewer, READ_OWN)
    return visibility_filter.project(employee.to_dict(), viewer)
