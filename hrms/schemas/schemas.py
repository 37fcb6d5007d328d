"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from hrms.schemas.access import Action, EnsureRoleStatus


# ---- Access ----
class AccessContextOut(BaseModel):
    user_id: int
    role_name: str
    hierarchy_level: int
    permissions: List[str]
    department_id: Optional[str] = None
    manager_id: Optional[int] = None

class EnsureRoleOut(BaseModel):
    user_id: int
    status: EnsureRoleStatus
    role_name: Optional[str] = None
    message: Optional[str] = None

class PermissionCheckRequest(BaseModel):
    resource: str = Field(..., min_length=1)
    action: Action
    allow_self: bool = False
    subject_user_id: Optional[int] = None

class PermissionCheckResponse(BaseModel):
    allowed: bool
    permission: str

class AssignmentCheckRequest(BaseModel):
    target_user_id: int

class AssignmentCheckResponse(BaseModel):
    allowed: bool
    rule: Optional[str] = None
    detail: Optional[str] = None


# ---- Users / roles ----
class RoleOut(BaseModel):
    name: str
    level: int
    permissions: List[str]
    description: Optional[str] = None

class UserRoleOut(BaseModel):
    id: int
    role_name: str
    is_active: bool
    assigned_by: Optional[int] = None
    assigned_at: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RoleAssignRequest(BaseModel):
    role_name: str = Field(..., min_length=1)

class AssignableUserOut(BaseModel):
    user_id: int
    role_name: str
    hierarchy_level: int
    department_id: Optional[str] = None


# ---- Audit ----
class AuditLogOut(BaseModel):
    id: int
    actor_id: Optional[int] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

