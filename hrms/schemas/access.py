"""Value types passed between the access services.

All of them are immutable and live for a single request at most.
"""

from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Action(str, Enum):
    read = "read"
    create = "create"
    update = "update"
    delete = "delete"
    assign = "assign"


class AccessContext(BaseModel):
    """Who is asking: identity, role, permissions and org placement.

    ``is_owner`` is only ever true when ``user_id`` is the subject of the
    record being accessed; managing the subject or sharing a department
    does not count.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    role_name: str
    hierarchy_level: int
    permissions: FrozenSet[str] = frozenset()
    is_owner: bool = False
    department_id: Optional[str] = None
    manager_id: Optional[int] = None

    def for_subject(self, subject_user_id: Optional[int]) -> "AccessContext":
        """Copy of this context with ``is_owner`` set for the given record subject."""
        is_owner = subject_user_id is not None and subject_user_id == self.user_id
        if is_owner == self.is_owner:
            return self
        return self.model_copy(update={"is_owner": is_owner})


class PermissionRequest(BaseModel):
    """What is being attempted: ``resource.action``, optionally satisfiable by ownership."""

    model_config = ConfigDict(frozen=True)

    resource: str = Field(..., min_length=1)
    action: Action
    allow_self: bool = False

    @field_validator("resource")
    @classmethod
    def _resource_has_no_separator(cls, v: str) -> str:
        if "." in v or not v.strip():
            raise ValueError("resource must be a bare, non-blank tag")
        return v


class OrgInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    department_id: Optional[str] = None
    manager_id: Optional[int] = None


class ActiveRole(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    role_name: str
    is_active: bool = True
    assigned_at: Optional[datetime] = None


class EnsureRoleStatus(str, Enum):
    created = "created"
    already_exists = "already_exists"
    failed = "failed"


class EnsureRoleResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    status: EnsureRoleStatus
    role_name: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != EnsureRoleStatus.failed
