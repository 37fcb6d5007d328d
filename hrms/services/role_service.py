"""Role resolution: the caller's single active role and access context."""

import logging
from typing import List, Optional, Protocol

from hrms.core.exceptions import AuthorizationError, ResourceNotFoundError, UnknownRoleError
from hrms.schemas.access import (
    AccessContext, ActiveRole, EnsureRoleResult, EnsureRoleStatus, OrgInfo,
)
from hrms.services.role_registry import RoleRegistry, get_registry

logger = logging.getLogger("hrms.roles")

AUTO_ASSIGN_REASON = "auto-assigned default role"


class UserRoleStore(Protocol):
    def get_active_roles(self, user_id: int) -> List[ActiveRole]: ...

    def insert_active_role(
        self, user_id: int, role_name: str, assigned_by: Optional[int] = None
    ) -> bool: ...

    def replace_active_role(
        self, user_id: int, role_name: str, assigned_by: Optional[int] = None
    ) -> bool: ...

    def list_roles(self, user_id: int) -> list: ...


class OrgDirectory(Protocol):
    def get_user_org_info(self, user_id: int) -> Optional[OrgInfo]: ...


class AuditSink(Protocol):
    def record_role_assignment(
        self, user_id: int, role_name: str, reason: str, actor_id: Optional[int] = None
    ) -> None: ...


class RoleService:
    """Resolves active roles and builds per-request access contexts.

    The only write this service makes on its own is the default-role
    assignment for a user who has none (see :meth:`ensure_role`).
    """

    def __init__(
        self,
        store: UserRoleStore,
        directory: Optional[OrgDirectory] = None,
        audit: Optional[AuditSink] = None,
        registry: Optional[RoleRegistry] = None,
    ):
        self.store = store
        self.directory = directory
        self.audit = audit
        self.registry = registry or get_registry()

    def _first_active(self, user_id: int) -> Optional[ActiveRole]:
        roles = [r for r in self.store.get_active_roles(user_id) if r.is_active]
        if len(roles) > 1:
            # Unresolved: first found wins, not highest level.
            logger.warning(
                "User %s has %d active roles (%s); using '%s'",
                user_id, len(roles), ", ".join(r.role_name for r in roles), roles[0].role_name,
            )
        return roles[0] if roles else None

    def _record(self, user_id: int, role_name: str, reason: str, actor_id: Optional[int] = None) -> None:
        if self.audit is None:
            return
        try:
            self.audit.record_role_assignment(user_id, role_name, reason, actor_id=actor_id)
        except Exception:
            logger.exception("Audit sink failed for user %s", user_id)

    def ensure_role(self, user_id: int) -> EnsureRoleResult:
        """Make sure ``user_id`` has an active role, assigning the default if not.

        Idempotent. A concurrent insert that wins the uniqueness race is
        reported as ``already_exists`` after a re-read.
        """
        existing = self._first_active(user_id)
        if existing is not None:
            return EnsureRoleResult(
                user_id=user_id, status=EnsureRoleStatus.already_exists, role_name=existing.role_name,
            )

        default_role = self.registry.default_role
        if self.store.insert_active_role(user_id, default_role):
            logger.info("Assigned default role '%s' to user %s", default_role, user_id)
            self._record(user_id, default_role, AUTO_ASSIGN_REASON)
            return EnsureRoleResult(
                user_id=user_id, status=EnsureRoleStatus.created, role_name=default_role,
            )

        existing = self._first_active(user_id)
        if existing is not None:
            logger.debug("Default role for user %s was assigned concurrently", user_id)
            return EnsureRoleResult(
                user_id=user_id, status=EnsureRoleStatus.already_exists, role_name=existing.role_name,
            )

        logger.error("Default role assignment rejected for user %s", user_id)
        return EnsureRoleResult(
            user_id=user_id,
            status=EnsureRoleStatus.failed,
            message="Role store rejected the default role assignment",
        )

    def resolve_active_role(self, user_id: int) -> AccessContext:
        """Access context for ``user_id`` with its single active role.

        Raises:
            AuthorizationError: the user had no role and auto-assignment failed.
            UnknownRoleError: the stored role is not registered.
            DependencyUnavailableError: a collaborator call failed.
        """
        if user_id is None or user_id == "":
            raise ValueError("user_id is required")

        active = self._first_active(user_id)
        if active is None:
            result = self.ensure_role(user_id)
            if not result.ok:
                raise AuthorizationError("User has no active role")
            role_name = result.role_name
        else:
            role_name = active.role_name

        return self._build_context(user_id, role_name)

    def peek_context(self, user_id: int) -> Optional[AccessContext]:
        """Like :meth:`resolve_active_role` but never writes; None if role-less."""
        active = self._first_active(user_id)
        if active is None:
            return None
        return self._build_context(user_id, active.role_name)

    def target_context(self, user_id: int) -> AccessContext:
        """Context for a user other than the caller, without writing.

        A role-less user is judged at the default role it would be healed to.

        Raises:
            ResourceNotFoundError: the user does not exist.
        """
        context = self.peek_context(user_id)
        if context is not None:
            return context
        if self.directory is None or self.directory.get_user_org_info(user_id) is None:
            raise ResourceNotFoundError(f"User {user_id} not found")
        return self._build_context(user_id, self.registry.default_role)

    def _build_context(self, user_id: int, role_name: str) -> AccessContext:
        role = self.registry.get(role_name)
        org = self.directory.get_user_org_info(user_id) if self.directory else None
        return AccessContext(
            user_id=user_id,
            role_name=role.name,
            hierarchy_level=role.level,
            permissions=role.permissions,
            department_id=org.department_id if org else None,
            manager_id=org.manager_id if org else None,
        )

    def context_for(self, user_id: int, subject_user_id: Optional[int] = None) -> AccessContext:
        """Resolve ``user_id`` and mark ownership against a record subject."""
        return self.resolve_active_role(user_id).for_subject(subject_user_id)

    def assign_role(self, user_id: int, role_name: str, assigned_by: Optional[int] = None) -> AccessContext:
        """Replace the user's active role with ``role_name``."""
        if not self.registry.contains(role_name):
            raise UnknownRoleError(role_name)
        if not self.store.replace_active_role(user_id, role_name, assigned_by=assigned_by):
            raise ResourceNotFoundError(f"Cannot assign role '{role_name}' to user {user_id}")
        logger.info("User %s assigned role '%s' by %s", user_id, role_name, assigned_by)
        self._record(user_id, role_name, "role changed", actor_id=assigned_by)
        return self.resolve_active_role(user_id)

    def role_history(self, user_id: int) -> list:
        return self.store.list_roles(user_id)
