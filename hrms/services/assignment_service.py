"""Task assignment authority between two users.

Rules are evaluated in a fixed order and the first one that matches decides.
Rule 2 is a hard stop: an actor without the assign capability is denied no
matter what relationship they have with the target.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional

from hrms.core.config import settings
from hrms.core.exceptions import AuthorizationError
from hrms.schemas.access import AccessContext, Action, PermissionRequest
from hrms.services.permission_service import PermissionEvaluator, permission_evaluator
from hrms.services.role_registry import RoleRegistry, get_registry

logger = logging.getLogger("hrms.assignment")


class AssignmentRule(str, Enum):
    top_tier = "top_tier"
    seniority = "seniority"
    peer_manager_same_department = "peer_manager_same_department"
    direct_report = "direct_report"
    hr_scope = "hr_scope"


class AssignmentAuthorizer:
    """Decides whether an actor may assign a work item to a target user."""

    def __init__(
        self,
        registry: Optional[RoleRegistry] = None,
        evaluator: Optional[PermissionEvaluator] = None,
        resource: Optional[str] = None,
        manager_role: Optional[str] = None,
        hr_roles: Optional[Iterable[str]] = None,
        super_admin_role: Optional[str] = None,
    ):
        self.registry = registry or get_registry()
        self.evaluator = evaluator or permission_evaluator
        self.assign_request = PermissionRequest(
            resource=resource or settings.ASSIGN_RESOURCE, action=Action.assign,
        )
        self.manager_level = self.registry.level_of(manager_role or settings.MANAGER_ROLE)
        self.super_admin_role = self.registry.get(super_admin_role or settings.SUPER_ADMIN_ROLE).name
        self.hr_roles = frozenset(hr_roles if hr_roles is not None else settings.HR_ROLES)
        for role_name in self.hr_roles:
            self.registry.get(role_name)

    def check(self, actor: AccessContext, target: AccessContext) -> AssignmentRule:
        """Return the rule that allows the assignment.

        Raises:
            AuthorizationError: no rule allows it.
        """
        if (
            actor.role_name == self.super_admin_role
            or self.evaluator.has_wildcard(actor)
            or actor.hierarchy_level >= self.registry.top_level
        ):
            return self._allow(actor, target, AssignmentRule.top_tier)

        if not self.evaluator.is_allowed(actor, self.assign_request):
            logger.info("User %s (%s) lacks assign capability", actor.user_id, actor.role_name)
            raise AuthorizationError("Insufficient permissions to assign tasks")

        if actor.hierarchy_level > target.hierarchy_level:
            return self._allow(actor, target, AssignmentRule.seniority)

        if (
            actor.hierarchy_level == target.hierarchy_level
            and actor.hierarchy_level >= self.manager_level
            and actor.department_id is not None
            and actor.department_id == target.department_id
        ):
            return self._allow(actor, target, AssignmentRule.peer_manager_same_department)

        if target.manager_id is not None and target.manager_id == actor.user_id:
            return self._allow(actor, target, AssignmentRule.direct_report)

        if actor.role_name in self.hr_roles and target.hierarchy_level <= actor.hierarchy_level:
            return self._allow(actor, target, AssignmentRule.hr_scope)

        logger.info(
            "User %s (%s) denied assigning to user %s (%s)",
            actor.user_id, actor.role_name, target.user_id, target.role_name,
        )
        raise AuthorizationError("Cannot assign task: insufficient authority over assignee")

    def can_assign(self, actor: AccessContext, target: AccessContext) -> bool:
        try:
            self.check(actor, target)
        except AuthorizationError:
            return False
        return True

    def assignable_users(
        self, actor: AccessContext, candidates: Iterable[AccessContext]
    ) -> List[AccessContext]:
        """Candidates ``actor`` may assign to, in input order, excluding the actor."""
        return [
            target for target in candidates
            if target.user_id != actor.user_id and self.can_assign(actor, target)
        ]

    @staticmethod
    def _allow(actor: AccessContext, target: AccessContext, rule: AssignmentRule) -> AssignmentRule:
        logger.debug(
            "User %s may assign to user %s via %s", actor.user_id, target.user_id, rule.value,
        )
        return rule
