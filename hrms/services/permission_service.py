"""Permission evaluation against a caller's access context."""

from typing import Optional, Union

from hrms.core.config import settings
from hrms.core.exceptions import AuthorizationError
from hrms.schemas.access import AccessContext, Action, PermissionRequest


def permission_for(resource: str, action: Union[Action, str], scope: Optional[str] = None) -> str:
    """Build the ``resource.action[.scope]`` permission string.

    Every permission string the services compare against is assembled here.
    """
    action_value = action.value if isinstance(action, Action) else action
    if not resource or not action_value:
        raise ValueError("resource and action must be non-empty")
    if scope:
        return f"{resource}.{action_value}.{scope}"
    return f"{resource}.{action_value}"


class PermissionEvaluator:
    """Decides allow/deny for a request. Pure: no I/O, no state."""

    def __init__(self, wildcard: Optional[str] = None):
        self.wildcard = wildcard or settings.WILDCARD_PERMISSION

    def has_wildcard(self, context: AccessContext) -> bool:
        return self.wildcard in context.permissions

    def has_permission(self, context: AccessContext, permission: str) -> bool:
        """Exact match on a raw permission string, or wildcard."""
        if not permission:
            raise ValueError("permission must be non-empty")
        return self.has_wildcard(context) or permission in context.permissions

    def is_allowed(self, context: AccessContext, request: PermissionRequest) -> bool:
        # Ownership is checked on its own, before role permissions.
        if self.has_wildcard(context):
            return True
        if request.allow_self and context.is_owner:
            return True
        return permission_for(request.resource, request.action) in context.permissions

    def require(self, context: AccessContext, request: PermissionRequest) -> None:
        """Raise :class:`AuthorizationError` unless ``request`` is allowed."""
        if not self.is_allowed(context, request):
            raise AuthorizationError(
                f"Role '{context.role_name}' may not {request.action.value} {request.resource}"
            )


permission_evaluator = PermissionEvaluator()
