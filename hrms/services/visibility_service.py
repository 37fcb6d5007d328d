"""Field-level visibility of records by viewer tier.

Every field of a resource is classified into a :class:`FieldCategory` by an
explicit :class:`FieldPolicy`. The viewer's tier decides which categories
survive projection; everything else is left out of the result entirely.
Omitted keys mean "not permitted", whereas a ``None`` value that does come
through is the stored value.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional

from hrms.schemas.access import AccessContext, Action
from hrms.services.permission_service import PermissionEvaluator, permission_for, permission_evaluator

logger = logging.getLogger("hrms.visibility")


class FieldCategory(str, Enum):
    identity = "identity"
    work = "work"
    contact = "contact"
    personal = "personal"
    compensation = "compensation"
    emergency_contact = "emergency_contact"
    private_notes = "private_notes"


class VisibilityTier(int, Enum):
    owner = 0
    scoped = 1
    minimal = 2


# Categories a scoped viewer sees only with "<resource>.read.<category>".
GATED_CATEGORIES: FrozenSet[FieldCategory] = frozenset({
    FieldCategory.compensation,
    FieldCategory.emergency_contact,
    FieldCategory.private_notes,
})

SCOPED_CATEGORIES: FrozenSet[FieldCategory] = frozenset({
    FieldCategory.identity,
    FieldCategory.work,
    FieldCategory.contact,
    FieldCategory.personal,
})

MINIMAL_CATEGORIES: FrozenSet[FieldCategory] = frozenset({FieldCategory.identity})

SCOPE_ALL = "all"
SCOPE_TEAM = "team"


class FieldPolicy:
    """Classification of every field of one resource."""

    def __init__(self, resource: str, fields: Mapping[str, FieldCategory]):
        if not resource:
            raise ValueError("resource must be non-empty")
        self.resource = resource
        self.fields: Dict[str, FieldCategory] = dict(fields)

    def category_of(self, field: str) -> Optional[FieldCategory]:
        return self.fields.get(field)

    def unclassified(self, record: Mapping[str, Any]) -> List[str]:
        """Keys of ``record`` this policy does not know about."""
        return [key for key in record if key not in self.fields]


EMPLOYEE_POLICY = FieldPolicy("employee", {
    "id": FieldCategory.identity,
    "employee_code": FieldCategory.identity,
    "user_id": FieldCategory.identity,
    "full_name": FieldCategory.identity,
    "department_id": FieldCategory.identity,
    "position": FieldCategory.identity,
    "manager_id": FieldCategory.work,
    "employment_status": FieldCategory.work,
    "employment_type": FieldCategory.work,
    "work_location": FieldCategory.work,
    "hire_date": FieldCategory.work,
    "skills": FieldCategory.work,
    "created_at": FieldCategory.work,
    "updated_at": FieldCategory.work,
    "email": FieldCategory.contact,
    "phone_number": FieldCategory.contact,
    "date_of_birth": FieldCategory.personal,
    "home_address": FieldCategory.personal,
    "salary": FieldCategory.compensation,
    "salary_grade": FieldCategory.compensation,
    "emergency_contact": FieldCategory.emergency_contact,
    "notes": FieldCategory.private_notes,
})


class VisibilityFilter:
    """Projects records down to what a viewer may see."""

    def __init__(self, evaluator: Optional[PermissionEvaluator] = None):
        self.evaluator = evaluator or permission_evaluator

    def tier_for(self, context: AccessContext, policy: FieldPolicy) -> VisibilityTier:
        if context.is_owner or self.evaluator.has_permission(
            context, permission_for(policy.resource, Action.read, SCOPE_ALL)
        ):
            return VisibilityTier.owner
        if permission_for(policy.resource, Action.read, SCOPE_TEAM) in context.permissions:
            return VisibilityTier.scoped
        return VisibilityTier.minimal

    def visible_categories(self, context: AccessContext, policy: FieldPolicy) -> FrozenSet[FieldCategory]:
        """Categories visible to ``context`` below the owner tier."""
        tier = self.tier_for(context, policy)
        if tier is VisibilityTier.owner:
            return frozenset(FieldCategory)
        if tier is VisibilityTier.minimal:
            return MINIMAL_CATEGORIES
        granted = {
            category for category in GATED_CATEGORIES
            if permission_for(policy.resource, Action.read, category.value) in context.permissions
        }
        return SCOPED_CATEGORIES | granted

    def project(
        self,
        record: Mapping[str, Any],
        context: AccessContext,
        policy: FieldPolicy = EMPLOYEE_POLICY,
    ) -> Dict[str, Any]:
        """Return a new dict holding only the fields ``context`` may see."""
        if self.tier_for(context, policy) is VisibilityTier.owner:
            return dict(record)

        visible = self.visible_categories(context, policy)
        projected: Dict[str, Any] = {}
        for key, value in record.items():
            category = policy.category_of(key)
            if category is None:
                logger.debug("Dropping unclassified %s field '%s'", policy.resource, key)
                continue
            if category in visible:
                projected[key] = value
        return projected

    def project_many(
        self,
        records: Iterable[Mapping[str, Any]],
        context_for_record: Callable[[Mapping[str, Any]], AccessContext],
        policy: FieldPolicy = EMPLOYEE_POLICY,
    ) -> List[Dict[str, Any]]:
        return [self.project(record, context_for_record(record), policy) for record in records]


visibility_filter = VisibilityFilter()
