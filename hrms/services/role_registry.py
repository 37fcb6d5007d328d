"""Role registry: static table of role names, hierarchy levels and permissions.

The registry is built once at process start and is read-only afterwards, so
it can be shared by any number of concurrent requests.
"""

import json
from functools import lru_cache
from typing import Dict, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.core.config import settings
from hrms.core.exceptions import RoleConfigurationError, UnknownRoleError

MIN_TIERS = 5


class RoleDefinition(BaseModel):
    """A role: unique name, hierarchy level (higher = more authority), permissions."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    level: int
    permissions: FrozenSet[str] = frozenset()
    description: Optional[str] = None


DEFAULT_ROLES: List[dict] = [
    {
        "name": "employee",
        "level": 1,
        "description": "Self-service access to own profile and tasks",
        "permissions": [
            "tasks.read", "tasks.update", "profile.update",
        ],
    },
    {
        "name": "hr-staff",
        "level": 2,
        "description": "Maintain employee records and recruitment",
        "permissions": [
            "employee.create", "employee.read", "employee.update",
            "employee.read.team", "employee.read.emergency_contact",
            "recruitment.manage", "tasks.read", "tasks.update",
        ],
    },
    {
        "name": "manager",
        "level": 3,
        "description": "Lead a team, assign and review its work",
        "permissions": [
            "employee.read", "employee.update", "employee.read.team",
            "tasks.create", "tasks.read", "tasks.update", "tasks.assign",
            "reports.generate",
        ],
    },
    {
        "name": "hr-admin",
        "level": 4,
        "description": "Full HR administration including roles and payroll",
        "permissions": [
            "employee.create", "employee.read", "employee.update", "employee.delete",
            "employee.read.all", "roles.manage", "roles.assign", "audit.read",
            "reports.generate", "payroll.manage", "recruitment.manage",
            "tasks.create", "tasks.read", "tasks.update", "tasks.delete", "tasks.assign",
        ],
    },
    {
        "name": "super-admin",
        "level": 5,
        "description": "Unrestricted system access",
        "permissions": ["*"],
    },
]


class RoleRegistry:
    """Lookup table of role definitions keyed by name."""

    def __init__(self, roles: Iterable[RoleDefinition], default_role: Optional[str] = None):
        ordered = sorted(roles, key=lambda r: r.level)
        by_name: Dict[str, RoleDefinition] = {}
        levels = set()
        for role in ordered:
            if role.name in by_name:
                raise RoleConfigurationError(f"Duplicate role name '{role.name}'")
            if role.level in levels:
                raise RoleConfigurationError(
                    f"Role '{role.name}' reuses hierarchy level {role.level}; levels must be unique"
                )
            by_name[role.name] = role
            levels.add(role.level)

        if len(ordered) < MIN_TIERS:
            raise RoleConfigurationError(
                f"Role table defines {len(ordered)} tiers, at least {MIN_TIERS} are required"
            )

        self._roles = by_name
        self._ordered = ordered
        self._default_role = default_role or ordered[0].name
        if self._default_role not in self._roles:
            raise RoleConfigurationError(f"Default role '{self._default_role}' is not registered")

    def get(self, role_name: str) -> RoleDefinition:
        try:
            return self._roles[role_name]
        except KeyError:
            raise UnknownRoleError(role_name)

    def level_of(self, role_name: str) -> int:
        return self.get(role_name).level

    def permissions_of(self, role_name: str) -> FrozenSet[str]:
        return self.get(role_name).permissions

    def contains(self, role_name: str) -> bool:
        return role_name in self._roles

    def roles(self) -> List[RoleDefinition]:
        """All roles, lowest level first."""
        return list(self._ordered)

    @property
    def default_role(self) -> str:
        return self._default_role

    @property
    def lowest(self) -> RoleDefinition:
        return self._ordered[0]

    @property
    def top_level(self) -> int:
        return self._ordered[-1].level


def load_registry(path: Optional[str] = None) -> RoleRegistry:
    """Build a registry from ``path`` (JSON list of roles) or the built-in table."""
    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise RoleConfigurationError(f"Cannot read role table {path}: {e}")
    else:
        raw = DEFAULT_ROLES

    if not isinstance(raw, list):
        raise RoleConfigurationError("Role table must be a JSON list")

    try:
        roles = [RoleDefinition(**entry) for entry in raw]
    except (TypeError, ValueError) as e:
        raise RoleConfigurationError(f"Invalid role entry: {e}")
    return RoleRegistry(roles, default_role=settings.DEFAULT_ROLE)


@lru_cache(maxsize=1)
def get_registry() -> RoleRegistry:
    """Process-wide registry, loaded on first use."""
    return load_registry(settings.ROLES_FILE)
