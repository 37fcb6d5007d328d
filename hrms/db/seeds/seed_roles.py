"""Mirror the role registry into the roles table."""

import json
import logging

from sqlalchemy.orm import Session

from hrms.models.role import Role
from hrms.services.role_registry import RoleRegistry, get_registry

logger = logging.getLogger("hrms")


def seed_roles(db: Session, registry: RoleRegistry = None) -> int:
    """Insert or refresh one row per registered role. Returns the role count."""
    registry = registry or get_registry()
    roles = registry.roles()
    for definition in roles:
        row = db.query(Role).filter(Role.name == definition.name).first()
        if row is None:
            row = Role(name=definition.name)
            db.add(row)
        row.level = definition.level
        row.description = definition.description
        row.permissions_json = json.dumps(sorted(definition.permissions))

    db.commit()
    logger.info("Seeded %d roles", len(roles))
    return len(roles)
