"""Seed the super-admin user from env vars."""

import logging

from sqlalchemy.orm import Session

from hrms.core.config import settings
from hrms.models.role import Role
from hrms.models.user import User
from hrms.services.role_service import RoleService
from hrms.services.stores import SqlUserRoleStore

logger = logging.getLogger("hrms")


def seed_super_admin(db: Session) -> User:
    """Create the super-admin user if not already present and give it the top role."""
    if db.query(Role).filter(Role.name == settings.SUPER_ADMIN_ROLE).first() is None:
        raise RuntimeError(f"{settings.SUPER_ADMIN_ROLE} role not found. Run seed_roles first.")

    admin = db.query(User).filter(User.email == settings.SUPER_ADMIN_EMAIL).first()
    if admin is None:
        admin = User(email=settings.SUPER_ADMIN_EMAIL, full_name="Super Admin", is_active=True)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info("Created super admin: %s", settings.SUPER_ADMIN_EMAIL)

    roles = RoleService(SqlUserRoleStore(db))
    current = roles.peek_context(admin.id)
    if current is None or current.role_name != settings.SUPER_ADMIN_ROLE:
        roles.assign_role(admin.id, settings.SUPER_ADMIN_ROLE)
    return admin
