"""Models package: import all models so metadata discovers them."""

from hrms.models.role import Role
from hrms.models.user import User
from hrms.models.user_role import UserRole
from hrms.models.employee import Employee
from hrms.models.audit_log import AuditLog

__all__ = ["Role", "User", "UserRole", "Employee", "AuditLog"]
