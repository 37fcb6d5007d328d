"""SQLAlchemy-backed collaborator stores for role resolution.

Every method here is a thin query. Integrity violations are reported as a
rejected write; any other database failure becomes
:class:`DependencyUnavailableError` so that it is never mistaken for a
policy denial.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hrms.core.exceptions import DependencyUnavailableError
from hrms.models.user import User
from hrms.models.user_role import UserRole
from hrms.schemas.access import ActiveRole, OrgInfo


@contextmanager
def _store_call(db: Session, what: str):
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise DependencyUnavailableError(f"{what} failed: {e.__class__.__name__}") from e


class SqlUserRoleStore:
    """User/role store over the ``user_roles`` table."""

    def __init__(self, db: Session):
        self.db = db

    def get_active_roles(self, user_id: int) -> List[ActiveRole]:
        with _store_call(self.db, "Role lookup"):
            rows = (
                self.db.query(UserRole)
                .filter(UserRole.user_id == user_id, UserRole.is_active.is_(True))
                .order_by(UserRole.assigned_at, UserRole.id)
                .all()
            )
        return [ActiveRole.model_validate(row) for row in rows]

    def insert_active_role(
        self, user_id: int, role_name: str, assigned_by: Optional[int] = None
    ) -> bool:
        """Insert an active role row. False when a constraint rejects it."""
        with _store_call(self.db, "Role insert"):
            try:
                self.db.add(UserRole(
                    user_id=user_id,
                    role_name=role_name,
                    is_active=True,
                    active_user_id=user_id,
                    assigned_by=assigned_by,
                ))
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                return False
        return True

    def replace_active_role(
        self, user_id: int, role_name: str, assigned_by: Optional[int] = None
    ) -> bool:
        """Deactivate the current role(s) and activate ``role_name`` in one transaction."""
        now = datetime.now(timezone.utc)
        with _store_call(self.db, "Role replace"):
            try:
                (
                    self.db.query(UserRole)
                    .filter(UserRole.user_id == user_id, UserRole.is_active.is_(True))
                    .update(
                        {"is_active": False, "active_user_id": None, "deactivated_at": now},
                        synchronize_session=False,
                    )
                )
                self.db.add(UserRole(
                    user_id=user_id,
                    role_name=role_name,
                    is_active=True,
                    active_user_id=user_id,
                    assigned_by=assigned_by,
                ))
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                return False
        return True

    def list_roles(self, user_id: int) -> List[UserRole]:
        with _store_call(self.db, "Role history lookup"):
            return (
                self.db.query(UserRole)
                .filter(UserRole.user_id == user_id)
                .order_by(UserRole.assigned_at.desc(), UserRole.id.desc())
                .all()
            )


class SqlOrgDirectory:
    """Organizational data source over the ``users`` table."""

    def __init__(self, db: Session):
        self.db = db

    def get_user_org_info(self, user_id: int) -> Optional[OrgInfo]:
        with _store_call(self.db, "Org lookup"):
            user = self.db.get(User, user_id)
        if user is None:
            return None
        return OrgInfo(department_id=user.department_id, manager_id=user.manager_id)

    def list_active_user_ids(self) -> List[int]:
        with _store_call(self.db, "User listing"):
            rows = (
                self.db.query(User.id)
                .filter(User.is_active.is_(True))
                .order_by(User.id)
                .all()
            )
        return [row.id for row in rows]
