"""Tests for RoleService resolution, healing, and the SQL stores."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from hrms.core.exceptions import (
    AuthorizationError, DependencyUnavailableError, ResourceNotFoundError, UnknownRoleError,
)
from hrms.models.audit_log import AuditLog
from hrms.models.user_role import UserRole
from hrms.schemas.access import ActiveRole, EnsureRoleStatus, OrgInfo
from hrms.services.audit_service import SqlAuditSink
from hrms.services.role_service import AUTO_ASSIGN_REASON, RoleService
from hrms.services.stores import SqlOrgDirectory, SqlUserRoleStore


class FakeRoleStore:
    """In-memory store with the one-active-role-per-user constraint."""

    def __init__(self):
        self.rows = {}
        self.inserts = 0

    def get_active_roles(self, user_id):
        return [ActiveRole(role_name=name) for name in self.rows.get(user_id, [])]

    def insert_active_role(self, user_id, role_name, assigned_by=None):
        self.inserts += 1
        if self.rows.get(user_id):
            return False
        self.rows[user_id] = [role_name]
        return True

    def replace_active_role(self, user_id, role_name, assigned_by=None):
        self.rows[user_id] = [role_name]
        return True

    def list_roles(self, user_id):
        return list(self.rows.get(user_id, []))


@pytest.fixture
def store():
    return FakeRoleStore()


@pytest.fixture
def audit():
    return MagicMock()


@pytest.fixture
def service(store, audit, registry):
    return RoleService(store, audit=audit, registry=registry)


class TestResolveActiveRole:
    def test_existing_role(self, service, store):
        store.rows[1] = ["manager"]
        ctx = service.resolve_active_role(1)
        assert ctx.role_name == "manager"
        assert ctx.hierarchy_level == 3
        assert "tasks.assign" in ctx.permissions
        assert ctx.is_owner is False
        assert store.inserts == 0

    def test_role_less_user_is_healed_once(self, service, store, audit):
        first = service.resolve_active_role(5)
        second = service.resolve_active_role(5)
        assert first.role_name == second.role_name == "employee"
        assert first.hierarchy_level == 1
        assert store.inserts == 1
        audit.record_role_assignment.assert_called_once_with(
            5, "employee", AUTO_ASSIGN_REASON, actor_id=None,
        )

    def test_first_active_role_wins(self, service, store):
        store.rows[1] = ["hr-staff", "super-admin"]
        assert service.resolve_active_role(1).role_name == "hr-staff"

    def test_inactive_rows_ignored(self, registry):
        store = MagicMock()
        store.get_active_roles.return_value = [
            ActiveRole(role_name="super-admin", is_active=False),
            ActiveRole(role_name="manager"),
        ]
        service = RoleService(store, registry=registry)
        assert service.resolve_active_role(1).role_name == "manager"

    def test_unknown_stored_role(self, service, store):
        store.rows[1] = ["janitor"]
        with pytest.raises(UnknownRoleError):
            service.resolve_active_role(1)

    def test_rejected_auto_assignment(self, registry):
        store = MagicMock()
        store.get_active_roles.return_value = []
        store.insert_active_role.return_value = False
        service = RoleService(store, registry=registry)
        with pytest.raises(AuthorizationError, match="User has no active role"):
            service.resolve_active_role(1)

    def test_concurrent_assignment_is_reread(self, registry, audit):
        store = MagicMock()
        # empty on resolve, empty on ensure, then the other request's row
        store.get_active_roles.side_effect = [[], [], [ActiveRole(role_name="employee")]]
        store.insert_active_role.return_value = False
        service = RoleService(store, audit=audit, registry=registry)

        ctx = service.resolve_active_role(1)

        assert ctx.role_name == "employee"
        store.insert_active_role.assert_called_once_with(1, "employee")
        audit.record_role_assignment.assert_not_called()

    def test_store_outage_is_not_a_denial(self, registry):
        store = MagicMock()
        store.get_active_roles.side_effect = DependencyUnavailableError("Role lookup failed")
        service = RoleService(store, registry=registry)
        with pytest.raises(DependencyUnavailableError):
            service.resolve_active_role(1)

    def test_audit_failure_does_not_block(self, service, audit):
        audit.record_role_assignment.side_effect = RuntimeError("sink down")
        assert service.resolve_active_role(9).role_name == "employee"

    def test_org_info_fills_context(self, store, registry):
        directory = MagicMock()
        directory.get_user_org_info.return_value = OrgInfo(department_id="D1", manager_id=3)
        store.rows[1] = ["manager"]
        ctx = RoleService(store, directory=directory, registry=registry).resolve_active_role(1)
        assert ctx.department_id == "D1"
        assert ctx.manager_id == 3

    def test_empty_user_id_rejected(self, service):
        with pytest.raises(ValueError):
            service.resolve_active_role(None)


class TestEnsureRole:
    def test_statuses(self, service, store):
        assert service.ensure_role(1).status is EnsureRoleStatus.created
        result = service.ensure_role(1)
        assert result.status is EnsureRoleStatus.already_exists
        assert result.role_name == "employee"
        assert store.inserts == 1

    def test_failed(self, registry):
        store = MagicMock()
        store.get_active_roles.return_value = []
        store.insert_active_role.return_value = False
        result = RoleService(store, registry=registry).ensure_role(1)
        assert result.status is EnsureRoleStatus.failed
        assert result.ok is False
        assert result.role_name is None


class TestContextFor:
    def test_ownership_only_for_same_identity(self, service, store):
        store.rows[1] = ["manager"]
        assert service.context_for(1, subject_user_id=1).is_owner is True
        assert service.context_for(1, subject_user_id=2).is_owner is False
        assert service.context_for(1).is_owner is False


class TestAssignRole:
    def test_assign(self, service, store, audit):
        ctx = service.assign_role(4, "hr-admin", assigned_by=1)
        assert ctx.role_name == "hr-admin"
        assert store.rows[4] == ["hr-admin"]
        audit.record_role_assignment.assert_called_once_with(4, "hr-admin", "role changed", actor_id=1)

    def test_unknown_role(self, service):
        with pytest.raises(UnknownRoleError):
            service.assign_role(4, "janitor")

    def test_rejected(self, registry):
        store = MagicMock()
        store.replace_active_role.return_value = False
        with pytest.raises(ResourceNotFoundError):
            RoleService(store, registry=registry).assign_role(4, "manager")

    def test_peek_never_writes(self, service, store):
        assert service.peek_context(8) is None
        assert store.inserts == 0


class TestTargetContext:
    def test_existing_role(self, store, registry):
        directory = MagicMock()
        directory.get_user_org_info.return_value = OrgInfo(department_id="D2")
        store.rows[5] = ["manager"]
        ctx = RoleService(store, directory=directory, registry=registry).target_context(5)
        assert ctx.role_name == "manager"
        assert ctx.department_id == "D2"

    def test_role_less_user_judged_at_default_without_writing(self, store, audit, registry):
        directory = MagicMock()
        directory.get_user_org_info.return_value = OrgInfo(department_id="D1")
        ctx = RoleService(store, directory=directory, audit=audit, registry=registry).target_context(6)
        assert ctx.role_name == "employee"
        assert ctx.hierarchy_level == 1
        assert store.inserts == 0
        assert store.rows == {}
        audit.record_role_assignment.assert_not_called()

    def test_unknown_user(self, store, registry):
        directory = MagicMock()
        directory.get_user_org_info.return_value = None
        with pytest.raises(ResourceNotFoundError):
            RoleService(store, directory=directory, registry=registry).target_context(9999)
        assert store.inserts == 0


class TestSqlStores:
    """The SQLAlchemy collaborators against in-memory SQLite."""

    def _service(self, db, registry):
        return RoleService(SqlUserRoleStore(db), SqlOrgDirectory(db), SqlAuditSink(db), registry)

    def test_heal_writes_one_row_and_audits(self, db, registry, make_user):
        user = make_user(department_id="D1")
        service = self._service(db, registry)

        first = service.resolve_active_role(user.id)
        second = service.resolve_active_role(user.id)

        assert first.role_name == second.role_name == "employee"
        assert first.department_id == "D1"
        rows = db.query(UserRole).filter(UserRole.user_id == user.id).all()
        assert len(rows) == 1
        assert rows[0].active_user_id == user.id
        audit = db.query(AuditLog).filter(AuditLog.resource_id == str(user.id)).all()
        assert len(audit) == 1
        assert audit[0].reason == AUTO_ASSIGN_REASON

    def test_second_active_insert_rejected(self, db, make_user):
        user = make_user()
        store = SqlUserRoleStore(db)
        assert store.insert_active_role(user.id, "employee") is True
        assert store.insert_active_role(user.id, "manager") is False
        assert [r.role_name for r in store.get_active_roles(user.id)] == ["employee"]

    def test_insert_for_missing_user_rejected(self, db, registry):
        service = self._service(db, registry)
        with pytest.raises(AuthorizationError):
            service.resolve_active_role(999)

    def test_replace_keeps_history(self, db, registry, make_user):
        admin = make_user()
        user = make_user()
        service = self._service(db, registry)
        service.resolve_active_role(user.id)

        ctx = service.assign_role(user.id, "manager", assigned_by=admin.id)

        assert ctx.role_name == "manager"
        history = service.role_history(user.id)
        assert [r.role_name for r in history] == ["manager", "employee"]
        assert [r.is_active for r in history] == [True, False]
        assert history[1].active_user_id is None
        assert history[1].deactivated_at is not None

    def test_org_directory(self, db, make_user):
        boss = make_user(department_id="D1")
        report = make_user(department_id="D1", manager_id=boss.id)
        make_user(is_active=False)
        directory = SqlOrgDirectory(db)

        assert directory.get_user_org_info(report.id) == OrgInfo(department_id="D1", manager_id=boss.id)
        assert directory.get_user_org_info(12345) is None
        assert directory.list_active_user_ids() == [boss.id, report.id]

    def test_operational_error_becomes_unavailable(self):
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT 1", {}, Exception("gone away"))
        with pytest.raises(DependencyUnavailableError):
            SqlUserRoleStore(db).get_active_roles(1)
        db.rollback.assert_called_once()

    def test_audit_sink_swallows_db_errors(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("read only"))
        SqlAuditSink(db).record_role_assignment(1, "employee", "test")
        db.rollback.assert_called_once()
