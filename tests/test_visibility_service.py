"""Tests for VisibilityFilter projections."""

from datetime import date
from decimal import Decimal

import pytest

from hrms.schemas.access import AccessContext
from hrms.services.visibility_service import (
    EMPLOYEE_POLICY, FieldCategory, FieldPolicy, VisibilityFilter, VisibilityTier,
)

SUBJECT_ID = 42


@pytest.fixture
def record():
    return {
        "id": 10,
        "employee_code": "EMP-010",
        "user_id": SUBJECT_ID,
        "full_name": "Dana Ruiz",
        "department_id": "D1",
        "position": "Analyst",
        "manager_id": 7,
        "email": "dana@example.com",
        "phone_number": None,
        "work_location": "HQ",
        "employment_status": "active",
        "employment_type": "full_time",
        "hire_date": date(2021, 3, 1),
        "skills": ["sql"],
        "date_of_birth": date(1990, 5, 17),
        "home_address": "1 Main St",
        "salary": Decimal("72000.00"),
        "salary_grade": "G5",
        "emergency_contact": {"name": "Sam", "phone": "555"},
        "notes": "On improvement plan",
        "created_at": None,
        "updated_at": None,
    }


@pytest.fixture
def vf():
    return VisibilityFilter()


class TestTiers:
    def test_owner_tier(self, vf, make_context):
        ctx = make_context("employee", user_id=SUBJECT_ID).for_subject(SUBJECT_ID)
        assert vf.tier_for(ctx, EMPLOYEE_POLICY) is VisibilityTier.owner

    def test_read_all_is_owner_tier(self, vf, make_context):
        assert vf.tier_for(make_context("hr-admin"), EMPLOYEE_POLICY) is VisibilityTier.owner

    def test_wildcard_is_owner_tier(self, vf, make_context):
        assert vf.tier_for(make_context("super-admin"), EMPLOYEE_POLICY) is VisibilityTier.owner

    def test_team_permission_is_scoped(self, vf, make_context):
        assert vf.tier_for(make_context("manager"), EMPLOYEE_POLICY) is VisibilityTier.scoped
        assert vf.tier_for(make_context("hr-staff"), EMPLOYEE_POLICY) is VisibilityTier.scoped

    def test_peer_employee_is_minimal(self, vf, make_context):
        assert vf.tier_for(make_context("employee"), EMPLOYEE_POLICY) is VisibilityTier.minimal


class TestProject:
    def test_owner_sees_everything(self, vf, record, make_context):
        ctx = make_context("employee", user_id=SUBJECT_ID).for_subject(SUBJECT_ID)
        result = vf.project(record, ctx)
        assert result == record
        assert result is not record

    def test_hr_staff_gets_no_salary_key(self, vf, record, make_context):
        result = vf.project(record, make_context("hr-staff"))
        assert "salary" not in result
        assert "salary_grade" not in result
        assert result["emergency_contact"] == record["emergency_contact"]
        assert "notes" not in result

    def test_manager_scoped_projection(self, vf, record, make_context):
        result = vf.project(record, make_context("manager"))
        assert result["email"] == "dana@example.com"
        assert result["work_location"] == "HQ"
        assert result["date_of_birth"] == date(1990, 5, 17)
        assert result["home_address"] == "1 Main St"
        for omitted in ("salary", "salary_grade", "emergency_contact", "notes"):
            assert omitted not in result

    def test_scoped_tier_withholds_only_gated_categories(self, vf, record, make_context):
        result = vf.project(record, make_context("hr-staff"))
        expected = {
            key for key in record
            if EMPLOYEE_POLICY.category_of(key) not in {FieldCategory.compensation, FieldCategory.private_notes}
        }
        assert set(result) == expected

    def test_sub_permission_unlocks_category(self, vf, record):
        ctx = AccessContext(
            user_id=1, role_name="payroll-manager", hierarchy_level=3,
            permissions=frozenset({"employee.read.team", "employee.read.compensation"}),
        )
        result = vf.project(record, ctx)
        assert result["salary"] == Decimal("72000.00")
        assert result["salary_grade"] == "G5"
        assert "notes" not in result

    def test_peer_gets_minimal_projection(self, vf, record, make_context):
        result = vf.project(record, make_context("employee", user_id=99))
        assert set(result) == {"id", "employee_code", "user_id", "full_name", "department_id", "position"}

    def test_legitimate_null_survives(self, vf, record, make_context):
        result = vf.project(record, make_context("manager"))
        assert "phone_number" in result
        assert result["phone_number"] is None

    def test_unclassified_fields_dropped_below_owner(self, vf, record, make_context):
        record = dict(record, ssn="123-45-6789")
        assert "ssn" not in vf.project(record, make_context("manager"))
        assert "ssn" not in vf.project(record, make_context("employee", user_id=99))
        assert vf.project(record, make_context("hr-admin"))["ssn"] == "123-45-6789"
        assert EMPLOYEE_POLICY.unclassified(record) == ["ssn"]

    def test_deterministic(self, vf, record, make_context):
        ctx = make_context("hr-staff")
        first = vf.project(record, ctx)
        second = vf.project(record, ctx)
        assert first == second
        assert list(first) == list(second)

    def test_input_not_mutated(self, vf, record, make_context):
        original = dict(record)
        vf.project(record, make_context("employee", user_id=99))
        assert record == original

    @pytest.mark.parametrize("role", ["employee", "hr-staff", "manager", "hr-admin", "super-admin"])
    def test_owner_projection_is_superset(self, vf, record, make_context, role):
        owner = vf.project(record, make_context("employee", user_id=SUBJECT_ID).for_subject(SUBJECT_ID))
        other = vf.project(record, make_context(role, user_id=5).for_subject(SUBJECT_ID))
        assert set(other) <= set(owner)
        for key, value in other.items():
            assert owner[key] == value


class TestCustomPolicy:
    def test_other_resource(self, vf):
        policy = FieldPolicy("candidate", {
            "name": FieldCategory.identity,
            "expected_salary": FieldCategory.compensation,
        })
        ctx = AccessContext(
            user_id=1, role_name="recruiter", hierarchy_level=2,
            permissions=frozenset({"candidate.read.team"}),
        )
        result = vf.project({"name": "Lee", "expected_salary": 90000}, ctx, policy)
        assert result == {"name": "Lee"}

    def test_project_many(self, vf, record, make_context):
        viewer = make_context("employee", user_id=SUBJECT_ID)
        other = dict(record, user_id=77, id=11)
        results = vf.project_many(
            [record, other], lambda r: viewer.for_subject(r["user_id"]),
        )
        assert results[0]["salary"] == record["salary"]
        assert "salary" not in results[1]

    def test_empty_resource_rejected(self):
        with pytest.raises(ValueError):
            FieldPolicy("", {})
