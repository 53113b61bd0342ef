# tests/services/test_location_assignment_service.py
"""
Tests for LocationAssignmentService and the role rules.

    employee     at least 1 location
    admin        exactly 1 location
    super_admin  any number, including none
"""

import uuid

import pytest

from cultivation.models import Role
from cultivation.schemas.assignments import AssignmentCreate
from cultivation.services.exceptions import (
    AssignmentNotFoundError,
    AssignmentRuleError,
    DuplicateAssignmentError,
    LocationNotFoundError,
    UserNotFoundError,
)
from cultivation.services.location_assignment_service import (
    LocationAssignmentService,
    validate_assignment_count,
)
from tests.conftest import create_location, create_user


@pytest.fixture
def service() -> LocationAssignmentService:
    return LocationAssignmentService()


@pytest.fixture
def site_b(db):
    return create_location(db, "Site B")


class TestValidateAssignmentCount:
    """Tests for the pure rule check."""

    @pytest.mark.parametrize("role,count", [
        (Role.EMPLOYEE, 1),
        (Role.EMPLOYEE, 5),
        (Role.ADMIN, 1),
        (Role.SUPER_ADMIN, 0),
        (Role.SUPER_ADMIN, 3),
    ])
    def test_allowed(self, role, count):
        """Should accept counts within the role's limits."""
        validate_assignment_count(role, count)

    @pytest.mark.parametrize("role,count", [
        (Role.EMPLOYEE, 0),
        (Role.ADMIN, 0),
        (Role.ADMIN, 2),
    ])
    def test_rejected(self, role, count):
        """Should raise AssignmentRuleError outside the limits."""
        with pytest.raises(AssignmentRuleError):
            validate_assignment_count(role, count)

    def test_message_names_user(self):
        """Should mention the user id when given."""
        user_id = uuid.uuid4()

        with pytest.raises(AssignmentRuleError, match=str(user_id)) as exc_info:
            validate_assignment_count(Role.ADMIN, 2, user_id)

        assert exc_info.value.user_id == user_id


class TestAssign:
    """Tests for assign."""

    def test_employee_second_site(self, db, service, employee, site_b):
        """Employees can work at several sites."""
        assignment = service.assign(db, AssignmentCreate(user_id=employee.id, location_id=site_b.id))

        assert assignment.location_id == site_b.id
        assert service.count_for_user(db, employee.id) == 2

    def test_admin_second_site(self, db, service, admin, site_b):
        """Should raise AssignmentRuleError for an admin's second site."""
        with pytest.raises(AssignmentRuleError):
            service.assign(db, AssignmentCreate(user_id=admin.id, location_id=site_b.id))

        assert service.count_for_user(db, admin.id) == 1

    def test_super_admin_any_sites(self, db, service, site_a, site_b):
        """Super admins are exempt."""
        boss = create_user(db, email="boss@example.com", role=Role.SUPER_ADMIN)

        service.assign(db, AssignmentCreate(user_id=boss.id, location_id=site_a.id))
        service.assign(db, AssignmentCreate(user_id=boss.id, location_id=site_b.id))

        assert service.count_for_user(db, boss.id) == 2

    def test_duplicate(self, db, service, employee, site_a):
        """Should raise DuplicateAssignmentError."""
        with pytest.raises(DuplicateAssignmentError):
            service.assign(db, AssignmentCreate(user_id=employee.id, location_id=site_a.id))

    def test_unknown_user(self, db, service, site_a):
        """Should raise UserNotFoundError."""
        with pytest.raises(UserNotFoundError):
            service.assign(db, AssignmentCreate(user_id=uuid.uuid4(), location_id=site_a.id))

    def test_unknown_location(self, db, service, employee):
        """Should raise LocationNotFoundError."""
        with pytest.raises(LocationNotFoundError):
            service.assign(db, AssignmentCreate(user_id=employee.id, location_id=uuid.uuid4()))


class TestRevoke:
    """Tests for revoke."""

    def test_revoke_one_of_two(self, db, service, site_a, site_b):
        """Should remove one site and keep the other."""
        user = create_user(db, locations=[site_a, site_b])

        service.revoke(db, user.id, site_a.id)

        assert [loc.name for loc in service.list_locations_for_user(db, user.id)] == ["Site B"]

    def test_revoke_last_site(self, db, service, employee, site_a):
        """Should raise AssignmentRuleError for the last site of an employee."""
        with pytest.raises(AssignmentRuleError):
            service.revoke(db, employee.id, site_a.id)

        assert service.get_assignment(db, employee.id, site_a.id) is not None

    def test_revoke_super_admin_last_site(self, db, service, site_a):
        """Super admins can end up with no site."""
        boss = create_user(db, email="boss@example.com", role=Role.SUPER_ADMIN, locations=[site_a])

        service.revoke(db, boss.id, site_a.id)

        assert service.count_for_user(db, boss.id) == 0

    def test_revoke_missing(self, db, service, employee, site_b):
        """Should raise AssignmentNotFoundError."""
        with pytest.raises(AssignmentNotFoundError):
            service.revoke(db, employee.id, site_b.id)


class TestSetLocations:
    """Tests for set_locations."""

    def test_move_admin(self, db, service, admin, site_b):
        """An admin can be moved to another site in one step."""
        locations = service.set_locations(db, admin.id, [site_b.id])

        assert [loc.name for loc in locations] == ["Site B"]
        assert service.count_for_user(db, admin.id) == 1

    def test_admin_two_sites(self, db, service, admin, site_a, site_b):
        """Should raise AssignmentRuleError and leave assignments alone."""
        with pytest.raises(AssignmentRuleError):
            service.set_locations(db, admin.id, [site_a.id, site_b.id])

        assert [loc.name for loc in service.list_locations_for_user(db, admin.id)] == ["Site A"]

    def test_empty_for_employee(self, db, service, employee):
        """Should raise AssignmentRuleError."""
        with pytest.raises(AssignmentRuleError):
            service.set_locations(db, employee.id, [])

    def test_unknown_location(self, db, service, employee, site_a):
        """Should raise LocationNotFoundError and keep the old sites."""
        with pytest.raises(LocationNotFoundError):
            service.set_locations(db, employee.id, [site_a.id, uuid.uuid4()])

        assert service.count_for_user(db, employee.id) == 1

    def test_repeated_ids_collapse(self, db, service, employee, site_a, site_b):
        """The same id twice counts once."""
        locations = service.set_locations(db, employee.id, [site_b.id, site_b.id, site_a.id])

        assert [loc.name for loc in locations] == ["Site A", "Site B"]


class TestListing:
    """Tests for list_locations_for_user and list_users_for_location."""

    def test_users_for_location_by_role(self, db, service, site_a, employee, admin):
        """Should filter users of a location by role."""
        users = service.list_users_for_location(db, site_a.id)
        admins = service.list_users_for_location(db, site_a.id, role=Role.ADMIN)

        assert {u.id for u in users} == {employee.id, admin.id}
        assert [u.id for u in admins] == [admin.id]

    def test_unknown_location(self, db, service):
        """Should raise LocationNotFoundError."""
        with pytest.raises(LocationNotFoundError):
            service.list_users_for_location(db, uuid.uuid4())

    def test_unknown_user(self, db, service):
        """Should raise UserNotFoundError."""
        with pytest.raises(UserNotFoundError):
            service.list_locations_for_user(db, uuid.uuid4())
