"""
Unit tests for admin user management and the authorization guard.
"""
import pytest

from core.exceptions import AuthorizationError, NotFoundError, ValidationError
from utils.authorization import AuthorizationGuard
from utils.user_manager import UserManager
from utils.user_repository import UserRepository


@pytest.fixture
def manager(db):
    return UserManager(db)


@pytest.mark.unit
class TestUserManager:
    """Test listing users and changing roles."""

    def test_list_users(self, manager, admin, student):
        emails = {user.email for user in manager.list_users(admin)}
        assert emails == {admin.email, student.email}

    def test_list_users_admin_only(self, manager, student):
        with pytest.raises(AuthorizationError):
            manager.list_users(student)

    def test_promote_student(self, manager, admin, student, reload_user):
        user = manager.set_role(admin, student.id, "admin")
        assert user.role == "admin"
        assert reload_user(student.id).is_admin

    def test_invalid_role(self, manager, admin, student):
        with pytest.raises(ValidationError):
            manager.set_role(admin, student.id, "superuser")

    def test_unknown_user(self, manager, admin):
        with pytest.raises(NotFoundError):
            manager.set_role(admin, "missing", "admin")

    def test_student_cannot_change_roles(self, manager, student):
        with pytest.raises(AuthorizationError):
            manager.set_role(student, student.id, "admin")


@pytest.mark.unit
class TestAuthorizationGuard:
    """Test role checks."""

    def test_admin_passes(self, db, admin):
        assert AuthorizationGuard(db).require_admin(admin).id == admin.id

    def test_student_denied(self, db, student):
        with pytest.raises(AuthorizationError):
            AuthorizationGuard(db).require_role(student, "admin")

    def test_role_is_reread_from_store(self, db, admin):
        UserRepository(db).update_fields(admin.id, role="student")

        # The caller object still claims admin
        with pytest.raises(AuthorizationError):
            AuthorizationGuard(db).require_admin(admin)

    def test_self_or_admin(self, db, student, admin):
        guard = AuthorizationGuard(db)
        assert guard.require_self_or_admin(student, student.id) is student
        assert guard.require_self_or_admin(admin, student.id).id == admin.id
        with pytest.raises(AuthorizationError):
            guard.require_self_or_admin(student, admin.id)

    def test_unknown_caller_denied(self, db, student):
        ghost = student.model_copy(update={"id": "ghost"})
        with pytest.raises(AuthorizationError):
            AuthorizationGuard(db).require_admin(ghost)

    def test_repository_rejects_unknown_columns(self, db, student):
        with pytest.raises(ValueError):
            UserRepository(db).update_fields(student.id, drive_access_granted=True)
