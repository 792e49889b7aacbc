"""
Unit tests for the drive access request lifecycle.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from utils.access_request_engine import DriveAccessManager
from utils.notification_sink import (
    COLOR_APPROVED,
    COLOR_REJECTED,
    DRIVE_ACCESS_DECIDED,
    DRIVE_ACCESS_REQUESTED,
    build_discord_message,
)
from utils.request_repository import RequestRepository


@pytest.fixture
def manager(db, sink):
    return DriveAccessManager(db, notifier=sink)


def submit(manager, user, reason="need textbook"):
    return manager.submit(user, user.id, user.email, reason)


@pytest.mark.unit
class TestSubmit:
    """Tests for creating drive access requests."""

    def test_submit_creates_pending_request(self, manager, student, sink):
        request = submit(manager, student)

        assert request.status == "pending"
        assert request.user_id == student.id
        assert request.user_email == student.email
        assert request.reason == "need textbook"
        assert request.approved_by is None
        assert sink.kinds() == [DRIVE_ACCESS_REQUESTED]
        _, payload = sink.events[0]
        assert payload["request_id"] == request.id
        assert payload["user_name"] == "Student One"
        assert payload["user_email"] == student.email
        assert payload["reason"] == "need textbook"

    def test_submit_trims_reason(self, manager, student):
        request = manager.submit(student, student.id, student.email, "  for the course  ")
        assert request.reason == "for the course"

    def test_contact_email_may_differ_from_profile(self, manager, student):
        request = manager.submit(student, student.id, "other@example.com", "reason")
        assert request.user_email == "other@example.com"

    @pytest.mark.parametrize(
        "user_id, email, reason",
        [(None, "a@example.com", "r"), ("id", "", "r"), ("id", "a@example.com", "   ")],
    )
    def test_missing_fields_rejected(self, manager, student, user_id, email, reason):
        with pytest.raises(ValidationError):
            manager.submit(student, user_id, email, reason)

    def test_second_pending_request_conflicts(self, manager, student, sink):
        submit(manager, student)

        with pytest.raises(ConflictError, match="already have a pending request"):
            submit(manager, student, reason="again")

        assert len(manager.list_for_user(student)) == 1
        assert sink.kinds() == [DRIVE_ACCESS_REQUESTED]

    def test_rejected_request_does_not_block_resubmission(self, manager, student, admin):
        first = submit(manager, student)
        manager.decide(admin, first.id, "rejected", "not now", admin.id)

        second = submit(manager, student, reason="second try")

        assert second.status == "pending"
        assert second.id != first.id

    def test_other_users_are_independent(self, manager, student, make_user):
        other = make_user(email="other@example.com", full_name="Other")
        submit(manager, student)
        assert submit(manager, other).status == "pending"

    def test_student_cannot_submit_for_someone_else(self, manager, student, make_user):
        other = make_user(email="other@example.com", full_name="Other")
        with pytest.raises(AuthorizationError):
            manager.submit(student, other.id, other.email, "reason")

    def test_admin_can_submit_for_a_member(self, manager, student, admin):
        request = manager.submit(admin, student.id, student.email, "on behalf")
        assert request.user_id == student.id

    def test_unknown_owner_not_found(self, manager, admin):
        with pytest.raises(NotFoundError):
            manager.submit(admin, "missing-user", "x@example.com", "reason")

    def test_store_rejects_second_pending_row(self, db, student):
        repository = RequestRepository(db)
        repository.create(student.id, student.email, "first")

        with pytest.raises(IntegrityError):
            repository.create(student.id, student.email, "racing insert")


@pytest.mark.unit
class TestDecide:
    """Tests for admin decisions."""

    def test_approve_grants_drive_access(self, manager, student, admin, sink, reload_user):
        request = submit(manager, student)

        decided = manager.decide(admin, request.id, "approved", "ok", admin.id)

        assert decided.status == "approved"
        assert decided.admin_notes == "ok"
        assert decided.approved_by == admin.id
        assert decided.requester.full_name == "Student One"
        assert decided.requester.email == student.email
        assert reload_user(student.id).drive_access_granted is True
        assert sink.kinds() == [DRIVE_ACCESS_REQUESTED, DRIVE_ACCESS_DECIDED]
        _, payload = sink.events[-1]
        assert payload["status"] == "approved"
        message = build_discord_message(DRIVE_ACCESS_DECIDED, payload, "footer")
        assert message["embeds"][0]["color"] == COLOR_APPROVED

    def test_reject_keeps_drive_access_off(self, manager, student, admin, sink, reload_user):
        request = submit(manager, student)

        decided = manager.decide(admin, request.id, "rejected", "no seats left", admin.id)

        assert decided.status == "rejected"
        assert decided.approved_by == admin.id
        assert reload_user(student.id).drive_access_granted is False
        _, payload = sink.events[-1]
        message = build_discord_message(DRIVE_ACCESS_DECIDED, payload, "footer")
        assert message["embeds"][0]["color"] == COLOR_REJECTED

    @pytest.mark.parametrize("notes", [None, "", "   "])
    def test_reject_requires_notes(self, manager, student, admin, notes):
        request = submit(manager, student)

        with pytest.raises(ValidationError):
            manager.decide(admin, request.id, "rejected", notes, admin.id)

        assert manager.list_for_user(student)[0].status == "pending"

    def test_approve_without_notes_is_allowed(self, manager, student, admin):
        request = submit(manager, student)
        decided = manager.decide(admin, request.id, "approved", None, admin.id)
        assert decided.status == "approved"
        assert decided.admin_notes is None

    def test_non_admin_is_forbidden(self, manager, student, sink):
        request = submit(manager, student)

        with pytest.raises(AuthorizationError):
            manager.decide(student, request.id, "approved", "ok", student.id)

        assert manager.list_for_user(student)[0].status == "pending"
        assert sink.kinds() == [DRIVE_ACCESS_REQUESTED]

    def test_non_admin_gets_forbidden_not_not_found(self, manager, student):
        with pytest.raises(AuthorizationError):
            manager.decide(student, "no-such-request", "approved", "ok", student.id)

    def test_unknown_request_not_found(self, manager, admin):
        with pytest.raises(NotFoundError):
            manager.decide(admin, "no-such-request", "approved", "ok", admin.id)

    def test_admin_id_must_be_caller(self, manager, student, admin, make_user):
        other_admin = make_user(email="admin2@example.com", full_name="Admin Two", role="admin")
        request = submit(manager, student)

        with pytest.raises(AuthorizationError):
            manager.decide(admin, request.id, "approved", "ok", other_admin.id)

    def test_unknown_status_rejected(self, manager, student, admin):
        request = submit(manager, student)
        with pytest.raises(ValidationError):
            manager.decide(admin, request.id, "pending", "ok", admin.id)

    def test_missing_fields_rejected(self, manager, admin):
        with pytest.raises(ValidationError):
            manager.decide(admin, None, "approved", "ok", admin.id)
        with pytest.raises(ValidationError):
            manager.decide(admin, "id", "approved", "ok", None)

    def test_redeciding_terminal_request_is_noop(self, manager, student, admin, sink, reload_user):
        request = submit(manager, student)
        manager.decide(admin, request.id, "approved", "ok", admin.id)

        again = manager.decide(admin, request.id, "approved", "again", admin.id)
        flipped = manager.decide(admin, request.id, "rejected", "changed mind", admin.id)

        assert again.status == "approved"
        assert again.admin_notes == "ok"
        assert flipped.status == "approved"
        assert reload_user(student.id).drive_access_granted is True
        assert sink.kinds().count(DRIVE_ACCESS_DECIDED) == 1


@pytest.mark.unit
class TestListing:
    """Tests for the read paths."""

    def test_list_all_newest_first_with_requester(self, db, manager, student, admin, make_user):
        other = make_user(email="other@example.com", full_name="Other")
        first = submit(manager, student)
        second = submit(manager, other)
        repository = RequestRepository(db)
        repository.find_by_id(first.id).created_at = "2024-01-01T00:00:00+00:00"
        repository.find_by_id(second.id).created_at = "2024-02-01T00:00:00+00:00"
        db.commit()

        requests = manager.list_all(admin)

        assert [r.id for r in requests] == [second.id, first.id]
        assert requests[0].requester.full_name == "Other"

    def test_list_all_is_admin_only(self, manager, student):
        with pytest.raises(AuthorizationError):
            manager.list_all(student)

    def test_list_for_user_defaults_to_caller(self, manager, student, make_user):
        other = make_user(email="other@example.com", full_name="Other")
        submit(manager, student)
        submit(manager, other)

        assert [r.user_id for r in manager.list_for_user(student)] == [student.id]

    def test_list_for_other_user_needs_admin(self, manager, student, admin, make_user):
        other = make_user(email="other@example.com", full_name="Other")
        with pytest.raises(AuthorizationError):
            manager.list_for_user(student, other.id)
        assert manager.list_for_user(admin, other.id) == []

    def test_latest_for_user(self, manager, student, admin):
        assert manager.latest_for_user(student) is None
        request = submit(manager, student)
        assert manager.latest_for_user(student).id == request.id
