import logging
import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.household import Household
from app.models.membership import HouseholdMember, MemberRole
from app.models.invitation import InvitationStatus
from app.services.household_service import HouseholdService
from app.services.invitation_service import InvitationService
from app.core.exception import (
    AuthorizationException,
    DuplicateMemberException,
    InternalServerException,
    LastAdminException,
    ResourceNotFoundException,
    ValidationException,
)


@pytest.fixture
def household(db_session: Session, alice):
    return HouseholdService(db_session).create_household("Movie Night", alice.id)


@pytest.fixture
def household_with_bob(db_session: Session, household, bob):
    HouseholdService(db_session).add_member(household.id, bob.id)
    return household


@pytest.mark.unit
class TestCreateHousehold:
    """Household creation and the creator's admin membership."""

    def test_create_household_makes_creator_admin(self, db_session: Session, alice):
        """Test the creator becomes the household's only admin."""
        service = HouseholdService(db_session)

        household = service.create_household("  Movie Night  ", alice.id)

        assert household.id is not None
        assert household.name == "Movie Night"
        assert household.created_by_id == alice.id

        members = service.list_members(household.id, alice.id)
        assert len(members) == 1
        assert members[0]["user_id"] == alice.id
        assert members[0]["role"] == MemberRole.ADMIN
        assert members[0]["display_name"] == "Alice"

    def test_created_household_is_listed_and_readable(self, db_session: Session, alice):
        """Test a new household shows up for its creator."""
        service = HouseholdService(db_session)
        household = service.create_household("Movie Night", alice.id)

        listed = service.list_households_for_account(alice.id)
        fetched = service.get_household(household.id, alice.id)

        assert [h.id for h in listed] == [household.id]
        assert fetched.name == "Movie Night"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_create_household_rejects_blank_name(self, db_session: Session, alice, name):
        """Test blank household names are rejected before any insert."""
        service = HouseholdService(db_session)

        with pytest.raises(ValidationException):
            service.create_household(name, alice.id)

        assert db_session.query(Household).count() == 0

    def test_failed_admin_insert_deletes_household(self, db_session: Session, alice, monkeypatch):
        """Test a failed admin insert leaves no household behind."""
        service = HouseholdService(db_session)

        def broken_add_member(*args, **kwargs):
            raise SQLAlchemyError("insert failed")

        monkeypatch.setattr(service.household_repo, "add_member", broken_add_member)

        with pytest.raises(InternalServerException) as exc_info:
            service.create_household("Orphan", alice.id)

        assert "Failed to create household" in exc_info.value.detail
        assert db_session.query(Household).count() == 0
        assert service.list_households_for_account(alice.id) == []

    def test_failed_compensation_keeps_original_error(
        self, db_session: Session, alice, monkeypatch, caplog
    ):
        """Test a failing compensating delete is logged and still surfaces as an internal error."""
        service = HouseholdService(db_session)

        def broken_add_member(*args, **kwargs):
            raise SQLAlchemyError("insert failed")

        def broken_delete(*args, **kwargs):
            raise SQLAlchemyError("delete failed")

        monkeypatch.setattr(service.household_repo, "add_member", broken_add_member)
        monkeypatch.setattr(service.household_repo, "delete", broken_delete)

        with caplog.at_level(logging.ERROR, logger="app.services.household_service"):
            with pytest.raises(InternalServerException) as exc_info:
                service.create_household("Orphan", alice.id)

        assert str(exc_info.value.__cause__) == "insert failed"
        orphan = db_session.query(Household).one()
        assert any(
            f"Could not delete household {orphan.id}" in r.getMessage() for r in caplog.records
        )


@pytest.mark.unit
class TestHouseholdVisibility:

    def test_outsider_cannot_read_household(self, db_session: Session, household, carol):
        """Test non-members get not found for household and members."""
        service = HouseholdService(db_session)

        with pytest.raises(ResourceNotFoundException):
            service.get_household(household.id, carol.id)

        with pytest.raises(ResourceNotFoundException):
            service.list_members(household.id, carol.id)

    def test_missing_household_is_not_found(self, db_session: Session, alice):
        """Test reading a household that does not exist."""
        with pytest.raises(ResourceNotFoundException):
            HouseholdService(db_session).get_household(9999, alice.id)

    def test_member_sees_household(self, db_session: Session, household_with_bob, bob):
        """Test a plain member can read and list the household."""
        service = HouseholdService(db_session)

        assert service.get_household(household_with_bob.id, bob.id).id == household_with_bob.id
        assert [h.id for h in service.list_households_for_account(bob.id)] == [household_with_bob.id]


@pytest.mark.unit
class TestRenameHousehold:

    def test_creator_can_rename(self, db_session: Session, household, alice):
        """Test the creator can rename the household."""
        service = HouseholdService(db_session)

        renamed = service.update_household_name(household.id, "Film Club", alice.id)

        assert renamed.name == "Film Club"

    def test_member_cannot_rename(self, db_session: Session, household_with_bob, bob):
        """Test a plain member cannot rename the household."""
        service = HouseholdService(db_session)

        with pytest.raises(AuthorizationException):
            service.update_household_name(household_with_bob.id, "Bob's House", bob.id)

        assert service.get_household(household_with_bob.id, bob.id).name == "Movie Night"

    def test_rename_refreshes_invitation_household_name(self, db_session: Session, household, alice):
        """Test renaming updates the name cached on invitations."""
        outcome = InvitationService(db_session).create_invitation(
            household.id, "dave@example.com", alice.id
        )

        HouseholdService(db_session).update_household_name(household.id, "Film Club", alice.id)

        invitation = InvitationService(db_session).get_invitation(outcome.invitation_id)
        assert invitation.household_name == "Film Club"


@pytest.mark.unit
class TestMembership:

    def test_add_member_defaults_to_member_role(self, db_session: Session, household, bob):
        """Test direct adds default to the member role."""
        member = HouseholdService(db_session).add_member(household.id, bob.id)

        assert member.role == MemberRole.MEMBER
        assert member.is_admin is False

    def test_duplicate_member_is_rejected(self, db_session: Session, household_with_bob, bob):
        """Test adding an existing member raises and adds no row."""
        service = HouseholdService(db_session)

        with pytest.raises(DuplicateMemberException):
            service.add_member(household_with_bob.id, bob.id)

        count = db_session.query(HouseholdMember).filter(
            HouseholdMember.household_id == household_with_bob.id
        ).count()
        assert count == 2

    def test_add_member_as_requires_creator(self, db_session: Session, household_with_bob, bob, carol):
        """Test only the creator may add members directly."""
        service = HouseholdService(db_session)

        with pytest.raises(AuthorizationException):
            service.add_member_as(bob.id, household_with_bob.id, carol.id)

    def test_add_member_as_creator(self, db_session: Session, household, alice, carol):
        """Test the creator can add a member directly."""
        service = HouseholdService(db_session)

        member = service.add_member_as(alice.id, household.id, carol.id)

        assert member.user_id == carol.id


@pytest.mark.unit
class TestRemoveMember:

    def test_creator_removes_member(self, db_session: Session, household_with_bob, alice, bob):
        """Test the creator can remove a member."""
        service = HouseholdService(db_session)

        result = service.remove_member(household_with_bob.id, bob.id, alice.id)

        assert result == {"message": "Member removed successfully"}
        user_ids = [m["user_id"] for m in service.list_members(household_with_bob.id, alice.id)]
        assert user_ids == [alice.id]

    def test_member_can_leave(self, db_session: Session, household_with_bob, bob):
        """Test a member can remove themself."""
        service = HouseholdService(db_session)

        service.remove_member(household_with_bob.id, bob.id, bob.id)

        assert service.list_households_for_account(bob.id) == []

    def test_member_cannot_remove_someone_else(
        self, db_session: Session, household_with_bob, alice, bob, carol
    ):
        """Test a member cannot remove another member."""
        service = HouseholdService(db_session)
        service.add_member(household_with_bob.id, carol.id)

        with pytest.raises(AuthorizationException):
            service.remove_member(household_with_bob.id, carol.id, bob.id)

        assert len(service.list_members(household_with_bob.id, alice.id)) == 3

    def test_last_admin_cannot_leave(self, db_session: Session, household_with_bob, alice):
        """Test the sole admin cannot leave the household."""
        service = HouseholdService(db_session)

        with pytest.raises(LastAdminException) as exc_info:
            service.remove_member(household_with_bob.id, alice.id, alice.id)

        assert exc_info.value.status_code == 409
        assert service.get_household(household_with_bob.id, alice.id) is not None
        roles = {m["user_id"]: m["role"] for m in service.list_members(household_with_bob.id, alice.id)}
        assert roles[alice.id] == MemberRole.ADMIN

    def test_last_admin_guard_applies_to_other_requesters(
        self, db_session: Session, household_with_bob, alice, bob
    ):
        """Test nobody else can remove the sole admin either."""
        with pytest.raises(LastAdminException):
            HouseholdService(db_session).remove_member(household_with_bob.id, alice.id, bob.id)

    def test_admin_can_leave_when_another_admin_remains(
        self, db_session: Session, household, alice, bob
    ):
        """Test an admin may leave while another admin remains."""
        service = HouseholdService(db_session)
        service.add_member(household.id, bob.id, role=MemberRole.ADMIN)

        service.remove_member(household.id, alice.id, alice.id)

        members = service.list_members(household.id, bob.id)
        assert [m["user_id"] for m in members] == [bob.id]

    def test_removing_non_member_is_not_found(self, db_session: Session, household, alice, carol):
        """Test removing an account that is not a member."""
        with pytest.raises(ResourceNotFoundException):
            HouseholdService(db_session).remove_member(household.id, carol.id, alice.id)

    def test_outsider_cannot_remove(self, db_session: Session, household_with_bob, bob, carol):
        """Test an outsider gets not found when removing members."""
        with pytest.raises(ResourceNotFoundException):
            HouseholdService(db_session).remove_member(household_with_bob.id, bob.id, carol.id)

    def test_removal_deletes_pending_invitations_for_email(
        self, db_session: Session, household_with_bob, alice, bob
    ):
        """Test removal clears the member's pending invitations."""
        invitations = InvitationService(db_session)
        household_id = household_with_bob.id
        # Pending invitation left over from before bob joined directly
        outcome = invitations.create_invitation(household_id, bob.email, alice.id)
        assert outcome.success

        HouseholdService(db_session).remove_member(household_id, bob.id, alice.id)

        pending = [
            i for i in invitations.list_invitations(household_id, alice.id)
            if i.status == InvitationStatus.PENDING
        ]
        assert pending == []

    def test_cleanup_failure_does_not_fail_removal(
        self, db_session: Session, household_with_bob, alice, bob, monkeypatch, caplog
    ):
        """Test a failing invitation cleanup is logged and the removal still succeeds."""
        service = HouseholdService(db_session)

        def broken_delete(*args, **kwargs):
            raise OperationalError("DELETE FROM household_invitations", {}, Exception("database is locked"))

        monkeypatch.setattr(service.invitation_repo, "delete_for_email", broken_delete)

        with caplog.at_level(logging.WARNING, logger="app.services.household_service"):
            result = service.remove_member(household_with_bob.id, bob.id, alice.id)

        assert result == {"message": "Member removed successfully"}
        user_ids = [m["user_id"] for m in service.list_members(household_with_bob.id, alice.id)]
        assert user_ids == [alice.id]
        assert any(
            r.levelno == logging.WARNING and "Could not clean up pending invitations" in r.getMessage()
            for r in caplog.records
        )
