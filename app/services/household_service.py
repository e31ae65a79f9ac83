import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import List
from app.core import permissions
from app.models.household import Household
from app.models.membership import HouseholdMember, MemberRole
from app.models.invitation import InvitationStatus
from app.repositories.household_repository import HouseholdRepository
from app.repositories.account_repository import AccountRepository, normalize_email
from app.repositories.invitation_repository import InvitationRepository
from app.core.exception import (
    ResourceNotFoundException,
    AuthorizationException,
    DuplicateMemberException,
    LastAdminException,
    ValidationException,
    InternalServerException,
)

logger = logging.getLogger(__name__)


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationException("Household name cannot be empty", field="name")
    return name


class HouseholdService:
    """Service layer for household and membership operations."""

    def __init__(self, db: Session):
        self.db = db
        self.household_repo = HouseholdRepository(db)
        self.account_repo = AccountRepository(db)
        self.invitation_repo = InvitationRepository(db)

    def create_household(self, name: str, creator_id: str) -> Household:
        """
        Create a new household with the creator as its admin.

        The household row and the admin membership are two separate commits.
        If the membership insert fails, the household is deleted again before
        the error is surfaced, so no household is ever left without an admin.

        Args:
            name: Household name
            creator_id: Account creating the household

        Returns:
            Created household

        Raises:
            ValidationException: If the name is empty
            InternalServerException: If the admin membership could not be created
        """
        name = _clean_name(name)

        household = self.household_repo.create(
            Household(name=name, created_by_id=creator_id)
        )

        try:
            self.household_repo.add_member(household.id, creator_id, role=MemberRole.ADMIN)
        except Exception as ex:
            logger.error(
                f"Adding creator {creator_id} to household {household.id} failed; "
                f"deleting the household",
                exc_info=ex,
            )
            self.db.rollback()
            try:
                self.household_repo.delete(household.id)
            except SQLAlchemyError as cleanup_ex:
                self.db.rollback()
                logger.error(
                    f"Could not delete household {household.id} after failed admin insert; "
                    f"it is left without members",
                    exc_info=cleanup_ex,
                )
            raise InternalServerException("Failed to create household") from ex

        logger.info(f"Household {household.id} created by {creator_id}")
        return household

    def list_households_for_account(self, account_id: str) -> List[Household]:
        """Get all households an account belongs to."""
        return self.household_repo.get_user_households(account_id)

    def get_household(self, household_id: int, account_id: str) -> Household:
        """
        Get household details.

        Raises:
            ResourceNotFoundException: If the household does not exist or the
                account cannot see it
        """
        if not permissions.can_view_household(self.db, household_id, account_id):
            raise ResourceNotFoundException("Household", household_id)

        household = self.household_repo.get(household_id)
        if not household:
            raise ResourceNotFoundException("Household", household_id)
        return household

    def update_household_name(self, household_id: int, name: str, requester_id: str) -> Household:
        """
        Rename a household (creator only).

        The cached household name on its invitations is refreshed as well.

        Raises:
            ValidationException: If the name is empty
            ResourceNotFoundException: If the household is not visible
            AuthorizationException: If the requester is not the creator
        """
        name = _clean_name(name)
        household = self.get_household(household_id, requester_id)

        if not permissions.can_update_household(self.db, household_id, requester_id):
            raise AuthorizationException(message="Only the household creator can rename the household")

        household = self.household_repo.update(household.id, {"name": name})
        refreshed = self.invitation_repo.set_household_name(household.id, name)
        logger.info(f"Household {household.id} renamed; {refreshed} invitation(s) refreshed")
        return household

    def add_member(
        self, household_id: int, user_id: str, role: MemberRole = MemberRole.MEMBER
    ) -> HouseholdMember:
        """
        Add an account to a household.

        Raises:
            DuplicateMemberException: The account is already a member
        """
        try:
            return self.household_repo.add_member(household_id, user_id, role=role)
        except IntegrityError as ex:
            logger.info(f"Account {user_id} is already a member of household {household_id}")
            raise DuplicateMemberException(household_id, user_id) from ex

    def add_member_as(
        self,
        requester_id: str,
        household_id: int,
        user_id: str,
        role: MemberRole = MemberRole.MEMBER,
    ) -> HouseholdMember:
        """Directly add a member on behalf of the household creator."""
        self.get_household(household_id, requester_id)
        if not permissions.can_manage_members(self.db, household_id, requester_id):
            raise AuthorizationException(message="Only the household creator can add members")
        return self.add_member(household_id, user_id, role=role)

    def list_members(self, household_id: int, requester_id: str) -> List[dict]:
        """
        Get household members with their display data.

        Raises:
            ResourceNotFoundException: If the household is not visible
        """
        if not permissions.can_view_membership(self.db, household_id, requester_id):
            raise ResourceNotFoundException("Household", household_id)
        return self.household_repo.get_members(household_id)

    def remove_member(self, household_id: int, user_id: str, requester_id: str) -> dict:
        """
        Remove a member from a household.

        The household creator may remove anyone; any member may remove
        themself. The last admin can never be removed. Afterwards, pending
        invitations for the removed member's email are deleted so that a
        later re-invite starts clean; that cleanup is best-effort.

        Args:
            household_id: Household ID
            user_id: Member to remove
            requester_id: Account performing the removal

        Returns:
            Dict with status message

        Raises:
            ResourceNotFoundException: Household not visible, or target not a member
            LastAdminException: Target is the only admin
            AuthorizationException: Requester is neither creator nor the target
        """
        if not permissions.can_view_household(self.db, household_id, requester_id):
            raise ResourceNotFoundException("Household", household_id)

        # Locked where supported so two removals cannot both see "another admin left".
        admins = self.household_repo.get_admins(household_id, lock=True)
        if len(admins) == 1 and admins[0].user_id == user_id:
            self.db.rollback()
            raise LastAdminException()

        if not permissions.can_remove_member(self.db, household_id, user_id, requester_id):
            self.db.rollback()
            raise AuthorizationException(message="You do not have permission to remove this member")

        account = self.account_repo.get(user_id)
        email = normalize_email(account.email) if account else ""

        if not self.household_repo.remove_member(household_id, user_id):
            self.db.rollback()
            raise ResourceNotFoundException("Household member", user_id)

        logger.info(f"Account {user_id} removed from household {household_id} by {requester_id}")

        if email:
            self._cleanup_pending_invitations(household_id, email)

        return {"message": "Member removed successfully"}

    def _cleanup_pending_invitations(self, household_id: int, email: str) -> None:
        try:
            deleted = self.invitation_repo.delete_for_email(
                household_id, email, status=InvitationStatus.PENDING
            )
            if deleted:
                logger.info(f"Deleted {deleted} pending invitation(s) for {email} in household {household_id}")
        except SQLAlchemyError as ex:
            self.db.rollback()
            logger.warning(
                f"Could not clean up pending invitations for {email} in household {household_id}",
                exc_info=ex,
            )
