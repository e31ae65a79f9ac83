import logging
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import List, Optional
from app.config import settings
from app.core import permissions
from app.models.invitation import HouseholdInvitation, InvitationStatus
from app.repositories.account_repository import AccountRepository, normalize_email
from app.repositories.household_repository import HouseholdRepository
from app.repositories.invitation_repository import InvitationRepository
from app.schemas.invitation import InvitationFailure, InvitationOutcome
from app.services.household_service import HouseholdService
from app.core.exception import (
    DuplicateMemberException,
    ResourceNotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)


def invitation_link(invitation: HouseholdInvitation) -> str:
    """Shareable link; the invitation uuid is the only secret in it."""
    return f"{settings.FRONTEND_URL.rstrip('/')}/invite/{invitation.uuid}"


def _clean_email(email: str) -> str:
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationException("Email cannot be empty", field="email")
    return normalized


class InvitationService:
    """
    Invitation lifecycle: issue, resolve, accept.

    pending -> accepted is the only stored transition. An invitation whose
    expires_at has passed is treated as expired at acceptance time even though
    its stored status still reads pending; there is no background sweep.
    """

    def __init__(self, db: Session):
        self.db = db
        self.invitation_repo = InvitationRepository(db)
        self.household_repo = HouseholdRepository(db)
        self.account_repo = AccountRepository(db)
        self.household_service = HouseholdService(db)

    def create_invitation(self, household_id: int, email: str, inviter_id: str) -> InvitationOutcome:
        """
        Invite an email address into a household (creator only).

        Re-inviting an address that already has a pending invitation returns
        that invitation again instead of creating a second one.

        Raises:
            ValidationException: If the email is empty
        """
        email = _clean_email(email)

        if not permissions.can_invite(self.db, household_id, inviter_id):
            return InvitationOutcome.fail(
                InvitationFailure.NOT_AUTHORIZED,
                "Only the household creator can send invitations.",
            )

        household = self.household_repo.get(household_id)

        pending = self.invitation_repo.get_pending(household_id, email)
        # An expired pending row falls through and is replaced below
        if pending and not pending.is_expired():
            if not pending.household_name:
                self.invitation_repo.update(pending.id, {"household_name": household.name})
            return self._link_outcome(pending, "Invitation already exists. Here's the link:")

        # Clear accepted/expired rows so the (household, email) constraint allows a fresh one
        try:
            self.invitation_repo.delete_for_email(household_id, email)
        except SQLAlchemyError as ex:
            self.db.rollback()
            logger.warning(
                f"Could not clear old invitations for {email} in household {household_id}",
                exc_info=ex,
            )

        invitation = HouseholdInvitation(
            household_id=household_id,
            email=email,
            invited_by_id=inviter_id,
            status=InvitationStatus.PENDING,
            expires_at=datetime.now(timezone.utc) + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
            household_name=household.name,
        )
        try:
            invitation = self.invitation_repo.create(invitation)
        except IntegrityError as ex:
            self.db.rollback()
            # A concurrent request may have inserted the same pending invitation
            pending = self.invitation_repo.get_pending(household_id, email)
            if pending:
                return self._link_outcome(pending, "Invitation already exists. Here's the link:")
            logger.error(f"Creating invitation for {email} in household {household_id} failed", exc_info=ex)
            return InvitationOutcome.fail(InvitationFailure.FAILED, "Failed to create invitation.")

        logger.info(f"Invitation {invitation.uuid} issued for household {household_id}")
        return self._link_outcome(invitation, "Invitation created! Share this link:")

    def get_invitation(self, invitation_id: str) -> Optional[HouseholdInvitation]:
        """Resolve an invitation by its uuid. No session needed; the uuid is the capability."""
        invitation = self.invitation_repo.get_by_uuid(invitation_id)
        if invitation is None or not permissions.can_view_invitation(self.db, invitation):
            return None
        return invitation

    def list_invitations(self, household_id: int, requester_id: str) -> List[HouseholdInvitation]:
        """
        All invitations of a household.

        Raises:
            ResourceNotFoundException: If the household is not visible
        """
        if not permissions.can_view_household(self.db, household_id, requester_id):
            raise ResourceNotFoundException("Household", household_id)
        return self.invitation_repo.get_by_household(household_id)

    def accept_invitation(
        self, invitation_id: str, account_id: str, session_email: Optional[str] = None
    ) -> InvitationOutcome:
        """
        Accept an invitation on behalf of the signed-in account.

        The account's email must match the invited address; that match is the
        authorization for joining. Accepting again once already a member
        succeeds without creating a second membership.

        Args:
            invitation_id: Invitation uuid from the link
            account_id: Accepting account
            session_email: Email from the identity provider, used when the
                profile has none
        """
        account = self.account_repo.get(account_id)
        if account is None:
            return InvitationOutcome.fail(
                InvitationFailure.PROFILE_MISSING,
                "User profile not found. Please complete your profile setup first.",
            )

        invitation = self.get_invitation(invitation_id)
        if invitation is None:
            return InvitationOutcome.fail(
                InvitationFailure.NOT_FOUND, "Invitation not found or has expired."
            )

        household_id = invitation.household_id
        account_email = normalize_email(account.email or session_email)
        email_matches = account_email == normalize_email(invitation.email)

        if invitation.status == InvitationStatus.ACCEPTED:
            if email_matches and self.household_repo.is_member(household_id, account.id):
                return self._already_member(household_id)
            return InvitationOutcome.fail(
                InvitationFailure.ALREADY_ACCEPTED,
                "This invitation has already been accepted.",
                household_id=household_id,
            )

        if invitation.status != InvitationStatus.PENDING or invitation.is_expired():
            return InvitationOutcome.fail(
                InvitationFailure.EXPIRED, "This invitation has expired."
            )

        if not email_matches:
            return InvitationOutcome.fail(
                InvitationFailure.EMAIL_MISMATCH,
                f"This invitation is for {invitation.email}, but you're logged in as "
                f"{account_email or 'a different email'}. Please log in with the correct account.",
            )

        if self.household_repo.is_member(household_id, account.id):
            self.invitation_repo.mark_accepted(invitation.id)
            return self._already_member(household_id)

        try:
            self.household_service.add_member(household_id, account.id)
        except DuplicateMemberException:
            # Lost a race with a concurrent accept of the same invitation
            self.invitation_repo.mark_accepted(invitation.id)
            return self._already_member(household_id)
        except SQLAlchemyError as ex:
            self.db.rollback()
            logger.error(f"Accepting invitation {invitation.uuid} failed", exc_info=ex)
            return InvitationOutcome.fail(InvitationFailure.FAILED, "Failed to accept invitation.")

        self.invitation_repo.mark_accepted(invitation.id)
        logger.info(f"Invitation {invitation.uuid} accepted by {account.id}")
        return InvitationOutcome.ok(
            f"You've been added to {invitation.household_name or 'the household'}!",
            invitation_id=invitation.uuid,
            household_id=household_id,
        )

    def add_member_by_email(self, household_id: int, email: str, requester_id: str) -> InvitationOutcome:
        """
        Add the account registered under email, or invite the address if
        nobody has signed up with it yet.

        Raises:
            ValidationException: If the email is empty
        """
        email = _clean_email(email)

        if not permissions.can_manage_members(self.db, household_id, requester_id):
            return InvitationOutcome.fail(
                InvitationFailure.NOT_AUTHORIZED,
                "Only the household creator can add members.",
            )

        account = self.account_repo.get_by_email(email)
        if account is None:
            return self.create_invitation(household_id, email, requester_id)

        if self.household_repo.is_member(household_id, account.id):
            return InvitationOutcome.fail(
                InvitationFailure.ALREADY_MEMBER,
                "User is already a member of this household.",
                household_id=household_id,
            )

        try:
            self.household_service.add_member(household_id, account.id)
        except DuplicateMemberException:
            return InvitationOutcome.fail(
                InvitationFailure.ALREADY_MEMBER,
                "User is already a member of this household.",
                household_id=household_id,
            )

        self.invitation_repo.accept_pending_for_email(household_id, email)
        return InvitationOutcome.ok(
            f"{account.display_name} has been added to the household!",
            household_id=household_id,
        )

    def _link_outcome(self, invitation: HouseholdInvitation, message: str) -> InvitationOutcome:
        return InvitationOutcome.ok(
            message,
            invitation_id=invitation.uuid,
            invitation_link=invitation_link(invitation),
            household_id=invitation.household_id,
        )

    def _already_member(self, household_id: int) -> InvitationOutcome:
        return InvitationOutcome.ok(
            "You are already a member of this household.",
            household_id=household_id,
        )
