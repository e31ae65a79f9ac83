from sqlalchemy.orm import Session
from sqlalchemy import select, delete, update, and_
from typing import List, Optional
from app.models.invitation import HouseholdInvitation, InvitationStatus
from app.repositories.repository import BaseRepository


class InvitationRepository(BaseRepository[HouseholdInvitation]):
    """Repository for household invitations."""

    def __init__(self, db: Session):
        super().__init__(HouseholdInvitation, db)

    def get_for_email(
        self, household_id: int, email: str, status: Optional[InvitationStatus] = None
    ) -> Optional[HouseholdInvitation]:
        """The invitation row for (household, email), optionally only in one status."""
        filters = [
            HouseholdInvitation.household_id == household_id,
            HouseholdInvitation.email == email,
        ]
        if status is not None:
            filters.append(HouseholdInvitation.status == status)
        stmt = select(HouseholdInvitation).where(and_(*filters))
        return self.db.execute(stmt).scalars().first()

    def get_pending(self, household_id: int, email: str) -> Optional[HouseholdInvitation]:
        return self.get_for_email(household_id, email, InvitationStatus.PENDING)

    def get_by_household(self, household_id: int) -> List[HouseholdInvitation]:
        """All invitations of a household, newest first."""
        stmt = (
            select(HouseholdInvitation)
            .where(HouseholdInvitation.household_id == household_id)
            .order_by(HouseholdInvitation.created_at.desc(), HouseholdInvitation.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def delete_for_email(
        self, household_id: int, email: str, status: Optional[InvitationStatus] = None
    ) -> int:
        """
        Delete invitation rows for (household, email).

        Returns:
            Number of rows deleted
        """
        filters = [
            HouseholdInvitation.household_id == household_id,
            HouseholdInvitation.email == email,
        ]
        if status is not None:
            filters.append(HouseholdInvitation.status == status)
        result = self.db.execute(
            delete(HouseholdInvitation)
            .where(and_(*filters))
            .execution_options(synchronize_session="fetch")
        )
        self.db.commit()
        return result.rowcount or 0

    def mark_accepted(self, invitation_id: int) -> Optional[HouseholdInvitation]:
        return self.update(invitation_id, {"status": InvitationStatus.ACCEPTED})

    def accept_pending_for_email(self, household_id: int, email: str) -> int:
        """Mark any pending invitation for (household, email) accepted."""
        result = self.db.execute(
            update(HouseholdInvitation)
            .where(
                and_(
                    HouseholdInvitation.household_id == household_id,
                    HouseholdInvitation.email == email,
                    HouseholdInvitation.status == InvitationStatus.PENDING,
                )
            )
            .values(status=InvitationStatus.ACCEPTED)
            .execution_options(synchronize_session="fetch")
        )
        self.db.commit()
        return result.rowcount or 0

    def set_household_name(self, household_id: int, name: str) -> int:
        """Refresh the cached household name on every invitation of a household."""
        result = self.db.execute(
            update(HouseholdInvitation)
            .where(HouseholdInvitation.household_id == household_id)
            .values(household_name=name)
            .execution_options(synchronize_session="fetch")
        )
        self.db.commit()
        return result.rowcount or 0
