from sqlalchemy.orm import Session
from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
from app.models.household import Household
from app.models.account import Account
from app.models.membership import HouseholdMember, MemberRole
from app.repositories.repository import BaseRepository


class HouseholdRepository(BaseRepository[Household]):
    """Repository for household and membership operations."""

    def __init__(self, db: Session):
        super().__init__(Household, db)

    def get_user_households(self, user_id: str) -> List[Household]:
        """Get all households a user belongs to."""
        stmt = (
            select(Household)
            .join(HouseholdMember, HouseholdMember.household_id == Household.id)
            .where(HouseholdMember.user_id == user_id)
            .order_by(Household.created_at.desc(), Household.id.desc())
        )
        return list(self.db.execute(stmt).scalars().unique().all())

    def add_member(
        self, household_id: int, user_id: str, role: MemberRole = MemberRole.MEMBER
    ) -> HouseholdMember:
        """
        Insert a membership row.

        Raises:
            IntegrityError: The (household, user) pair already exists. The
                session is rolled back before re-raising.
        """
        member = HouseholdMember(household_id=household_id, user_id=user_id, role=role)
        self.db.add(member)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        self.db.refresh(member)
        return member

    def get_member(self, household_id: int, user_id: str) -> Optional[HouseholdMember]:
        stmt = select(HouseholdMember).where(
            and_(
                HouseholdMember.household_id == household_id,
                HouseholdMember.user_id == user_id
            )
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def remove_member(self, household_id: int, user_id: str) -> bool:
        """
        Remove a member from a household.

        Returns:
            True if removed, False if not a member
        """
        member = self.get_member(household_id, user_id)
        if member is None:
            return False

        self.db.delete(member)
        self.db.commit()
        return True

    def get_members(self, household_id: int) -> List[dict]:
        """
        Get all members of a household with their display data.

        Returns:
            List of dicts with membership and account info
        """
        stmt = (
            select(
                HouseholdMember.id,
                HouseholdMember.household_id,
                HouseholdMember.user_id,
                HouseholdMember.role,
                HouseholdMember.joined_at,
                Account.display_name,
                Account.email,
            )
            .join(Account, Account.id == HouseholdMember.user_id)
            .where(HouseholdMember.household_id == household_id)
            .order_by(HouseholdMember.joined_at, HouseholdMember.id)
        )

        results = self.db.execute(stmt).all()
        return [
            {
                "id": r.id,
                "household_id": r.household_id,
                "user_id": r.user_id,
                "role": r.role,
                "joined_at": r.joined_at,
                "display_name": r.display_name,
                "email": r.email,
            }
            for r in results
        ]

    def get_member_role(self, household_id: int, user_id: str) -> Optional[MemberRole]:
        """Get the role of a user in a household."""
        stmt = select(HouseholdMember.role).where(
            and_(
                HouseholdMember.household_id == household_id,
                HouseholdMember.user_id == user_id
            )
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def is_member(self, household_id: int, user_id: str) -> bool:
        """Check if a user is a member of a household."""
        return self.get_member_role(household_id, user_id) is not None

    def get_admins(self, household_id: int, lock: bool = False) -> List[HouseholdMember]:
        """
        Admin memberships of a household.

        With lock=True the rows are read FOR UPDATE, so a concurrent removal
        waits until this transaction commits. SQLite ignores the lock.
        """
        stmt = select(HouseholdMember).where(
            and_(
                HouseholdMember.household_id == household_id,
                HouseholdMember.role == MemberRole.ADMIN
            )
        )
        if lock:
            stmt = stmt.with_for_update()
        return list(self.db.execute(stmt).scalars().all())
