"""
Membership rows linking accounts to households.
Kept separate to avoid circular imports between Account and Household.
"""
from sqlalchemy import String, ForeignKey, DateTime, UniqueConstraint, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from datetime import datetime
import enum
from app.models.base import Base

if TYPE_CHECKING:
    from app.models.account import Account
    from app.models.household import Household


class MemberRole(str, enum.Enum):
    """Role of an account inside a household"""

    ADMIN = "admin"
    MEMBER = "member"


class HouseholdMember(Base):
    __tablename__ = "household_members"
    __table_args__ = (
        UniqueConstraint("household_id", "user_id", name="uq_household_members_household_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True, autoincrement=True)
    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[MemberRole] = mapped_column(
        SQLEnum(MemberRole), default=MemberRole.MEMBER, nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    household: Mapped["Household"] = relationship(
        "Household", back_populates="members", lazy="selectin"
    )
    account: Mapped["Account"] = relationship(
        "Account", back_populates="memberships", lazy="selectin"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN
