from sqlalchemy import String, ForeignKey, DateTime, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime, timezone
import enum
from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.household import Household


class InvitationStatus(str, enum.Enum):
    """Stored invitation status. Expiry is also derived from expires_at."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class HouseholdInvitation(BaseModel):
    """
    Invitation of an email address into a household.

    The public uuid is the capability embedded in the invitation link.
    household_name is a copy of the household's name so the invitation can be
    rendered for someone who cannot see the household yet; it is refreshed
    whenever the household is renamed.
    """

    __tablename__ = "household_invitations"
    __table_args__ = (
        UniqueConstraint("household_id", "email", name="uq_household_invitations_household_email"),
    )

    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    invited_by_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[InvitationStatus] = mapped_column(
        SQLEnum(InvitationStatus), default=InvitationStatus.PENDING, nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    household_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, default=None)

    household: Mapped["Household"] = relationship(
        "Household", back_populates="invitations", lazy="select"
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once expires_at has passed, whatever the stored status says."""
        now = now or datetime.now(timezone.utc)
        return as_utc(now) > as_utc(self.expires_at)
