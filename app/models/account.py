from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import relationship, Mapped, mapped_column
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from app.models.base import Base
if TYPE_CHECKING:
    from app.models.membership import HouseholdMember


class Account(Base):
    """
    Application profile for an authenticated identity.

    The primary key is the identity provider's subject, so an account row is
    created lazily on first login (profile setup) rather than at sign-up.
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, index=True, default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    memberships: Mapped[List["HouseholdMember"]] = relationship(
        "HouseholdMember",
        back_populates="account",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
