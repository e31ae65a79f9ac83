from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, TYPE_CHECKING
from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.account import Account
    from app.models.membership import HouseholdMember
    from app.models.invitation import HouseholdInvitation
    from app.models.movie import Movie


class Household(BaseModel):
    """
    A named group of accounts sharing one watch list.

    created_by_id never changes after insert; it is the authorization anchor
    for renames, invitations and member management.
    """

    __tablename__ = "households"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    created_by_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships
    created_by: Mapped["Account"] = relationship(
        "Account", foreign_keys=[created_by_id], lazy="selectin"
    )

    members: Mapped[List["HouseholdMember"]] = relationship(
        "HouseholdMember",
        back_populates="household",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    invitations: Mapped[List["HouseholdInvitation"]] = relationship(
        "HouseholdInvitation",
        back_populates="household",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )

    movies: Mapped[List["Movie"]] = relationship(
        "Movie",
        back_populates="household",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )
