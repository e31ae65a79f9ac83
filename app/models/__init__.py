from app.models.base import Base, BaseModel
from app.models.account import Account
from app.models.household import Household
from app.models.membership import HouseholdMember, MemberRole
from app.models.invitation import HouseholdInvitation, InvitationStatus
from app.models.movie import Movie, MovieStatus, ContentType

__all__ = [
    # Base
    "Base",
    "BaseModel",
    # Account
    "Account",
    # Household
    "Household",
    "HouseholdMember",
    "MemberRole",
    # Invitation
    "HouseholdInvitation",
    "InvitationStatus",
    # Watch list
    "Movie",
    "MovieStatus",
    "ContentType",
]
