"""
Authorization predicates for households, memberships, invitations and movies.

These replace the row-visibility policies a hosted database would evaluate.
Every predicate:
- takes an explicit Session and the acting account id
- returns a bool; data questions never raise
- answers False for rows that do not exist, so callers cannot tell
  "not found" apart from "not allowed"

Rules:
- Household: visible to its creator and its members; only the creator may
  rename it, invite, or add members directly.
- Membership: visible to anyone who can see the household; a membership may be
  deleted by the household creator or by the member themself.
- Invitation: readable by anyone holding its uuid (the link is the
  capability); listing a household's invitations follows household visibility.
- Movie: members of the household may read and edit its watch list.
"""
from functools import singledispatch
from typing import Optional

from sqlalchemy import select, exists, and_
from sqlalchemy.orm import Session

from app.models.household import Household
from app.models.membership import HouseholdMember
from app.models.invitation import HouseholdInvitation
from app.models.movie import Movie


def _creator_of(session: Session, household_id: int) -> Optional[str]:
    return session.execute(
        select(Household.created_by_id).where(Household.id == household_id)
    ).scalar_one_or_none()


def is_member(session: Session, household_id: int, account_id: str) -> bool:
    stmt = select(
        exists().where(
            and_(
                HouseholdMember.household_id == household_id,
                HouseholdMember.user_id == account_id,
            )
        )
    )
    return bool(session.execute(stmt).scalar())


def is_creator(session: Session, household_id: int, account_id: str) -> bool:
    creator = _creator_of(session, household_id)
    return creator is not None and creator == account_id


def can_view_household(session: Session, household_id: int, account_id: str) -> bool:
    if not account_id:
        return False
    return is_creator(session, household_id, account_id) or is_member(
        session, household_id, account_id
    )


def can_update_household(session: Session, household_id: int, account_id: str) -> bool:
    return bool(account_id) and is_creator(session, household_id, account_id)


def can_manage_members(session: Session, household_id: int, account_id: str) -> bool:
    return bool(account_id) and is_creator(session, household_id, account_id)


def can_invite(session: Session, household_id: int, account_id: str) -> bool:
    return bool(account_id) and is_creator(session, household_id, account_id)


def can_remove_member(
    session: Session, household_id: int, target_user_id: str, account_id: str
) -> bool:
    if not account_id:
        return False
    if target_user_id == account_id:
        return True
    return is_creator(session, household_id, account_id)


def can_view_membership(session: Session, household_id: int, account_id: str) -> bool:
    return can_view_household(session, household_id, account_id)


def can_view_invitation(
    session: Session, invitation: HouseholdInvitation, account_id: Optional[str] = None
) -> bool:
    # Holding the uuid is enough; no session required.
    return invitation is not None


def can_view_movie(session: Session, household_id: int, account_id: str) -> bool:
    return bool(account_id) and is_member(session, household_id, account_id)


def can_edit_movies(session: Session, household_id: int, account_id: str) -> bool:
    return bool(account_id) and is_member(session, household_id, account_id)


@singledispatch
def can_view(entity, session: Session, account_id: Optional[str]) -> bool:
    """Row visibility for a loaded entity."""
    raise TypeError(f"No visibility rule for {type(entity).__name__}")


@can_view.register
def _(entity: Household, session: Session, account_id: Optional[str]) -> bool:
    return can_view_household(session, entity.id, account_id)


@can_view.register
def _(entity: HouseholdMember, session: Session, account_id: Optional[str]) -> bool:
    if account_id and entity.user_id == account_id:
        return True
    return can_view_membership(session, entity.household_id, account_id)


@can_view.register
def _(entity: HouseholdInvitation, session: Session, account_id: Optional[str]) -> bool:
    return can_view_invitation(session, entity, account_id)


@can_view.register
def _(entity: Movie, session: Session, account_id: Optional[str]) -> bool:
    return can_view_movie(session, entity.household_id, account_id)
