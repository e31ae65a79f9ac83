from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.dependencies import get_current_user
from app.models.account import Account
from app.schemas.household import (
    HouseholdCreate,
    HouseholdUpdate,
    HouseholdResponse,
    HouseholdMemberResponse,
    AddMemberRequest,
)
from app.schemas.invitation import InvitationCreate, InvitationOutcome, InvitationResponse
from app.schemas.result import Result
from app.services.household_service import HouseholdService
from app.services.invitation_service import InvitationService

router = APIRouter()


@router.post("", response_model=Result[HouseholdResponse], status_code=status.HTTP_201_CREATED)
async def create_household(
    household_data: HouseholdCreate,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new household with current user as admin."""
    service = HouseholdService(db)
    household = service.create_household(household_data.name, current_user.id)
    return Result.successful(data=household)


@router.get("", response_model=Result[List[HouseholdResponse]])
async def get_my_households(
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all households the current user belongs to."""
    service = HouseholdService(db)
    households = service.list_households_for_account(current_user.id)
    return Result.successful(data=households)


@router.get("/{household_id}", response_model=Result[HouseholdResponse])
async def get_household(
    household_id: int,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get household details."""
    service = HouseholdService(db)
    household = service.get_household(household_id, current_user.id)
    return Result.successful(data=household)


@router.put("/{household_id}", response_model=Result[HouseholdResponse])
async def update_household(
    household_id: int,
    household_data: HouseholdUpdate,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Rename the household (creator only)."""
    service = HouseholdService(db)
    household = service.update_household_name(household_id, household_data.name, current_user.id)
    return Result.successful(data=household)


@router.get("/{household_id}/members", response_model=Result[List[HouseholdMemberResponse]])
async def get_members(
    household_id: int,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all household members."""
    service = HouseholdService(db)
    members = service.list_members(household_id, current_user.id)
    return Result.successful(data=members)


@router.post("/{household_id}/members", response_model=Result[InvitationOutcome])
async def add_member_by_email(
    household_id: int,
    request: AddMemberRequest,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add an existing account by email, or invite the address (creator only)."""
    service = InvitationService(db)
    outcome = service.add_member_by_email(household_id, request.email, current_user.id)
    return Result.successful(data=outcome)


@router.delete("/{household_id}/members/{user_id}", response_model=Result[dict])
async def remove_member(
    household_id: int,
    user_id: str,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remove a member (creator), or leave the household (self)."""
    service = HouseholdService(db)
    result = service.remove_member(household_id, user_id, current_user.id)
    return Result.successful(data=result)


@router.post("/{household_id}/invitations", response_model=Result[InvitationOutcome])
async def create_invitation(
    household_id: int,
    request: InvitationCreate,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Invite an email address and get a shareable link (creator only)."""
    service = InvitationService(db)
    outcome = service.create_invitation(household_id, request.email, current_user.id)
    return Result.successful(data=outcome)


@router.get("/{household_id}/invitations", response_model=Result[List[InvitationResponse]])
async def list_invitations(
    household_id: int,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the household's invitations."""
    service = InvitationService(db)
    invitations = service.list_invitations(household_id, current_user.id)
    return Result.successful(data=invitations)
