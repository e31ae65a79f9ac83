from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_identity, get_current_user
from app.models.account import Account
from app.schemas.account import Identity, AccountCreate, AccountUpdate, AccountResponse
from app.schemas.result import Result
from app.services.account_service import AccountService

router = APIRouter()


@router.post("/me", response_model=Result[AccountResponse], status_code=status.HTTP_201_CREATED)
async def setup_profile(
    profile: AccountCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Create the profile for the signed-in identity (first login).

    - **display_name**: Name shown to other household members
    """
    service = AccountService(db)
    account = service.create_account(identity, profile.display_name)
    return Result.successful(data=account)


@router.get("/me", response_model=Result[AccountResponse])
async def get_my_profile(current_user: Account = Depends(get_current_user)):
    """Get the current account's profile."""
    return Result.successful(data=current_user)


@router.patch("/me", response_model=Result[AccountResponse])
async def update_my_profile(
    profile: AccountUpdate,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change the current account's display name."""
    service = AccountService(db)
    account = service.update_display_name(current_user.id, profile.display_name)
    return Result.successful(data=account)
