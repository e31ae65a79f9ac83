from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from app.models.membership import MemberRole


class HouseholdCreate(BaseModel):
    """Schema for creating a new household."""
    name: str = Field(..., min_length=1, max_length=100, description="Household name")


class HouseholdUpdate(BaseModel):
    """Schema for renaming a household."""
    name: str = Field(..., min_length=1, max_length=100)


class HouseholdResponse(BaseModel):
    """Schema for household response."""
    id: int
    uuid: str
    name: str
    created_by_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class HouseholdMemberResponse(BaseModel):
    """A membership row with the member's display data."""
    id: int
    household_id: int
    user_id: str
    role: MemberRole = Field(..., description="Member role: 'admin' or 'member'")
    joined_at: Optional[datetime] = None
    display_name: Optional[str] = None
    email: Optional[str] = None


class AddMemberRequest(BaseModel):
    """Add an existing account by email, or invite the address if unknown."""
    email: str = Field(..., min_length=3, max_length=255)
