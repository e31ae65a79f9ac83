from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class Identity(BaseModel):
    """The authenticated session as supplied by the identity provider."""
    id: str
    email: Optional[str] = None


class AccountCreate(BaseModel):
    """Profile setup after first login."""
    display_name: str = Field(..., min_length=1, max_length=100)


class AccountUpdate(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=100)


class AccountResponse(BaseModel):
    id: str
    display_name: str
    email: Optional[str]
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
