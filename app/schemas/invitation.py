from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
import enum
from app.models.invitation import InvitationStatus


class InvitationFailure(str, enum.Enum):
    """Why an invitation flow did not succeed. Shown to users, never retried."""

    NOT_AUTHORIZED = "not_authorized"
    PROFILE_MISSING = "profile_missing"
    NOT_FOUND = "not_found"
    ALREADY_ACCEPTED = "already_accepted"
    EXPIRED = "expired"
    EMAIL_MISMATCH = "email_mismatch"
    ALREADY_MEMBER = "already_member"
    FAILED = "failed"


class InvitationCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, description="Email address to invite")


class InvitationResponse(BaseModel):
    """Invitation as rendered to whoever holds the link."""
    uuid: str
    household_id: int
    household_name: Optional[str] = None
    email: str
    invited_by_id: str
    status: InvitationStatus
    created_at: Optional[datetime] = None
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvitationOutcome(BaseModel):
    """
    Result of a user-facing invitation flow.

    Routine failures (expired link, wrong account) come back here with
    success=False instead of being raised.
    """
    success: bool
    message: str
    failure: Optional[InvitationFailure] = None
    invitation_id: Optional[str] = None
    invitation_link: Optional[str] = None
    household_id: Optional[int] = None

    @classmethod
    def ok(cls, message: str, **kwargs) -> "InvitationOutcome":
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, failure: InvitationFailure, message: str, **kwargs) -> "InvitationOutcome":
        return cls(success=False, failure=failure, message=message, **kwargs)
