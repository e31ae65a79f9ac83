from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .security import decode_access_token
from app.models.account import Account
from app.schemas.account import Identity
from app.services.account_service import AccountService
from .core.exception import AuthenticationException, ResourceNotFoundException

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """
    Dependency resolving the identity provider session.
    Raises CustomException instead of HTTPException for consistent error handling.
    """
    if credentials is None:
        raise AuthenticationException("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationException("Could not validate credentials")

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationException("Could not validate credentials")

    email = payload.get("email")
    return Identity(id=str(subject), email=email or None)


async def get_current_user(
    identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)
) -> Account:
    """
    Dependency to get the account behind the current session.

    A valid session without an account row means profile setup has not run yet.

    Example:
        @router.get("/protected")
        async def protected_route(current_user: Account = Depends(get_current_user)):
            return {"user_id": current_user.id}
    """
    account = AccountService(db).get_account(identity.id)
    if account is None:
        raise ResourceNotFoundException("Account", identity.id)
    return account
