from sqlalchemy.orm import Session
from typing import Optional
from app.models.account import Account
from app.repositories.account_repository import AccountRepository, normalize_email
from app.schemas.account import Identity
from app.core.exception import (
    ResourceNotFoundException,
    DuplicateResourceException,
    ValidationException,
)


class AccountService:
    """Service layer for account profiles."""

    def __init__(self, db: Session):
        self.db = db
        self.account_repo = AccountRepository(db)

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.account_repo.get(account_id)

    def find_account_by_email(self, email: str) -> Optional[Account]:
        """Find an account by email, ignoring case and surrounding whitespace."""
        return self.account_repo.get_by_email(email)

    def create_account(self, identity: Identity, display_name: str) -> Account:
        """
        Create the profile row for a freshly authenticated identity.

        The email comes from the session, not from the client, since
        invitation acceptance is gated on it.
        """
        display_name = (display_name or "").strip()
        if not display_name:
            raise ValidationException("Display name cannot be empty", field="display_name")

        if self.account_repo.exists(identity.id):
            raise DuplicateResourceException("Account", identity.id)

        account = Account(
            id=identity.id,
            display_name=display_name,
            email=normalize_email(identity.email) or None,
        )
        return self.account_repo.create(account)

    def update_display_name(self, account_id: str, display_name: str) -> Account:
        display_name = (display_name or "").strip()
        if not display_name:
            raise ValidationException("Display name cannot be empty", field="display_name")

        account = self.account_repo.update_display_name(account_id, display_name)
        if account is None:
            raise ResourceNotFoundException("Account", account_id)
        return account
